from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date

from finflow.config import settings
from finflow.core.database import get_db
from finflow.core.security import AuthContext, get_auth_context
from finflow.schemas.analytics import BalanceOverview, MonthlyTrend, PeriodSummary
from finflow.schemas.auth import FeedbackCreate, FeedbackResponse, TokenResponse, UserRegister, UserResponse
from finflow.schemas.budget import BudgetAlert, BudgetCreate, BudgetResponse, BudgetStatus
from finflow.schemas.category import CategoryCreate, CategoryResponse
from finflow.schemas.recurring import GenerationResult, RecurringCreate, RecurringResponse, RecurringToggle
from finflow.schemas.transaction import FlowType, TransactionCreate, TransactionResponse, TransactionUpdate
from finflow.services.auth import AuthService
from finflow.services.finance import FinanceService
from finflow.services.summary import parse_month

api_router = APIRouter()


@api_router.post("/auth/register", response_model=UserResponse, status_code=201, tags=["Auth"])
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, data)


@api_router.post("/auth/login", response_model=TokenResponse, tags=["Auth"])
async def login(form: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    token = await AuthService.login(db, form.username, form.password)
    return {"access_token": token, "token_type": "bearer"}


@api_router.post("/auth/logout", tags=["Auth"])
async def logout(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await AuthService.logout(db, auth)


@api_router.get("/auth/me", response_model=UserResponse, tags=["Auth"])
async def me(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await AuthService.get_user(db, auth)


@api_router.get("/transactions", response_model=List[TransactionResponse], tags=["Transactions"])
async def list_transactions(
        start: Optional[date] = None,
        end: Optional[date] = None,
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=1000),
        auth: AuthContext = Depends(get_auth_context),
        db: AsyncSession = Depends(get_db)
):
    return await FinanceService.list_transactions(db, auth, start, end, skip, limit)


@api_router.post("/transactions", response_model=TransactionResponse, status_code=201, tags=["Transactions"])
async def add_transaction(trx: TransactionCreate, auth: AuthContext = Depends(get_auth_context),
                          db: AsyncSession = Depends(get_db)):
    return await FinanceService.create_transaction(db, auth, trx)


@api_router.get("/transactions/{transaction_id}", response_model=TransactionResponse, tags=["Transactions"])
async def get_transaction(transaction_id: int, auth: AuthContext = Depends(get_auth_context),
                          db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_transaction(db, auth, transaction_id)


@api_router.put("/transactions/{transaction_id}", response_model=TransactionResponse, tags=["Transactions"])
async def update_transaction(transaction_id: int, trx: TransactionUpdate,
                             auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.update_transaction(db, auth, transaction_id, trx)


@api_router.delete("/transactions/{transaction_id}", tags=["Transactions"])
async def delete_transaction(transaction_id: int, auth: AuthContext = Depends(get_auth_context),
                             db: AsyncSession = Depends(get_db)):
    return await FinanceService.delete_transaction(db, auth, transaction_id)


@api_router.get("/categories", response_model=List[CategoryResponse], tags=["Categories"])
async def list_categories(type: Optional[FlowType] = None, auth: AuthContext = Depends(get_auth_context),
                          db: AsyncSession = Depends(get_db)):
    return await FinanceService.list_categories(db, auth, type)


@api_router.post("/categories", response_model=CategoryResponse, status_code=201, tags=["Categories"])
async def add_category(category: CategoryCreate, auth: AuthContext = Depends(get_auth_context),
                       db: AsyncSession = Depends(get_db)):
    return await FinanceService.create_category(db, auth, category)


@api_router.delete("/categories/{category_id}", tags=["Categories"])
async def delete_category(category_id: int, auth: AuthContext = Depends(get_auth_context),
                          db: AsyncSession = Depends(get_db)):
    return await FinanceService.delete_category(db, auth, category_id)


@api_router.get("/budgets", response_model=List[BudgetStatus], tags=["Budgets"])
async def get_budgets(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_budget_statuses(db, auth)


@api_router.get("/budgets/alerts", response_model=List[BudgetAlert], tags=["Budgets"])
async def get_budget_alerts(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_budget_alerts(db, auth)


@api_router.post("/budgets", response_model=BudgetResponse, status_code=201, tags=["Budgets"])
async def create_budget(budget: BudgetCreate, auth: AuthContext = Depends(get_auth_context),
                        db: AsyncSession = Depends(get_db)):
    return await FinanceService.create_budget(db, auth, budget)


@api_router.delete("/budgets/{budget_id}", tags=["Budgets"])
async def delete_budget(budget_id: int, auth: AuthContext = Depends(get_auth_context),
                        db: AsyncSession = Depends(get_db)):
    return await FinanceService.delete_budget(db, auth, budget_id)


@api_router.get("/recurring", response_model=List[RecurringResponse], tags=["Recurring"])
async def list_recurring(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.list_recurring(db, auth)


@api_router.post("/recurring", response_model=RecurringResponse, status_code=201, tags=["Recurring"])
async def create_recurring(rule: RecurringCreate, auth: AuthContext = Depends(get_auth_context),
                           db: AsyncSession = Depends(get_db)):
    return await FinanceService.create_recurring(db, auth, rule)


@api_router.post("/recurring/generate", response_model=GenerationResult, tags=["Recurring"])
async def generate_recurring(as_of: Optional[date] = None, auth: AuthContext = Depends(get_auth_context),
                             db: AsyncSession = Depends(get_db)):
    return await FinanceService.generate_recurring(db, auth, as_of)


@api_router.patch("/recurring/{rule_id}", response_model=RecurringResponse, tags=["Recurring"])
async def toggle_recurring(rule_id: int, toggle: RecurringToggle, auth: AuthContext = Depends(get_auth_context),
                           db: AsyncSession = Depends(get_db)):
    return await FinanceService.set_recurring_active(db, auth, rule_id, toggle.is_active)


@api_router.delete("/recurring/{rule_id}", tags=["Recurring"])
async def delete_recurring(rule_id: int, auth: AuthContext = Depends(get_auth_context),
                           db: AsyncSession = Depends(get_db)):
    return await FinanceService.delete_recurring(db, auth, rule_id)


@api_router.get("/analytics/summary", response_model=PeriodSummary, tags=["Analytics"])
async def get_period_summary(
        month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$"),
        start: Optional[date] = None,
        end: Optional[date] = None,
        top: Optional[int] = Query(None, ge=1),
        auth: AuthContext = Depends(get_auth_context),
        db: AsyncSession = Depends(get_db)
):
    if month:
        try:
            start, end = parse_month(month)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    elif (start is None) != (end is None):
        raise HTTPException(status_code=422, detail="Both start and end are required for a custom range")
    elif start is None:
        start, end = parse_month(FinanceService.get_today().strftime("%Y-%m"))
    return await FinanceService.get_period_summary(db, auth, start, end, top)


@api_router.get("/analytics/monthly", response_model=MonthlyTrend, tags=["Analytics"])
async def get_monthly_trend(months: int = Query(settings.TREND_MONTHS, ge=1, le=120),
                            auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_monthly_trend(db, auth, months)


@api_router.get("/analytics/overview", response_model=BalanceOverview, tags=["Analytics"])
async def get_overview(auth: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    return await FinanceService.get_overview(db, auth)


@api_router.post("/feedback", response_model=FeedbackResponse, status_code=201, tags=["System"])
async def submit_feedback(feedback: FeedbackCreate, auth: AuthContext = Depends(get_auth_context),
                          db: AsyncSession = Depends(get_db)):
    return await FinanceService.submit_feedback(db, auth, feedback)
