import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, desc, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from finflow.config import settings, MIN_TRANSACTION_DATE
from finflow.core.errors import ConflictError, NotFoundError, ValidationError
from finflow.core.security import AuthContext
from finflow.models.transaction import Transaction, Category, Budget, RecurringTransaction
from finflow.models.user import Feedback
from finflow.schemas.analytics import BalanceOverview, MonthlyTrend, PeriodSummary
from finflow.schemas.auth import FeedbackCreate
from finflow.schemas.budget import BudgetAlert, BudgetCreate, BudgetResponse, BudgetStatus
from finflow.schemas.category import CategoryCreate
from finflow.schemas.recurring import GenerationResult, RecurringCreate
from finflow.schemas.transaction import TransactionCreate, TransactionResponse, TransactionUpdate
from finflow.services import budget as budget_calc
from finflow.services import summary as summary_calc
from finflow.services.recurring import due_dates
from finflow.services.snapshot import snapshot_cache, BUDGETS, TRANSACTIONS

logger = logging.getLogger(__name__)


def _one_year_after(d: date) -> date:
    try:
        return d.replace(year=d.year + 1)
    except ValueError:
        # Feb 29
        return d.replace(year=d.year + 1, day=28)


class FinanceService:
    @staticmethod
    def get_today() -> date:
        return settings.FROZEN_TODAY or date.today()

    # --- snapshot ---

    @staticmethod
    async def _load_snapshot(db: AsyncSession, auth: AuthContext) -> tuple[list, list]:
        if settings.SNAPSHOT_CACHE_ENABLED:
            cached = snapshot_cache.get(auth.user_id)
            if cached is not None:
                return cached.rows(TRANSACTIONS), cached.rows(BUDGETS)

        token = snapshot_cache.begin_fetch(auth.user_id)

        trx_res = await db.execute(select(Transaction).where(Transaction.user_id == auth.user_id))
        transactions = [TransactionResponse.model_validate(t) for t in trx_res.scalars().all()]

        b_res = await db.execute(select(Budget).where(Budget.user_id == auth.user_id))
        budgets = [BudgetResponse.model_validate(b) for b in b_res.scalars().all()]

        if settings.SNAPSHOT_CACHE_ENABLED:
            snapshot_cache.complete_fetch(auth.user_id, token, transactions, budgets)
        return transactions, budgets

    # --- transactions ---

    @staticmethod
    def _validate_transaction_date(trx_date: date):
        if trx_date < MIN_TRANSACTION_DATE:
            raise ValidationError("Transaction date cannot be before year 2000")
        if trx_date > _one_year_after(FinanceService.get_today()):
            raise ValidationError("Transaction date cannot be more than 1 year in the future")

    @staticmethod
    async def _get_owned(db: AsyncSession, model, object_id: int, auth: AuthContext, label: str):
        res = await db.execute(select(model).where(and_(model.id == object_id, model.user_id == auth.user_id)))
        obj = res.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(f"{label} not found")
        return obj

    @staticmethod
    async def list_transactions(db: AsyncSession, auth: AuthContext, start: Optional[date] = None,
                                end: Optional[date] = None, skip: int = 0, limit: int = 100):
        query = select(Transaction).where(Transaction.user_id == auth.user_id)
        if start is not None:
            query = query.where(Transaction.date >= start)
        if end is not None:
            query = query.where(Transaction.date <= end)
        query = query.order_by(desc(Transaction.date), desc(Transaction.id)).offset(skip).limit(limit)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def get_transaction(db: AsyncSession, auth: AuthContext, transaction_id: int):
        return await FinanceService._get_owned(db, Transaction, transaction_id, auth, "Transaction")

    @staticmethod
    async def create_transaction(db: AsyncSession, auth: AuthContext, trx: TransactionCreate) -> TransactionResponse:
        FinanceService._validate_transaction_date(trx.date)

        db_obj = Transaction(user_id=auth.user_id, **trx.model_dump())
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)

        record = TransactionResponse.model_validate(db_obj)
        snapshot_cache.upsert(auth.user_id, TRANSACTIONS, record)
        logger.info(f"User {auth.user_id} added {record.type} transaction {record.id}")
        return record

    @staticmethod
    async def update_transaction(db: AsyncSession, auth: AuthContext, transaction_id: int,
                                 trx: TransactionUpdate) -> TransactionResponse:
        db_obj = await FinanceService._get_owned(db, Transaction, transaction_id, auth, "Transaction")
        FinanceService._validate_transaction_date(trx.date)

        for field, value in trx.model_dump().items():
            setattr(db_obj, field, value)

        await db.commit()
        await db.refresh(db_obj)

        record = TransactionResponse.model_validate(db_obj)
        snapshot_cache.upsert(auth.user_id, TRANSACTIONS, record)
        return record

    @staticmethod
    async def delete_transaction(db: AsyncSession, auth: AuthContext, transaction_id: int):
        db_obj = await FinanceService._get_owned(db, Transaction, transaction_id, auth, "Transaction")
        await db.delete(db_obj)
        await db.commit()
        snapshot_cache.remove(auth.user_id, TRANSACTIONS, transaction_id)
        return {"status": "deleted", "id": transaction_id}

    # --- categories ---

    @staticmethod
    async def list_categories(db: AsyncSession, auth: AuthContext, flow_type: Optional[str] = None):
        query = select(Category).where(Category.user_id == auth.user_id)
        if flow_type:
            query = query.where(Category.type == flow_type)
        result = await db.execute(query.order_by(Category.name))
        return result.scalars().all()

    @staticmethod
    async def create_category(db: AsyncSession, auth: AuthContext, category: CategoryCreate):
        res = await db.execute(
            select(Category).where(
                and_(
                    Category.user_id == auth.user_id,
                    Category.name == category.name,
                    Category.type == category.type
                )
            )
        )
        if res.scalar_one_or_none():
            raise ConflictError(f"Category '{category.name}' already exists for {category.type}")

        db_obj = Category(user_id=auth.user_id, name=category.name, type=category.type)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    @staticmethod
    async def delete_category(db: AsyncSession, auth: AuthContext, category_id: int):
        # Transactions and budgets keep the label of a deleted category
        db_obj = await FinanceService._get_owned(db, Category, category_id, auth, "Category")
        await db.delete(db_obj)
        await db.commit()
        return {"status": "deleted", "id": category_id}

    # --- budgets ---

    @staticmethod
    async def create_budget(db: AsyncSession, auth: AuthContext, budget: BudgetCreate) -> BudgetResponse:
        res = await db.execute(
            select(Budget).where(
                and_(
                    Budget.user_id == auth.user_id,
                    Budget.category == budget.category,
                    Budget.type == budget.type
                )
            )
        )
        clash = budget_calc.find_overlapping_budget(
            res.scalars().all(), budget.category, budget.type, budget.period_start, budget.period_end
        )
        if clash is not None:
            logger.warning(f"User {auth.user_id} budget for {budget.category} overlaps budget {clash.id}")
            raise ConflictError("A budget already exists for this category in this period")

        db_obj = Budget(user_id=auth.user_id, **budget.model_dump())
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)

        record = BudgetResponse.model_validate(db_obj)
        snapshot_cache.upsert(auth.user_id, BUDGETS, record)
        logger.info(f"User {auth.user_id} created budget {record.id} for {record.category}")
        return record

    @staticmethod
    async def delete_budget(db: AsyncSession, auth: AuthContext, budget_id: int):
        db_obj = await FinanceService._get_owned(db, Budget, budget_id, auth, "Budget")
        await db.delete(db_obj)
        await db.commit()
        snapshot_cache.remove(auth.user_id, BUDGETS, budget_id)
        return {"status": "deleted", "id": budget_id}

    @staticmethod
    async def get_budget_statuses(db: AsyncSession, auth: AuthContext) -> list[BudgetStatus]:
        transactions, budgets = await FinanceService._load_snapshot(db, auth)
        budgets = sorted(budgets, key=lambda b: b.id, reverse=True)
        return budget_calc.compute_budget_status(budgets, transactions)

    @staticmethod
    async def get_budget_alerts(db: AsyncSession, auth: AuthContext) -> list[BudgetAlert]:
        statuses = await FinanceService.get_budget_statuses(db, auth)
        return budget_calc.budget_alerts(statuses)

    # --- recurring ---

    @staticmethod
    async def list_recurring(db: AsyncSession, auth: AuthContext):
        result = await db.execute(
            select(RecurringTransaction)
            .where(RecurringTransaction.user_id == auth.user_id)
            .order_by(desc(RecurringTransaction.id))
        )
        return result.scalars().all()

    @staticmethod
    async def create_recurring(db: AsyncSession, auth: AuthContext, rule: RecurringCreate):
        # The first occurrence is a transaction date
        FinanceService._validate_transaction_date(rule.start_date)

        data = rule.model_dump()
        data['description'] = data.get('description') or None
        db_obj = RecurringTransaction(user_id=auth.user_id, is_active=True, **data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        logger.info(f"User {auth.user_id} created {rule.frequency} recurring rule {db_obj.id}")
        return db_obj

    @staticmethod
    async def set_recurring_active(db: AsyncSession, auth: AuthContext, rule_id: int, is_active: bool):
        db_obj = await FinanceService._get_owned(db, RecurringTransaction, rule_id, auth, "Recurring transaction")
        db_obj.is_active = is_active
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    @staticmethod
    async def delete_recurring(db: AsyncSession, auth: AuthContext, rule_id: int):
        db_obj = await FinanceService._get_owned(db, RecurringTransaction, rule_id, auth, "Recurring transaction")
        await db.execute(
            update(Transaction)
            .where(and_(Transaction.user_id == auth.user_id, Transaction.recurring_id == rule_id))
            .values(recurring_id=None)
        )
        await db.delete(db_obj)
        await db.commit()
        # Generated transactions changed in bulk
        snapshot_cache.invalidate(auth.user_id)
        return {"status": "deleted", "id": rule_id}

    @staticmethod
    async def generate_recurring(db: AsyncSession, auth: AuthContext, as_of: Optional[date] = None) -> GenerationResult:
        today = FinanceService.get_today()
        as_of = as_of or today
        if as_of > _one_year_after(today):
            raise ValidationError("Generation date cannot be more than 1 year in the future")

        result = await db.execute(
            select(RecurringTransaction).where(
                and_(RecurringTransaction.user_id == auth.user_id, RecurringTransaction.is_active.is_(True))
            )
        )
        rules = result.scalars().all()

        created = []
        for rule in rules:
            previous = rule.last_generated
            dates = due_dates(rule, as_of)
            if not dates:
                continue

            # Claim the dates by advancing last_generated only if no concurrent run already has
            if previous is None:
                unchanged = RecurringTransaction.last_generated.is_(None)
            else:
                unchanged = RecurringTransaction.last_generated == previous
            claim = await db.execute(
                update(RecurringTransaction)
                .where(and_(RecurringTransaction.id == rule.id, unchanged))
                .values(last_generated=dates[-1])
                .execution_options(synchronize_session=False)
            )
            if claim.rowcount == 0:
                logger.warning(f"Recurring rule {rule.id} was generated concurrently, skipping")
                continue
            rule.last_generated = dates[-1]

            for d in dates:
                created.append(Transaction(
                    user_id=auth.user_id,
                    date=d,
                    amount=rule.amount,
                    type=rule.type,
                    category=rule.category,
                    description=rule.description,
                    recurring_id=rule.id
                ))

        if created:
            db.add_all(created)
        await db.commit()

        records = []
        for obj in created:
            await db.refresh(obj)
            record = TransactionResponse.model_validate(obj)
            snapshot_cache.upsert(auth.user_id, TRANSACTIONS, record)
            records.append(record)

        logger.info(f"Generated {len(records)} recurring transactions for user {auth.user_id} as of {as_of}")
        return GenerationResult(as_of=as_of, rules_processed=len(rules), created=records)

    # --- analytics ---

    @staticmethod
    async def get_period_summary(db: AsyncSession, auth: AuthContext, start: date, end: date,
                                 top_n: Optional[int] = None) -> PeriodSummary:
        if start > end:
            raise ValidationError("Start date must not be after end date")
        transactions, _ = await FinanceService._load_snapshot(db, auth)
        return summary_calc.summarize_period(transactions, start, end, top_n)

    @staticmethod
    async def get_monthly_trend(db: AsyncSession, auth: AuthContext, months: int) -> MonthlyTrend:
        transactions, _ = await FinanceService._load_snapshot(db, auth)
        return summary_calc.monthly_trend(transactions, months)

    @staticmethod
    async def get_overview(db: AsyncSession, auth: AuthContext) -> BalanceOverview:
        transactions, _ = await FinanceService._load_snapshot(db, auth)
        return summary_calc.balance_overview(transactions, FinanceService.get_today())

    # --- feedback ---

    @staticmethod
    async def submit_feedback(db: AsyncSession, auth: AuthContext, feedback: FeedbackCreate):
        db_obj = Feedback(
            user_id=auth.user_id,
            user_email=auth.email or None,
            feedback_type=feedback.feedback_type,
            message=feedback.message
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        logger.info(f"Feedback {db_obj.id} ({feedback.feedback_type}) from user {auth.user_id}")
        return db_obj
