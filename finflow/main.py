import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from finflow.config import settings
from finflow.core.database import init_db
from finflow.core.errors import FinflowError, finflow_error_handler
from finflow.core.log import configure_logging
from finflow.api.router import api_router

configure_logging()
logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "Auth",
        "description": "Registration, login sessions and logout.",
    },
    {
        "name": "Transactions",
        "description": "Income and expense records.",
    },
    {
        "name": "Categories",
        "description": "Per-user inflow and outflow labels.",
    },
    {
        "name": "Budgets",
        "description": "Planned amounts per category and period, with progress and alerts.",
    },
    {
        "name": "Recurring",
        "description": "Scheduled transactions and their materialization.",
    },
    {
        "name": "Analytics",
        "description": "Period summaries, monthly trends and balance cards.",
    },
    {
        "name": "System",
        "description": "Feedback and health.",
    },
]

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
### API

Personal finance tracking: transactions, categories, budgets with alerts,
recurring entries and aggregated reports.

    """,
    version=settings.VERSION,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(FinflowError, finflow_error_handler)


@app.on_event("startup")
async def startup():
    await init_db()
    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started")


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["System"])
def health():
    return {
        "status": "operational",
        "version": settings.VERSION,
        "frozen_today": settings.FROZEN_TODAY
    }
