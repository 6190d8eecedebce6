from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from app.database.database import get_engine, Base, check_database_connection

# Import middleware and envelopes
from app.common.middleware import (
    SecurityHeadersMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    RequestIDMiddleware,
)
from app.common.responses import register_exception_handlers, success_response

# Import routers
from app.modules.auth.router import auth_router
from app.modules.users.router import users_router
from app.modules.workers.router import workers_router
from app.modules.categories.router import categories_router
from app.modules.products.router import products_router
from app.modules.inventory.router import (
    stock_movements_router,
    stock_additions_router,
    stock_corrections_router,
)
from app.modules.sales.router import sales_router, sales_audit_router
from app.modules.contacts.router import contacts_router
from app.modules.expenses.router import expenses_router
from app.modules.deposits.router import deposits_router
from app.modules.transactions.router import transactions_router
from app.modules.dashboard.router import dashboard_router
from app.modules.files.router import folders_router, files_router
from app.modules.reports.routers import reports_router

# Import models for table creation
import app.modules.auth.models
import app.modules.workers.models
import app.modules.categories.models
import app.modules.products.models
import app.modules.inventory.models
import app.modules.sales.models
import app.modules.contacts.models
import app.modules.expenses.models
import app.modules.deposits.models
import app.modules.transactions.models
import app.modules.files.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.is_development else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="LocalFishing API",
    description="Inventory, sales and finance backend for a fish retail business",
    version=settings.APP_VERSION,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None
)

register_exception_handlers(app)

# Add middleware (last added runs first)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Total-Count", "X-Page", "X-Per-Page"],
)

# Include routers
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(workers_router, prefix="/api/workers", tags=["Workers"])
app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(stock_movements_router, prefix="/api/stock-movements", tags=["Inventory"])
app.include_router(stock_additions_router, prefix="/api/stock-additions", tags=["Inventory"])
app.include_router(stock_corrections_router, prefix="/api/stock-corrections", tags=["Inventory"])
app.include_router(sales_router, prefix="/api/sales", tags=["Sales"])
app.include_router(sales_audit_router, prefix="/api/sales-audit", tags=["Sales Audit"])
app.include_router(contacts_router, prefix="/api/contacts", tags=["Contacts"])
app.include_router(expenses_router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(deposits_router, prefix="/api/deposits", tags=["Deposits"])
app.include_router(transactions_router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(folders_router, prefix="/api/folders", tags=["Files"])
app.include_router(files_router, prefix="/api/files", tags=["Files"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


@app.get("/")
async def read_root():
    return {
        "success": True,
        "message": "LocalFishing API is running",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs",
    }


@app.get("/health")
def health_check():
    return success_response(
        message="LocalFishing Backend is running",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        database=check_database_connection(),
    )


@app.on_event("startup")
async def startup_event():
    logger.info("LocalFishing API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Create database tables (only for development, no migrations tool)
    if settings.is_development:
        try:
            Base.metadata.create_all(bind=get_engine())
        except Exception as e:
            logger.warning(f"Table creation skipped or failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("LocalFishing API shutting down...")
