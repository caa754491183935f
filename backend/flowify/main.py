"""FlowiFy API - Aplicação principal FastAPI."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import Base, engine
from .errors import FlowifyError, SchedulingNotFound, TransactionFailure
from .routers import (
    admin,
    announcements,
    auth,
    billing,
    cep,
    plans,
    pre_schedulings,
    products,
    sales,
    schedulings,
    support,
    webhooks,
)
from .schemas import HealthResponse

APP_VERSION = "1.0.0"

# === Logging ===

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# === Rate Limiter ===

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


# === Lifespan ===


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia o ciclo de vida da aplicação."""
    logger.info("Iniciando FlowiFy API...")

    # Em produção as tabelas vêm do Alembic
    if settings.is_development:
        logger.info("Ambiente de desenvolvimento: criando tabelas...")
        Base.metadata.create_all(bind=engine)

    logger.info("API iniciada com sucesso!")
    yield

    logger.info("Encerrando FlowiFy API...")


# === App ===

app = FastAPI(
    title="FlowiFy API",
    description="API de gestão de vendas com pagamento na entrega",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# === Middleware ===

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# === Exception Handlers ===


@app.exception_handler(FlowifyError)
async def flowify_error_handler(request: Request, exc: FlowifyError) -> JSONResponse:
    """Converte erros de domínio em respostas HTTP."""
    content: dict = {"detail": exc.message}
    if isinstance(exc, SchedulingNotFound) and exc.sale_id is not None:
        content["sale_id"] = exc.sale_id
    if isinstance(exc, TransactionFailure):
        content["ambiguous"] = exc.ambiguous

    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} em {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler global para exceções não tratadas."""
    logger.exception(f"Erro não tratado: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Erro interno do servidor"
            if settings.is_production
            else str(exc)
        },
    )


# === Routers ===

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(plans.router, prefix="/plans", tags=["plans"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(schedulings.router, prefix="/schedulings", tags=["schedulings"])
app.include_router(pre_schedulings.router, prefix="/pre-schedulings", tags=["pre-schedulings"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(billing.router, prefix="/billing", tags=["billing"])
app.include_router(cep.router, prefix="/cep", tags=["cep"])
app.include_router(support.router, prefix="/support", tags=["support"])
app.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(support.admin_router, prefix="/admin/support", tags=["admin-support"])
app.include_router(announcements.admin_router, prefix="/admin/announcements", tags=["admin-announcements"])


# === Health Check ===


@app.get("/health", response_model=HealthResponse, tags=["health"])
def health_check() -> HealthResponse:
    """Verifica a saúde da aplicação e do banco de dados."""
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Health check DB falhou: {e}")

    return HealthResponse(status="ok" if db_ok else "down", db=db_ok, version=APP_VERSION)


@app.get("/", tags=["root"])
def root() -> dict:
    """Endpoint raiz com informações básicas da API."""
    return {
        "app": "FlowiFy API",
        "version": APP_VERSION,
        "docs": "/docs" if not settings.is_production else None,
        "health": "/health",
    }
