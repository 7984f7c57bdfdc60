from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.exceptions import register_exception_handlers
from .api.routes import health_router, router as accounts_router, transfer_router
from .core.config import get_settings
from .core.db import get_engine, init_db
from .core.log import configure_logging
from .services import (
    AccountService,
    SessionScope,
    SqlAccountStore,
    SqlTransactionStore,
    TransferEngine,
)

settings = get_settings()
configure_logging(settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    scope = SessionScope(get_engine())
    accounts = SqlAccountStore(scope)
    transactions = SqlTransactionStore(scope)
    app.state.transfer_engine = TransferEngine.from_settings(accounts, transactions, settings)
    app.state.account_service = AccountService(accounts, transactions)
    yield

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(accounts_router)
app.include_router(transfer_router)
app.include_router(health_router)
register_exception_handlers(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
