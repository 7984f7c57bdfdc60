import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, status

from ..core.dependencies import get_account_service, get_transfer_engine
from ..core.log import sanitize_for_log
from ..models import (
    AccountCreate,
    AccountResponse,
    BalanceResponse,
    StatementResponse,
    TransactionResponse,
    TransferRequest,
    TransferResult,
)
from ..services import AccountService, TransferEngine


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.open_account(payload)

@router.get("/{upi_id}", response_model=AccountResponse)
def get_account(
    upi_id: str,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.get_account(upi_id)

@router.get("/{upi_id}/balance", response_model=BalanceResponse)
def get_balance(
    upi_id: str,
    service: AccountService = Depends(get_account_service),
) -> BalanceResponse:
    return service.get_balance(upi_id)

@router.get("/{upi_id}/statement", response_model=StatementResponse)
def get_statement(
    upi_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    service: AccountService = Depends(get_account_service),
) -> StatementResponse:
    return service.get_statement(upi_id, limit=limit)

transfer_router = APIRouter(prefix="/v1/transfers", tags=["transfers"])

@transfer_router.post("", response_model=TransferResult)
def create_transfer(
    payload: TransferRequest,
    engine: TransferEngine = Depends(get_transfer_engine),
) -> TransferResult:
    logger.info(
        "transfer.received",
        extra={
            "source_upi": sanitize_for_log(payload.source_upi),
            "destination_upi": sanitize_for_log(payload.destination_upi),
        },
    )
    return engine.execute(payload).unwrap()

@transfer_router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transfer(
    transaction_id: str,
    service: AccountService = Depends(get_account_service),
) -> TransactionResponse:
    return service.get_transaction(transaction_id)

health_router = APIRouter(prefix="/v1", tags=["health"])

@health_router.get("/health")
def health() -> dict[str, str]:
    return {
        "status": "UP",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "transfer-service",
    }

__all__ = ["router", "transfer_router", "health_router"]
