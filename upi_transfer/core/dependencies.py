from fastapi import Request

from ..services import AccountService, TransferEngine


def get_transfer_engine(request: Request) -> TransferEngine:
    return request.app.state.transfer_engine


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service
