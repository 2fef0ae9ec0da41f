"""Transaction endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.container import ApplicationContainer
from settlement.core.results import ErrorCode
from settlement.interfaces.http.deps import get_account_service, get_app_container, get_db_session
from settlement.interfaces.http.errors import error_responses, http_error
from settlement.modules.accounts.service import AccountService
from settlement.modules.transactions.models import CreateTransactionRequest
from settlement.schemas import TransactionCreate, TransactionListResponse, TransactionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a transaction, settling it now or at scheduled_at",
    responses=error_responses(status.HTTP_400_BAD_REQUEST, status.HTTP_404_NOT_FOUND, status.HTTP_502_BAD_GATEWAY),
)
async def create_transaction(
    payload: TransactionCreate,
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> TransactionResponse:
    components = container.transaction_components(db)
    result = await components.create_transaction.handle(CreateTransactionRequest(**payload.model_dump()))
    if result.is_failure:
        if result.error is ErrorCode.SCHEDULING_FAILED:
            # The PENDING row stays even though no job will ever settle it.
            await _commit_quietly(db)
        raise http_error(result)

    created = result.unwrap()
    assert created.id is not None
    current = await components.queries.get_transaction(created.id)
    await db.commit()
    return TransactionResponse.model_validate(current.unwrap() if current.is_success else created)


@router.get(
    "/account/{account_id}",
    response_model=TransactionListResponse,
    summary="List transactions where the account is source or destination",
    responses=error_responses(status.HTTP_404_NOT_FOUND),
)
async def list_account_transactions(
    account_id: str,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
    accounts: AccountService = Depends(get_account_service),
) -> TransactionListResponse:
    account = await accounts.get_account(account_id)
    if account.is_failure:
        raise http_error(account)

    result = await container.transaction_components(db).queries.list_by_account(account_id, limit, offset)
    if result.is_failure:
        raise http_error(result)
    rows = result.unwrap()
    return TransactionListResponse(
        total=len(rows),
        transactions=[TransactionResponse.model_validate(row) for row in rows],
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
    responses=error_responses(status.HTTP_404_NOT_FOUND),
)
async def get_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
) -> TransactionResponse:
    result = await container.transaction_components(db).queries.get_transaction(transaction_id)
    if result.is_failure:
        raise http_error(result)
    return TransactionResponse.model_validate(result.unwrap())


async def _commit_quietly(db: AsyncSession) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.error("Could not keep the unscheduled transaction: %s", exc)
        await db.rollback()
