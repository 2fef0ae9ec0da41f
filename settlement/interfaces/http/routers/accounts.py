"""Account management endpoints."""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.interfaces.http.deps import get_account_service, get_db_session
from settlement.interfaces.http.errors import error_responses, http_error
from settlement.modules.accounts.models import AccountCreateInput, AccountUpdateInput
from settlement.modules.accounts.service import AccountService
from settlement.modules.transactions.models import StatementQuery, StatementSort, TransactionType
from settlement.schemas import (
    AccountCreate,
    AccountResponse,
    AccountStatementResponse,
    AccountUpdate,
    TransactionResponse,
)

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses=error_responses(status.HTTP_400_BAD_REQUEST),
)
async def create_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
    db: AsyncSession = Depends(get_db_session),
) -> AccountResponse:
    result = await service.create_account(AccountCreateInput(**payload.model_dump()))
    if result.is_failure:
        raise http_error(result)
    await db.commit()
    return AccountResponse.model_validate(result.unwrap())


@router.get(
    "/statement",
    response_model=AccountStatementResponse,
    summary="Account with its transactions between two instants",
    responses=error_responses(status.HTTP_400_BAD_REQUEST, status.HTTP_404_NOT_FOUND),
)
async def get_account_statement(
    account_number: int,
    start_date: datetime,
    end_date: datetime,
    account_id: Optional[str] = None,
    transaction_type: Optional[TransactionType] = None,
    limit: int = Query(10, ge=1, le=500),
    offset: int = Query(0, ge=0),
    sort_by: StatementSort = StatementSort.CREATED_AT,
    sort_order: Literal["ASC", "DESC"] = "DESC",
    service: AccountService = Depends(get_account_service),
) -> AccountStatementResponse:
    query = StatementQuery(
        start_date=start_date,
        end_date=end_date,
        transaction_type=transaction_type,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        descending=sort_order == "DESC",
    )
    result = await service.get_statement(account_number, query, account_id)
    if result.is_failure:
        raise http_error(result)

    statement = result.unwrap()
    return AccountStatementResponse(
        **AccountResponse.model_validate(statement.account).model_dump(),
        transactions=[TransactionResponse.model_validate(row) for row in statement.transactions],
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get an account",
    responses=error_responses(status.HTTP_404_NOT_FOUND),
)
async def get_account(account_id: str, service: AccountService = Depends(get_account_service)) -> AccountResponse:
    result = await service.get_account(account_id)
    if result.is_failure:
        raise http_error(result)
    return AccountResponse.model_validate(result.unwrap())


@router.put(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Update an account",
    responses=error_responses(status.HTTP_400_BAD_REQUEST, status.HTTP_404_NOT_FOUND),
)
async def update_account(
    account_id: str,
    payload: AccountUpdate,
    service: AccountService = Depends(get_account_service),
    db: AsyncSession = Depends(get_db_session),
) -> AccountResponse:
    changes = AccountUpdateInput(**payload.model_dump(exclude_unset=True, exclude_none=True))
    result = await service.update_account(account_id, changes)
    if result.is_failure:
        raise http_error(result)
    await db.commit()
    return AccountResponse.model_validate(result.unwrap())


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an account that has no transactions",
    responses=error_responses(status.HTTP_404_NOT_FOUND, status.HTTP_409_CONFLICT),
)
async def delete_account(
    account_id: str,
    service: AccountService = Depends(get_account_service),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    result = await service.delete_account(account_id)
    if result.is_failure:
        raise http_error(result)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
