"""Translation of failed results into HTTP errors."""

from typing import Any

from fastapi import HTTPException, status

from settlement.core.results import ErrorCode, Result
from settlement.schemas import ErrorResponse

STATUS_BY_ERROR = {
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TRANSACTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_BALANCE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ACCOUNT_HAS_TRANSACTIONS: status.HTTP_409_CONFLICT,
    ErrorCode.CONVERSION_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PRICE_LOOKUP_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries for the error statuses a route can return."""
    codes = {*status_codes, status.HTTP_500_INTERNAL_SERVER_ERROR}
    return {code: {"model": ErrorResponse} for code in sorted(codes)}


def http_error(result: Result) -> HTTPException:
    assert result.error is not None, "only failed results map to HTTP errors"
    return HTTPException(
        status_code=STATUS_BY_ERROR.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error": result.error.value, "message": result.message},
    )
