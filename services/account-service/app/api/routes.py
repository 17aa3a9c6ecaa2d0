"""HTTP route definitions for the account service."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..domain.account import Account
from ..domain.contracts import AccountInput
from ..domain.service import AccountService, SearchResult, UpdateResult

router = APIRouter(prefix="/account")

NO_MODIFICATIONS_MESSAGE = (
    "Request processed successfully. No modifications made. Null fields and "
    "empty values were ignored to preserve existing data."
)

ACCOUNT_EXAMPLE = {"firstName": "John", "lastName": "Doe", "emailAddress": "john.doe@example.com"}


class ApiModel(BaseModel):
    """Base model serialising field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountResponse(ApiModel):
    """Serialised representation of an `Account` record."""

    id: int
    first_name: str
    last_name: str
    email_address: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain record."""
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email_address=account.email_address,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class SearchResponse(ApiModel):
    success: bool = True
    message: str
    data: list[AccountResponse]


class CreateAccountResponse(ApiModel):
    success: bool = True
    message: str = "Account created successfully"
    data: AccountResponse


class UpdateAccountResponse(ApiModel):
    """Result of a partial update; ``changes`` lists every field that was applied."""

    success: bool = True
    message: str
    changes: dict[str, Any] | None = None
    data: AccountResponse


class MessageResponse(ApiModel):
    success: bool
    message: str


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def _search_message(count: int) -> str:
    if count < 1:
        return "There are no accounts on the database"
    if count > 1:
        return f"Total of {count} accounts retrieved successfully"
    return "Account retrieved successfully"


def _search_response(result: SearchResult) -> SearchResponse:
    return SearchResponse(
        message=_search_message(result.count),
        data=[AccountResponse.from_domain(account) for account in result.accounts],
    )


def _update_response(result: UpdateResult) -> UpdateAccountResponse:
    data = AccountResponse.from_domain(result.account)
    if not result.modified:
        return UpdateAccountResponse(message=NO_MODIFICATIONS_MESSAGE, data=data)
    return UpdateAccountResponse(message="Update successful", changes=result.changes, data=data)


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": MessageResponse},
}


@router.get(
    "/search/all",
    response_model=SearchResponse,
    summary="Retrieve all accounts",
    tags=["2 - Read (Search)"],
)
def search_all(service: AccountService = Depends(get_service)) -> SearchResponse:
    """Return every stored account."""
    return _search_response(service.search_all())


@router.get(
    "/search/id/{account_id}",
    name="get_account_by_id",
    response_model=SearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Search for account using an account id",
    tags=["2 - Read (Search)"],
)
def search_by_id(account_id: str, service: AccountService = Depends(get_service)) -> SearchResponse:
    return _search_response(service.search_by_id(account_id))


@router.get(
    "/search/email/{email}",
    response_model=SearchResponse,
    summary="Search for account using an email address",
    tags=["2 - Read (Search)"],
)
def search_by_email(email: str, service: AccountService = Depends(get_service)) -> SearchResponse:
    """Return accounts whose email address contains ``email``."""
    return _search_response(service.search_by_email(email))


@router.post(
    "/register",
    response_model=CreateAccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERROR_RESPONSES, status.HTTP_409_CONFLICT: {"model": MessageResponse}},
    summary="Register a new account",
    tags=["1 - Create (Register)"],
)
def register_account(
    request: Request,
    response: Response,
    payload: Any = Body(default=None, examples=[ACCOUNT_EXAMPLE]),
    service: AccountService = Depends(get_service),
) -> CreateAccountResponse:
    """Create an account from ``firstName``, ``lastName`` and ``emailAddress``."""
    account = service.create_account(AccountInput.from_payload(payload))
    response.headers["Location"] = str(
        request.url_for("get_account_by_id", account_id=str(account.id))
    )
    return CreateAccountResponse(data=AccountResponse.from_domain(account))


@router.patch(
    "/update/id/{account_id}",
    response_model=UpdateAccountResponse,
    response_model_exclude_none=True,
    responses={**_ERROR_RESPONSES, status.HTTP_409_CONFLICT: {"model": MessageResponse}},
    summary="Update account using an account id",
    tags=["3 - Update"],
)
def update_account(
    account_id: str,
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> UpdateAccountResponse:
    """Apply the non-empty fields of the body; empty or missing fields are left as stored."""
    candidate = AccountInput.from_payload(payload)
    return _update_response(service.update_account(account_id, candidate))


@router.delete(
    "/delete/id/{account_id}",
    response_model=MessageResponse,
    responses=_ERROR_RESPONSES,
    summary="Delete account using an account id",
    tags=["4 - Delete"],
)
def delete_account(account_id: str, service: AccountService = Depends(get_service)) -> MessageResponse:
    service.delete_account(account_id)
    return MessageResponse(success=True, message="Account deleted successfully")
