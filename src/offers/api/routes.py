"""FastAPI routes for conversations, offers, responses, and loan quotes.

The router reads its collaborators from ``request.app.state.services``
(``offer_store``, ``audit_logger``) so it can be tested with a hand-built
services dict.  Domain errors are translated to HTTP status codes by
:func:`http_error`; the response body carries the error class name and its
attributes so :class:`~offers.api.client.OfferApiClient` can rebuild the
original exception.

When ``OFFERS_API_TOKEN`` is set, every route requires
``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import asyncio
import hmac
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from offers.domain.errors import (
    ConversationNotFoundError,
    CounterNotAllowedError,
    InvalidOfferAmountError,
    InvalidTransitionError,
    MessageNotFoundError,
    NotRecipientError,
    OfferError,
    OfferInFlightError,
    PendingOfferExistsError,
)
from offers.domain.models import ChatMessage, Conversation, OfferResponseResult
from offers.domain.types import OfferStatus, ResponseKind, ViewerRole
from offers.observability.metrics import OFFER_RESPONSES, OFFERS_CREATED, PENDING_OFFERS
from offers.pricing.emi import (
    DEFAULT_ANNUAL_RATE,
    DEFAULT_TENURE_MONTHS,
    EMIError,
    LoanQuote,
    quote_loan,
)
from offers.store.store import OfferStore

logger = structlog.get_logger()

ERROR_STATUS: dict[type[Exception], int] = {
    ConversationNotFoundError: 404,
    MessageNotFoundError: 404,
    PendingOfferExistsError: 409,
    InvalidTransitionError: 409,
    OfferInFlightError: 409,
    NotRecipientError: 403,
    CounterNotAllowedError: 403,
    InvalidOfferAmountError: 422,
    EMIError: 422,
}

_ERROR_FIELDS = ("conversation_id", "message_id", "role", "current_status", "action")


class CreateConversationRequest(BaseModel):
    """Body for ``POST /conversations``."""

    id: str
    customer_id: str
    customer_name: str
    seller_id: str
    vehicle_id: int
    vehicle_name: str
    vehicle_price: int | None = None


class MakeOfferRequest(BaseModel):
    """Body for ``POST /conversations/{id}/offers``."""

    role: ViewerRole
    offer_price: int


class RespondRequest(BaseModel):
    """Body for ``POST /conversations/{id}/messages/{message_id}/response``."""

    kind: ResponseKind
    role: ViewerRole
    counter_price: int | None = None


def http_error(exc: Exception) -> HTTPException:
    """Translate a domain error (or a role ``ValueError``) to an HTTPException.

    Args:
        exc: The error raised by the store or the EMI calculator.

    Returns:
        An HTTPException whose ``detail`` holds ``error``, ``message`` and any
        identifying attributes of *exc*.
    """
    code = 422
    for error_type, error_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            code = error_code
            break
    detail: dict[str, Any] = {"error": type(exc).__name__, "message": str(exc)}
    for field in _ERROR_FIELDS:
        value = getattr(exc, field, None)
        if value is not None:
            detail[field] = str(value)
    return HTTPException(status_code=code, detail=detail)


async def require_token(request: Request) -> None:
    """Reject requests without the configured bearer token."""
    settings = getattr(request.app.state, "settings", None)
    token = settings.api_token.get_secret_value() if settings is not None else ""
    if not token:
        return
    header = request.headers.get("Authorization", "")
    if not hmac.compare_digest(header, f"Bearer {token}"):
        logger.warning("api_token_rejected", path=request.url.path)
        raise HTTPException(status_code=401, detail="Invalid token")


router = APIRouter(dependencies=[Depends(require_token)])


def _store(request: Request) -> OfferStore:
    return request.app.state.services["offer_store"]


def _audit(request: Request) -> Any:
    return request.app.state.services.get("audit_logger")


@router.post("/conversations", status_code=201)
async def create_conversation(body: CreateConversationRequest, request: Request) -> Conversation:
    """Open a conversation about a listing, or return the existing one."""
    store = _store(request)
    try:
        return await asyncio.to_thread(store.get_conversation, body.id)
    except ConversationNotFoundError:
        pass

    fields = body.model_dump()
    conversation = await asyncio.to_thread(
        store.create_conversation, conversation_id=fields.pop("id"), **fields
    )
    logger.info("conversation_created", conversation_id=conversation.id)
    audit = _audit(request)
    if audit is not None:
        audit.log_conversation_created(conversation)
    return conversation


@router.get("/conversations/{conversation_id}")
async def get_conversation(conversation_id: str, request: Request) -> Conversation:
    """Return a conversation with its full message transcript."""
    try:
        return await asyncio.to_thread(_store(request).get_conversation, conversation_id)
    except OfferError as exc:
        raise http_error(exc) from exc


@router.post("/conversations/{conversation_id}/offers", status_code=201)
async def make_offer(conversation_id: str, body: MakeOfferRequest, request: Request) -> ChatMessage:
    """Open a new pending offer in the conversation.

    Raises:
        HTTPException: 404 for an unknown conversation, 409 when an offer is
            already pending, 422 for a non-positive amount or a role that
            cannot make offers.
    """
    store = _store(request)
    try:
        message = await asyncio.to_thread(
            store.make_offer, conversation_id, body.role, body.offer_price
        )
    except (OfferError, ValueError) as exc:
        raise http_error(exc) from exc

    OFFERS_CREATED.inc()
    PENDING_OFFERS.set(await asyncio.to_thread(store.count_pending))
    audit = _audit(request)
    if audit is not None:
        audit.log_offer_created(conversation_id, message, body.role.value)
    return message


@router.post("/conversations/{conversation_id}/messages/{message_id}/response")
async def respond_to_offer(
    conversation_id: str,
    message_id: int,
    body: RespondRequest,
    request: Request,
) -> OfferResponseResult:
    """Accept, reject, or counter one offer record.

    Repeating an already-recorded response returns the recorded result with
    ``replayed`` set and changes nothing.

    Raises:
        HTTPException: 404 for an unknown message, 409 when the record is no
            longer pending, 403 when the role may not act, 422 for a bad
            counter price.
    """
    store = _store(request)
    try:
        result = await asyncio.to_thread(
            store.respond_to_offer,
            conversation_id,
            message_id,
            body.kind,
            body.role,
            body.counter_price,
        )
    except (OfferError, ValueError) as exc:
        raise http_error(exc) from exc

    if not result.replayed:
        OFFER_RESPONSES.labels(kind=body.kind.value).inc()
        PENDING_OFFERS.set(await asyncio.to_thread(store.count_pending))

    audit = _audit(request)
    if audit is not None:
        record_status = result.record.payload.status if result.record.payload else None
        from_status = record_status if result.replayed and record_status else OfferStatus.PENDING
        audit.log_offer_response(conversation_id, result, body.role.value, from_status.value)
    return result


@router.get("/emi")
async def emi_quote(
    price: int,
    loan_amount: int | None = None,
    annual_rate: Decimal = DEFAULT_ANNUAL_RATE,
    tenure_months: int = DEFAULT_TENURE_MONTHS,
) -> LoanQuote:
    """Quote the monthly instalment for financing a listing."""
    try:
        return quote_loan(price, loan_amount, annual_rate, tenure_months)
    except EMIError as exc:
        raise http_error(exc) from exc
