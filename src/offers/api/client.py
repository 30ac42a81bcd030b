"""Async HTTP client for the offer API.

:class:`OfferApiClient` satisfies the dispatcher's ``OfferBackend`` protocol,
so a chat view can persist responses against a remote offer service instead
of an in-process store.  Error responses produced by
:func:`offers.api.routes.http_error` are turned back into the matching
domain exception; anything else surfaces as ``httpx.HTTPStatusError`` (or a
transport error) and is retried by the dispatcher.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog

from offers.config import Settings, get_settings
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
from offers.pricing.emi import LoanQuote

logger = structlog.get_logger()


def _message_id(detail: dict[str, Any]) -> int:
    return int(detail.get("message_id", 0))


_ERROR_BUILDERS: dict[str, Callable[[dict[str, Any]], OfferError]] = {
    "ConversationNotFoundError": lambda d: ConversationNotFoundError(d.get("conversation_id", "")),
    "MessageNotFoundError": lambda d: MessageNotFoundError(_message_id(d)),
    "PendingOfferExistsError": lambda d: PendingOfferExistsError(
        d.get("conversation_id", ""), _message_id(d)
    ),
    "InvalidTransitionError": lambda d: InvalidTransitionError(
        OfferStatus(d["current_status"]), d.get("action", "")
    ),
    "OfferInFlightError": lambda d: OfferInFlightError(_message_id(d)),
    "NotRecipientError": lambda d: NotRecipientError(
        ViewerRole(d["role"]), _message_id(d) if "message_id" in d else None
    ),
    "CounterNotAllowedError": lambda d: CounterNotAllowedError(ViewerRole(d["role"])),
    "InvalidOfferAmountError": lambda d: InvalidOfferAmountError(d.get("message", "")),
}


def raise_for_offer_error(response: httpx.Response) -> None:
    """Raise the domain error encoded in *response*, or ``HTTPStatusError``.

    Args:
        response: A completed response from the offer API.

    Raises:
        OfferError: When the body names a known domain error.
        httpx.HTTPStatusError: For any other non-2xx response.
    """
    if response.is_success:
        return
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict):
        builder = _ERROR_BUILDERS.get(str(detail.get("error")))
        if builder is not None:
            try:
                error = builder(detail)
            except (KeyError, ValueError):
                logger.warning("offer_error_undecodable", detail=detail)
            else:
                raise error
    response.raise_for_status()


class OfferApiClient:
    """Talk to the offer service over HTTP.

    Args:
        base_url: Root URL of the offer service.
        timeout: Per-request timeout in seconds.
        token: Bearer token; omitted from requests when empty.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OfferApiClient:
        """Build a client from ``OFFERS_API_BASE_URL``, timeout, and token settings."""
        if settings is None:
            settings = get_settings()
        return cls(
            settings.api_base_url,
            timeout=settings.api_timeout_seconds,
            token=settings.api_token.get_secret_value(),
            transport=transport,
        )

    async def __aenter__(self) -> OfferApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, url, **kwargs)
        raise_for_offer_error(response)
        return response.json()

    async def create_conversation(
        self,
        conversation_id: str,
        customer_id: str,
        customer_name: str,
        seller_id: str,
        vehicle_id: int,
        vehicle_name: str,
        vehicle_price: int | None = None,
    ) -> Conversation:
        """Open (or fetch) a conversation about a listing."""
        data = await self._request(
            "POST",
            "/conversations",
            json={
                "id": conversation_id,
                "customer_id": customer_id,
                "customer_name": customer_name,
                "seller_id": seller_id,
                "vehicle_id": vehicle_id,
                "vehicle_name": vehicle_name,
                "vehicle_price": vehicle_price,
            },
        )
        return Conversation.model_validate(data)

    async def get_conversation(self, conversation_id: str) -> Conversation:
        """Fetch a conversation with its transcript."""
        data = await self._request("GET", f"/conversations/{conversation_id}")
        return Conversation.model_validate(data)

    async def make_offer(
        self, conversation_id: str, role: ViewerRole, offer_price: int
    ) -> ChatMessage:
        """Open a new pending offer and return the stored message."""
        data = await self._request(
            "POST",
            f"/conversations/{conversation_id}/offers",
            json={"role": role.value, "offer_price": offer_price},
        )
        return ChatMessage.model_validate(data)

    async def respond_to_offer(
        self,
        conversation_id: str,
        message_id: int,
        kind: ResponseKind,
        role: ViewerRole,
        counter_price: int | None = None,
    ) -> OfferResponseResult:
        """Record a response to one offer and return the confirmed result."""
        data = await self._request(
            "POST",
            f"/conversations/{conversation_id}/messages/{message_id}/response",
            json={"kind": kind.value, "role": role.value, "counter_price": counter_price},
        )
        return OfferResponseResult.model_validate(data)

    async def quote_emi(
        self,
        price: int,
        loan_amount: int | None = None,
        annual_rate: str | None = None,
        tenure_months: int | None = None,
    ) -> LoanQuote:
        """Fetch a loan quote for a listing price."""
        params: dict[str, Any] = {"price": price}
        if loan_amount is not None:
            params["loan_amount"] = loan_amount
        if annual_rate is not None:
            params["annual_rate"] = annual_rate
        if tenure_months is not None:
            params["tenure_months"] = tenure_months
        data = await self._request("GET", "/emi", params=params)
        return LoanQuote.model_validate(data)
