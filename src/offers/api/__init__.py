"""HTTP surface: FastAPI routes and the matching async client."""

from offers.api.client import OfferApiClient, raise_for_offer_error
from offers.api.routes import http_error, router

__all__ = [
    "OfferApiClient",
    "http_error",
    "raise_for_offer_error",
    "router",
]
