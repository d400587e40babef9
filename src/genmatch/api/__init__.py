"""HTTP API for the review interface."""

from genmatch.api.endpoints import create_api_router, create_app

__all__ = ["create_api_router", "create_app"]
