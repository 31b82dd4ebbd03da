"""Upstream API clients."""
from app.services.upstream.ppv_client import PPVClient

__all__ = ["PPVClient"]
