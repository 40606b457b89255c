"""API middleware package."""

from src.crm.api.middleware.actor import ActorMiddleware
from src.crm.api.middleware.logging import LoggingMiddleware

__all__ = ["ActorMiddleware", "LoggingMiddleware"]
