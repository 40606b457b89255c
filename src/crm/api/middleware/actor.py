"""Actor resolution middleware with JWT and header-based modes.

Resolves the acting identity from:
1. JWT claims in Authorization header (sub, email, name)
2. X-Actor-Email header (plus optional X-Actor-Name) for trusted callers
3. The configured default actor

After resolution, sets ActorContext in contextvars for the request scope and
mirrors the actor id on request.state for outer middleware.
"""

from __future__ import annotations

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.crm.config import get_settings
from src.crm.core.actor import (
    SKIP_ACTOR_PATHS,
    ActorContext,
    reset_actor_context,
    set_actor_context,
)
from src.crm.core.security import decode_actor_claims

logger = structlog.get_logger(__name__)


class ActorMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves who the request acts on behalf of.

    Never rejects a request: unusable credentials fall through to the next
    mode. Paths in SKIP_ACTOR_PATHS are excluded from resolution.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if any(path.startswith(skip) for skip in SKIP_ACTOR_PATHS):
            return await call_next(request)

        actor = (
            self._resolve_from_jwt(request)
            or self._resolve_from_header(request)
            or self._default_actor()
        )
        request.state.actor_id = actor.actor_id

        token = set_actor_context(actor)
        try:
            with structlog.contextvars.bound_contextvars(actor_id=actor.actor_id):
                return await call_next(request)
        finally:
            reset_actor_context(token)

    def _resolve_from_jwt(self, request: Request) -> ActorContext | None:
        """Extract the actor from Bearer token claims."""
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return None

        claims = decode_actor_claims(auth_header[7:])
        if claims is None:
            logger.warning("actor.invalid_bearer_token", path=request.url.path)
            return None

        return ActorContext(
            actor_id=str(claims["sub"]),
            email=claims["email"],
            name=claims.get("name"),
            source="jwt",
        )

    def _resolve_from_header(self, request: Request) -> ActorContext | None:
        email = (request.headers.get("X-Actor-Email") or "").strip()
        if not email:
            return None
        return ActorContext(
            actor_id=email,
            email=email,
            name=request.headers.get("X-Actor-Name"),
            source="header",
        )

    def _default_actor(self) -> ActorContext:
        settings = get_settings()
        return ActorContext(
            actor_id=settings.DEFAULT_ACTOR_EMAIL,
            email=settings.DEFAULT_ACTOR_EMAIL,
            name=settings.DEFAULT_ACTOR_NAME,
            source="default",
        )
