"""Actor context propagation via Python contextvars.

The ActorContext identifies who a request runs on behalf of. It is set by
ActorMiddleware at the start of each request and is readable anywhere in the
call stack via get_current_actor(). Repository writes stamp created_by /
updated_by from it, and /api/users/me resolves the current profile from it.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass

# ── Actor Context ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ActorContext:
    """Immutable identity of the caller for the current request."""

    actor_id: str  # stable identifier written to audit columns
    email: str
    name: str | None = None
    source: str = "default"  # "jwt", "header" or "default"

    @property
    def first_name(self) -> str:
        parts = (self.name or "").split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        parts = (self.name or "").split()
        return " ".join(parts[1:])


_actor_context: contextvars.ContextVar[ActorContext] = contextvars.ContextVar("actor_context")


def get_current_actor() -> ActorContext:
    """Get the actor context for the current request.

    Raises RuntimeError if no actor context has been set (i.e., the call
    is not within a request that passed through ActorMiddleware).
    """
    try:
        return _actor_context.get()
    except LookupError:
        raise RuntimeError("No actor context set -- request has no resolved identity")


def set_actor_context(ctx: ActorContext) -> contextvars.Token[ActorContext]:
    """Set the actor context for the current request. Returns a token for reset."""
    return _actor_context.set(ctx)


def reset_actor_context(token: contextvars.Token[ActorContext]) -> None:
    _actor_context.reset(token)


# ── Paths that skip actor resolution ────────────────────────────────────────

SKIP_ACTOR_PATHS = (
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json",
    "/redoc",
)
