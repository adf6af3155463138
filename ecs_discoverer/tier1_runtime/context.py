"""
ecs_discoverer.tier1_runtime.context
─────────────────────────────────────
Per-invocation resolution request — what to resolve, which host to leave
out, and the correlation id that ties log lines of one run together.

Activating a request binds its fields into structlog contextvars, so every
log line of the run carries them.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from ecs_discoverer.tier0_core.logging import bind_context

# Never equal to a real container instance ARN, so nothing is excluded.
NO_SELF_HOST = "NONE"


# ── Domain model ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResolutionRequest:
    """Everything the pipeline needs to know about one invocation."""
    cluster: str
    service: str
    self_host_id: str = NO_SELF_HOST
    debug: bool = False
    dedupe: bool = False
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_self_cluster(self) -> bool:
        return self.self_host_id != NO_SELF_HOST

    @property
    def log_level(self) -> str | None:
        """Level the run logs at; None leaves the configured default."""
        return "DEBUG" if self.debug else None


# ── Public API ────────────────────────────────────────────────────────────────

def set_context(request: ResolutionRequest) -> None:
    """Activate ``request``: all subsequent log calls include its fields."""
    bind_context(
        request_id=request.request_id,
        cluster=request.cluster,
        service=request.service,
    )


def new_context(
    cluster: str,
    service: str,
    self_host_id: str = NO_SELF_HOST,
    *,
    debug: bool = False,
    dedupe: bool = False,
) -> ResolutionRequest:
    """Create and activate a new request. Returns the new request."""
    request = ResolutionRequest(
        cluster=cluster,
        service=service,
        self_host_id=self_host_id,
        debug=debug,
        dedupe=dedupe,
    )
    set_context(request)
    return request


__all__ = ["NO_SELF_HOST", "ResolutionRequest", "set_context", "new_context"]
