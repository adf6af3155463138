"""
ecs_discoverer.tier0_core.errors
─────────────────────────────────
Error taxonomy for the discovery pipeline, stable error codes, and the
formatter that turns heterogeneous botocore errors into one readable line.

Every stage raises one of these; only the CLI maps them to exit codes.
"""
from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError


# ── Base error ────────────────────────────────────────────────────────────────

class DiscovererError(Exception):
    """
    Base class for all discovery errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: printed to the operator as-is
    - detail: internal context, logged but never printed on its own
    - exit_code: process exit status used by the CLI
    """

    exit_code: int = 1
    code: str = "discoverer_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Peer discovery failed.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.user_message)


# ── Typed error classes ───────────────────────────────────────────────────────

class ApiError(DiscovererError):
    """A control-plane (ECS/EC2) call failed."""
    code = "api_error"

    def __init__(
        self,
        user_message: str,
        *,
        aws_code: str | None = None,
        request_id: str | None = None,
        status_code: int | None = None,
        **metadata: Any,
    ) -> None:
        self.aws_code = aws_code
        self.request_id = request_id
        self.status_code = status_code
        super().__init__(None, user_message, **metadata)

    @classmethod
    def wrap(cls, context: str, exc: Exception) -> "ApiError":
        """Build an ApiError from a botocore exception, prefixed by what was attempted."""
        aws_code = request_id = status_code = None
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {})
            meta = exc.response.get("ResponseMetadata", {})
            aws_code = error.get("Code")
            request_id = meta.get("RequestId")
            status_code = meta.get("HTTPStatusCode")
        return cls(
            f"{context}: {format_aws_error(exc)}",
            aws_code=aws_code,
            request_id=request_id,
            status_code=status_code,
        )


class NotFoundError(DiscovererError):
    """The requested cluster does not exist."""
    code = "not_found"


class InconsistentError(DiscovererError):
    """The API returned a structurally unexpected result (cardinality, paging)."""
    code = "inconsistent"


class EmptyResultError(DiscovererError):
    """A pipeline stage produced zero candidates, before or after filtering."""
    code = "empty_result"

    def __init__(self, stage: str, code: str, user_message: str, **metadata: Any) -> None:
        self.stage = stage
        super().__init__(code, user_message, stage=stage, **metadata)


class AgentMetadataError(DiscovererError):
    """The local ECS agent metadata endpoint could not be read or parsed."""
    code = "agent_metadata_error"


class ValidationError(DiscovererError):
    """A document did not match its expected schema."""
    code = "validation_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Validation failed.",
        fields: dict | None = None,
        **metadata: Any,
    ) -> None:
        self.fields = fields or {}
        super().__init__(code, user_message, **metadata)


class ConfigurationError(DiscovererError):
    """Misconfiguration detected before the pipeline could start."""
    code = "configuration_error"


# ── Formatting ────────────────────────────────────────────────────────────────

def format_aws_error(exc: BaseException) -> str:
    """
    Normalize a botocore (or any) exception into one human-readable string.

    ClientError -> "AccessDeniedException: not allowed (HTTP 400, request id abc)"
    anything else -> str(exc), or the class name when that is empty.
    """
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        meta = exc.response.get("ResponseMetadata", {})
        code = error.get("Code") or "Unknown"
        message = error.get("Message") or ""
        text = f"{code}: {message}" if message else code

        extra = []
        if meta.get("HTTPStatusCode"):
            extra.append(f"HTTP {meta['HTTPStatusCode']}")
        if meta.get("RequestId"):
            extra.append(f"request id {meta['RequestId']}")
        if extra:
            text = f"{text} ({', '.join(extra)})"
        return text

    if isinstance(exc, BotoCoreError):
        return str(exc) or exc.__class__.__name__

    return str(exc) or exc.__class__.__name__


__all__ = [
    "DiscovererError", "ApiError", "NotFoundError", "InconsistentError",
    "EmptyResultError", "AgentMetadataError", "ValidationError",
    "ConfigurationError", "format_aws_error",
]
