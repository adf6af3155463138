"""
ecs_discoverer.tier1_runtime.paging
────────────────────────────────────
Full accumulation over paginated AWS operations, and splitting identifier
lists into batches the describe APIs accept.

Pagination ends on the API's own "no next token" signal. botocore refuses
a token it has already seen, and ``max_pages`` bounds the loop regardless.
"""
from __future__ import annotations

from typing import Any, Iterator, Sequence, TypeVar

from botocore.exceptions import BotoCoreError, ClientError, PaginationError

from ecs_discoverer.tier0_core.errors import ApiError, InconsistentError

T = TypeVar("T")


def batched(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def collect_pages(
    client: Any,
    operation: str,
    result_key: str,
    *,
    max_pages: int,
    error_context: str | None = None,
    **params: Any,
) -> list[Any]:
    """
    Run ``operation`` through its boto3 paginator and return every item
    found under ``result_key`` across all pages, in page order.

    Raises ApiError when a page request fails and InconsistentError when the
    cursor repeats or the page ceiling is hit.
    """
    paginator = client.get_paginator(operation)
    items: list[Any] = []
    pages = 0
    try:
        for page in paginator.paginate(**params):
            pages += 1
            if pages > max_pages:
                raise InconsistentError(
                    user_message=(
                        f"{operation} returned more than {max_pages} pages; "
                        "giving up instead of paging forever."
                    ),
                    operation=operation,
                )
            items.extend(page.get(result_key) or [])
    except PaginationError as exc:
        raise InconsistentError(
            user_message=f"{operation} pagination did not terminate: {exc}",
            operation=operation,
        ) from exc
    except (ClientError, BotoCoreError) as exc:
        raise ApiError.wrap(error_context or f"{operation} failed", exc) from exc
    return items


def call_batched(
    client: Any,
    operation: str,
    id_param: str,
    ids: Sequence[str],
    result_key: str,
    *,
    batch_size: int,
    error_context: str | None = None,
    **params: Any,
) -> list[Any]:
    """
    Call a describe ``operation`` once per batch of ``ids`` and merge the
    records found under ``result_key``, preserving batch order.
    """
    method = getattr(client, operation)
    records: list[Any] = []
    for chunk in batched(ids, batch_size):
        try:
            response = method(**{id_param: chunk}, **params)
        except (ClientError, BotoCoreError) as exc:
            raise ApiError.wrap(error_context or f"{operation} failed", exc) from exc
        records.extend(response.get(result_key) or [])
    return records


__all__ = ["batched", "collect_pages", "call_batched"]
