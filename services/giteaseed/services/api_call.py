"""Tolerant backend calls and the run's error log.

Every mutating or listing Gitea call goes through ``api_call``. A failure
with the caller's tolerated status is treated as an accepted pre-existing
condition; any other failure is recorded in the ErrorLog and the run
carries on. Nothing raised by the backend escapes to the caller.
"""

import json
from collections.abc import Awaitable, Callable, Iterator
from typing import TypeVar

import httpx
from pydantic import ValidationError

from giteaseed.gitea.client import GiteaApiError
from giteaseed.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorLog:
    """Ordered, append-only list of human-readable failure descriptions."""

    def __init__(self) -> None:
        self._entries: list[str] = []

    def append(self, entry: str) -> None:
        self._entries.append(entry)

    def extend(self, other: "ErrorLog") -> None:
        """Merge the entries of another log, e.g. from a fan-out branch."""
        self._entries.extend(other)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"ErrorLog({self._entries!r})"

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def to_json(self) -> str:
        return json.dumps(self._entries, indent=2)


async def api_call(
    errors: ErrorLog,
    description: str,
    operation: Callable[[], Awaitable[T]],
    tolerated_status: int | None = None,
) -> T | None:
    """Run a backend operation, tolerating one status code.

    Returns the operation's result, or None when it failed (tolerated or
    recorded).
    """
    try:
        return await operation()
    except GiteaApiError as e:
        if tolerated_status is not None and e.status_code == tolerated_status:
            logger.debug("Tolerated status", action=description, status=e.status_code)
            return None
        detail = f"{e.status_code} {e.detail}"
    except httpx.HTTPError as e:
        detail = str(e) or type(e).__name__
    except ValidationError as e:
        detail = f"unexpected response: {e.error_count()} validation error(s)"
    except Exception as e:
        logger.exception("Unexpected failure", action=description)
        detail = f"{type(e).__name__}: {e}"

    logger.warning("Backend call failed", action=description, detail=detail)
    errors.append(f"{description}: {detail}")
    return None
