"""Wait for the Gitea backend to answer before reconciling."""

import asyncio
import time

import httpx

from giteaseed.logging_config import get_logger

logger = get_logger(__name__)


class BackendUnavailableError(Exception):
    """The backend did not become reachable within the allotted time."""


async def wait_till_available(
    url: str,
    timeout_seconds: float = 300.0,
    interval_seconds: float = 5.0,
    request_timeout_seconds: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Poll ``url`` until it answers with a non-5xx status.

    Raises BackendUnavailableError once ``timeout_seconds`` have elapsed.
    """
    deadline = time.monotonic() + timeout_seconds
    attempt = 0

    async with httpx.AsyncClient(timeout=request_timeout_seconds, transport=transport) as client:
        while True:
            attempt += 1
            try:
                resp = await client.get(url)
                if resp.status_code < 500:
                    logger.info("Backend is available", url=url, attempts=attempt)
                    return
                reason = f"status {resp.status_code}"
            except httpx.HTTPError as e:
                reason = str(e) or type(e).__name__

            if time.monotonic() + interval_seconds > deadline:
                raise BackendUnavailableError(
                    f"{url} not available after {attempt} attempts: {reason}"
                )
            logger.debug("Backend not available yet", url=url, attempt=attempt, reason=reason)
            await asyncio.sleep(interval_seconds)
