from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import requests
from loguru import logger

T = TypeVar("T")

TRANSIENT_SIGNATURES = ("503", "overloaded", "UNAVAILABLE")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    jitter: float = 0.2


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        return status == 429 or 500 <= status < 600
    message = str(exc)
    return any(signature in message for signature in TRANSIENT_SIGNATURES)


async def retry_call(
    operation: str,
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    jitter: float = 0.2,
) -> T:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    last_error: Exception | None = None
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            transient = is_transient_error(exc)
            logger.warning(
                "Operation '{}' failed on attempt {}/{} (transient={}): {}",
                operation,
                attempt + 1,
                max_attempts,
                transient,
                exc,
            )
            if not transient or attempt + 1 >= max_attempts:
                break
            delay_s = base_delay * (2**attempt)
            if jitter > 0:
                delay_s += random.uniform(0, jitter)
            await asyncio.sleep(delay_s)
    assert last_error is not None
    raise last_error


async def retry_with_policy(operation: str, func: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    return await retry_call(
        operation,
        func,
        max_attempts=policy.max_attempts,
        base_delay=policy.base_delay,
        jitter=policy.jitter,
    )
