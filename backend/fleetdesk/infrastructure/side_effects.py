"""Best-effort side effects — work whose failure must never fail the request.

Invariants:
    - run_best_effort never raises; failures are logged with the exception and the label
    - Returns True on success so callers can vary their message
"""

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


async def run_best_effort(
    label: str, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any,
) -> bool:
    """Await fn(*args, **kwargs); log and swallow any failure."""
    try:
        await fn(*args, **kwargs)
        return True
    except Exception as e:
        logger.warning(
            f"Side effect '{label}' failed: {e}",
            exc_info=True,
            extra={"side_effect": label, "fail_reason": type(e).__name__},
        )
        return False
