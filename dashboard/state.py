from __future__ import annotations
import time
from typing import Callable, Optional
from tenacity import retry, retry_if_result, stop_after_attempt, stop_after_delay, wait_fixed
from dashboard.api_client import fetch_status
from dashboard.config import POLL_INTERVAL_SECONDS, POLL_TIMEOUT_SECONDS

TERMINAL = ("completed", "failed")

def is_active(status: Optional[str]) -> bool:
    return status in ("pending", "processing")

def poll_until_terminal(
    submission_id: str,
    fetch: Callable[[str], Optional[str]] = fetch_status,
    interval: float = POLL_INTERVAL_SECONDS,
    timeout: float = POLL_TIMEOUT_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[str]:
    """Poll the status until it is terminal or the cap is hit.

    Returns the last observed status. Only observes; the server-side reaper
    is what forces stuck submissions out of ``processing``.
    """
    max_polls = max(1, int(timeout // interval) + 1) if interval > 0 else 1

    @retry(
        retry=retry_if_result(lambda status: status not in TERMINAL),
        stop=stop_after_delay(timeout) | stop_after_attempt(max_polls),
        wait=wait_fixed(interval),
        retry_error_callback=lambda state: state.outcome.result(),
        sleep=sleep,
    )
    def _poll() -> Optional[str]:
        return fetch(submission_id)

    return _poll()
