"""Attempt-bounded retry policy for artifact downloads.

Download attempts do not raise on failure: the fetcher reports a missing file
and the verifier reports a mismatch, and both become an unsuccessful
:class:`~DriverFetch.BinaryDownload.models.AttemptOutcome`.  The policy here
retries on those *results*, never on exceptions, so configuration errors
raised mid-attempt propagate immediately.

Design:
- **Attempt bound, not deadline**: stops after ``max_attempts`` calls
- **Fixed pause**: optional delay between attempts (default none)
- **No RetryError**: the last outcome is handed back for the caller to judge

Example:
    >>> from DriverFetch.BinaryDownload.network.retry import create_attempt_policy
    >>> policy = create_attempt_policy(max_attempts=3)
    >>> outcome = policy(download_once)  # doctest: +SKIP
"""

import logging
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
    wait_none,
)

logger = logging.getLogger(__name__)


def _outcome_failed(outcome: object) -> bool:
    return not getattr(outcome, "ok", False)


def _return_last_outcome(retry_state: RetryCallState) -> object:
    return retry_state.outcome.result()


def create_attempt_policy(
    max_attempts: int,
    delay_seconds: float = 0.0,
    on_retry: Optional[Callable[[RetryCallState], None]] = None,
) -> Retrying:
    """Create Tenacity policy that re-runs unsuccessful download attempts.

    Args:
        max_attempts: Total attempts, including the first (minimum 1).
        delay_seconds: Pause between attempts.
        on_retry: Called before each pause, i.e. only when another attempt follows.

    Returns:
        Configured Tenacity Retrying object; calling it with a function returns
        that function's final result.
    """
    return Retrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_fixed(delay_seconds) if delay_seconds > 0 else wait_none(),
        retry=retry_if_result(_outcome_failed),
        before_sleep=on_retry,
        retry_error_callback=_return_last_outcome,
    )


__all__ = ["create_attempt_policy"]
