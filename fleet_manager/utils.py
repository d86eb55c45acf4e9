# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Polling helpers shared by readiness checks and receipt waits."""

from __future__ import annotations

import threading
import time
from typing import Callable, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_not_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_any,
    wait_fixed,
)

from fleet_manager.errors import PollCancelledError, PollTimeoutError

T = TypeVar("T")


def poll_until(
    check: Callable[[], T | None],
    *,
    interval: float,
    timeout: float | None = None,
    max_attempts: int | None = None,
    cancel: threading.Event | None = None,
    what: str = "condition",
) -> T:
    """Call *check* until it returns a value other than None.

    An attempt fails when *check* raises or returns None. Polling stops on
    the first success, when *timeout* seconds have passed, after
    *max_attempts* attempts, or as soon as *cancel* is set. Sleeping between
    attempts waits on *cancel*, so cancellation is observed immediately.

    Args:
        check: Zero-argument callable.
        interval: Seconds between attempts.
        timeout: Overall deadline in seconds, or None.
        max_attempts: Attempt cap, or None.
        cancel: Event that aborts polling when set.
        what: Description used in error messages.

    Returns:
        The first non-None value returned by *check*.

    Raises:
        PollTimeoutError: If the deadline or attempt cap ran out. The last
            attempt's exception, if any, is chained as the cause.
        PollCancelledError: If *cancel* was set.
    """
    stops = []
    if timeout is not None:
        stops.append(stop_after_delay(timeout))
    if max_attempts is not None:
        stops.append(stop_after_attempt(max_attempts))

    def attempt() -> T | None:
        if cancel is not None and cancel.is_set():
            raise PollCancelledError(f"stopped waiting for {what}")
        return check()

    retryer = Retrying(
        stop=stop_any(*stops),
        wait=wait_fixed(interval),
        retry=retry_if_not_exception_type(PollCancelledError) | retry_if_result(lambda r: r is None),
        sleep=cancel.wait if cancel is not None else time.sleep,
    )
    try:
        return retryer(attempt)
    except RetryError as e:
        last = e.last_attempt
        cause = last.exception() if last.failed else None
        raise PollTimeoutError(
            f"timed out waiting for {what} after {last.attempt_number} attempts"
        ) from cause
