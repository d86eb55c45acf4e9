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
"""Tests for poll_until."""

from __future__ import annotations

import threading
import time

import pytest

from fleet_manager.errors import PollCancelledError, PollTimeoutError
from fleet_manager.utils import poll_until


def test_returns_the_first_non_none_value():
    answers = iter([None, None, "ready"])

    assert poll_until(lambda: next(answers), interval=0) == "ready"


def test_exceptions_are_retried():
    calls = []

    def check():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("not yet")
        return 42

    assert poll_until(check, interval=0, max_attempts=5) == 42
    assert len(calls) == 3


def test_attempt_cap_chains_the_last_error():
    def check():
        raise ConnectionError("refused")

    with pytest.raises(PollTimeoutError) as excinfo:
        poll_until(check, interval=0, max_attempts=3, what="the node")

    assert "the node" in str(excinfo.value)
    assert "3 attempts" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_deadline():
    start = time.monotonic()
    with pytest.raises(PollTimeoutError) as excinfo:
        poll_until(lambda: None, interval=0.02, timeout=0.2)

    assert time.monotonic() - start >= 0.2
    assert excinfo.value.__cause__ is None
    assert isinstance(excinfo.value, TimeoutError)


def test_cancel_interrupts_the_wait():
    cancel = threading.Event()
    threading.Timer(0.1, cancel.set).start()

    start = time.monotonic()
    with pytest.raises(PollCancelledError):
        poll_until(lambda: None, interval=10, timeout=30, cancel=cancel)

    assert time.monotonic() - start < 5


def test_already_cancelled_never_calls_check():
    cancel = threading.Event()
    cancel.set()
    calls = []

    with pytest.raises(PollCancelledError):
        poll_until(lambda: calls.append(1), interval=0, cancel=cancel)

    assert calls == []
