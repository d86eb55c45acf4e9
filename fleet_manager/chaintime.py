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

"""Wall-clock view of a chain's slots and epochs for test harnesses."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from fleet_manager.errors import PollCancelledError


@dataclass(frozen=True)
class Epoch:
    number: int
    start_slot: int
    start_time: float


class ChainTime:
    """Maps wall-clock time to slots and epochs of a running chain.

    Args:
        genesis_time: Unix time of slot 0.
        seconds_per_slot: Slot duration.
        slots_per_epoch: Slots per epoch.
        clock: Time source, replaceable in tests.
    """

    def __init__(
        self,
        genesis_time: int,
        seconds_per_slot: int,
        slots_per_epoch: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.genesis_time = genesis_time
        self.seconds_per_slot = seconds_per_slot
        self.slots_per_epoch = slots_per_epoch
        self._clock = clock

    @property
    def epoch_duration(self) -> int:
        return self.seconds_per_slot * self.slots_per_epoch

    def current_slot(self) -> int:
        """Current slot; 0 before genesis."""
        elapsed = self._clock() - self.genesis_time
        return max(int(elapsed // self.seconds_per_slot), 0)

    def current_epoch(self) -> int:
        return self.current_slot() // self.slots_per_epoch

    def epoch(self, number: int) -> Epoch:
        return Epoch(
            number=number,
            start_slot=number * self.slots_per_epoch,
            start_time=self.genesis_time + number * self.epoch_duration,
        )

    def _sleep_until(self, deadline: float, cancel: threading.Event | None) -> None:
        delay = deadline - self._clock()
        if delay <= 0:
            return
        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            raise PollCancelledError("chain time wait cancelled")

    def wait_for_genesis(self, cancel: threading.Event | None = None) -> None:
        """Block until genesis time is reached.

        Raises:
            PollCancelledError: If *cancel* is set first.
        """
        self._sleep_until(self.genesis_time, cancel)

    def wait_for_epoch(self, number: int, cancel: threading.Event | None = None) -> Epoch:
        """Block until epoch *number* starts and return it.

        Raises:
            PollCancelledError: If *cancel* is set first.
        """
        epoch = self.epoch(number)
        self._sleep_until(epoch.start_time, cancel)
        return epoch
