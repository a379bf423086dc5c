"""Poll the published head until the submitted leaves are sequenced."""
from __future__ import annotations
import enum
import logging
import time
from typing import Callable, Optional

from logprobe_sdk.client import LogClient
from logprobe_sdk.logroot import LogRootV1

from .errors import SequencingTimeout
from .params import TestParameters
from .roots import latest_root

log = logging.getLogger(__name__)


class SequencingState(enum.Enum):
    POLLING = "polling"
    SEQUENCED = "sequenced"
    TIMED_OUT = "timed-out"


class SequencingWaiter:
    """Explicit polling -> {sequenced, timed-out} state machine.

    The deadline is checked before every poll; between polls the waiter
    sleeps for the poll interval, cut short so it never sleeps past the
    deadline. Clock and sleep are injectable so tests need no wall time.
    """

    def __init__(
        self,
        client: LogClient,
        params: TestParameters,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.params = params
        self.clock = clock
        self.sleep = sleep
        self.state = SequencingState.POLLING
        self.polls = 0
        self.last_root: Optional[LogRootV1] = None
        self._deadline = clock() + params.sequencing_wait_total

    def step(self) -> SequencingState:
        """Run one poll if still polling; returns the state afterwards."""
        if self.state is not SequencingState.POLLING:
            return self.state
        if self.clock() >= self._deadline:
            self.state = SequencingState.TIMED_OUT
            return self.state

        root = latest_root(self.client, self.params)
        self.polls += 1
        self.last_root = root
        log.info("Leaf count: %d", root.tree_size)
        if root.tree_size >= self.params.sequenced_size_target:
            self.state = SequencingState.SEQUENCED
            return self.state

        log.info("Leaves sequenced: %d. Still waiting ...", root.tree_size)
        remaining = self._deadline - self.clock()
        if remaining > 0:
            self.sleep(min(self.params.sequencing_poll_wait, remaining))
        return self.state

    def wait(self) -> LogRootV1:
        log.info(
            "Waiting for sequencing of %d leaves for up to %.0fs",
            self.params.sequenced_size_target,
            self.params.sequencing_wait_total,
        )
        while self.step() is SequencingState.POLLING:
            pass
        if self.state is SequencingState.SEQUENCED and self.last_root is not None:
            return self.last_root
        seen = self.last_root.tree_size if self.last_root else "nothing"
        raise SequencingTimeout(
            f"leaves not sequenced within {self.params.sequencing_wait_total}s: "
            f"want tree size {self.params.sequenced_size_target}, last saw {seen} "
            f"after {self.polls} polls"
        )


def wait_for_sequencing(client: LogClient, params: TestParameters, **kwargs) -> LogRootV1:
    return SequencingWaiter(client, params, **kwargs).wait()
