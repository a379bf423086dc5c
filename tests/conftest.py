import sys
from pathlib import Path

import pytest

# Ensure the 'src' directory is on sys.path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from logprobe_harness.params import TestParameters  # noqa: E402


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def small_params():
    """A run small enough for unit tests but still crossing every boundary.

    Inclusion probes reach size 40, so indices 5, 27 and 31 get proofs at
    some sizes and 80, 91 never do; consistency pairs reach 4 x 10 leaves.
    """
    return TestParameters(
        tree_id=7,
        leaf_count=120,
        queue_batch_size=10,
        sequencer_batch_size=20,
        read_batch_size=25,
        sequencing_wait_total=60.0,
        sequencing_poll_wait=1.0,
        rpc_request_deadline=5.0,
    )
