from __future__ import annotations
import logging
import time
from typing import Callable, Optional, Sequence

from logprobe_sdk.client import LogClient
from logprobe_sdk.models import LogLeaf

from .backoff import Backoff, retry
from .params import TestParameters

log = logging.getLogger(__name__)


def queue_leaves(
    client: LogClient,
    params: TestParameters,
    leaves: Sequence[LogLeaf],
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    backoff_factory: Optional[Callable[[], Backoff]] = None,
) -> None:
    """Submit leaves one at a time, each under its own deadline and backoff."""
    log.info("Queueing %d leaves...", len(leaves))
    for n, leaf in enumerate(leaves):
        deadline = clock() + params.rpc_request_deadline
        b = backoff_factory() if backoff_factory else Backoff()
        retry(
            lambda timeout, leaf=leaf: client.queue_leaf(params.tree_id, leaf, timeout),
            deadline,
            backoff=b,
            clock=clock,
            sleep=sleep,
            what=f"queue leaf {n}",
        )
        if (n + 1) % params.queue_batch_size == 0:
            log.info("Queued %d/%d leaves", n + 1, len(leaves))
