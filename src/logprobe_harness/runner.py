"""End-to-end integration run against a live log."""
from __future__ import annotations
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from logprobe_sdk.client import LogClient
from logprobe_sdk.errors import LogDeadlineExceeded, LogServiceError

from .consistency import check_consistency_proofs
from .errors import ConfigurationError, DeadlineExceeded, IntegrationError, ServiceError
from .inclusion import (
    INCLUSION_PROOF_TEST_INDICES,
    check_inclusion_proof_leaf_out_of_range,
    check_inclusion_proof_tree_size_out_of_range,
    check_inclusion_proofs_at_index,
)
from .leaves import LeafGenerator
from .merkle import InMemoryTree
from .oracle import OracleFactory, build_reference_tree
from .params import TestParameters
from .reader import read_entries, verify_entries
from .roots import check_log_empty, check_root_hash_matches
from .submit import queue_leaves
from .waiter import SequencingWaiter

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrationReport:
    seed: int
    tree_size: int
    root_hash: bytes
    inclusion_proofs_checked: int = 0
    consistency_proofs_checked: int = 0


@contextlib.contextmanager
def _phase(name: str) -> Iterator[None]:
    """Tag failures with the phase they happened in.

    Client errors that escape a phase were not expected by it, so they
    surface as a failed call (or a timeout) of that phase.
    """
    try:
        yield
    except IntegrationError as e:
        if e.phase is None:
            e.phase = name
        raise
    except LogDeadlineExceeded as e:
        raise DeadlineExceeded(str(e), phase=name) from e
    except LogServiceError as e:
        raise ServiceError(str(e), phase=name) from e


def run_log_integration(
    client: LogClient,
    params: TestParameters,
    seed: Optional[int] = None,
    oracle_factory: OracleFactory = InMemoryTree,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> IntegrationReport:
    """Drive the log through queue, sequence, read-back and proof checks.

    Raises the first `IntegrationError` encountered. `seed` fixes the leaf
    permutation; by default it is taken from the current time and logged.
    """
    if params.start_leaf != 0:
        raise ConfigurationError(
            f"non-zero start_leaf is not supported: {params.start_leaf}", phase="configuration"
        )
    if seed is None:
        seed = time.time_ns()

    # Step 1 - Optionally check log starts empty then optionally queue leaves
    if params.check_log_empty:
        log.info("Checking log is empty before starting test")
        with _phase("check log empty"):
            check_log_empty(client, params)

    pre_entries = LeafGenerator(params, seed).generate()
    if params.queue_leaves:
        log.info("Queueing %d leaves to log server ...", params.leaf_count)
        with _phase("queue leaves"):
            queue_leaves(client, params, pre_entries, clock=clock, sleep=sleep)

    # Step 2 - Wait for the log to sequence everything (optional)
    if params.await_sequencing:
        log.info("Waiting for log to sequence ...")
        with _phase("await sequencing"):
            SequencingWaiter(client, params, clock=clock, sleep=sleep).wait()

    # Step 3 - Read back what was written and check it
    log.info("Reading back leaves from log ...")
    with _phase("read entries"):
        entries = read_entries(client, params)
    with _phase("verify entries"):
        tree = build_reference_tree(entries, oracle_factory)
        verify_entries(pre_entries, entries, tree.hash_leaf, params.custom_leaf_prefix)

    # Step 4 - Cross-check the published root with the reference tree
    log.info("Checking log STH with our constructed in-memory tree ...")
    with _phase("root hash check"):
        root = check_root_hash_matches(tree, client, params)

    # Step 5 - Inclusion proofs
    log.info("Testing inclusion proofs")
    inclusion_checked = 0
    with _phase("inclusion proofs"):
        check_inclusion_proof_leaf_out_of_range(client, params)
        check_inclusion_proof_tree_size_out_of_range(client, params)
        for index in INCLUSION_PROOF_TEST_INDICES:
            inclusion_checked += check_inclusion_proofs_at_index(index, tree, client, params)

    # Step 6 - Consistency proofs
    log.info("Testing consistency proofs")
    with _phase("consistency proofs"):
        consistency_checked = check_consistency_proofs(tree, client, params)

    log.info(
        "Log integration passed: size %d, root %s, %d inclusion and %d consistency proofs verified",
        root.tree_size,
        root.root_hash.hex(),
        inclusion_checked,
        consistency_checked,
    )
    return IntegrationReport(
        seed=seed,
        tree_size=root.tree_size,
        root_hash=root.root_hash,
        inclusion_proofs_checked=inclusion_checked,
        consistency_proofs_checked=consistency_checked,
    )
