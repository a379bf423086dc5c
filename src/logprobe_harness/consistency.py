"""Consistency proof probes at published and unpublished tree sizes."""
from __future__ import annotations
import logging
from typing import NamedTuple, Sequence

from logprobe_sdk.client import LogClient
from logprobe_sdk.errors import LogRequestRejected

from .errors import ProofVerificationError, ProtocolViolation
from .oracle import TreeOracle
from .params import TestParameters
from .roots import decode_root

log = logging.getLogger(__name__)


class ConsistencyPair(NamedTuple):
    """Multipliers of a batch size giving the two tree sizes to compare."""

    size1: int
    size2: int


# Intervals to test proofs at.
CONSISTENCY_PROOF_TEST_PARAMS: Sequence[ConsistencyPair] = (
    ConsistencyPair(1, 2),
    ConsistencyPair(2, 3),
    ConsistencyPair(1, 3),
    ConsistencyPair(2, 4),
)

# None of these may succeed: 0 and -1 are not tree sizes, and 10000000
# batches is far beyond anything a run queues.
CONSISTENCY_PROOF_BAD_TEST_PARAMS: Sequence[ConsistencyPair] = (
    ConsistencyPair(0, 0),
    ConsistencyPair(-1, 0),
    ConsistencyPair(10000000, 10000000),
)


def check_consistency_proof(
    pair: ConsistencyPair,
    batch_size: int,
    tree: TreeOracle,
    client: LogClient,
    params: TestParameters,
) -> None:
    size1, size2 = pair.size1 * batch_size, pair.size2 * batch_size
    try:
        resp = client.get_consistency_proof(params.tree_id, size1, size2, params.rpc_request_deadline)
    except LogRequestRejected as e:
        raise ProtocolViolation(f"GetConsistencyProof({size1}, {size2}): {e}") from e

    root = decode_root(resp.signed_log_root, params)
    if size2 > root.tree_size:
        raise ProtocolViolation(
            f"GetConsistencyProof({size1}, {size2}): requested tree size {size2} > "
            f"available tree size {root.tree_size}"
        )
    if resp.proof is None:
        raise ProtocolViolation(f"GetConsistencyProof({size1}, {size2}): response carries no proof")
    try:
        tree.verify_consistency(
            size1, size2, resp.proof.hashes, tree.root_at(size1), tree.root_at(size2)
        )
    except (ProofVerificationError, ValueError, IndexError) as e:
        raise ProtocolViolation(
            f"GetConsistencyProof({size1}, {size2}): proof does not verify: {e}"
        ) from e


def check_consistency_proof_refused(
    pair: ConsistencyPair,
    batch_size: int,
    tree: TreeOracle,
    client: LogClient,
    params: TestParameters,
) -> None:
    """The request must not yield a usable proof.

    It counts as refused when the log rejects it, answers with a root that
    does not reach the second size, or serves a proof that fails to verify.
    Any other answer, in particular one to a size below 1, is a violation.
    """
    size1, size2 = pair.size1 * batch_size, pair.size2 * batch_size

    def unexpected(why: str) -> ProtocolViolation:
        return ProtocolViolation(
            f"log consistency for {tuple(pair)} x {batch_size}: unexpected proof returned: {why}"
        )

    try:
        resp = client.get_consistency_proof(params.tree_id, size1, size2, params.rpc_request_deadline)
    except LogRequestRejected as e:
        log.info("Consistency %s x %d rejected as expected: %s", tuple(pair), batch_size, e)
        return

    if size1 <= 0:
        raise unexpected(f"log answered GetConsistencyProof({size1}, {size2}) instead of rejecting it")
    root = decode_root(resp.signed_log_root, params)
    if size2 > root.tree_size:
        log.info(
            "Consistency %s x %d answered with tree size %d as expected",
            tuple(pair),
            batch_size,
            root.tree_size,
        )
        return
    if resp.proof is None:
        raise unexpected(f"response at tree size {root.tree_size} carries no proof")
    try:
        root1, root2 = tree.root_at(size1), tree.root_at(size2)
    except IndexError as e:
        raise unexpected(f"sizes ({size1}, {size2}) are outside the reference tree: {e}") from e
    try:
        tree.verify_consistency(size1, size2, resp.proof.hashes, root1, root2)
    except ProofVerificationError as e:
        log.info("Consistency %s x %d proof does not verify, as expected: %s", tuple(pair), batch_size, e)
        return
    raise unexpected(f"proof between sizes {size1} and {size2} verifies")


def check_consistency_proofs(tree: TreeOracle, client: LogClient, params: TestParameters) -> int:
    """Run the negative set, then every positive pair at full and half batch size."""
    batch = params.queue_batch_size
    for pair in CONSISTENCY_PROOF_BAD_TEST_PARAMS:
        check_consistency_proof_refused(pair, batch, tree, client, params)

    # Half the batch size lands between STHs; skip when halving changes nothing.
    batch_sizes = [batch, batch // 2] if batch > 1 else [batch]
    checked = 0
    for pair in CONSISTENCY_PROOF_TEST_PARAMS:
        for size in batch_sizes:
            check_consistency_proof(pair, size, tree, client, params)
            checked += 1
    return checked
