"""Inclusion proof probes: two boundary checks and a grid over tree sizes."""
from __future__ import annotations
import logging
from typing import Sequence

from logprobe_sdk.client import LogClient
from logprobe_sdk.errors import LogRequestRejected

from .errors import ProofVerificationError, ProtocolViolation
from .oracle import TreeOracle
from .params import TestParameters
from .roots import decode_root

log = logging.getLogger(__name__)

# 0-based leaf indices to probe inclusion proofs at.
INCLUSION_PROOF_TEST_INDICES: Sequence[int] = (5, 27, 31, 80, 91)


def check_inclusion_proof_leaf_out_of_range(client: LogClient, params: TestParameters) -> None:
    """A proof for an index past the tree size must be refused."""
    index, size = params.leaf_count + 1, params.leaf_count
    try:
        resp = client.get_inclusion_proof(params.tree_id, index, size, params.rpc_request_deadline)
    except LogRequestRejected:
        return
    raise ProtocolViolation(
        f"log returned proof for leaf index outside tree: {index} v {size}: {resp.model_dump()}"
    )


def check_inclusion_proof_tree_size_out_of_range(client: LogClient, params: TestParameters) -> None:
    """A proof at a never-published size is answered with the current root and no proof.

    The request is what a client working from a newer (skewed) view of the
    log would send, so it is not an error.
    """
    index = params.sequencer_batch_size
    size = params.leaf_count + params.sequencer_batch_size
    try:
        resp = client.get_inclusion_proof(params.tree_id, index, size, params.rpc_request_deadline)
    except LogRequestRejected as e:
        raise ProtocolViolation(
            f"log returned error for tree size outside tree: {params.leaf_count} v {size}: {e}"
        ) from e

    root = decode_root(resp.signed_log_root, params)
    if resp.proof is not None and resp.proof.hashes_b64:
        raise ProtocolViolation(
            f"log returned proof for tree size outside tree: {params.leaf_count} v {size}: "
            f"{len(resp.proof.hashes_b64)} hashes"
        )
    if root.tree_size >= size:
        raise ProtocolViolation(
            f"log returned bad root for tree size outside tree: got size {root.tree_size}, "
            f"want < {size}"
        )


def inclusion_probe_sizes(params: TestParameters) -> range:
    return range(0, min(params.leaf_count, 2 * params.sequencer_batch_size))


def check_inclusion_proofs_at_index(
    index: int, tree: TreeOracle, client: LogClient, params: TestParameters
) -> int:
    """Probe `index` at every size in `inclusion_probe_sizes`.

    A proof must be served exactly when index < size, and each one must
    verify against the reference tree. Returns the number of proofs checked.
    """
    checked = 0
    for size in inclusion_probe_sizes(params):
        should_have_proof = index < size
        try:
            resp = client.get_inclusion_proof(params.tree_id, index, size, params.rpc_request_deadline)
        except LogRequestRejected as e:
            if should_have_proof:
                raise ProtocolViolation(
                    f"GetInclusionProof(index: {index}, treeSize {size}): {e}, want proof"
                ) from e
            continue
        if not should_have_proof:
            raise ProtocolViolation(
                f"GetInclusionProof(index: {index}, treeSize {size}): served a proof, want error"
            )
        if resp.proof is None:
            raise ProtocolViolation(
                f"GetInclusionProof(index: {index}, treeSize {size}): response carries no proof"
            )
        try:
            tree.verify_inclusion(
                index, size, tree.leaf_hash_at(index), resp.proof.hashes, tree.root_at(size)
            )
        except (ProofVerificationError, ValueError) as e:
            raise ProtocolViolation(
                f"GetInclusionProof(index: {index}, treeSize {size}): proof does not verify: {e}"
            ) from e
        checked += 1
    return checked
