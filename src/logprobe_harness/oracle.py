"""The reference-tree capability the harness verifies against."""
from __future__ import annotations
from typing import Callable, Iterable, Protocol, Sequence

from logprobe_sdk.models import LogLeaf


class TreeOracle(Protocol):
    """Independent Merkle tree plus proof checks, trusted as ground truth.

    `verify_inclusion` and `verify_consistency` raise
    `ProofVerificationError` when the proof does not check out.
    """

    def hash_leaf(self, data: bytes) -> bytes: ...

    def append(self, data: bytes) -> int: ...

    def root_at(self, size: int) -> bytes: ...

    def leaf_hash_at(self, index: int) -> bytes: ...

    def verify_inclusion(
        self, index: int, size: int, leaf_hash: bytes, proof: Sequence[bytes], root: bytes
    ) -> None: ...

    def verify_consistency(
        self, size1: int, size2: int, proof: Sequence[bytes], root1: bytes, root2: bytes
    ) -> None: ...


OracleFactory = Callable[[], TreeOracle]


def build_reference_tree(leaves: Iterable[LogLeaf], factory: OracleFactory) -> TreeOracle:
    """Append every leaf value, in the order the log returned them, to a fresh tree."""
    tree = factory()
    for leaf in leaves:
        tree.append(leaf.leaf_value)
    return tree
