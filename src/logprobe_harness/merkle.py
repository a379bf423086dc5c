"""In-memory RFC 6962 Merkle tree used as the reference oracle.

Hashing follows RFC 6962 / RFC 9162: leaves are SHA-256(0x00 || data),
interior nodes SHA-256(0x01 || left || right), and the empty tree hashes to
SHA-256(""). Proof verification is the iterative algorithm of RFC 9162
sections 2.1.3.2 and 2.1.4.2, so it shares no code with proof generation.
"""
from __future__ import annotations
import hashlib
from typing import Dict, List, Sequence, Tuple

from .errors import ProofVerificationError

LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"


def _h(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def hash_leaf(data: bytes) -> bytes:
    return _h(LEAF_PREFIX + data)


def hash_children(left: bytes, right: bytes) -> bytes:
    return _h(NODE_PREFIX + left + right)


def empty_root() -> bytes:
    return _h(b"")


def _split(n: int) -> int:
    """Largest power of two strictly less than n (n > 1)."""
    k = 1
    while k << 1 < n:
        k <<= 1
    return k


class InMemoryTree:
    """Append-only tree over leaf hashes.

    Leaves never change once appended, so every subtree hash is memoized.
    """

    def __init__(self) -> None:
        self._leaves: List[bytes] = []
        self._cache: Dict[Tuple[int, int], bytes] = {}

    def __len__(self) -> int:
        return len(self._leaves)

    @property
    def size(self) -> int:
        return len(self._leaves)

    def hash_leaf(self, data: bytes) -> bytes:
        return hash_leaf(data)

    def append(self, data: bytes) -> int:
        self._leaves.append(hash_leaf(data))
        return len(self._leaves) - 1

    def leaf_hash_at(self, index: int) -> bytes:
        if not 0 <= index < len(self._leaves):
            raise IndexError(f"leaf index {index} outside tree of size {len(self._leaves)}")
        return self._leaves[index]

    def root_at(self, size: int) -> bytes:
        if not 0 <= size <= len(self._leaves):
            raise IndexError(f"tree size {size} outside [0, {len(self._leaves)}]")
        if size == 0:
            return empty_root()
        return self._mth(0, size)

    @property
    def root(self) -> bytes:
        return self.root_at(len(self._leaves))

    def _mth(self, lo: int, hi: int) -> bytes:
        if hi - lo == 1:
            return self._leaves[lo]
        key = (lo, hi)
        cached = self._cache.get(key)
        if cached is None:
            k = _split(hi - lo)
            cached = hash_children(self._mth(lo, lo + k), self._mth(lo + k, hi))
            self._cache[key] = cached
        return cached

    def inclusion_proof(self, index: int, size: int) -> List[bytes]:
        """Audit path for leaf `index` in the tree of `size` leaves, leaf to root."""
        if not 0 <= index < size <= len(self._leaves):
            raise IndexError(f"no inclusion proof for index {index} at size {size}")
        return self._path(index, 0, size)

    def _path(self, m: int, lo: int, hi: int) -> List[bytes]:
        n = hi - lo
        if n == 1:
            return []
        k = _split(n)
        if m < k:
            return self._path(m, lo, lo + k) + [self._mth(lo + k, hi)]
        return self._path(m - k, lo + k, hi) + [self._mth(lo, lo + k)]

    def consistency_proof(self, size1: int, size2: int) -> List[bytes]:
        if not 0 < size1 <= size2 <= len(self._leaves):
            raise IndexError(f"no consistency proof between sizes {size1} and {size2}")
        return self._subproof(size1, 0, size2, True)

    def _subproof(self, m: int, lo: int, hi: int, complete: bool) -> List[bytes]:
        n = hi - lo
        if m == n:
            return [] if complete else [self._mth(lo, hi)]
        k = _split(n)
        if m <= k:
            return self._subproof(m, lo, lo + k, complete) + [self._mth(lo + k, hi)]
        return self._subproof(m - k, lo + k, hi, False) + [self._mth(lo, lo + k)]

    def verify_inclusion(
        self, index: int, size: int, leaf_hash: bytes, proof: Sequence[bytes], root: bytes
    ) -> None:
        verify_inclusion(index, size, leaf_hash, proof, root)

    def verify_consistency(
        self, size1: int, size2: int, proof: Sequence[bytes], root1: bytes, root2: bytes
    ) -> None:
        verify_consistency(size1, size2, proof, root1, root2)


def verify_inclusion(
    index: int, size: int, leaf_hash: bytes, proof: Sequence[bytes], root: bytes
) -> None:
    if index < 0 or index >= size:
        raise ProofVerificationError(f"index {index} is beyond tree size {size}")
    fn, sn = index, size - 1
    r = leaf_hash
    for p in proof:
        if sn == 0:
            raise ProofVerificationError(f"inclusion proof too long: {len(proof)} hashes")
        if fn & 1 or fn == sn:
            r = hash_children(p, r)
            if not fn & 1:
                while fn and not fn & 1:
                    fn >>= 1
                    sn >>= 1
        else:
            r = hash_children(r, p)
        fn >>= 1
        sn >>= 1
    if sn != 0:
        raise ProofVerificationError(f"inclusion proof too short: {len(proof)} hashes")
    if r != root:
        raise ProofVerificationError(
            f"inclusion proof for index {index} at size {size} computes root {r.hex()}, want {root.hex()}"
        )


def verify_consistency(
    size1: int, size2: int, proof: Sequence[bytes], root1: bytes, root2: bytes
) -> None:
    if size1 < 0 or size2 < size1:
        raise ProofVerificationError(f"sizes out of order: {size1} > {size2}")
    if size1 == size2:
        if proof:
            raise ProofVerificationError("non-empty proof between equal tree sizes")
        if root1 != root2:
            raise ProofVerificationError(
                f"equal sizes {size1} with different roots {root1.hex()} and {root2.hex()}"
            )
        return
    if size1 == 0:
        if proof:
            raise ProofVerificationError("non-empty proof from the empty tree")
        return
    if not proof:
        raise ProofVerificationError(f"empty consistency proof between sizes {size1} and {size2}")

    path = list(proof)
    if size1 & (size1 - 1) == 0:
        path.insert(0, root1)
    fn, sn = size1 - 1, size2 - 1
    while fn & 1:
        fn >>= 1
        sn >>= 1
    fr = sr = path[0]
    for c in path[1:]:
        if sn == 0:
            raise ProofVerificationError(f"consistency proof too long: {len(proof)} hashes")
        if fn & 1 or fn == sn:
            fr = hash_children(c, fr)
            sr = hash_children(c, sr)
            if not fn & 1:
                while fn and not fn & 1:
                    fn >>= 1
                    sn >>= 1
        else:
            sr = hash_children(sr, c)
        fn >>= 1
        sn >>= 1
    if sn != 0:
        raise ProofVerificationError(f"consistency proof too short: {len(proof)} hashes")
    if fr != root1:
        raise ProofVerificationError(
            f"consistency proof computes root {fr.hex()} at size {size1}, want {root1.hex()}"
        )
    if sr != root2:
        raise ProofVerificationError(
            f"consistency proof computes root {sr.hex()} at size {size2}, want {root2.hex()}"
        )
