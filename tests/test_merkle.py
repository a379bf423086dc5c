import hashlib

import pytest

from logprobe_harness.errors import ProofVerificationError
from logprobe_harness.merkle import (
    InMemoryTree,
    empty_root,
    hash_leaf,
    verify_consistency,
    verify_inclusion,
)

# RFC 6962 reference vectors (certificate-transparency test suite).
VECTOR_LEAVES = [
    bytes.fromhex(s)
    for s in [
        "",
        "00",
        "10",
        "2021",
        "3031",
        "40414243",
        "5051525354555657",
        "606162636465666768696a6b6c6d6e6f",
    ]
]
VECTOR_ROOTS = [
    "6e340b9cffb37a989ca544e6bb780a2c78901d3fb33738768511a30617afa01d",
    "fac54203e7cc696cf0dfcb42c92a1d9dbaf70ad9e621f4bd8d98662f00e3c125",
    "aeb6bcfe274b70a14fb067a5e5578264db0fa9b51af5e0ba159158f329e06e77",
    "d37ee418976dd95753c1c73862b9398fa2a2cf9b4ff0fdfe8b30cd95209614b7",
    "4e3bbb1f7b478dcfe71fb631631519a3bca12c9aefca1612bfce4c13a86264d4",
    "76e67dadbcdf1e10e1b74ddc608abd2f98dfb16fbce75277b5232a127f2087ef",
    "ddb89be403809e325750d3d263cd78929c2942b7942a34b77e122c9594a74c8c",
    "5dc9da79a70659a9ad559cb701ded9a2ab9d823aad2f4960cfe370eff4604328",
]


def _tree(n):
    t = InMemoryTree()
    for i in range(n):
        t.append(f"leaf-{i}".encode())
    return t


def test_reference_vectors():
    t = InMemoryTree()
    for leaf in VECTOR_LEAVES:
        t.append(leaf)
    for size, want in enumerate(VECTOR_ROOTS, start=1):
        assert t.root_at(size).hex() == want


def test_empty_tree_and_leaf_hash():
    t = InMemoryTree()
    assert t.root_at(0) == empty_root() == hashlib.sha256(b"").digest()
    assert t.hash_leaf(b"x") == hash_leaf(b"x") == hashlib.sha256(b"\x00x").digest()
    with pytest.raises(IndexError):
        t.root_at(1)
    with pytest.raises(IndexError):
        t.leaf_hash_at(0)


def test_inclusion_proofs_verify_at_every_size():
    t = _tree(33)
    for size in range(1, 34):
        for index in range(size):
            proof = t.inclusion_proof(index, size)
            verify_inclusion(index, size, t.leaf_hash_at(index), proof, t.root_at(size))


def test_consistency_proofs_verify_between_every_size():
    t = _tree(21)
    for size2 in range(1, 22):
        for size1 in range(1, size2 + 1):
            proof = t.consistency_proof(size1, size2)
            verify_consistency(size1, size2, proof, t.root_at(size1), t.root_at(size2))


def test_tampered_inclusion_proof_rejected():
    t = _tree(10)
    proof = t.inclusion_proof(3, 10)
    bad = [bytes([proof[0][0] ^ 1]) + proof[0][1:]] + proof[1:]
    with pytest.raises(ProofVerificationError):
        verify_inclusion(3, 10, t.leaf_hash_at(3), bad, t.root_at(10))
    with pytest.raises(ProofVerificationError):
        verify_inclusion(3, 10, t.leaf_hash_at(3), proof[:-1], t.root_at(10))
    with pytest.raises(ProofVerificationError):
        verify_inclusion(3, 10, t.leaf_hash_at(3), proof + [proof[0]], t.root_at(10))
    with pytest.raises(ProofVerificationError):
        verify_inclusion(10, 10, t.leaf_hash_at(3), proof, t.root_at(10))


def test_tampered_consistency_proof_rejected():
    t = _tree(16)
    proof = t.consistency_proof(6, 16)
    with pytest.raises(ProofVerificationError):
        verify_consistency(6, 16, proof[:-1], t.root_at(6), t.root_at(16))
    with pytest.raises(ProofVerificationError):
        verify_consistency(6, 16, proof, t.root_at(5), t.root_at(16))
    with pytest.raises(ProofVerificationError):
        verify_consistency(6, 16, [], t.root_at(6), t.root_at(16))
    with pytest.raises(ProofVerificationError):
        verify_consistency(7, 7, [], t.root_at(7), t.root_at(6))


def test_proof_generation_bounds():
    t = _tree(5)
    with pytest.raises(IndexError):
        t.inclusion_proof(5, 5)
    with pytest.raises(IndexError):
        t.inclusion_proof(0, 6)
    with pytest.raises(IndexError):
        t.consistency_proof(0, 3)
    with pytest.raises(IndexError):
        t.consistency_proof(4, 3)
