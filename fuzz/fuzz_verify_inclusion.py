"""Inclusion proof fuzzing with mutated proofs."""
from __future__ import annotations
import atheris
import sys
import random

with atheris.instrument_imports():
    from logprobe_harness.errors import ProofVerificationError
    from logprobe_harness.merkle import InMemoryTree, verify_inclusion


def TestOneInput(data: bytes):  # noqa: N802
    if len(data) < 8:
        return
    seed = int.from_bytes(data[:4], "little")
    rng = random.Random(seed)
    chunk_len = 1 + (data[4] % 32)
    body = data[5:]
    tree = InMemoryTree()
    for i in range(0, min(len(body), chunk_len * 16), chunk_len):
        tree.append(body[i : i + chunk_len])
    if tree.size < 3:
        return
    size = 1 + seed % tree.size
    idx = rng.randrange(size)
    proof = tree.inclusion_proof(idx, size)
    root = tree.root_at(size)
    leaf = tree.leaf_hash_at(idx)
    if rng.random() < 0.2 and proof:
        j = rng.randrange(len(proof))
        proof[j] = bytes([proof[j][0] ^ 0x01]) + proof[j][1:]
        try:
            verify_inclusion(idx, size, leaf, proof, root)
        except ProofVerificationError:
            return
        raise RuntimeError("tampered proof unexpectedly verified")
    verify_inclusion(idx, size, leaf, proof, root)


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
