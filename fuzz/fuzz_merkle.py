"""Fuzz harness for the reference tree: consistency proofs between prefixes."""
from __future__ import annotations
import atheris
import sys

with atheris.instrument_imports():
    from logprobe_harness.errors import ProofVerificationError
    from logprobe_harness.merkle import InMemoryTree


def TestOneInput(data: bytes):  # noqa: N802
    if len(data) < 3:
        return
    # Fixed-size chunks keep the tree bounded.
    size = max(1, min(32, data[0]))
    chunks = [data[i : i + size] for i in range(1, min(len(data), 1 + size * 64), size)]
    tree = InMemoryTree()
    for c in chunks:
        tree.append(c)
    n = tree.size
    size2 = 1 + data[-1] % n
    size1 = 1 + data[-2] % size2
    proof = tree.consistency_proof(size1, size2)
    tree.verify_consistency(size1, size2, proof, tree.root_at(size1), tree.root_at(size2))
    if size1 < size2:
        try:
            tree.verify_consistency(size1, size2, proof, tree.root_at(size1), tree.root_at(size1))
        except ProofVerificationError:
            return
        raise RuntimeError("consistency proof verified against the wrong root")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
