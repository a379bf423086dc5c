"""Reproducible leaf workload with controlled duplication."""
from __future__ import annotations
import logging
import random
from typing import List

from logprobe_sdk.models import LogLeaf

from .params import TestParameters

log = logging.getLogger(__name__)

LEAF_TAG = b"Leaf"
EXTRA_TAG = b"Extra"


def leaf_value_for(index: int, prefix: str = "") -> bytes:
    return prefix.encode() + LEAF_TAG + f" {index}".encode()


def extra_data_for(leaf_value: bytes, prefix: str = "") -> bytes:
    """The extra data that must accompany `leaf_value` through the log.

    Same index, different tag: `<prefix>Leaf 7` carries `<prefix>Extra 7`.
    Values not produced by `leaf_value_for` map to b"" so they never match.
    """
    head = prefix.encode() + LEAF_TAG
    if not leaf_value.startswith(head):
        return b""
    return prefix.encode() + EXTRA_TAG + leaf_value[len(head):]


class LeafGenerator:
    def __init__(self, params: TestParameters, seed: int):
        self.params = params
        self.seed = seed

    def unique_leaves(self) -> List[LogLeaf]:
        p = self.params
        out = []
        for i in range(p.unique_leaves):
            value = leaf_value_for(p.start_leaf + i, p.custom_leaf_prefix)
            out.append(LogLeaf.from_bytes(value, extra_data_for(value, p.custom_leaf_prefix)))
        return out

    def generate(self) -> List[LogLeaf]:
        """`leaf_count` leaves drawn from the unique pool by a seeded permutation."""
        p = self.params
        if p.leaf_count <= 0 or p.unique_leaves <= 0:
            raise ValueError(f"cannot generate {p.leaf_count} leaves from {p.unique_leaves} unique")
        pool = self.unique_leaves()
        perm = list(range(p.leaf_count))
        random.Random(self.seed).shuffle(perm)
        log.info(
            "Generating %d leaves, %d unique, using permutation seed %d",
            p.leaf_count,
            p.unique_leaves,
            self.seed,
        )
        return [pool[i % p.unique_leaves] for i in perm]
