"""Batched read-back of the log and verification against what was written."""
from __future__ import annotations
import logging
from collections import Counter
from typing import Callable, List, Sequence

from logprobe_sdk.client import LogClient
from logprobe_sdk.models import LogLeaf

from .errors import ConfigurationError, ProtocolViolation
from .leaves import extra_data_for
from .params import TestParameters

log = logging.getLogger(__name__)

# Longest diff listing put into an error message.
MAX_DIFF_ENTRIES = 20


def read_entries(client: LogClient, params: TestParameters) -> List[LogLeaf]:
    """Read `leaf_count` leaves from index 0 in windows of `read_batch_size`.

    Every window must come back complete; the log has finished sequencing
    by the time this runs, so a short read is a violation.
    """
    if params.start_leaf != 0:
        raise ConfigurationError(f"non-zero start_leaf is not supported: {params.start_leaf}")

    leaves: List[LogLeaf] = []
    index, end = params.start_leaf, params.start_leaf + params.leaf_count
    while index < end:
        count = min(end - index, params.read_batch_size)
        log.info("Reading %d leaves from %d ...", count, index)
        batch = client.get_leaves_by_range(params.tree_id, index, count, params.rpc_request_deadline)
        if len(batch) != count:
            raise ProtocolViolation(
                f"GetLeavesByRange(start={index}, count={count}): expected {count} leaves, got {len(batch)}"
            )
        leaves.extend(batch)
        index += len(batch)
    return leaves


def verify_entries(
    written: Sequence[LogLeaf],
    read: Sequence[LogLeaf],
    hash_leaf: Callable[[bytes], bytes],
    prefix: str = "",
) -> None:
    """Check leaf hashes, extra data round-trip, and written == read as multisets."""
    counts: Counter = Counter()
    for leaf in read:
        value = leaf.leaf_value
        counts[value] += 1

        want = hash_leaf(value)
        if leaf.merkle_leaf_hash != want:
            raise ProtocolViolation(
                f"leaf {leaf.leaf_index} hash mismatch: got {leaf.merkle_leaf_hash.hex()} want {want.hex()}"
            )
        want_extra = extra_data_for(value, prefix)
        if leaf.extra_data != want_extra:
            raise ProtocolViolation(
                f"leaf {leaf.leaf_index} extra data: got {leaf.extra_data!r}, want {want_extra!r}"
            )

    counts.subtract(leaf.leaf_value for leaf in written)
    diff = {value: n for value, n in counts.items() if n != 0}
    if diff:
        raise ProtocolViolation(
            "entry leaf values don't match: diff (-expected +got)\n" + _format_diff(diff)
        )


def _format_diff(diff: dict) -> str:
    lines = [
        f"  {value!r}: {n:+d}" for value, n in sorted(diff.items())[:MAX_DIFF_ENTRIES]
    ]
    if len(diff) > MAX_DIFF_ENTRIES:
        lines.append(f"  ... and {len(diff) - MAX_DIFF_ENTRIES} more")
    return "\n".join(lines)
