"""Fetching, decoding and cross-checking published log roots."""
from __future__ import annotations
import logging
from typing import Optional

from logprobe_sdk.client import LogClient
from logprobe_sdk.crypto import B64D
from logprobe_sdk.logroot import LogRootV1
from logprobe_sdk.models import SignedLogRoot
from logprobe_sdk.verify import verify_log_root_signature

from .errors import ConfigurationError, ProtocolViolation
from .oracle import TreeOracle
from .params import TestParameters

log = logging.getLogger(__name__)


def public_key(params: TestParameters) -> Optional[bytes]:
    if params.log_public_key_b64 is None:
        return None
    try:
        return B64D(params.log_public_key_b64)
    except ValueError as e:
        raise ConfigurationError(f"log public key is not valid base64: {e}") from e


def decode_root(signed_root: Optional[SignedLogRoot], params: TestParameters) -> LogRootV1:
    if signed_root is None:
        raise ProtocolViolation("response carries no signed log root")
    try:
        root = LogRootV1.from_bytes(signed_root.log_root)
    except ValueError as e:
        raise ProtocolViolation(f"could not read log root: {e}") from e
    key = public_key(params)
    if key is not None and not verify_log_root_signature(signed_root, key):
        raise ProtocolViolation(
            f"log root signature invalid (tree size {root.tree_size}, root {root.root_hash.hex()})"
        )
    return root


def latest_root(client: LogClient, params: TestParameters) -> LogRootV1:
    signed = client.get_latest_signed_log_root(params.tree_id, params.rpc_request_deadline)
    return decode_root(signed, params)


def check_log_empty(client: LogClient, params: TestParameters) -> None:
    root = latest_root(client, params)
    if root.tree_size > 0:
        raise ProtocolViolation(f"expected an empty log but got tree size {root.tree_size}")


def check_root_hash_matches(tree: TreeOracle, client: LogClient, params: TestParameters) -> LogRootV1:
    """The published root must equal the reference root at the published size."""
    root = latest_root(client, params)
    want_size = params.leaf_count
    if root.tree_size != want_size:
        raise ProtocolViolation(f"published tree size mismatch: got {root.tree_size} want {want_size}")
    want = tree.root_at(want_size)
    if root.root_hash != want:
        raise ProtocolViolation(
            f"root hash mismatch at size {want_size}: got {root.root_hash.hex()} want {want.hex()}"
        )
    log.info("Log root at size %d matches reference tree: %s", root.tree_size, want.hex())
    return root
