"""Codec for the binary log root envelope served inside signed roots.

Layout (TLS presentation language, big-endian)::

    uint16  version;            /* 1 */
    uint64  tree_size;
    opaque  root_hash<0..128>;  /* 1-byte length prefix */
    uint64  timestamp_nanos;
    uint64  revision;
    opaque  metadata<0..65535>; /* 2-byte length prefix */
"""
from __future__ import annotations
import struct
from dataclasses import dataclass

LOG_ROOT_V1 = 1
MAX_ROOT_HASH_LEN = 128
MAX_METADATA_LEN = 65535


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise ValueError(
                f"log root truncated: need {n} bytes at offset {self.pos}, have {len(self.data) - self.pos}"
            )
        out = self.data[self.pos : self.pos + n]
        self.pos += n
        return out

    def uint(self, fmt: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]


@dataclass(frozen=True)
class LogRootV1:
    tree_size: int
    root_hash: bytes
    timestamp_nanos: int = 0
    revision: int = 0
    metadata: bytes = b""

    @classmethod
    def from_bytes(cls, data: bytes) -> "LogRootV1":
        r = _Reader(bytes(data))
        version = r.uint(">H")
        if version != LOG_ROOT_V1:
            raise ValueError(f"unsupported log root version {version}")
        tree_size = r.uint(">Q")
        root_hash = r.take(r.uint(">B"))
        if len(root_hash) > MAX_ROOT_HASH_LEN:
            raise ValueError(f"root hash too long: {len(root_hash)} bytes")
        timestamp_nanos = r.uint(">Q")
        revision = r.uint(">Q")
        metadata = r.take(r.uint(">H"))
        if r.pos != len(r.data):
            raise ValueError(f"trailing data after log root: {len(r.data) - r.pos} bytes")
        return cls(tree_size, root_hash, timestamp_nanos, revision, metadata)

    def to_bytes(self) -> bytes:
        if len(self.root_hash) > MAX_ROOT_HASH_LEN:
            raise ValueError(f"root hash too long: {len(self.root_hash)} bytes")
        if len(self.metadata) > MAX_METADATA_LEN:
            raise ValueError(f"metadata too long: {len(self.metadata)} bytes")
        return b"".join(
            [
                struct.pack(">HQB", LOG_ROOT_V1, self.tree_size, len(self.root_hash)),
                self.root_hash,
                struct.pack(">QQH", self.timestamp_nanos, self.revision, len(self.metadata)),
                self.metadata,
            ]
        )
