from __future__ import annotations
from typing import Annotated, List, Optional
from pydantic import AfterValidator, BaseModel, Field

from .crypto import B64, B64D


def _check_b64(v: str) -> str:
    B64D(v)
    return v


# Base64 text that must decode; checked when a response is parsed.
B64Str = Annotated[str, AfterValidator(_check_b64)]


class LogLeaf(BaseModel):
    """A leaf as submitted to, and returned by, the log.

    `leaf_index` and `merkle_leaf_hash_b64` are only set on leaves the log
    has sequenced.
    """

    leaf_value_b64: B64Str
    extra_data_b64: B64Str = ""
    leaf_index: Optional[int] = None
    merkle_leaf_hash_b64: Optional[B64Str] = None

    @classmethod
    def from_bytes(cls, leaf_value: bytes, extra_data: bytes = b"") -> "LogLeaf":
        return cls(leaf_value_b64=B64(leaf_value), extra_data_b64=B64(extra_data))

    @property
    def leaf_value(self) -> bytes:
        return B64D(self.leaf_value_b64)

    @property
    def extra_data(self) -> bytes:
        return B64D(self.extra_data_b64)

    @property
    def merkle_leaf_hash(self) -> bytes:
        if self.merkle_leaf_hash_b64 is None:
            return b""
        return B64D(self.merkle_leaf_hash_b64)


class SignedLogRoot(BaseModel):
    log_root_b64: B64Str
    log_root_signature_b64: Optional[B64Str] = None

    @property
    def log_root(self) -> bytes:
        return B64D(self.log_root_b64)


class Proof(BaseModel):
    leaf_index: int = 0
    hashes_b64: List[B64Str] = Field(default_factory=list)

    @property
    def hashes(self) -> List[bytes]:
        return [B64D(h) for h in self.hashes_b64]


class ProofResponse(BaseModel):
    proof: Optional[Proof] = None
    signed_log_root: Optional[SignedLogRoot] = None


class QueueLeafRequest(BaseModel):
    leaf: LogLeaf


class LeavesResponse(BaseModel):
    leaves: List[LogLeaf] = Field(default_factory=list)
    signed_log_root: Optional[SignedLogRoot] = None
