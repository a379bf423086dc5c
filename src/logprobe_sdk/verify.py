from __future__ import annotations

from .crypto import B64D, ed25519_verify
from .models import SignedLogRoot


def verify_log_root_signature(signed_root: SignedLogRoot, public_key: bytes) -> bool:
    """Return True if the root envelope carries a valid Ed25519 signature.

    The signature covers the raw envelope bytes exactly as served. A missing
    signature, malformed base64 or malformed key all count as invalid.
    """
    if not signed_root.log_root_signature_b64:
        return False
    try:
        return ed25519_verify(
            public_key, signed_root.log_root, B64D(signed_root.log_root_signature_b64)
        )
    except ValueError:
        return False
