from __future__ import annotations
import base64
import binascii

import nacl.exceptions
import nacl.signing


def B64(b: bytes) -> str:
    """Base64-encode bytes to ASCII string."""
    return base64.b64encode(b).decode("ascii")


def B64D(s: str) -> bytes:
    """Decode a base64 field from the wire; anything non-canonical is a ValueError."""
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as e:
        raise ValueError(f"invalid base64: {e}") from e


def ed25519_verify(pk_bytes: bytes, data: bytes, signature: bytes) -> bool:
    """Check an Ed25519 signature; a malformed key raises ValueError."""
    vk = nacl.signing.VerifyKey(pk_bytes)
    try:
        vk.verify(data, signature)
    except nacl.exceptions.BadSignatureError:
        return False
    return True
