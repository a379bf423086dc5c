"""Fuzz harness for the LogRootV1 decoder.

Arbitrary bytes must either decode or raise ValueError; anything that
decodes must re-encode to the same bytes.
"""
from __future__ import annotations
import atheris
import sys

with atheris.instrument_imports():
    from logprobe_sdk.logroot import LogRootV1


def TestOneInput(data: bytes):  # noqa: N802 (Atheris signature)
    # Give the decoder a fair chance of reaching past the version check.
    if data and data[0] & 1:
        data = b"\x00\x01" + data[1:]
    try:
        root = LogRootV1.from_bytes(data)
    except ValueError:
        return
    if root.to_bytes() != data:
        raise RuntimeError("log root does not re-encode to its input")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
