"""CBOR codec used for headers, signature structures and envelopes.

Canonical mode follows RFC 8949 core deterministic encoding as implemented by
cbor2: map keys sorted by their encoded form and integers in shortest form.
"""
from __future__ import annotations

import io
from typing import Any

import cbor2

Tagged = cbor2.CBORTag
CBORDecodeError = cbor2.CBORDecodeError

EMPTY_BSTR = b""


def encode(obj: Any) -> bytes:
    return cbor2.dumps(obj)


def encode_canonical(obj: Any) -> bytes:
    return cbor2.dumps(
        obj,
        canonical=True,
        timezone=None,
        datetime_as_timestamp=False,
        value_sharing=False,
        default=None,
    )


def decode_first(data: bytes) -> Any:
    """Decode the first data item in ``data``; trailing bytes are ignored."""
    return cbor2.CBORDecoder(io.BytesIO(data)).decode()


async def decode_first_async(data: bytes) -> Any:
    return decode_first(data)
