"""Sig_structure construction (RFC 9052 section 4.4).

    Sig_structure = [
        context : "Signature" / "Signature1",
        body_protected : empty_or_serialized_map,
        ? sign_protected : empty_or_serialized_map,   ; COSE_Sign only
        external_aad : bstr,
        payload : bstr
    ]

Protected buckets are serialized with the canonical encoder before they are
placed in the structure, so the bytes being signed can be rebuilt exactly by
any other implementation from the same logical headers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from .codec import EMPTY_BSTR, encode_canonical

SIGN_TAG = 98
SIGN1_TAG = 18

CONTEXT_SIGNATURE = "Signature"
CONTEXT_SIGNATURE1 = "Signature1"

ProtectedInput = Union[bytes, bytearray, Mapping[Any, Any]]


def encode_protected(headers: Optional[Mapping[Any, Any]], compact_empty: bool = False) -> bytes:
    """Serialize a protected bucket; an empty one becomes b"" when ``compact_empty``."""
    headers = headers or {}
    if not headers and compact_empty:
        return EMPTY_BSTR
    return encode_canonical(dict(headers))


def _as_protected_bytes(value: ProtectedInput, compact_empty: bool) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return encode_protected(value, compact_empty)


@dataclass(frozen=True)
class SignatureStructure:
    context: str
    body_protected: bytes
    sign_protected: Optional[bytes]
    external_aad: bytes
    payload: bytes

    def as_list(self) -> List[Any]:
        items: List[Any] = [self.context, self.body_protected]
        if self.sign_protected is not None:
            items.append(self.sign_protected)
        items.extend([self.external_aad, self.payload])
        return items

    def to_be_signed(self) -> bytes:
        return encode_canonical(self.as_list())


def build(
    variant: int,
    body_protected: ProtectedInput,
    sign_protected: Optional[ProtectedInput] = None,
    external_aad: Optional[bytes] = None,
    payload: bytes = b"",
    *,
    compact_empty: bool = False,
) -> SignatureStructure:
    """Assemble the structure for ``variant`` (``SIGN_TAG`` or ``SIGN1_TAG``).

    Header buckets given as bytes are used verbatim (the parse path hands in
    the exact bytes carried by the envelope); mappings are serialized here.
    Empty signer-protected buckets always serialize to b"".
    """
    if variant == SIGN_TAG:
        if sign_protected is None:
            raise ValueError("COSE_Sign structure requires signer protected headers")
        context = CONTEXT_SIGNATURE
        signer_bytes: Optional[bytes] = _as_protected_bytes(sign_protected, True)
    elif variant == SIGN1_TAG:
        if sign_protected is not None:
            raise ValueError("COSE_Sign1 structure has no signer protected headers")
        context = CONTEXT_SIGNATURE1
        signer_bytes = None
    else:
        raise ValueError(f"unknown envelope variant {variant!r}")
    return SignatureStructure(
        context=context,
        body_protected=_as_protected_bytes(body_protected, compact_empty),
        sign_protected=signer_bytes,
        external_aad=bytes(external_aad or EMPTY_BSTR),
        payload=bytes(payload),
    )
