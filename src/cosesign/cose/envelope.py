"""COSE_Sign / COSE_Sign1 envelope assembly and parsing.

    COSE_Sign1 = #6.18([protected : bstr, unprotected : map, payload : bstr, signature : bstr])
    COSE_Sign  = #6.98([protected : bstr, unprotected : map, payload : bstr,
                        signatures : [+ [protected : bstr, unprotected : map, signature : bstr]]])

The tag may be left off on the wire (``exclude_tag``); the parser then falls
back to a caller-supplied default variant.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_ENVELOPE_TYPE
from ..errors import MalformedEnvelope, SignerNotFound
from ..utils.ct import KidLike, kid_eq
from .codec import CBORDecodeError, Tagged, decode_first, decode_first_async, encode, encode_canonical
from .headers import KID, get_common_parameter
from .structure import SIGN1_TAG, SIGN_TAG

_TYPE_NAMES = {"sign": SIGN_TAG, "sign1": SIGN1_TAG}


def default_tag() -> int:
    try:
        return _TYPE_NAMES[DEFAULT_ENVELOPE_TYPE]
    except KeyError:
        raise ValueError(f"COSE_DEFAULT_TYPE must be one of {sorted(_TYPE_NAMES)}, got {DEFAULT_ENVELOPE_TYPE!r}") from None


def decode_protected(protected_bytes: Any) -> Dict[Any, Any]:
    """Decode a protected bucket; the empty bstr is the empty map."""
    if not isinstance(protected_bytes, (bytes, bytearray)):
        raise MalformedEnvelope("protected header must be bstr")
    if not protected_bytes:
        return {}
    try:
        prot = decode_first(bytes(protected_bytes))
    except (CBORDecodeError, ValueError) as e:
        raise MalformedEnvelope("protected header is not valid CBOR") from e
    if not isinstance(prot, dict):
        raise MalformedEnvelope("protected header must encode a map")
    return prot


def _check_unprotected(value: Any) -> Dict[Any, Any]:
    if not isinstance(value, dict):
        raise MalformedEnvelope("unprotected header must be a map")
    return value


def _check_bstr(value: Any, what: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedEnvelope(f"{what} must be bstr")
    return bytes(value)


@dataclass
class SignerRecord:
    protected_bytes: bytes
    protected: Dict[Any, Any]
    unprotected: Dict[Any, Any]
    signature: bytes

    @classmethod
    def from_cbor(cls, item: Any) -> "SignerRecord":
        if not (isinstance(item, list) and len(item) == 3):
            raise MalformedEnvelope("signer record must be an array of 3")
        p, u, sig = item
        return cls(
            protected_bytes=_check_bstr(p, "signer protected header"),
            protected=decode_protected(p),
            unprotected=_check_unprotected(u),
            signature=_check_bstr(sig, "signature"),
        )

    @property
    def kid(self) -> Optional[bytes]:
        return get_common_parameter(self.protected, self.unprotected, KID)

    def to_cbor(self) -> List[Any]:
        return [self.protected_bytes, self.unprotected, self.signature]


@dataclass
class Envelope:
    variant: int
    protected_bytes: bytes
    protected: Dict[Any, Any]
    unprotected: Dict[Any, Any]
    payload: bytes
    signature: Optional[bytes] = None
    signers: List[SignerRecord] = field(default_factory=list)


def assemble(
    variant: int,
    protected_bytes: bytes,
    unprotected: Dict[Any, Any],
    payload: bytes,
    signature_field: Any,
    *,
    exclude_tag: bool = False,
) -> bytes:
    """Encode the 4-element envelope; COSE_Sign1 uses the canonical encoder."""
    signed = [protected_bytes, unprotected, payload, signature_field]
    obj = signed if exclude_tag else Tagged(variant, signed)
    if variant == SIGN1_TAG:
        return encode_canonical(obj)
    return encode(obj)


def parse(obj: Any, default_type: Optional[int] = None) -> Envelope:
    """Validate an already decoded envelope value and split it into its parts."""
    variant = default_type if default_type is not None else default_tag()
    if isinstance(obj, Tagged):
        if obj.tag not in (SIGN_TAG, SIGN1_TAG):
            raise MalformedEnvelope(f"Unexpected cbor tag, '{obj.tag}'")
        variant = obj.tag
        obj = obj.value
    elif variant not in (SIGN_TAG, SIGN1_TAG):
        raise ValueError(f"unknown default envelope type {variant!r}")

    if not isinstance(obj, list):
        raise MalformedEnvelope("Expecting Array")
    if len(obj) != 4:
        raise MalformedEnvelope("Expecting Array of length 4")

    p, u, payload, sig_field = obj
    env = Envelope(
        variant=variant,
        protected_bytes=_check_bstr(p, "protected header"),
        protected=decode_protected(p),
        unprotected=_check_unprotected(u),
        payload=_check_bstr(payload, "payload"),
    )
    if variant == SIGN_TAG:
        if not isinstance(sig_field, list):
            raise MalformedEnvelope("Expecting signature Array")
        env.signers = [SignerRecord.from_cbor(item) for item in sig_field]
    else:
        env.signature = _check_bstr(sig_field, "signature")
    return env


def decode_envelope(data: bytes, default_type: Optional[int] = None) -> Envelope:
    try:
        obj = decode_first(data)
    except (CBORDecodeError, ValueError) as e:
        raise MalformedEnvelope("envelope is not valid CBOR") from e
    return parse(obj, default_type)


async def decode_envelope_async(data: bytes, default_type: Optional[int] = None) -> Envelope:
    try:
        obj = await decode_first_async(data)
    except (CBORDecodeError, ValueError) as e:
        raise MalformedEnvelope("envelope is not valid CBOR") from e
    return parse(obj, default_type)


def find_signer(signers: List[SignerRecord], kid: Optional[KidLike]) -> SignerRecord:
    """First signer record, in array order, whose kid equals ``kid``."""
    for rec in signers:
        if kid_eq(rec.kid, kid):
            return rec
    raise SignerNotFound(f"Failed to find signer with kid {kid!r}")
