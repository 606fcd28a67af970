"""COSE_Sign / COSE_Sign1 create and verify.

Signing::

    data = create_sign1_sync(MessageHeaders(p={"alg": "ES256"}), b"hello", SignerDescriptor(key=EcPrivateKey(d)))

    # COSE_Sign: alg and kid live in the signer's own buckets
    signer = SignerDescriptor(key=EcPrivateKey(d), p={"alg": "ES256", "kid": "11"})
    data = create_sign_sync(MessageHeaders(), b"hello", [signer])

Verification::

    payload = verify_sync(data, VerifierDescriptor(key=EcPublicKey(x, y, kid=b"11")))

The ``async`` variants run exactly the same computation inside a coroutine; they
exist for event-driven callers and add no retries, batching or suspension.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..config import ALLOW_UNPROTECTED_ALG
from ..crypto.alg_registry import lookup
from ..crypto.keys import SigningKey, VerificationKey
from ..crypto.sign import sign_structure
from ..crypto.verify import verify_structure
from ..errors import CoseError, SignerCountError, UnknownAlgorithm
from ..obs.prom import observe_sign, observe_verify
from ..utils.logging import get_logger
from .envelope import Envelope, assemble, decode_envelope, decode_envelope_async, find_signer
from .headers import ALG, get_common_parameter, translate_headers
from .structure import SIGN1_TAG, SIGN_TAG, SignatureStructure, build, encode_protected

log = get_logger()

ENCODEP_EMPTY = "empty"


@dataclass
class MessageHeaders:
    p: Mapping[Any, Any] = field(default_factory=dict)
    u: Mapping[Any, Any] = field(default_factory=dict)


@dataclass
class SignerDescriptor:
    key: SigningKey
    p: Mapping[Any, Any] = field(default_factory=dict)
    u: Mapping[Any, Any] = field(default_factory=dict)
    external_aad: bytes = b""


@dataclass
class VerifierDescriptor:
    key: VerificationKey
    external_aad: bytes = b""


def _compact_empty(encodep: Optional[str]) -> bool:
    if encodep is None:
        return False
    if encodep != ENCODEP_EMPTY:
        raise ValueError(f"encodep must be None or '{ENCODEP_EMPTY}', got {encodep!r}")
    return True


def _alg_name(alg: Any) -> str:
    try:
        return lookup(alg).name
    except UnknownAlgorithm:
        return "unknown"


def _sign(structure: SignatureStructure, key: SigningKey, alg: Any, variant: int) -> bytes:
    try:
        sig = sign_structure(structure, key, alg)
    except CoseError as e:
        observe_sign(variant=variant, alg=_alg_name(alg), ok=False)
        log.info(f"cose sign rejected: {type(e).__name__}")
        raise
    observe_sign(variant=variant, alg=_alg_name(alg), ok=True, signature_bytes=len(sig))
    log.debug(f"cose signed context={structure.context} alg={_alg_name(alg)} sig_len={len(sig)}")
    return sig


def create_sign1_sync(
    headers: MessageHeaders,
    payload: bytes,
    signer: SignerDescriptor,
    *,
    encodep: Optional[str] = None,
    exclude_tag: bool = False,
) -> bytes:
    """Produce a COSE_Sign1 envelope. ``alg`` is read from protected, else unprotected, headers."""
    compact = _compact_empty(encodep)
    p = translate_headers(headers.p)
    u = translate_headers(headers.u)
    alg = get_common_parameter(p, u, ALG)
    p_bytes = encode_protected(p, compact_empty=compact)
    structure = build(SIGN1_TAG, p_bytes, external_aad=signer.external_aad, payload=payload)
    sig = _sign(structure, signer.key, alg, SIGN1_TAG)
    return assemble(SIGN1_TAG, p_bytes, u, bytes(payload), sig, exclude_tag=exclude_tag)


def create_sign_sync(
    headers: MessageHeaders,
    payload: bytes,
    signers: Sequence[SignerDescriptor],
    *,
    encodep: Optional[str] = None,
    exclude_tag: bool = False,
) -> bytes:
    """Produce a COSE_Sign envelope.

    Exactly one signer is supported for now; the signer's ``alg`` must be in its
    protected headers.
    """
    if isinstance(signers, SignerDescriptor):
        raise TypeError("create_sign_sync takes a sequence of signers; use create_sign1_sync for one")
    if len(signers) == 0:
        raise SignerCountError("There has to be at least one signer")
    if len(signers) > 1:
        raise SignerCountError("Only one signer is supported")
    compact = _compact_empty(encodep)
    signer = signers[0]

    p = translate_headers(headers.p)
    u = translate_headers(headers.u)
    p_bytes = encode_protected(p, compact_empty=compact)

    signer_p = translate_headers(signer.p)
    signer_u = translate_headers(signer.u)
    alg = signer_p.get(ALG)
    signer_p_bytes = encode_protected(signer_p, compact_empty=True)

    structure = build(SIGN_TAG, p_bytes, signer_p_bytes, signer.external_aad, payload)
    sig = _sign(structure, signer.key, alg, SIGN_TAG)
    records = [[signer_p_bytes, signer_u, sig]]
    return assemble(SIGN_TAG, p_bytes, u, bytes(payload), records, exclude_tag=exclude_tag)


async def create_sign1(
    headers: MessageHeaders,
    payload: bytes,
    signer: SignerDescriptor,
    *,
    encodep: Optional[str] = None,
    exclude_tag: bool = False,
) -> bytes:
    return create_sign1_sync(headers, payload, signer, encodep=encodep, exclude_tag=exclude_tag)


async def create_sign(
    headers: MessageHeaders,
    payload: bytes,
    signers: Sequence[SignerDescriptor],
    *,
    encodep: Optional[str] = None,
    exclude_tag: bool = False,
) -> bytes:
    return create_sign_sync(headers, payload, signers, encodep=encodep, exclude_tag=exclude_tag)


def _verify_envelope(env: Envelope, verifier: VerifierDescriptor, allow_unprotected_alg: bool) -> bytes:
    if env.variant == SIGN_TAG:
        signer = find_signer(env.signers, getattr(verifier.key, "kid", None))
        alg = signer.protected.get(ALG)
        structure = build(
            SIGN_TAG,
            env.protected_bytes,
            signer.protected_bytes,
            verifier.external_aad,
            env.payload,
        )
        signature = signer.signature
    else:
        fallback = env.unprotected if allow_unprotected_alg else None
        alg = get_common_parameter(env.protected, fallback, ALG)
        structure = build(SIGN1_TAG, env.protected_bytes, None, verifier.external_aad, env.payload)
        signature = env.signature
    verify_structure(structure, verifier.key, alg, signature)
    return env.payload


def _rejected(variant: Optional[int], e: CoseError) -> None:
    observe_verify(variant=variant, ok=False, reason=type(e).__name__)
    log.info(f"cose verify rejected: {type(e).__name__}")


def verify_sync(
    data: bytes,
    verifier: VerifierDescriptor,
    *,
    default_type: Optional[int] = None,
    allow_unprotected_alg: Optional[bool] = None,
) -> bytes:
    """Verify a COSE_Sign or COSE_Sign1 envelope and return its payload unchanged.

    ``default_type`` (``SIGN_TAG`` or ``SIGN1_TAG``) applies to untagged input.
    """
    allow = ALLOW_UNPROTECTED_ALG if allow_unprotected_alg is None else allow_unprotected_alg
    variant = default_type
    try:
        env = decode_envelope(data, default_type)
        variant = env.variant
        payload = _verify_envelope(env, verifier, allow)
    except CoseError as e:
        _rejected(variant, e)
        raise
    observe_verify(variant=variant, ok=True)
    return payload


async def verify(
    data: bytes,
    verifier: VerifierDescriptor,
    *,
    default_type: Optional[int] = None,
    allow_unprotected_alg: Optional[bool] = None,
) -> bytes:
    allow = ALLOW_UNPROTECTED_ALG if allow_unprotected_alg is None else allow_unprotected_alg
    variant = default_type
    try:
        env = await decode_envelope_async(data, default_type)
        variant = env.variant
        payload = _verify_envelope(env, verifier, allow)
    except CoseError as e:
        _rejected(variant, e)
        raise
    observe_verify(variant=variant, ok=True)
    return payload


__all__ = [
    "MessageHeaders",
    "SignerDescriptor",
    "VerifierDescriptor",
    "create_sign1_sync",
    "create_sign_sync",
    "create_sign1",
    "create_sign",
    "verify_sync",
    "verify",
    "SIGN_TAG",
    "SIGN1_TAG",
]
