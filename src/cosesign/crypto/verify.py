"""Verification engine, the mirror of ``crypto.sign``.

Every failure is reported as ``SignatureMismatch`` without saying whether the
signature was malformed, the key unusable, or the check itself failed.
"""
from __future__ import annotations

import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.exceptions import UnsupportedAlgorithm as PycaUnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed, encode_dss_signature

from ..cose.structure import SignatureStructure
from ..errors import SignatureMismatch
from .alg_registry import AlgorithmDescriptor, resolve
from .keys import EcPublicKey, RsaPublicKey, VerificationKey
from .sign import coordinate_size


def _verify_ecdsa(desc: AlgorithmDescriptor, key: VerificationKey, to_be_signed: bytes, signature: bytes) -> None:
    if not isinstance(key, EcPublicKey):
        raise SignatureMismatch()
    curve = desc.curve()
    size = coordinate_size(curve)
    if len(signature) != 2 * size:
        raise SignatureMismatch()
    r = int.from_bytes(signature[:size], "big")
    s = int.from_bytes(signature[size:], "big")
    pk = key.to_pyca(curve)
    digest = hashlib.new(desc.digest, to_be_signed).digest()
    pk.verify(encode_dss_signature(r, s), digest, ec.ECDSA(Prehashed(desc.hash_algorithm())))


def _verify_rsa_pss(desc: AlgorithmDescriptor, key: VerificationKey, to_be_signed: bytes, signature: bytes) -> None:
    if not isinstance(key, RsaPublicKey):
        raise SignatureMismatch()
    h = desc.hash_algorithm()
    key.to_pyca().verify(
        signature,
        to_be_signed,
        padding.PSS(mgf=padding.MGF1(h), salt_length=desc.salt_length),
        h,
    )


def verify_structure(structure: SignatureStructure, key: VerificationKey, alg_id: int, signature: bytes) -> None:
    desc = resolve(alg_id)
    to_be_signed = structure.to_be_signed()
    if not isinstance(signature, (bytes, bytearray)):
        raise SignatureMismatch()
    try:
        if desc.is_ecdsa:
            _verify_ecdsa(desc, key, to_be_signed, bytes(signature))
        else:
            _verify_rsa_pss(desc, key, to_be_signed, bytes(signature))
    except SignatureMismatch:
        raise
    except (InvalidSignature, ValueError, TypeError, PycaUnsupportedAlgorithm) as e:
        raise SignatureMismatch() from e


__all__ = ["verify_structure"]
