"""Signing engine: Sig_structure + private key capability -> COSE signature value.

ECDSA output is the fixed-width ``r || s`` concatenation mandated by COSE,
never the DER encoding produced by pyca/cryptography.
"""
from __future__ import annotations

import hashlib

from cryptography.exceptions import UnsupportedAlgorithm as PycaUnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed, decode_dss_signature

from ..cose.structure import SignatureStructure
from ..errors import SigningFailure
from .alg_registry import AlgorithmDescriptor, resolve
from .keys import EcPrivateKey, RsaPrivateKey, SigningKey


def coordinate_size(curve: ec.EllipticCurve) -> int:
    return (curve.key_size + 7) // 8


def _sign_ecdsa(desc: AlgorithmDescriptor, key: SigningKey, to_be_signed: bytes) -> bytes:
    if not isinstance(key, EcPrivateKey):
        raise SigningFailure(f"{desc.name} requires an EC private key")
    sk = key.to_pyca(desc.curve())
    digest = hashlib.new(desc.digest, to_be_signed).digest()
    der = sk.sign(digest, ec.ECDSA(Prehashed(desc.hash_algorithm())))
    r, s = decode_dss_signature(der)
    size = coordinate_size(sk.curve)
    return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def _sign_rsa_pss(desc: AlgorithmDescriptor, key: SigningKey, to_be_signed: bytes) -> bytes:
    if not isinstance(key, RsaPrivateKey):
        raise SigningFailure(f"{desc.name} requires an RSA private key")
    sk = key.to_pyca()
    h = desc.hash_algorithm()
    return sk.sign(
        to_be_signed,
        padding.PSS(mgf=padding.MGF1(h), salt_length=desc.salt_length),
        h,
    )


def sign_structure(structure: SignatureStructure, key: SigningKey, alg_id: int) -> bytes:
    desc = resolve(alg_id)
    to_be_signed = structure.to_be_signed()
    try:
        if desc.is_ecdsa:
            return _sign_ecdsa(desc, key, to_be_signed)
        return _sign_rsa_pss(desc, key, to_be_signed)
    except SigningFailure:
        raise
    except (ValueError, TypeError, PycaUnsupportedAlgorithm) as e:
        raise SigningFailure(f"key rejected for {desc.name}: {e}") from e


__all__ = ["sign_structure", "coordinate_size"]
