"""Algorithm registry for COSE signatures.

Registered algorithms (COSE algorithm id -> family, digest):
  ES256 (-7)    ECDSA P-256 / SHA-256
  ES384 (-35)   ECDSA P-384 / SHA-384
  ES512 (-36)   ECDSA P-521 / SHA-512
  PS256 (-37)   RSASSA-PSS / SHA-256, salt 32
  PS384 (-38)   RSASSA-PSS / SHA-384, salt 48
  PS512 (-39)   RSASSA-PSS / SHA-512, salt 64
  RS256 (-257), RS384 (-258), RS512 (-259)
                RSASSA-PKCS1-v1_5; registered so they are recognised in
                headers, but no engine is wired for them.

``resolve`` is the single lookup used by the signing and verification
engines; adding an algorithm means adding a row here and, if it is a new
family, wiring the family into ``IMPLEMENTED_FAMILIES`` and the engines.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from ..errors import UnknownAlgorithm, UnsupportedAlgorithm


class SignatureFamily(enum.Enum):
    ECDSA_256 = "ECDSA-256"
    ECDSA_384 = "ECDSA-384"
    ECDSA_512 = "ECDSA-512"
    RSA_PSS_256 = "RSA-PSS-256"
    RSA_PSS_384 = "RSA-PSS-384"
    RSA_PSS_512 = "RSA-PSS-512"
    RSA_PKCS1_256 = "RSA-PKCS1-256"
    RSA_PKCS1_384 = "RSA-PKCS1-384"
    RSA_PKCS1_512 = "RSA-PKCS1-512"


_ECDSA_CURVES = {
    SignatureFamily.ECDSA_256: ec.SECP256R1,
    SignatureFamily.ECDSA_384: ec.SECP384R1,
    SignatureFamily.ECDSA_512: ec.SECP521R1,
}

_RSA_PSS = (SignatureFamily.RSA_PSS_256, SignatureFamily.RSA_PSS_384, SignatureFamily.RSA_PSS_512)

_HASHES = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

IMPLEMENTED_FAMILIES = frozenset(list(_ECDSA_CURVES) + list(_RSA_PSS))


@dataclass(frozen=True)
class AlgorithmDescriptor:
    alg_id: int
    name: str
    family: SignatureFamily
    digest: str  # hashlib name

    @property
    def is_ecdsa(self) -> bool:
        return self.family in _ECDSA_CURVES

    @property
    def is_rsa_pss(self) -> bool:
        return self.family in _RSA_PSS

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return _HASHES[self.digest]()

    def curve(self) -> ec.EllipticCurve:
        if not self.is_ecdsa:
            raise UnsupportedAlgorithm(f"{self.name} is not an ECDSA algorithm")
        return _ECDSA_CURVES[self.family]()

    @property
    def salt_length(self) -> int:
        # PSS salt length equals the digest output length
        return self.hash_algorithm().digest_size


def _table(*rows: AlgorithmDescriptor) -> Mapping[int, AlgorithmDescriptor]:
    return MappingProxyType({r.alg_id: r for r in rows})


ALGORITHMS: Mapping[int, AlgorithmDescriptor] = _table(
    AlgorithmDescriptor(-7, "ES256", SignatureFamily.ECDSA_256, "sha256"),
    AlgorithmDescriptor(-35, "ES384", SignatureFamily.ECDSA_384, "sha384"),
    AlgorithmDescriptor(-36, "ES512", SignatureFamily.ECDSA_512, "sha512"),
    AlgorithmDescriptor(-37, "PS256", SignatureFamily.RSA_PSS_256, "sha256"),
    AlgorithmDescriptor(-38, "PS384", SignatureFamily.RSA_PSS_384, "sha384"),
    AlgorithmDescriptor(-39, "PS512", SignatureFamily.RSA_PSS_512, "sha512"),
    AlgorithmDescriptor(-257, "RS256", SignatureFamily.RSA_PKCS1_256, "sha256"),
    AlgorithmDescriptor(-258, "RS384", SignatureFamily.RSA_PKCS1_384, "sha384"),
    AlgorithmDescriptor(-259, "RS512", SignatureFamily.RSA_PKCS1_512, "sha512"),
)

ALGORITHMS_BY_NAME: Mapping[str, AlgorithmDescriptor] = MappingProxyType(
    {d.name: d for d in ALGORITHMS.values()}
)


def lookup(alg_id: Any) -> AlgorithmDescriptor:
    """Registry lookup without the implementation check."""
    # bool is an int subclass; True must not resolve to label 1
    if isinstance(alg_id, bool) or not isinstance(alg_id, int) or alg_id not in ALGORITHMS:
        raise UnknownAlgorithm(f"Unknown algorithm, {alg_id!r}")
    return ALGORITHMS[alg_id]


def resolve(alg_id: Any) -> AlgorithmDescriptor:
    desc = lookup(alg_id)
    if desc.family not in IMPLEMENTED_FAMILIES:
        raise UnsupportedAlgorithm(f"Unsupported algorithm, {desc.name}")
    return desc


def by_name(name: str) -> AlgorithmDescriptor:
    try:
        return ALGORITHMS_BY_NAME[name]
    except KeyError:
        raise UnknownAlgorithm(f"Unknown 'alg' parameter, {name!r}") from None


__all__ = [
    "SignatureFamily",
    "AlgorithmDescriptor",
    "ALGORITHMS",
    "IMPLEMENTED_FAMILIES",
    "lookup",
    "resolve",
    "by_name",
]
