"""Key capabilities consumed by the signing and verification engines.

Each capability only carries the components its family needs. Components may
be given as ints or as unsigned big-endian byte strings (the form used by COSE
and JWK key maps). The curve of an EC key is not stored here: it comes from
the resolved algorithm, so a key is only meaningful together with an alg.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec, rsa

Component = Union[int, bytes, bytearray]


def as_int(value: Component) -> int:
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"key component must be int or bytes, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class EcPrivateKey:
    d: Component

    def to_pyca(self, curve: ec.EllipticCurve) -> ec.EllipticCurvePrivateKey:
        return ec.derive_private_key(as_int(self.d), curve)

    @classmethod
    def from_pyca(cls, key: ec.EllipticCurvePrivateKey) -> "EcPrivateKey":
        return cls(d=key.private_numbers().private_value)


@dataclass(frozen=True)
class EcPublicKey:
    x: Component
    y: Component
    kid: Optional[Union[bytes, str]] = None

    def to_pyca(self, curve: ec.EllipticCurve) -> ec.EllipticCurvePublicKey:
        # raises ValueError when (x, y) is not on the curve
        return ec.EllipticCurvePublicNumbers(as_int(self.x), as_int(self.y), curve).public_key()

    @classmethod
    def from_pyca(cls, key: ec.EllipticCurvePublicKey, kid: Optional[Union[bytes, str]] = None) -> "EcPublicKey":
        nums = key.public_numbers()
        return cls(x=nums.x, y=nums.y, kid=kid)


@dataclass(frozen=True)
class RsaPrivateKey:
    n: Component
    e: Component
    d: Component
    p: Component
    q: Component
    dp: Optional[Component] = None
    dq: Optional[Component] = None
    qi: Optional[Component] = None

    def to_pyca(self) -> rsa.RSAPrivateKey:
        d, p, q = as_int(self.d), as_int(self.p), as_int(self.q)
        dp = as_int(self.dp) if self.dp is not None else rsa.rsa_crt_dmp1(d, p)
        dq = as_int(self.dq) if self.dq is not None else rsa.rsa_crt_dmq1(d, q)
        qi = as_int(self.qi) if self.qi is not None else rsa.rsa_crt_iqmp(p, q)
        pub = rsa.RSAPublicNumbers(as_int(self.e), as_int(self.n))
        return rsa.RSAPrivateNumbers(p, q, d, dp, dq, qi, pub).private_key()

    @classmethod
    def from_pyca(cls, key: rsa.RSAPrivateKey) -> "RsaPrivateKey":
        nums = key.private_numbers()
        return cls(
            n=nums.public_numbers.n,
            e=nums.public_numbers.e,
            d=nums.d,
            p=nums.p,
            q=nums.q,
            dp=nums.dmp1,
            dq=nums.dmq1,
            qi=nums.iqmp,
        )


@dataclass(frozen=True)
class RsaPublicKey:
    n: Component
    e: Component
    kid: Optional[Union[bytes, str]] = None

    def to_pyca(self) -> rsa.RSAPublicKey:
        return rsa.RSAPublicNumbers(as_int(self.e), as_int(self.n)).public_key()

    @classmethod
    def from_pyca(cls, key: rsa.RSAPublicKey, kid: Optional[Union[bytes, str]] = None) -> "RsaPublicKey":
        nums = key.public_numbers()
        return cls(n=nums.n, e=nums.e, kid=kid)


SigningKey = Union[EcPrivateKey, RsaPrivateKey]
VerificationKey = Union[EcPublicKey, RsaPublicKey]


__all__ = [
    "EcPrivateKey",
    "EcPublicKey",
    "RsaPrivateKey",
    "RsaPublicKey",
    "SigningKey",
    "VerificationKey",
    "as_int",
]
