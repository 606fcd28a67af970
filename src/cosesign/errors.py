"""Exception taxonomy for COSE signing and verification.

Everything derives from ``CoseError`` which is itself a ``ValueError`` so
callers that only care about "bad input" can keep catching ``ValueError``.
None of these are retried internally.
"""
from __future__ import annotations


class CoseError(ValueError):
    """Base class for all signing/verification failures."""


class UnknownHeaderParameter(CoseError):
    pass


class UnknownAlgorithm(CoseError):
    pass


class UnsupportedAlgorithm(CoseError):
    """Algorithm is registered but no signature implementation is wired for it."""


class MalformedEnvelope(CoseError):
    pass


class SignerNotFound(CoseError):
    pass


class SignerCountError(CoseError):
    pass


class SignatureMismatch(CoseError):
    """Signature did not verify. Deliberately carries no detail on why."""

    def __init__(self, msg: str = "Signature mismatch"):
        super().__init__(msg)


class SigningFailure(CoseError):
    pass


__all__ = [
    "CoseError",
    "UnknownHeaderParameter",
    "UnknownAlgorithm",
    "UnsupportedAlgorithm",
    "MalformedEnvelope",
    "SignerNotFound",
    "SignerCountError",
    "SignatureMismatch",
    "SigningFailure",
]
