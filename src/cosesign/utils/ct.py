from __future__ import annotations

import hmac
from typing import Any, Optional, Union

KidLike = Union[bytes, bytearray, str]


def kid_bytes(kid: Any) -> Optional[bytes]:
    """Key identifiers given as text are compared by their UTF-8 bytes."""
    if isinstance(kid, str):
        return kid.encode("utf-8")
    if isinstance(kid, (bytes, bytearray)):
        return bytes(kid)
    return None


def kid_eq(a: Any, b: Any) -> bool:
    """Exact, constant-time equality of two key identifiers. Missing never matches."""
    ab, bb = kid_bytes(a), kid_bytes(b)
    if ab is None or bb is None:
        return False
    if len(ab) != len(bb):
        return False
    return hmac.compare_digest(ab, bb)
