"""COSE header parameter translation.

Callers may describe a header bucket with symbolic names::

    {"alg": "ES256", "kid": "11"}

or with raw labels::

    {1: -7, 4: b"11"}

``translate_headers`` turns either form into the integer-keyed map that gets
CBOR encoded. Symbolic ``alg`` values are looked up in the algorithm registry
and text ``kid`` values become their UTF-8 bytes.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from ..crypto.alg_registry import by_name
from ..errors import UnknownHeaderParameter

ALG = 1
CRIT = 2
CONTENT_TYPE = 3
KID = 4
COUNTER_SIGNATURE = 7

HEADER_PARAMETERS: Mapping[str, int] = MappingProxyType({
    "alg": ALG,
    "crit": CRIT,
    "content_type": CONTENT_TYPE,
    "ctyp": CONTENT_TYPE,
    "kid": KID,
    "counter_signature": COUNTER_SIGNATURE,
})


def _alg(value: Any) -> Any:
    if isinstance(value, str):
        return by_name(value).alg_id
    return value


def _kid(value: Any) -> Any:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


_TRANSLATORS: Mapping[int, Callable[[Any], Any]] = MappingProxyType({
    ALG: _alg,
    KID: _kid,
})


def _label(param: Any) -> int:
    if isinstance(param, str):
        try:
            return HEADER_PARAMETERS[param]
        except KeyError:
            raise UnknownHeaderParameter(f"Unknown parameter, '{param}'") from None
    if isinstance(param, bool) or not isinstance(param, int):
        raise UnknownHeaderParameter(f"Unknown parameter, {param!r}")
    return param


def translate_headers(header: Optional[Mapping[Any, Any]]) -> Dict[int, Any]:
    result: Dict[int, Any] = {}
    for param, value in (header or {}).items():
        label = _label(param)
        translator = _TRANSLATORS.get(label)
        if translator is not None:
            value = translator(value)
        if value is not None:
            result[label] = value
    return result


def get_common_parameter(first: Optional[Mapping[int, Any]], second: Optional[Mapping[int, Any]], label: int) -> Any:
    """Value of ``label`` from ``first``, falling back to ``second``."""
    result = (first or {}).get(label)
    if result is None:
        result = (second or {}).get(label)
    return result
