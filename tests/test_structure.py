import cbor2
import pytest
from hypothesis import given, strategies as st

from cosesign.cose.structure import (
    SIGN1_TAG,
    SIGN_TAG,
    build,
    encode_protected,
)

labels = st.integers(min_value=-65536, max_value=65536)
values = st.one_of(st.integers(min_value=-2**63, max_value=2**64 - 1), st.binary(max_size=32), st.text(max_size=16))


def test_sign1_layout():
    s = build(SIGN1_TAG, {1: -7}, external_aad=b"aad", payload=b"hello")
    assert s.as_list() == ["Signature1", cbor2.dumps({1: -7}), b"aad", b"hello"]
    assert s.to_be_signed() == cbor2.dumps(["Signature1", b"\xa1\x01\x26", b"aad", b"hello"])


def test_sign_layout_includes_signer_protected():
    s = build(SIGN_TAG, {}, {1: -37, 4: b"11"}, None, b"p")
    assert s.context == "Signature"
    assert s.as_list() == [
        "Signature",
        b"\xa0",
        cbor2.dumps({1: -37, 4: b"11"}, canonical=True),
        b"",
        b"p",
    ]


def test_bytes_are_used_verbatim():
    # non-canonical bytes as carried in an envelope must not be re-encoded
    raw = b"\xa2\x04\x41\x61\x01\x26"
    s = build(SIGN1_TAG, raw, payload=b"x")
    assert s.body_protected == raw


def test_empty_protected_conventions():
    assert encode_protected({}) == b"\xa0"
    assert encode_protected({}, compact_empty=True) == b""
    assert encode_protected(None, compact_empty=True) == b""
    assert build(SIGN1_TAG, {}, compact_empty=True).body_protected == b""
    assert build(SIGN1_TAG, {}).body_protected == b"\xa0"
    # empty signer-protected buckets are always the empty bstr
    assert build(SIGN_TAG, {}, {}).sign_protected == b""


def test_variant_argument_errors():
    with pytest.raises(ValueError):
        build(SIGN_TAG, {})
    with pytest.raises(ValueError):
        build(SIGN1_TAG, {}, {1: -7})
    with pytest.raises(ValueError):
        build(96, {})


@given(st.dictionaries(labels, values, max_size=8))
def test_protected_encoding_is_deterministic(hdr):
    a = encode_protected(hdr)
    b = encode_protected(hdr)
    assert a == b
    # insertion order never leaks into the bytes
    reversed_hdr = dict(reversed(list(hdr.items())))
    assert encode_protected(reversed_hdr) == a
    assert cbor2.loads(a) == hdr


def test_known_canonical_bytes():
    # stable across processes: compare against literal bytes
    assert encode_protected({4: b"11", 1: -7}) == bytes.fromhex("a20126044231 31".replace(" ", ""))
