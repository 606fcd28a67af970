import cbor2
import pytest

from cosesign.cose.sign import (
    MessageHeaders,
    SignerDescriptor,
    VerifierDescriptor,
    create_sign_sync,
    verify_sync,
)
from cosesign.cose.structure import SIGN_TAG
from cosesign.errors import (
    MalformedEnvelope,
    SignatureMismatch,
    SignerCountError,
    SignerNotFound,
    UnknownAlgorithm,
)

from conftest import ALG_IDS


def _signer(sk, name, kid="11", **kw):
    return SignerDescriptor(key=sk, p={"alg": name, "kid": kid}, **kw)


@pytest.mark.parametrize("name", sorted(ALG_IDS))
def test_roundtrip(keypair, name):
    sk, pk = keypair(name, kid=b"11")
    data = create_sign_sync(MessageHeaders(p={"content_type": 0}), b"hello", [_signer(sk, name)])
    assert verify_sync(data, VerifierDescriptor(key=pk)) == b"hello"


def test_envelope_shape(keypair):
    sk, _ = keypair("ES256")
    data = create_sign_sync(MessageHeaders(u={"ctyp": 0}), b"hello", [_signer(sk, "ES256")])
    obj = cbor2.loads(data)
    assert obj.tag == 98
    p_bytes, u, payload, signers = obj.value
    assert p_bytes == b"\xa0"
    assert u == {3: 0}
    assert payload == b"hello"
    assert len(signers) == 1
    sp, su, sig = signers[0]
    assert cbor2.loads(sp) == {1: -7, 4: b"11"}
    assert sp == cbor2.dumps({1: -7, 4: b"11"}, canonical=True)
    assert su == {}
    assert len(sig) == 64


def test_encodep_empty_body(keypair):
    sk, pk = keypair("PS256")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "PS256")], encodep="empty")
    assert cbor2.loads(data).value[0] == b""
    assert verify_sync(data, VerifierDescriptor(key=pk)) == b"hello"


@pytest.mark.parametrize("count", [0, 2])
def test_signer_count_enforced(keypair, count):
    sk, _ = keypair("ES256")
    signers = [_signer(sk, "ES256", kid=str(i)) for i in range(count)]
    with pytest.raises(SignerCountError):
        create_sign_sync(MessageHeaders(), b"hello", signers)


def test_single_descriptor_is_not_a_list(keypair):
    sk, _ = keypair("ES256")
    with pytest.raises(TypeError):
        create_sign_sync(MessageHeaders(), b"hello", _signer(sk, "ES256"))


def test_signer_alg_must_be_protected(keypair):
    sk, _ = keypair("ES256")
    signer = SignerDescriptor(key=sk, p={"kid": "11"}, u={"alg": "ES256"})
    with pytest.raises(UnknownAlgorithm):
        create_sign_sync(MessageHeaders(), b"hello", [signer])


def test_kid_mismatch_is_signer_not_found(keypair):
    sk, _ = keypair("ES256", kid=b"11")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "ES256", kid="11")])
    # same key material, different identifier: must not fall through to a crypto check
    _, pk_other_kid = keypair("ES256", kid=b"22")
    with pytest.raises(SignerNotFound):
        verify_sync(data, VerifierDescriptor(key=pk_other_kid))


def test_kid_in_unprotected_signer_headers(keypair):
    sk, pk = keypair("ES384", kid="ab")
    signer = SignerDescriptor(key=sk, p={"alg": "ES384"}, u={"kid": "ab"})
    data = create_sign_sync(MessageHeaders(), b"hello", [signer])
    assert verify_sync(data, VerifierDescriptor(key=pk)) == b"hello"


def _with_records(data, records):
    obj = cbor2.loads(data)
    obj.value[3] = records(obj.value[3])
    return cbor2.dumps(obj)


def test_scan_skips_other_kids(keypair):
    sk, pk = keypair("ES256", kid=b"11")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "ES256")])
    decoy = [cbor2.dumps({1: -7, 4: b"99"}, canonical=True), {}, b"\x00" * 64]
    tampered = _with_records(data, lambda recs: [decoy] + recs)
    assert verify_sync(tampered, VerifierDescriptor(key=pk)) == b"hello"


def test_first_matching_record_is_used(keypair):
    sk, pk = keypair("ES256", kid=b"11")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "ES256")])

    def bad_first(recs):
        good = recs[0]
        bad = [good[0], good[1], b"\x01" * 64]
        return [bad, good]

    with pytest.raises(SignatureMismatch):
        verify_sync(_with_records(data, bad_first), VerifierDescriptor(key=pk))


def test_external_aad(keypair):
    sk, pk = keypair("PS512")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "PS512", external_aad=b"aad")])
    assert verify_sync(data, VerifierDescriptor(key=pk, external_aad=b"aad")) == b"hello"
    with pytest.raises(SignatureMismatch):
        verify_sync(data, VerifierDescriptor(key=pk))


def test_exclude_tag_relies_on_default(keypair):
    sk, pk = keypair("ES256")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "ES256")], exclude_tag=True)
    assert isinstance(cbor2.loads(data), list)
    assert verify_sync(data, VerifierDescriptor(key=pk), default_type=SIGN_TAG) == b"hello"


def test_body_protected_is_bound(keypair):
    sk, pk = keypair("ES256")
    data = create_sign_sync(MessageHeaders(p={"content_type": 0}), b"hello", [_signer(sk, "ES256")])
    obj = cbor2.loads(data)
    obj.value[0] = cbor2.dumps({3: 42}, canonical=True)
    with pytest.raises(SignatureMismatch):
        verify_sync(cbor2.dumps(obj), VerifierDescriptor(key=pk))


def test_unknown_tag_rejected(keypair):
    sk, pk = keypair("ES256")
    data = create_sign_sync(MessageHeaders(), b"hello", [_signer(sk, "ES256")])
    obj = cbor2.loads(data)
    with pytest.raises(MalformedEnvelope):
        verify_sync(cbor2.dumps(cbor2.CBORTag(97, obj.value)), VerifierDescriptor(key=pk))
