import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from cosesign.crypto.keys import EcPrivateKey, EcPublicKey, RsaPrivateKey, RsaPublicKey

EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}
ALG_IDS = {
    "ES256": -7,
    "ES384": -35,
    "ES512": -36,
    "PS256": -37,
    "PS384": -38,
    "PS512": -39,
}


@pytest.fixture(scope="session")
def ec_keys():
    return {name: ec.generate_private_key(curve()) for name, curve in EC_CURVES.items()}


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def keypair(ec_keys, rsa_key):
    """keypair("ES256", kid=b"11") -> (signing capability, verification capability)"""

    def _make(alg_name: str, kid=b"11"):
        if alg_name.startswith("ES"):
            sk = ec_keys[alg_name]
            return EcPrivateKey.from_pyca(sk), EcPublicKey.from_pyca(sk.public_key(), kid=kid)
        return RsaPrivateKey.from_pyca(rsa_key), RsaPublicKey.from_pyca(rsa_key.public_key(), kid=kid)

    return _make
