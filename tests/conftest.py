"""Test configuration and fixtures."""

import base64

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from soapsig.config import get_parser_settings, get_settings
from soapsig.core.canonicalizer import canonicalize_body
from soapsig.core.envelope import SOAP_ENV_NS


def _public_pem(private_key) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings so env overrides apply per test."""
    get_settings.cache_clear()
    get_parser_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_parser_settings.cache_clear()


@pytest.fixture(scope="session")
def signer_key() -> rsa.RSAPrivateKey:
    """RSA key of the message producer."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def stranger_key() -> rsa.RSAPrivateKey:
    """An unrelated RSA key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def signer_pem(signer_key) -> bytes:
    return _public_pem(signer_key)


@pytest.fixture(scope="session")
def stranger_pem(stranger_key) -> bytes:
    return _public_pem(stranger_key)


@pytest.fixture(scope="session")
def ec_pem() -> bytes:
    """Public key of a type the verifier does not accept."""
    return _public_pem(ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture
def build_message():
    """Build a legacy SOAP message around a Body payload."""

    def _build(
        body: str,
        signature: str = "",
        prefix: str = "soap",
        namespace: str = SOAP_ENV_NS,
        extra_namespaces: str = "",
    ) -> str:
        return (
            f'<{prefix}:Envelope xmlns:{prefix}="{namespace}"{extra_namespaces}>'
            f"<{prefix}:Header><Signature>{signature}</Signature></{prefix}:Header>"
            f"<{prefix}:Body>{body}</{prefix}:Body>"
            f"</{prefix}:Envelope>"
        )

    return _build


@pytest.fixture
def sign_bytes(signer_key):
    """Sign bytes the way the producer does: SHA-512, PKCS#1 v1.5, base64."""

    def _sign(data: bytes, key: rsa.RSAPrivateKey | None = None) -> str:
        key = key or signer_key
        signature = key.sign(data, padding.PKCS1v15(), hashes.SHA512())
        return base64.b64encode(signature).decode("ascii")

    return _sign


@pytest.fixture
def signed_message(build_message, sign_bytes):
    """Build a message whose header carries a valid signature over its Body."""

    def _signed(body: str, **kwargs) -> str:
        unsigned = build_message(body, **kwargs)
        signature = sign_bytes(canonicalize_body(unsigned))
        return build_message(body, signature=signature, **kwargs)

    return _signed
