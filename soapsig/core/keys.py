"""Public key loading.

Keys arrive as PEM text holding an X.509 SubjectPublicKeyInfo between
``BEGIN/END PUBLIC KEY`` markers. Only RSA keys are accepted.
"""

import base64
import binascii
import re
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from soapsig.core.logging import get_logger
from soapsig.core.startup import initialize
from soapsig.errors import (
    InvalidKeySpecError,
    InvalidPemFormatError,
    UnsupportedAlgorithmError,
)

logger = get_logger(__name__)

PEM_BEGIN = "-----BEGIN PUBLIC KEY-----"
PEM_END = "-----END PUBLIC KEY-----"

_WHITESPACE = re.compile(r"\s+")


def _pem_body(pem: str) -> str:
    begin = pem.find(PEM_BEGIN)
    if begin < 0:
        raise InvalidPemFormatError(f"Missing '{PEM_BEGIN}' marker")

    start = begin + len(PEM_BEGIN)
    end = pem.find(PEM_END, start)
    if end < 0:
        raise InvalidPemFormatError(f"Missing '{PEM_END}' marker")

    body = _WHITESPACE.sub("", pem[start:end])
    if not body:
        raise InvalidPemFormatError("PEM block is empty")
    return body


def load_public_key(pem_data: "str | bytes") -> rsa.RSAPublicKey:
    """Decode a PEM public key into an RSA public key.

    Args:
        pem_data: PEM text (str or UTF-8 bytes)

    Returns:
        RSAPublicKey

    Raises:
        InvalidPemFormatError: if the markers are missing or the body is not base64
        InvalidKeySpecError: if the decoded bytes are not a SubjectPublicKeyInfo
        UnsupportedAlgorithmError: if the key is not an RSA key
    """
    initialize()

    if isinstance(pem_data, (bytes, bytearray)):
        try:
            pem_data = bytes(pem_data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidPemFormatError("PEM data is not UTF-8 text") from exc

    body = _pem_body(pem_data)
    try:
        der = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidPemFormatError(f"PEM body is not valid base64: {exc}") from exc

    try:
        public_key = serialization.load_der_public_key(der)
    except ValueError as exc:
        raise InvalidKeySpecError(f"Key is not a valid SubjectPublicKeyInfo: {exc}") from exc
    except UnsupportedAlgorithm as exc:
        raise UnsupportedAlgorithmError(f"Unsupported key algorithm: {exc}") from exc

    if not isinstance(public_key, rsa.RSAPublicKey):
        raise UnsupportedAlgorithmError(
            f"Unsupported key type: {type(public_key).__name__}, only RSA is accepted"
        )

    # load_der_public_key also takes a bare PKCS#1 RSAPublicKey
    spki = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    if spki != der:
        raise InvalidKeySpecError("Key is not a SubjectPublicKeyInfo structure")

    logger.debug("Public key loaded", modulus_bits=public_key.key_size)
    return public_key


def load_public_key_file(path: "str | Path") -> rsa.RSAPublicKey:
    """Read a PEM file and load the RSA public key in it."""
    return load_public_key(Path(path).read_bytes())
