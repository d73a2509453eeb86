"""Signature verification.

The signature is RSA PKCS#1 v1.5 over SHA-512 of the canonical Body bytes.
A well-formed signature that does not match is a normal outcome (False);
every earlier failure is raised as a SoapSignatureError.
"""

from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from soapsig.core.canonicalizer import canonicalize_body
from soapsig.core.envelope import decode_signature, extract_signature_value
from soapsig.core.keys import load_public_key
from soapsig.core.logging import get_logger, log_operation
from soapsig.core.startup import initialize
from soapsig.core.xml_tree import Message, parse_message
from soapsig.errors import InvalidSignatureEncodingError, UnsupportedAlgorithmError

logger = get_logger(__name__)

SIGNATURE_ALGORITHM = "SHA512withRSA"


@dataclass
class VerificationReport:
    """Outcome of a full message verification."""
    valid: bool
    canonical_length: int
    signature_length: int
    modulus_bits: int
    digest: str  # SHA-512 of the canonical bytes, hex
    algorithm: str = SIGNATURE_ALGORITHM

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "algorithm": self.algorithm,
            "canonical_length": self.canonical_length,
            "signature_length": self.signature_length,
            "modulus_bits": self.modulus_bits,
            "digest": self.digest,
        }


def _require_rsa(key) -> rsa.RSAPublicKey:
    if not isinstance(key, rsa.RSAPublicKey):
        raise UnsupportedAlgorithmError(
            f"Unsupported key type: {type(key).__name__}, only RSA is accepted"
        )
    return key


def _check_length(signature: bytes, key: rsa.RSAPublicKey) -> None:
    expected = (key.key_size + 7) // 8
    if len(signature) != expected:
        raise InvalidSignatureEncodingError(
            f"Signature is {len(signature)} bytes, a {key.key_size}-bit key needs {expected}"
        )


def sha512_hex(data: bytes) -> str:
    digest = hashes.Hash(hashes.SHA512())
    digest.update(data)
    return digest.finalize().hex()


def verify_canonical(canonical: bytes, signature: bytes, key: rsa.RSAPublicKey) -> bool:
    """Check decoded signature bytes against canonical bytes."""
    key = _require_rsa(key)
    _check_length(signature, key)
    try:
        key.verify(signature, canonical, padding.PKCS1v15(), hashes.SHA512())
    except InvalidSignature:
        logger.debug("Signature mismatch", canonical_length=len(canonical))
        return False
    return True


@log_operation("verify")
def verify(
    message: "str | bytes | Message",
    signature_b64: "str | bytes",
    key: rsa.RSAPublicKey,
) -> bool:
    """Verify a base64 signature over the canonical Body of a message.

    Args:
        message: Message text or a parsed Message
        signature_b64: Base64 signature value
        key: RSA public key from load_public_key

    Returns:
        True if the signature matches, False otherwise

    Raises:
        MalformedXmlError, MissingBodyError: if the Body cannot be canonicalized
        InvalidSignatureEncodingError: if the signature is not base64 or has the wrong length
        UnsupportedAlgorithmError: if the key is not an RSA key
    """
    initialize()
    key = _require_rsa(key)
    canonical = canonicalize_body(message)
    signature = decode_signature(signature_b64)
    return verify_canonical(canonical, signature, key)


@log_operation("verify_message")
def verify_message(
    message: "str | bytes | Message",
    public_key: "rsa.RSAPublicKey | str | bytes",
) -> VerificationReport:
    """Run the whole pipeline: locate the signature, canonicalize, verify.

    Args:
        message: Message text or a parsed Message
        public_key: RSA public key, or PEM text to load one from

    Returns:
        VerificationReport
    """
    initialize()
    message = parse_message(message)

    if isinstance(public_key, (str, bytes, bytearray)):
        public_key = load_public_key(public_key)
    public_key = _require_rsa(public_key)

    signature_value = extract_signature_value(message)
    canonical = canonicalize_body(message)
    signature = decode_signature(signature_value)
    valid = verify_canonical(canonical, signature, public_key)

    report = VerificationReport(
        valid=valid,
        canonical_length=len(canonical),
        signature_length=len(signature),
        modulus_bits=public_key.key_size,
        digest=sha512_hex(canonical),
    )
    logger.debug("Message verified", **report.to_dict())
    return report
