"""
soapsig - verify signatures on legacy SOAP messages.

Reproduces the canonical form of a legacy producer: each SOAP Body child is
stripped of namespaces, serialized with Canonical XML 1.0 (no comments) and
concatenated; the result is checked with RSA PKCS#1 v1.5 over SHA-512.

Usage:
    from soapsig import extract_signature_value, load_public_key, verify

    key = load_public_key(open("producer.pem").read())
    valid = verify(message, extract_signature_value(message), key)
"""

from soapsig.core.canonicalizer import canonicalize_body, canonicalize_element
from soapsig.core.envelope import (
    SOAP_ENV_NS,
    decode_signature,
    extract_signature,
    extract_signature_value,
)
from soapsig.core.keys import load_public_key, load_public_key_file
from soapsig.core.startup import RuntimeInfo, initialize
from soapsig.core.verifier import VerificationReport, verify, verify_message
from soapsig.core.xml_tree import Message, parse_message, strip_namespaces
from soapsig.errors import (
    ConfigurationError,
    InvalidKeySpecError,
    InvalidPemFormatError,
    InvalidSignatureEncodingError,
    MalformedXmlError,
    MissingBodyError,
    MissingSignatureError,
    SoapSignatureError,
    UnsupportedAlgorithmError,
)

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "extract_signature",
    "extract_signature_value",
    "decode_signature",
    "canonicalize_body",
    "canonicalize_element",
    "load_public_key",
    "load_public_key_file",
    "verify",
    "verify_message",
    "VerificationReport",
    # Parsing
    "Message",
    "parse_message",
    "strip_namespaces",
    "SOAP_ENV_NS",
    # Startup
    "initialize",
    "RuntimeInfo",
    # Errors
    "SoapSignatureError",
    "MalformedXmlError",
    "MissingSignatureError",
    "MissingBodyError",
    "InvalidPemFormatError",
    "InvalidKeySpecError",
    "InvalidSignatureEncodingError",
    "UnsupportedAlgorithmError",
    "ConfigurationError",
]
