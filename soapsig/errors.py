"""
Exception classes for soapsig.

Every error names the pipeline stage that failed and, where one applies,
the element path that was expected, so callers can render a precise message.
"""

STAGE_PARSE = "parse"
STAGE_SIGNATURE = "signature"
STAGE_BODY = "body"
STAGE_KEY = "key"
STAGE_VERIFY = "verify"
STAGE_CONFIG = "config"


class SoapSignatureError(Exception):
    """Base exception for soapsig errors."""

    stage: str = STAGE_VERIFY

    def __init__(self, message: str, path: str | None = None, stage: str | None = None):
        super().__init__(message)
        self.path = path
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"{message} (expected at {self.path})"
        return message


class MalformedXmlError(SoapSignatureError):
    """The message is not well-formed XML."""
    stage = STAGE_PARSE


class MissingSignatureError(SoapSignatureError):
    """Envelope, Header or Signature element absent, or the signature is empty."""
    stage = STAGE_SIGNATURE


class MissingBodyError(SoapSignatureError):
    """Envelope or Body element absent."""
    stage = STAGE_BODY


class InvalidPemFormatError(SoapSignatureError):
    """PEM markers missing or the content between them is not base64."""
    stage = STAGE_KEY


class InvalidKeySpecError(SoapSignatureError):
    """Decoded key bytes are not a valid SubjectPublicKeyInfo structure."""
    stage = STAGE_KEY


class InvalidSignatureEncodingError(SoapSignatureError):
    """Signature is not base64 or has the wrong length for the key."""
    stage = STAGE_VERIFY


class UnsupportedAlgorithmError(SoapSignatureError):
    """Key type other than RSA."""
    stage = STAGE_KEY


class ConfigurationError(SoapSignatureError):
    """SOAPSIG_* settings the pipeline depends on are invalid."""
    stage = STAGE_CONFIG
