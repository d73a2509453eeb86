"""Fixed envelope paths and the signature locator.

The legacy producer writes its envelope in the 2001/06 SOAP draft namespace.
That URI is matched literally; documents using the SOAP 1.1 or 1.2
namespaces do not match.

    Envelope[ns] > Header[ns] > Signature   (Signature in any namespace)
    Envelope[ns] > Body[ns] > (element)*
"""

import base64
import binascii
import re

from lxml import etree

from soapsig.core.logging import get_logger
from soapsig.core.xml_tree import Message, is_element, local_name, parse_message
from soapsig.errors import (
    InvalidSignatureEncodingError,
    MissingBodyError,
    MissingSignatureError,
)

logger = get_logger(__name__)

SOAP_ENV_NS = "http://www.w3.org/2001/06/soap-envelope"

SIGNATURE_PATH = "/soap:Envelope/soap:Header/Signature"
BODY_PATH = "/soap:Envelope/soap:Body"

_WHITESPACE = re.compile(r"\s+")


def _soap(tag: str) -> str:
    return etree.QName(SOAP_ENV_NS, tag).text


def _first_child(parent: etree._Element, tag: str) -> etree._Element | None:
    for child in parent:
        if is_element(child) and child.tag == tag:
            return child
    return None


def find_envelope(message: "str | bytes | Message") -> etree._Element | None:
    """Return the root element if it is the legacy SOAP Envelope."""
    root = parse_message(message).root
    if root.tag == _soap("Envelope"):
        return root
    return None


def find_headers(message: "str | bytes | Message") -> list[etree._Element]:
    """Return every SOAP Header child of the Envelope, in document order."""
    envelope = find_envelope(message)
    if envelope is None:
        return []
    return [child for child in envelope if is_element(child) and child.tag == _soap("Header")]


def find_body(message: "str | bytes | Message") -> etree._Element:
    """Locate the SOAP Body element.

    Raises:
        MissingBodyError: if the envelope or its Body is absent
    """
    envelope = find_envelope(message)
    if envelope is None:
        raise MissingBodyError("SOAP Envelope element not found", path=BODY_PATH)

    body = _first_child(envelope, _soap("Body"))
    if body is None:
        raise MissingBodyError("SOAP Body element not found", path=BODY_PATH)
    return body


def extract_signature_value(message: "str | bytes | Message") -> str:
    """Return the trimmed base64 text of the header Signature element.

    Raises:
        MalformedXmlError: if the message cannot be parsed
        MissingSignatureError: if any step of the path is absent or the text is empty
    """
    message = parse_message(message)
    headers = find_headers(message)
    if not headers:
        raise MissingSignatureError("SOAP Header element not found", path=SIGNATURE_PATH)

    # first Signature across all Headers, as the path expression selects it
    signature = next(
        (
            child
            for header in headers
            for child in header
            if is_element(child) and local_name(child) == "Signature"
        ),
        None,
    )

    if signature is None:
        raise MissingSignatureError("Signature element not found in SOAP Header", path=SIGNATURE_PATH)

    value = "".join(signature.itertext()).strip()
    if not value:
        raise MissingSignatureError("Signature element is empty", path=SIGNATURE_PATH)

    logger.debug("Signature located", length=len(value))
    return value


def decode_signature(signature_b64: "str | bytes") -> bytes:
    """Decode a base64 signature value.

    Whitespace anywhere in the value is ignored; anything else outside the
    base64 alphabet is an error.

    Raises:
        InvalidSignatureEncodingError: if the value is not base64 or decodes to nothing
    """
    if isinstance(signature_b64, bytes):
        try:
            signature_b64 = signature_b64.decode("ascii")
        except UnicodeDecodeError as exc:
            raise InvalidSignatureEncodingError("Signature is not ASCII base64") from exc

    compact = _WHITESPACE.sub("", signature_b64)
    try:
        decoded = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSignatureEncodingError(f"Signature is not valid base64: {exc}") from exc

    if not decoded:
        raise InvalidSignatureEncodingError("Signature decodes to zero bytes")
    return decoded


def extract_signature(message: "str | bytes | Message") -> bytes:
    """Return the decoded signature bytes carried in the SOAP Header.

    Raises:
        MalformedXmlError, MissingSignatureError, InvalidSignatureEncodingError
    """
    return decode_signature(extract_signature_value(message))
