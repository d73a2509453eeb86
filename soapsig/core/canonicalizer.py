"""Body canonicalization.

Every element child of the SOAP Body is rebuilt without namespaces and
serialized on its own with inclusive Canonical XML 1.0, comments omitted.
The serializations are concatenated in document order with nothing between
them. Text, comments and processing instructions directly under Body are
skipped.
"""

from lxml import etree

from soapsig.core.envelope import find_body
from soapsig.core.logging import get_logger, log_operation
from soapsig.core.xml_tree import Message, is_element, parse_message, strip_namespaces

logger = get_logger(__name__)


def canonicalize_element(element: etree._Element) -> bytes:
    """Strip namespaces from one element and return its C14N bytes."""
    standalone = strip_namespaces(element)
    return etree.tostring(
        standalone,
        method="c14n",
        exclusive=False,
        with_comments=False,
    )


@log_operation("canonicalize_body")
def canonicalize_body(message: "str | bytes | Message") -> bytes:
    """Build the canonical byte buffer for the SOAP Body.

    Args:
        message: Message text or a parsed Message

    Returns:
        Concatenated canonical form of the Body's element children; empty
        when the Body has no element children

    Raises:
        MalformedXmlError: if the message cannot be parsed
        MissingBodyError: if the Envelope or Body is absent
    """
    message = parse_message(message)
    body = find_body(message)

    parts = [canonicalize_element(child) for child in body if is_element(child)]
    buffer = b"".join(parts)

    logger.debug("Body canonicalized", children=len(parts), length=len(buffer))
    return buffer
