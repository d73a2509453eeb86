"""Message parsing and namespace stripping.

Messages are parsed with lxml, namespace aware, keeping whitespace-only text
exactly as written. The stripper rebuilds an element subtree without any
namespace information, reproducing the legacy producer's rules:

- element tags keep only their local name
- attributes named ``xmlns*`` are dropped
- attributes carrying a namespace URI are dropped, not renamed
- comments and processing instructions are copied as they are
"""

import copy
from dataclasses import dataclass

from lxml import etree

from pydantic import ValidationError

from soapsig.config import get_parser_settings
from soapsig.core.logging import get_logger
from soapsig.core.startup import initialize
from soapsig.errors import ConfigurationError, MalformedXmlError

logger = get_logger(__name__)

# Reserved prefix of namespace-declaration attributes
XMLNS_PREFIX = "xmlns"


@dataclass(frozen=True)
class Message:
    """A parsed message. Neither field is modified after parsing."""
    source: bytes
    root: etree._Element


def _make_parser() -> etree.XMLParser:
    # lxml parsers must not be shared between threads
    return etree.XMLParser(
        remove_blank_text=False,
        remove_comments=False,
        load_dtd=False,
        no_network=True,
        huge_tree=False,
    )


def parse_message(message: "str | bytes | Message") -> Message:
    """Parse message text into a Message.

    Args:
        message: UTF-8 text, raw bytes, or an already parsed Message

    Returns:
        Message holding the source bytes and the root element

    Raises:
        MalformedXmlError: if the text is not well-formed or too large
        ConfigurationError: if SOAPSIG_MAX_MESSAGE_BYTES is invalid
    """
    if isinstance(message, Message):
        return message

    initialize()

    if isinstance(message, str):
        source = message.encode("utf-8")
    elif isinstance(message, (bytes, bytearray)):
        source = bytes(message)
    else:
        raise TypeError(f"message must be str, bytes or Message, not {type(message).__name__}")

    try:
        limit = get_parser_settings().max_message_bytes
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid parser settings: {exc}") from exc
    if len(source) > limit:
        raise MalformedXmlError(f"Message is {len(source)} bytes, limit is {limit}")

    try:
        root = etree.fromstring(source, _make_parser())
    except etree.XMLSyntaxError as exc:
        raise MalformedXmlError(f"Message is not well-formed XML: {exc}") from exc

    logger.debug("Message parsed", size=len(source), root=root.tag)
    return Message(source=source, root=root)


def local_name(element: etree._Element) -> str:
    """Tag of an element without its namespace."""
    return etree.QName(element).localname


def is_element(node) -> bool:
    """True for elements, False for comments, processing instructions and entities."""
    return isinstance(node.tag, str)


def _keep_attribute(name: str) -> bool:
    # lxml spells namespaced attributes as {uri}local; xmlns:p declarations never
    # reach attrib, but unprefixed names like "xmlnsFoo" do
    if name.startswith("{"):
        return False
    return not name.startswith(XMLNS_PREFIX)


def strip_namespaces(
    element: etree._Element,
    parent: etree._Element | None = None,
) -> etree._Element:
    """Rebuild an element subtree with all namespace information removed.

    The source element is never modified.

    Args:
        element: Element to rebuild
        parent: Element the copy is appended to; None builds a standalone tree

    Returns:
        The new, namespace-free element
    """
    tag = local_name(element)
    if parent is None:
        stripped = etree.Element(tag)
    else:
        stripped = etree.SubElement(parent, tag)

    for name, value in element.attrib.items():
        if _keep_attribute(name):
            stripped.set(name, value)

    stripped.text = element.text

    for child in element:
        if is_element(child):
            rebuilt = strip_namespaces(child, stripped)
        else:
            rebuilt = copy.copy(child)
            stripped.append(rebuilt)
        rebuilt.tail = child.tail

    return stripped
