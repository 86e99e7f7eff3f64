"""Text normalization helpers used during extraction."""

from __future__ import annotations

import re

from lxml import etree

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""

    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_xml_part(payload: bytes) -> etree._Element | None:
    """Parse an OOXML part without touching the network or external entities.

    Returns None when the payload holds no recoverable element tree.
    """

    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
        recover=True,
    )
    try:
        return etree.fromstring(payload, parser=parser)
    except etree.XMLSyntaxError:
        return None
