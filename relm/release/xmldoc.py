"""Position-aware XML documents and byte-splicing patches.

Module descriptors are rewritten by replacing a handful of byte ranges
(version texts, SCM locations) and copying everything else verbatim, so
comments, CDATA blocks, attribute quoting, encoding and line endings survive
a rewrite untouched.

XmlDocument.parse first runs the bytes through defusedxml (rejecting
entity expansion tricks and malformed input), then walks them with expat
to record the byte offsets of every element. XmlPatch collects edits
against those offsets and splices them in one pass.

Only ASCII-compatible encodings are supported: offsets are searched for
``>`` on the raw bytes.

Usage:
    doc = XmlDocument.parse(path.read_bytes(), source=str(path))
    version = doc.root.child("version")
    patch = XmlPatch(doc)
    patch.set_text(version, "1.0")
    path.write_bytes(patch.apply())
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from xml.parsers import expat
from xml.sax.saxutils import escape

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeElementTree

__all__ = [
    "DescriptorParseError",
    "XmlDocument",
    "XmlElement",
    "XmlPatch",
    "normalize_line_endings",
]

_DECLARED_ENCODING_RE = re.compile(rb"""^(?:\xef\xbb\xbf)?<\?xml[^>]*encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")
_UNSUPPORTED_PREFIXES = (b"\xff\xfe", b"\xfe\xff", b"\x00<", b"<\x00")
_NEWLINE_RE = re.compile(rb"\r\n|\r|\n")


class DescriptorParseError(Exception):
    """A module descriptor is not well-formed (or not safely parseable) XML."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


def _empty_children() -> list[XmlElement]:
    return []


def _empty_text() -> list[str]:
    return []


@dataclass(eq=False, slots=True)
class XmlElement:
    """One element with the byte offsets needed to patch it.

    Attributes:
        qname: Name as written (may carry a prefix).
        start: Offset of the ``<`` opening the start tag.
        start_tag_end: Offset just past the start tag's ``>``.
        content_end: Offset of the ``</`` closing tag (== start_tag_end when
            the element is self-closing).
        end: Offset just past the element.
    """

    qname: str
    start: int
    start_tag_end: int
    parent: XmlElement | None = None
    content_end: int = -1
    end: int = -1
    children: list[XmlElement] = field(default_factory=_empty_children)
    text_parts: list[str] = field(default_factory=_empty_text)

    @property
    def name(self) -> str:
        """Local name (prefix dropped)."""
        return self.qname.rsplit(":", 1)[-1]

    @property
    def self_closing(self) -> bool:
        return self.content_end == self.start_tag_end and self.end == self.start_tag_end

    @property
    def text(self) -> str:
        """Direct character data (CDATA included), stripped."""
        return "".join(self.text_parts).strip()

    def child(self, name: str) -> XmlElement | None:
        for c in self.children:
            if c.name == name:
                return c
        return None

    def children_named(self, name: str) -> list[XmlElement]:
        return [c for c in self.children if c.name == name]

    def child_text(self, name: str) -> str | None:
        c = self.child(name)
        if c is None:
            return None
        return c.text or None

    def find(self, path: str) -> XmlElement | None:
        """First element matching a ``/``-separated path of local names."""
        for el in self.iterfind(path):
            return el
        return None

    def iterfind(self, path: str) -> Iterator[XmlElement]:
        """All elements matching a ``/``-separated path of local names."""
        current: list[XmlElement] = [self]
        for part in path.split("/"):
            current = [c for el in current for c in el.children if c.name == part]
        yield from current


class _Builder:
    def __init__(self, data: bytes, parser: expat.XMLParserType) -> None:
        self._data = data
        self._parser = parser
        self._stack: list[XmlElement] = []
        self.root: XmlElement | None = None

    def start(self, qname: str, attrs: dict[str, str]) -> None:
        del attrs
        offset = self._parser.CurrentByteIndex
        parent = self._stack[-1] if self._stack else None
        el = XmlElement(
            qname=qname,
            start=offset,
            start_tag_end=_start_tag_end(self._data, offset),
            parent=parent,
        )
        if parent is None:
            self.root = el
        else:
            parent.children.append(el)
        self._stack.append(el)

    def end(self, qname: str) -> None:
        del qname
        el = self._stack.pop()
        offset = self._parser.CurrentByteIndex
        if self._data.startswith(b"</", offset) and offset >= el.start_tag_end:
            el.content_end = offset
            el.end = self._data.index(b">", offset) + 1
        else:
            el.content_end = el.start_tag_end
            el.end = el.start_tag_end

    def chars(self, text: str) -> None:
        if self._stack:
            self._stack[-1].text_parts.append(text)


def _start_tag_end(data: bytes, start: int) -> int:
    """Offset just past the ``>`` closing the tag that opens at ``start``."""
    quote: int | None = None
    for i in range(start + 1, len(data)):
        b = data[i]
        if quote is not None:
            if b == quote:
                quote = None
        elif b in (0x22, 0x27):
            quote = b
        elif b == 0x3E:
            return i + 1
    raise ValueError(f"unterminated start tag at offset {start}")


@dataclass(frozen=True, slots=True)
class XmlDocument:
    """Parsed XML with byte offsets into the original data."""

    data: bytes
    root: XmlElement
    encoding: str
    source: str = "<bytes>"

    @classmethod
    def parse(cls, data: bytes, *, source: str = "<bytes>") -> XmlDocument:
        """Parse ``data``; raises DescriptorParseError when it cannot be used."""
        if data.startswith(_UNSUPPORTED_PREFIXES):
            raise DescriptorParseError(source, "only ASCII-compatible encodings are supported")

        match = _DECLARED_ENCODING_RE.match(data)
        encoding = match.group(1).decode("ascii") if match else "utf-8"
        if encoding.lower().replace("_", "-").startswith(("utf-16", "utf-32", "ucs")):
            raise DescriptorParseError(source, f"unsupported encoding: {encoding}")

        try:
            SafeElementTree.fromstring(data)
        except (SafeElementTree.ParseError, DefusedXmlException) as e:
            raise DescriptorParseError(source, str(e)) from e

        parser = expat.ParserCreate()
        builder = _Builder(data, parser)
        parser.StartElementHandler = builder.start
        parser.EndElementHandler = builder.end
        parser.CharacterDataHandler = builder.chars
        try:
            parser.Parse(data, True)
        except (expat.ExpatError, ValueError) as e:
            raise DescriptorParseError(source, str(e)) from e

        if builder.root is None:
            raise DescriptorParseError(source, "document has no root element")
        return cls(data=data, root=builder.root, encoding=encoding, source=source)

    @property
    def line_separator(self) -> bytes:
        """Line ending used by the first line of the document."""
        idx = self.data.find(b"\n")
        if idx > 0 and self.data[idx - 1 : idx] == b"\r":
            return b"\r\n"
        if idx < 0 and b"\r" in self.data:
            return b"\r"
        return b"\n"

    def indentation_of(self, element: XmlElement) -> bytes:
        """Whitespace between the start of the element's line and the element."""
        line_start = max(self.data.rfind(b"\n", 0, element.start), self.data.rfind(b"\r", 0, element.start))
        prefix = self.data[line_start + 1 : element.start]
        return prefix if not prefix.strip() else b""

    def encode(self, value: str) -> bytes:
        return escape(value).encode(self.encoding, errors="xmlcharrefreplace")


class XmlPatch:
    """Collects byte-range edits against one XmlDocument and applies them."""

    def __init__(self, document: XmlDocument) -> None:
        self.document = document
        self._edits: dict[tuple[int, int], bytes] = {}

    def __len__(self) -> int:
        return len(self._edits)

    def set_text(self, element: XmlElement, value: str) -> None:
        """Replace the element's text content with ``value``.

        Whitespace surrounding a plain-text value is kept
        (``<version> 1.0 </version>`` stays padded). Content holding markup
        (CDATA, comments, entity references) is replaced as a whole.
        """
        doc = self.document
        encoded = doc.encode(value)
        if element.self_closing:
            open_tag = doc.data[element.start : element.end].rstrip(b"/> \t\r\n")
            closing = f"</{element.qname}>".encode(doc.encoding)
            self._add(element.start, element.end, open_tag + b">" + encoded + closing)
            return

        raw = doc.data[element.start_tag_end : element.content_end]
        if b"<" in raw or b"&" in raw or not raw.strip():
            self._add(element.start_tag_end, element.content_end, encoded)
            return

        lead = len(raw) - len(raw.lstrip())
        trail = len(raw) - len(raw.rstrip())
        self._add(element.start_tag_end + lead, element.content_end - trail, encoded)

    def insert_after(self, sibling: XmlElement, name: str, value: str) -> None:
        """Insert ``<name>value</name>`` on its own line right after ``sibling``."""
        doc = self.document
        prefix = sibling.qname.rsplit(":", 1)[0] + ":" if ":" in sibling.qname else ""
        qname = f"{prefix}{name}".encode(doc.encoding)
        element = b"<" + qname + b">" + doc.encode(value) + b"</" + qname + b">"
        indent = doc.indentation_of(sibling)
        separator = doc.line_separator + indent if indent else b""
        self._add(sibling.end, sibling.end, separator + element)

    def remove(self, element: XmlElement) -> None:
        """Remove the element together with the indentation of its line."""
        doc = self.document
        indent = doc.indentation_of(element)
        start = element.start - len(indent)
        if indent:
            sep = doc.line_separator
            if doc.data[start - len(sep) : start] == sep:
                start -= len(sep)
        self._add(start, element.end, b"")

    def _add(self, start: int, end: int, content: bytes) -> None:
        key = (start, end)
        existing = self._edits.get(key)
        if existing is not None and existing != content:
            raise ValueError(
                f"conflicting edits at offset {start} of {self.document.source}"
            )
        self._edits[key] = content

    def apply(self) -> bytes:
        """Return the document bytes with every edit spliced in."""
        data = self.document.data
        out: list[bytes] = []
        cursor = 0
        for (start, end), content in sorted(self._edits.items()):
            if start < cursor:
                raise ValueError(f"overlapping edits at offset {start} of {self.document.source}")
            out.append(data[cursor:start])
            out.append(content)
            cursor = end
        out.append(data[cursor:])
        return b"".join(out)


def normalize_line_endings(data: bytes, separator: str) -> bytes:
    """Rewrite every line ending in ``data`` to ``separator``."""
    return _NEWLINE_RE.sub(separator.encode("ascii"), data)
