"""HTML document tree built from a spec-compliant HTML parser."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, Optional
from xml.dom import Node as _DomNode

import html5lib
from html5lib.constants import E as _ERROR_MESSAGES

MAX_HTML_BYTES = 8 * 1024 * 1024

_HTML_NS = "http://www.w3.org/1999/xhtml"
_MATHML_NS = "http://www.w3.org/1998/Math/MathML"
_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _ascii_lower(value: str) -> str:
    return value.translate(_ASCII_LOWER)


def _eq_ignore_ascii_case(left: str, right: str) -> bool:
    return _ascii_lower(left) == _ascii_lower(right)


class DomError(Exception):
    """Base error for document construction."""


class InputTooLargeError(DomError):
    """The HTML input exceeds the accepted size."""

    def __init__(self, limit_bytes: int, actual_bytes: int) -> None:
        super().__init__(
            f"HTML input too large: {actual_bytes} bytes (limit {limit_bytes})"
        )
        self.limit_bytes = limit_bytes
        self.actual_bytes = actual_bytes


class QuirksMode(enum.Enum):
    NO_QUIRKS = "no quirks"
    QUIRKS = "quirks"
    LIMITED_QUIRKS = "limited quirks"


class NodeKind(enum.Enum):
    DOCUMENT = "document"
    DOCTYPE = "doctype"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing-instruction"


@dataclass(eq=False)
class ElementData:
    """Name, attributes and parser flags of an element."""

    local_name: str
    namespace: str = _HTML_NS
    _attrs: list = field(default_factory=list, repr=False)
    template_contents: Optional["Node"] = field(default=None, repr=False)
    mathml_annotation_xml_integration_point: bool = False

    @property
    def attrs(self) -> list[tuple[str, str]]:
        return list(self._attrs)

    def attr(self, name: str) -> Optional[str]:
        """Value of the first attribute matching name, ignoring ASCII case."""
        return next(
            (value for key, value in self._attrs if _eq_ignore_ascii_case(key, name)),
            None,
        )

    def set_attr(self, name: str, value: str) -> None:
        for index, (key, _) in enumerate(self._attrs):
            if _eq_ignore_ascii_case(key, name):
                self._attrs[index] = (key, value)
                return
        self._attrs.append((name, value))

    def remove_attr(self, name: str) -> None:
        self._attrs = [
            (key, value)
            for key, value in self._attrs
            if not _eq_ignore_ascii_case(key, name)
        ]


@dataclass(eq=False)
class Node:
    """A node of the document tree.

    ``data`` holds the text of text and comment nodes and the data of
    processing instructions; ``name`` holds a doctype name or a
    processing-instruction target.
    """

    kind: NodeKind
    element: Optional[ElementData] = None
    data: str = ""
    name: str = ""
    public_id: str = ""
    system_id: str = ""
    _parent: Optional["Node"] = field(default=None, repr=False)
    _children: list = field(default_factory=list, repr=False)

    @property
    def parent(self) -> Optional["Node"]:
        return self._parent

    @property
    def children(self) -> tuple["Node", ...]:
        return tuple(self._children)

    def as_element(self) -> Optional[ElementData]:
        return self.element if self.kind is NodeKind.ELEMENT else None

    def iter_descendants(self) -> Iterator["Node"]:
        """Yield every descendant in document order, excluding self."""
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def text_content(self) -> str:
        nodes = [self, *self.iter_descendants()]
        return "".join(node.data for node in nodes if node.kind is NodeKind.TEXT)

    def append_child(self, child: "Node") -> None:
        if child._parent is not None:
            child._parent._children = [
                c for c in child._parent._children if c is not child
            ]
        child._parent = self
        self._children.append(child)

    def remove_child(self, child: "Node") -> None:
        self._children = [c for c in self._children if c is not child]
        child._parent = None


@dataclass
class Document:
    """A parsed document with its root node, quirks mode and parse errors."""

    root: Node
    quirks_mode: QuirksMode = QuirksMode.NO_QUIRKS
    parse_errors: list[str] = field(default_factory=list)

    def descendants(self) -> list[Node]:
        return list(self.root.iter_descendants())

    def text_content(self) -> str:
        return self.root.text_content()

    def first_element_by_tag(self, tag: str) -> Optional[Node]:
        return next(
            (
                node
                for node in self.root.iter_descendants()
                if node.element is not None
                and _eq_ignore_ascii_case(node.element.local_name, tag)
            ),
            None,
        )


def parse_html(html: str) -> Document:
    """Parse HTML into a document tree; raise InputTooLargeError when oversized."""
    actual = len(html.encode("utf-8", "surrogatepass"))
    if actual > MAX_HTML_BYTES:
        raise InputTooLargeError(MAX_HTML_BYTES, actual)

    parser = html5lib.HTMLParser(tree=html5lib.getTreeBuilder("dom"))
    dom = parser.parse(html)

    root = Node(NodeKind.DOCUMENT)
    stack = [(child, root) for child in reversed(dom.childNodes)]
    while stack:
        source, parent = stack.pop()
        node = _convert_node(source, parent)
        if node is None:
            continue
        target = node
        if node.element is not None and node.element.template_contents is not None:
            target = node.element.template_contents
        stack.extend((child, target) for child in reversed(source.childNodes))

    try:
        quirks = QuirksMode(parser.compatMode)
    except ValueError:
        quirks = QuirksMode.NO_QUIRKS

    return Document(
        root=root,
        quirks_mode=quirks,
        parse_errors=[_format_error(error) for error in parser.errors],
    )


def _convert_node(source, parent: Node) -> Optional[Node]:
    node_type = source.nodeType
    if node_type == _DomNode.TEXT_NODE:
        text = source.data
        if not text:
            return None
        last = parent._children[-1] if parent._children else None
        if last is not None and last.kind is NodeKind.TEXT:
            last.data += text
            return None
        node = Node(NodeKind.TEXT, data=text)
    elif node_type == _DomNode.ELEMENT_NODE:
        node = Node(NodeKind.ELEMENT, element=_element_data(source))
    elif node_type == _DomNode.COMMENT_NODE:
        node = Node(NodeKind.COMMENT, data=source.data)
    elif node_type == _DomNode.DOCUMENT_TYPE_NODE:
        node = Node(
            NodeKind.DOCTYPE,
            name=source.name or "",
            public_id=source.publicId or "",
            system_id=source.systemId or "",
        )
    elif node_type == _DomNode.PROCESSING_INSTRUCTION_NODE:
        node = Node(
            NodeKind.PROCESSING_INSTRUCTION, name=source.target, data=source.data
        )
    else:
        return None
    node._parent = parent
    parent._children.append(node)
    return node


def _element_data(source) -> ElementData:
    namespace = source.namespaceURI or ""
    local_name = source.localName or source.tagName
    attrs = [
        (attribute.localName or attribute.name, attribute.value)
        for attribute in source.attributes.values()
    ]
    element = ElementData(local_name=local_name, namespace=namespace, _attrs=attrs)
    if namespace == _HTML_NS and local_name == "template":
        element.template_contents = Node(NodeKind.DOCUMENT)
    if namespace == _MATHML_NS and local_name == "annotation-xml":
        encoding = _ascii_lower(element.attr("encoding") or "")
        element.mathml_annotation_xml_integration_point = encoding in (
            "text/html",
            "application/xhtml+xml",
        )
    return element


def _format_error(error) -> str:
    _position, code, datavars = error
    template = _ERROR_MESSAGES.get(code, code)
    try:
        return template % (datavars or {})
    except (KeyError, TypeError, ValueError):
        return str(code)