"""Minimal HTML element tree with class and attribute selectors.

Build a forgiving element tree on top of ``html.parser.HTMLParser`` and offer
the handful of selector forms the FunPay extractor needs: ``tag``, ``.class``,
``[attr]``, ``[attr=value]``, their compounds (``span.pseudo-a[data-href]``)
and comma-separated alternatives. Descendant combinators are expressed by
chaining ``select`` calls on the returned nodes.

Broken markup never raises: unmatched end tags are ignored and unclosed
elements are closed when their parent closes.
"""

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser

_VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)
_SKIP_TEXT_TAGS = frozenset({"script", "style"})
_SELECTOR_RE = re.compile(
    r"^(?P<tag>[a-zA-Z][a-zA-Z0-9-]*)?"
    r"(?P<classes>(?:\.[\w-]+)*)"
    r"(?:\[(?P<attr>[\w-]+)(?:=[\"']?(?P<value>[^\"'\]]*)[\"']?)?\])?$"
)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class _Selector:
    """Parsed form of a single compound selector."""

    tag: str | None
    classes: tuple[str, ...]
    attr: str | None
    value: str | None

    def matches(self, node: "Node") -> bool:
        """Return whether ``node`` satisfies every part of the selector."""
        if self.tag is not None and node.tag != self.tag:
            return False
        if self.classes and not set(self.classes).issubset(node.classes):
            return False
        if self.attr is not None:
            if self.attr not in node.attrs:
                return False
            if self.value is not None and node.attrs[self.attr] != self.value:
                return False
        return True


def _parse_selector(selector: str) -> tuple[_Selector, ...]:
    """Parse a comma-separated selector group.

    Args:
        selector: Selector text such as ``".chat, [data-chat-id]"``.

    Returns:
        One ``_Selector`` per alternative.

    Raises:
        ValueError: If an alternative uses unsupported syntax.

    """
    parsed: list[_Selector] = []
    for part in selector.split(","):
        text = part.strip()
        match = _SELECTOR_RE.match(text)
        if not text or match is None:
            msg = f"Unsupported selector: {part!r}"
            raise ValueError(msg)
        classes = tuple(c for c in match.group("classes").split(".") if c)
        tag = match.group("tag")
        parsed.append(
            _Selector(
                tag=tag.lower() if tag else None,
                classes=classes,
                attr=match.group("attr"),
                value=match.group("value"),
            )
        )
    return tuple(parsed)


@dataclass
class Node:
    """An element in the parsed document.

    Attributes:
        tag: Lower-case tag name (``"#root"`` for the document node).
        attrs: Attribute mapping; valueless attributes map to ``""``.
        children: Child nodes and text fragments in document order.

    """

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["Node | str"] = field(default_factory=list)

    @property
    def classes(self) -> frozenset[str]:
        """Return the set of CSS classes on this element."""
        return frozenset(self.attrs.get("class", "").split())

    def attr(self, name: str, default: str | None = None) -> str | None:
        """Return an attribute value or ``default`` when it is absent."""
        return self.attrs.get(name, default)

    @property
    def elements(self) -> list["Node"]:
        """Return the child elements, skipping text fragments."""
        return [child for child in self.children if isinstance(child, Node)]

    def iter_descendants(self) -> "list[Node]":
        """Return all descendant elements in document order."""
        found: list[Node] = []
        stack = list(reversed(self.elements))
        while stack:
            node = stack.pop()
            found.append(node)
            stack.extend(reversed(node.elements))
        return found

    def select(self, selector: str) -> list["Node"]:
        """Return descendants matching any alternative of ``selector``.

        Args:
            selector: Selector group, e.g. ``".message, .chat-message"``.

        Returns:
            Matching elements in document order, each listed once.

        """
        alternatives = _parse_selector(selector)
        return [
            node
            for node in self.iter_descendants()
            if any(alt.matches(node) for alt in alternatives)
        ]

    def select_one(self, selector: str) -> "Node | None":
        """Return the first descendant matching ``selector``, or ``None``."""
        matches = self.select(selector)
        return matches[0] if matches else None

    def text(self) -> str:
        """Return the element's text content with whitespace collapsed."""
        parts: list[str] = []
        self._collect_text(parts)
        return _WHITESPACE_RE.sub(" ", "".join(parts)).strip()

    def _collect_text(self, parts: list[str]) -> None:
        for child in self.children:
            if isinstance(child, str):
                parts.append(child)
            elif child.tag not in _SKIP_TEXT_TAGS:
                child._collect_text(parts)  # noqa: SLF001


class _TreeBuilder(HTMLParser):
    """Accumulate ``HTMLParser`` callbacks into a ``Node`` tree."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Node(tag="#root")
        self._stack: list[Node] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        node = Node(tag=tag, attrs={name: value or "" for name, value in attrs})
        self._stack[-1].children.append(node)
        if tag not in _VOID_TAGS:
            self._stack.append(node)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        node = Node(tag=tag, attrs={name: value or "" for name, value in attrs})
        self._stack[-1].children.append(node)

    def handle_endtag(self, tag: str) -> None:
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data: str) -> None:
        self._stack[-1].children.append(data)


def parse_html(document: str) -> Node:
    """Parse an HTML document into a ``Node`` tree.

    Args:
        document: Raw HTML text. An empty string yields an empty root.

    Returns:
        The document root node.

    """
    builder = _TreeBuilder()
    builder.feed(document)
    builder.close()
    return builder.root
