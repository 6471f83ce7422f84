# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Block level parser for API documentation comments.

Documentation in API definitions is CommonMark. This parser recognizes the
block structure needed to reformat comments for other documentation tools:
paragraphs, ATX and setext headings, fenced and indented code blocks, block
quotes, thematic breaks, and bullet or ordered lists (tight or loose, nested,
with lazy continuation lines). Raw HTML blocks are parsed as paragraphs.

Link reference definitions are recognized only at the start of a paragraph,
since they cannot interrupt one. They are removed from the paragraph and
collected in ``Document.definitions``.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

TAB_STOP = 4

_FENCE = re.compile(r"^(`{3,}|~{3,})(.*)$")
_ATX_HEADING = re.compile(r"^(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_THEMATIC_BREAK = re.compile(r"^(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
_SETEXT_UNDERLINE = re.compile(r"^(=+|-+)[ \t]*$")
_LIST_MARKER = re.compile(r"^([-+*]|\d{1,9}[.)])( +|$)")
_LINK_DEFINITION = re.compile(
    r"^\[((?:[^\]\\]|\\.)+)\]:[ \t]*(<[^>]*>|\S+)"
    r"(?:[ \t]+(\"[^\"]*\"|'[^']*'|\([^)]*\)))?[ \t]*$"
)


@dataclass(eq=False)
class Node:
    """A block in the document tree.

    ``start`` and ``end`` are line offsets in the enclosing container, used to
    find blank lines between sibling blocks.
    """

    children: List["Node"] = field(default_factory=list)
    parent: Optional["Node"] = None
    start: int = 0
    end: int = 0

    def append(self, child: "Node") -> None:
        child.parent = self
        self.children.append(child)

    def walk(self):
        """Yield every descendant in document order."""
        for child in self.children:
            yield child
            yield from child.walk()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(children={self.children})"


@dataclass(eq=False)
class Document(Node):
    definitions: Dict[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class Paragraph(Node):
    """A paragraph. Inside tight list items it is a plain text block."""

    lines: List[str] = field(default_factory=list)
    text_block: bool = False

    def text(self) -> str:
        return "\n".join(self.lines)

    def __repr__(self) -> str:
        kind = "TextBlock" if self.text_block else "Paragraph"
        return f"{kind}({self.lines!r})"


@dataclass(eq=False)
class Heading(Node):
    level: int = 1
    text: str = ""

    def __repr__(self) -> str:
        return f"Heading({self.level}, {self.text!r})"


@dataclass(eq=False)
class CodeBlock(Node):
    lines: List[str] = field(default_factory=list)
    fenced: bool = False
    info: str = ""

    def __repr__(self) -> str:
        return f"CodeBlock({self.lines!r})"


@dataclass(eq=False)
class BlockQuote(Node):
    pass


@dataclass(eq=False)
class ThematicBreak(Node):
    pass


@dataclass(eq=False)
class ListBlock(Node):
    """A bullet or ordered list.

    ``marker`` is the bullet character, or the delimiter (``.`` or ``)``) for
    ordered lists.
    """

    marker: str = "-"
    ordered: bool = False
    tight: bool = True

    def __repr__(self) -> str:
        kind = "ordered" if self.ordered else "bullet"
        return f"ListBlock({kind}, tight={self.tight}, items={self.children})"


@dataclass(eq=False)
class ListItem(Node):
    pass


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_blank(line: str) -> bool:
    return not line.strip()


def _match_marker(text: str) -> Optional[Tuple[str, int, str]]:
    """Match a list marker, returning (marker, content offset, content)."""
    m = _LIST_MARKER.match(text)
    if not m:
        return None
    marker = m.group(1)
    spaces = len(m.group(2))
    rest = text[m.end() :]
    if not rest:
        return marker, len(marker) + 1, ""
    if spaces > 4:
        # The content is an indented code block; only one space belongs to
        # the marker.
        return marker, len(marker) + 1, text[len(marker) + 1 :]
    return marker, len(marker) + spaces, rest


def _marker_kind(marker: str) -> Tuple[bool, str]:
    if marker[-1] in ".)" and marker[:-1].isdigit():
        return True, marker[-1]
    return False, marker


def normalize_label(label: str) -> str:
    """Normalize a link label for case-insensitive matching."""
    return " ".join(label.split()).casefold()


class BlockParser:
    """Parses documentation text into a ``Document`` tree."""

    def __init__(self, text: str):
        self.text = text
        self.definitions: Dict[str, str] = {}

    def parse(self) -> Document:
        lines = self.text.expandtabs(TAB_STOP).splitlines()
        document = Document(definitions=self.definitions)
        self._parse_blocks(lines, document)
        return document

    def _interrupts_paragraph(self, line: str) -> bool:
        if _indent(line) > 3:
            return False
        text = line.lstrip(" ")
        if _FENCE.match(text) or _ATX_HEADING.match(text) or text.startswith(">"):
            return True
        if _THEMATIC_BREAK.match(text):
            return True
        marker = _match_marker(text)
        if marker is None or not marker[2].strip():
            return False
        ordered, _ = _marker_kind(marker[0])
        return not ordered or int(marker[0][:-1]) == 1

    def _starts_block(self, line: str) -> bool:
        if self._interrupts_paragraph(line):
            return True
        return _indent(line) <= 3 and _match_marker(line.lstrip(" ")) is not None

    def _parse_blocks(self, lines: List[str], container: Node) -> None:
        i = 0
        n = len(lines)
        while i < n:
            line = lines[i]
            if _is_blank(line):
                i += 1
                continue
            indent = _indent(line)
            if indent >= 4:
                i = self._parse_indented_code(lines, i, container)
                continue
            text = line[indent:]
            fence = _FENCE.match(text)
            if fence and not (fence.group(1)[0] == "`" and "`" in fence.group(2)):
                i = self._parse_fenced_code(lines, i, indent, fence, container)
                continue
            heading = _ATX_HEADING.match(text)
            if heading:
                node = Heading(
                    level=len(heading.group(1)),
                    text=(heading.group(2) or "").strip(),
                    start=i,
                    end=i + 1,
                )
                container.append(node)
                i += 1
                continue
            if text.startswith(">"):
                i = self._parse_block_quote(lines, i, container)
                continue
            if _THEMATIC_BREAK.match(text):
                container.append(ThematicBreak(start=i, end=i + 1))
                i += 1
                continue
            if _match_marker(text) is not None:
                i = self._parse_list(lines, i, container)
                continue
            i = self._parse_paragraph(lines, i, container)

    def _parse_indented_code(self, lines: List[str], i: int, container: Node) -> int:
        start = i
        body = []
        last = i
        while i < len(lines):
            line = lines[i]
            if _is_blank(line):
                body.append("")
            elif _indent(line) >= 4:
                body.append(line[4:])
                last = i
            else:
                break
            i += 1
        body = body[: last - start + 1]
        container.append(CodeBlock(lines=body, start=start, end=last + 1))
        return last + 1

    def _parse_fenced_code(self, lines, i, indent, fence, container) -> int:
        start = i
        opening = fence.group(1)
        body = []
        i += 1
        while i < len(lines):
            line = lines[i]
            closing = line.strip()
            if (
                _indent(line) <= 3
                and closing.startswith(opening[0] * len(opening))
                and not closing.strip(opening[0])
            ):
                i += 1
                break
            # Remove up to the indentation of the opening fence
            strip = min(indent, _indent(line))
            body.append(line[strip:])
            i += 1
        container.append(
            CodeBlock(
                lines=body,
                fenced=True,
                info=fence.group(2).strip(),
                start=start,
                end=i,
            )
        )
        return i

    def _parse_block_quote(self, lines: List[str], i: int, container: Node) -> int:
        start = i
        body = []
        while i < len(lines):
            line = lines[i]
            text = line.lstrip(" ")
            if _indent(line) <= 3 and text.startswith(">"):
                content = text[1:]
                if content.startswith(" "):
                    content = content[1:]
                body.append(content)
            elif (
                not _is_blank(line)
                and body
                and not _is_blank(body[-1])
                and not self._starts_block(line)
            ):
                body.append(line.strip())
            else:
                break
            i += 1
        quote = BlockQuote(start=start, end=i)
        self._parse_blocks(body, quote)
        container.append(quote)
        return i

    def _parse_list(self, lines: List[str], i: int, container: Node) -> int:
        first = _match_marker(lines[i].lstrip(" "))
        ordered, kind = _marker_kind(first[0])
        node = ListBlock(marker=kind, ordered=ordered, start=i)
        loose = False
        pending_blank = False
        while i < len(lines):
            line = lines[i]
            indent = _indent(line)
            if _is_blank(line) or indent > 3:
                break
            marker = _match_marker(line[indent:])
            if marker is None or _marker_kind(marker[0]) != (ordered, kind):
                break
            if pending_blank:
                loose = True
            width = indent + marker[1]
            body = [marker[2]]
            i += 1
            while i < len(lines):
                line = lines[i]
                if _is_blank(line):
                    body.append("")
                elif _indent(line) >= width:
                    body.append(line[width:])
                elif not _is_blank(body[-1]) and not self._starts_block(line):
                    body.append(line.strip())
                else:
                    break
                i += 1
            trailing = 0
            while body and _is_blank(body[-1]):
                body.pop()
                trailing += 1
            pending_blank = trailing > 0
            item = ListItem(start=i - len(body) - trailing, end=i - trailing)
            self._parse_blocks(body, item)
            if self._has_blank_between_children(body, item):
                loose = True
            node.append(item)
        node.tight = not loose
        node.end = i
        if node.tight:
            for item in node.children:
                for child in item.children:
                    if isinstance(child, Paragraph):
                        child.text_block = True
        container.append(node)
        return i

    @staticmethod
    def _has_blank_between_children(body: List[str], item: ListItem) -> bool:
        for previous, current in zip(item.children, item.children[1:]):
            if any(_is_blank(line) for line in body[previous.end : current.start]):
                return True
        return False

    def _parse_paragraph(self, lines: List[str], i: int, container: Node) -> int:
        start = i
        body = [lines[i].strip()]
        i += 1
        level = 0
        while i < len(lines):
            line = lines[i]
            if _is_blank(line):
                break
            if _indent(line) <= 3:
                underline = _SETEXT_UNDERLINE.match(line.strip())
                if underline:
                    level = 1 if underline.group(1)[0] == "=" else 2
                    i += 1
                    break
                if self._interrupts_paragraph(line):
                    break
            body.append(line.strip())
            i += 1

        while body and self._take_definition(body[0]):
            body.pop(0)
        if not body:
            return i
        if level:
            container.append(
                Heading(level=level, text=" ".join(body), start=start, end=i)
            )
        else:
            container.append(Paragraph(lines=body, start=start, end=i))
        return i

    def _take_definition(self, line: str) -> bool:
        m = _LINK_DEFINITION.match(line)
        if not m:
            return False
        destination = m.group(2)
        if destination.startswith("<") and destination.endswith(">"):
            destination = destination[1:-1]
        # The first definition of a label wins
        self.definitions.setdefault(normalize_label(m.group(1)), destination)
        return True


def parse_document(text: str) -> Document:
    """Parse ``text`` and return its block tree."""
    return BlockParser(text).parse()
