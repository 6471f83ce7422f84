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

"""Inline rewriting of documentation text.

Paragraph text may contain raw HTML placeholders such as ``<project>``, bare
URLs, and cross references to API elements written as ``[Title][a.b.C]`` or
``[a.b.C][]``. The helpers here escape the first two and collect the third.
"""

import re
from typing import Dict, List, Set, Tuple

from clientgen.docs.markdown import normalize_label

URL = re.compile(
    r"https?://"
    r"([A-Za-z0-9\.\-_]+\.)+"
    r"[a-zA-Z]{2,63}"
    r"(/[-a-zA-Z0-9@:%_\+.~#?&/={}\$]*)?"
)

CROSS_REFERENCE = re.compile(
    r"\]\[[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)*\]"
)
IMPLIED_CROSS_REFERENCE = re.compile(
    r"\[[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)*\]\[\]"
)

_ATTRIBUTE = r"""(?:\s+[A-Za-z_:][A-Za-z0-9_.:-]*(?:\s*=\s*(?:[^\s"'=<>`]+|'[^']*'|"[^"]*"))?)"""
_RAW_HTML = re.compile(
    r"<[A-Za-z][A-Za-z0-9-]*" + _ATTRIBUTE + r"*\s*/?>"
    r"|</[A-Za-z][A-Za-z0-9-]*\s*>"
)
_AUTOLINK = re.compile(
    r"<[A-Za-z][A-Za-z0-9+.\-]{1,31}:[^\s<>]*>"
    r"|<[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*>"
)
_BACKTICKS = re.compile(r"`+")
_REFERENCE_LINK = re.compile(r"\[([^\[\]]+)\](?:\[([^\[\]]*)\])?")
_COLLAPSED_LINK = re.compile(r"\[(.*?)\]\[\]")


def _code_span_end(text: str, pos: int) -> int:
    """Return the end of the code span opening at ``pos``, or -1."""
    opening = _BACKTICKS.match(text, pos).group(0)
    for closing in _BACKTICKS.finditer(text, pos + len(opening)):
        if len(closing.group(0)) == len(opening):
            return closing.end()
    return -1


def find_raw_html(text: str) -> List[Tuple[int, int]]:
    """Return the ``(start, end)`` offsets of inline HTML tags in ``text``.

    Tags inside code spans and autolinks are not HTML.
    """
    spans = []
    pos = 0
    while pos < len(text):
        c = text[pos]
        if c == "\\":
            pos += 2
            continue
        if c == "`":
            end = _code_span_end(text, pos)
            if end != -1:
                pos = end
            else:
                pos += len(_BACKTICKS.match(text, pos).group(0))
            continue
        if c == "<":
            autolink = _AUTOLINK.match(text, pos)
            if autolink:
                pos = autolink.end()
                continue
            tag = _RAW_HTML.match(text, pos)
            if tag:
                spans.append((tag.start(), tag.end()))
                pos = tag.end()
                continue
        pos += 1
    return spans


def _is_hyperlink(segment: str, text: str, end: int) -> bool:
    if "href=" in segment or segment.endswith("</a>"):
        return True
    # An anchor tag whose attributes start on the next line
    if segment.endswith("<a\n"):
        following = text[end : end + 7]
        return end + 7 <= len(text) and following.strip().startswith("href=")
    return False


def escape_html(lines: List[str]) -> List[str]:
    """Escape HTML tags that rustdoc would otherwise interpret.

    Placeholders such as ``<project>`` become ``\\<project\\>``. Line breaks
    written as ``<br />`` and hyperlinks are left unchanged. Tags spanning
    several lines are split into one segment per line, and each segment is
    escaped independently.
    """
    text = "\n".join(lines)
    starts = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += len(line) + 1

    edits: Dict[int, List[Tuple[int, int, str]]] = {}
    for span_start, span_end in find_raw_html(text):
        for index, line_start in enumerate(starts):
            line_end = line_start + len(lines[index])
            if line_end < span_start or line_start >= span_end:
                continue
            seg_start = max(span_start, line_start)
            seg_end = min(span_end, line_end)
            continues = span_end > line_end
            segment = text[seg_start:seg_end] + ("\n" if continues else "")
            if segment.startswith("<br />"):
                continue
            if _is_hyperlink(segment, text, seg_end + (1 if continues else 0)):
                continue
            escaped = text[seg_start:seg_end].replace("<", "\\<", 1).replace(">", "\\>", 1)
            edits.setdefault(index, []).append(
                (seg_start - line_start, seg_end - line_start, escaped)
            )

    result = list(lines)
    for index, changes in edits.items():
        line = result[index]
        for start, end, replacement in sorted(changes, reverse=True):
            line = line[:start] + replacement + line[end:]
        result[index] = line
    return result


def _is_link_destination(line: str, start: int, end: int) -> bool:
    return line[:start].endswith("](") and end < len(line) and line[end] == ")"


def escape_urls(line: str) -> str:
    """Wrap bare URLs in angle brackets so they render as links.

    URLs that are link destinations, already bracketed, part of an HTML
    ``href``, or the target of a link definition are left alone. Quoted URLs
    become code spans. A trailing period is kept outside the brackets.
    """
    result = []
    last = 0
    for match in URL.finditer(line):
        start, end = match.span()
        url = match.group(0)
        prefix = line[:start]
        suffix = line[end:]
        if _is_link_destination(line, start, end):
            result.append(line[last:end])
        elif prefix.endswith("<") and suffix.startswith(">"):
            result.append(line[last:end])
        elif "href=" in line[last:start]:
            result.append(line[last:end])
        elif line[last:start].endswith('"') and suffix.startswith('"'):
            result.append(line[last : start - 1])
            result.append(f"`{url}`")
            last = end + 1
            continue
        elif prefix.endswith("]: ") and suffix == "":
            result.append(line[last:end])
        else:
            result.append(line[last:start])
            if url.endswith("."):
                result.append(f"<{url[:-1]}>.")
            else:
                result.append(f"<{url}>")
        last = end
    result.append(line[last:])
    return "".join(result)


def process_lines(lines: List[str]) -> List[str]:
    """Escape HTML tags, then URLs, in each line of a paragraph."""
    return [escape_urls(line) for line in escape_html(lines)]


def extract_cross_references(text: str, links: Set[str]) -> None:
    """Add every cross reference target found in ``text`` to ``links``."""
    for match in CROSS_REFERENCE.finditer(text):
        links.add(match.group(0)[2:-1])
    for match in IMPLIED_CROSS_REFERENCE.finditer(text):
        links.add(match.group(0)[1:-3])


def reference_links(text: str, definitions: Dict[str, str]) -> List[Tuple[str, str]]:
    """Return ``(text, destination)`` for reference links resolved by ``definitions``."""
    found = []
    for match in _REFERENCE_LINK.finditer(text):
        label_text, label = match.group(1), match.group(2)
        if label is None and text[match.end() : match.end() + 1] == "(":
            continue
        key = normalize_label(label if label else label_text)
        if key in definitions:
            found.append((label_text, definitions[key]))
    return found


def collapsed_link_definitions(lines: List[str], definitions: Dict[str, str]) -> List[str]:
    """Re-create the definitions used by collapsed links such as ``[text][]``.

    The definitions are emitted as ``[text]:`` followed by `` destination``.
    """
    if not definitions:
        return []
    links = reference_links("\n".join(lines), definitions)
    result = []
    for line in lines:
        match = _COLLAPSED_LINK.search(line)
        if match is None:
            continue
        for link_text, destination in links:
            if link_text == match.group(1):
                result.append(f"[{link_text}]:")
                result.append(f" {destination}")
    return result
