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

"""Reformat API documentation as rustdoc comments.

Rustdoc assumes code blocks contain compilable Rust, treats raw HTML as HTML,
and needs link definitions for every cross reference. The formatter parses
the comment, re-emits each block with those problems fixed, and appends a
definition for every cross reference it can resolve.
"""

import logging
from typing import Callable, List, Optional, Set

from clientgen.api.model import APIState, Field, Message, Method, Service
from clientgen.codecs.rust.names import to_pascal, to_snake, to_snake_no_mangling
from clientgen.codecs.rust.types import TypeResolver
from clientgen.docs.inline import (
    collapsed_link_definitions,
    extract_cross_references,
    process_lines,
)
from clientgen.docs.markdown import (
    CodeBlock,
    Document,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    parse_document,
)

logger = logging.getLogger(__name__)

LinkResolver = Callable[[str, List[str]], str]


def _process_list(
    block: ListBlock, level: int, definitions, element_id: str
) -> List[str]:
    marker = "1." if block.ordered else block.marker
    results = []
    for item in block.children:
        if isinstance(item, ListItem):
            results.extend(_process_item(item, level, marker, definitions, element_id))
    return results


def _process_item(
    item: ListItem, level: int, marker: str, definitions, element_id: str
) -> List[str]:
    marker_indent = 3 if len(marker) == 2 else 2
    has_lines = any(
        isinstance(child, Paragraph) and child.lines for child in item.children
    )
    if not has_lines and not any(isinstance(c, ListBlock) for c in item.children):
        logger.warning("ignoring empty list item in documentation for %s", element_id)
    results = []
    start = marker
    for child in item.children:
        if isinstance(child, ListBlock):
            results.extend(_process_list(child, level + marker_indent, definitions, element_id))
            break
        if isinstance(child, Paragraph):
            for line in process_lines(child.lines):
                results.append(f"{' ' * level}{start} {line}")
                start = " " * len(marker)
            if not child.text_block:
                results.append("\n")
    return results


def _process_paragraph(paragraph: Paragraph, definitions) -> List[str]:
    results = process_lines(paragraph.lines)
    extra = collapsed_link_definitions(paragraph.lines, definitions)
    if extra:
        results.append("\n")
        results.extend(extra)
    results.append("\n")
    return results


def cross_references(document: Document) -> List[str]:
    """Return the sorted, unique cross reference targets in ``document``."""
    links: Set[str] = set()
    for node in document.walk():
        if isinstance(node, Paragraph):
            extract_cross_references(node.text(), links)
    return sorted(links)


def format_doc_comments(
    documentation: str,
    element_id: str,
    scopes: List[str],
    resolve_link: Optional[LinkResolver] = None,
) -> List[str]:
    """Return ``documentation`` as a list of ``///`` comment lines.

    Args:
        documentation: the comment in CommonMark.
        element_id: the ID of the documented element, used in diagnostics.
        scopes: lookup scopes for relative cross references, innermost first.
        resolve_link: maps a cross reference to a Rust path, or ``""``.
    """
    document = parse_document(documentation)
    results: List[str] = []
    for node in document.walk():
        parent = node.parent
        if isinstance(node, CodeBlock):
            results.append("```norust")
            results.extend(node.lines)
            results.append("```")
            results.append("\n")
        elif isinstance(node, ListBlock):
            if isinstance(parent, ListItem):
                continue
            results.extend(_process_list(node, 0, document.definitions, element_id))
            results.append("\n")
        elif isinstance(node, Paragraph):
            if isinstance(parent, ListItem):
                continue
            results.extend(_process_paragraph(node, document.definitions))
        elif isinstance(node, Heading):
            results.append(f"{'#' * node.level} {node.text}")
            results.append("\n")

    if resolve_link is not None:
        for link in cross_references(document):
            target = resolve_link(link, scopes)
            if target:
                results.append(f"[{link}]: {target}")

    if results and results[-1] == "\n":
        results.pop()
    return [f"/// {line}".rstrip() for line in results]


class DocLinks:
    """Resolves cross references to rustdoc paths.

    References may be relative, as in ``[Message]`` instead of
    ``[google.package.v1.Message]``, so each scope is tried as a prefix
    before the global ID.
    """

    def __init__(
        self,
        state: APIState,
        types: TypeResolver,
        generate_method: Callable[[Method], bool],
    ):
        self.state = state
        self.types = types
        self.generate_method = generate_method

    def __call__(self, link: str, scopes: List[str]) -> str:
        return self.doc_link(link, scopes)

    def doc_link(self, link: str, scopes: List[str]) -> str:
        for scope in scopes:
            result = self.try_id(f".{scope}.{link}")
            if result:
                return result
        return self.try_id(f".{link}")

    def try_id(self, element_id: str) -> str:
        state = self.state
        if element_id in state.message_by_id:
            return self.types.message_name(state.message_by_id[element_id])
        if element_id in state.enum_by_id:
            return self.types.enum_name(state.enum_by_id[element_id])
        if element_id in state.method_by_id:
            return self.method_link(state.method_by_id[element_id])
        if element_id in state.service_by_id:
            return self.service_link(state.service_by_id[element_id])
        return self.field_link(element_id) or self.enum_value_link(element_id)

    def field_link(self, element_id: str) -> str:
        parent_id, _, name = element_id.rpartition(".")
        message = self.state.message_by_id.get(parent_id)
        if message is None:
            return ""
        for f in message.fields:
            if f.name == name:
                if not f.is_oneof:
                    return f"{self.types.message_name(message)}::{to_snake_no_mangling(f.name)}"
                return self._oneof_link(f, message)
        for group in message.one_ofs:
            if group.name == name:
                return f"{self.types.message_name(message)}::{to_snake_no_mangling(group.name)}"
        return ""

    def _oneof_link(self, member: Field, message: Message) -> str:
        for group in message.one_ofs:
            if any(f is member for f in group.fields):
                return f"{self.types.message_name(message)}::{to_snake_no_mangling(group.name)}"
        return ""

    def enum_value_link(self, element_id: str) -> str:
        parent_id, _, name = element_id.rpartition(".")
        enum = self.state.enum_by_id.get(parent_id)
        if enum is None:
            return ""
        for value in enum.values:
            if value.name == name:
                return self.types.enum_value_name(value)
        return ""

    def method_link(self, method: Method) -> str:
        # Methods that are not generated cannot be referenced.
        if not self.generate_method(method):
            return ""
        service_id = method.id.rpartition(".")[0]
        service = self.state.service_by_id.get(service_id)
        if service is None:
            return ""
        return f"{self.service_link(service)}::{to_snake(method.name)}"

    def service_link(self, service: Service) -> str:
        mapped = self.types.package_mapping.get(service.package)
        if mapped is not None:
            return f"{mapped.name}::client::{to_pascal(service.name)}"
        return f"crate::client::{to_pascal(service.name)}"
