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

"""Tests for documentation reformatting."""

import logging

from clientgen.api.model import (
    Enum,
    EnumValue,
    Field,
    Message,
    Method,
    OneOf,
    PathBinding,
    PathInfo,
    PathSegment,
    Service,
)
from clientgen.api.state import new_api
from clientgen.api.types import Typez
from clientgen.codecs.rust import RustCodec
from clientgen.codecs.rust.docs import DocLinks, format_doc_comments
from clientgen.codecs.rust.types import TypeResolver
from clientgen.docs.inline import escape_html, escape_urls
from clientgen.docs.markdown import CodeBlock, ListBlock, Paragraph, parse_document


def comments(text, element_id=".test.v1.Message", scopes=(), resolve_link=None):
    return format_doc_comments(text, element_id, list(scopes), resolve_link)


class TestBlocks:
    """Tests for block level formatting."""

    def test_paragraphs(self):
        assert comments("Hello world.\n\nSecond paragraph.") == [
            "/// Hello world.",
            "///",
            "/// Second paragraph.",
        ]

    def test_empty(self):
        assert comments("") == []

    def test_tight_list(self):
        assert comments("Items:\n- one\n- two\n\nEnd.") == [
            "/// Items:",
            "///",
            "/// - one",
            "/// - two",
            "///",
            "/// End.",
        ]

    def test_nested_list(self):
        assert comments("- one\n  - nested\n- two") == [
            "/// - one",
            "///   - nested",
            "/// - two",
        ]

    def test_ordered_list(self):
        assert comments("1. first\n2. second") == ["/// 1. first", "/// 1. second"]

    def test_fenced_code(self):
        assert comments("Example:\n\n```\nlet x = 1;\n```") == [
            "/// Example:",
            "///",
            "/// ```norust",
            "/// let x = 1;",
            "/// ```",
        ]

    def test_indented_code(self):
        assert comments("Example:\n\n    let x = 1;") == [
            "/// Example:",
            "///",
            "/// ```norust",
            "/// let x = 1;",
            "/// ```",
        ]

    def test_heading(self):
        assert comments("# Title\n\nBody") == ["/// # Title", "///", "/// Body"]

    def test_empty_list_item_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            comments("Items:\n\n-\n- two", element_id=".test.v1.Thing")

        assert "ignoring empty list item in documentation for .test.v1.Thing" in caplog.text

    def test_collapsed_link_definitions(self):
        """Definitions used by collapsed links are emitted after the paragraph."""
        text = "Use [the guide][] here.\n\n[the guide]: https://example.com/guide"
        assert comments(text) == [
            "/// Use [the guide][] here.",
            "///",
            "/// [the guide]:",
            "///  https://example.com/guide",
        ]


class TestInline:
    """Tests for HTML and URL escaping."""

    def test_urls(self):
        assert escape_urls("See https://example.com/foo for details.") == (
            "See <https://example.com/foo> for details."
        )

    def test_trailing_period(self):
        assert escape_urls("Visit https://cloud.google.com/docs.") == (
            "Visit <https://cloud.google.com/docs>."
        )

    def test_link_destination_is_kept(self):
        line = "See [the docs](https://example.com/docs) for more."
        assert escape_urls(line) == line

    def test_bracketed_url_is_kept(self):
        line = "See <https://example.com/docs> for more."
        assert escape_urls(line) == line

    def test_html_placeholders(self):
        assert escape_html(["Format is `projects/<project>` or projects/<project>."]) == [
            "Format is `projects/<project>` or projects/\\<project\\>."
        ]

    def test_line_breaks_and_links_are_kept(self):
        lines = [
            "Line one.<br />Line two.",
            '<a href="https://example.com">link</a>',
        ]
        assert escape_html(lines) == lines

    def test_paragraph_escaping(self):
        assert comments("Name like projects/<project>, see https://example.com.") == [
            "/// Name like projects/\\<project\\>, see <https://example.com>."
        ]


class TestParser:
    """Tests for the block parser."""

    def test_loose_list(self):
        document = parse_document("- one\n\n- two")
        block = document.children[0]

        assert isinstance(block, ListBlock)
        assert not block.tight
        assert not block.children[0].children[0].text_block

    def test_definitions_are_collected(self):
        document = parse_document("[Label]: https://example.com\n\nText")

        assert document.definitions == {"label": "https://example.com"}
        assert isinstance(document.children[0], Paragraph)
        assert document.children[0].lines == ["Text"]

    def test_fence_info(self):
        document = parse_document("```python\nx = 1\n```")
        block = document.children[0]

        assert isinstance(block, CodeBlock)
        assert block.fenced
        assert block.info == "python"
        assert block.lines == ["x = 1"]


def link_model():
    error = Field(name="error", id=".test.v1.SomeMessage.error", typez=Typez.STRING)
    response = Field(name="response", id=".test.v1.SomeMessage.response", typez=Typez.STRING)
    name = Field(name="name", id=".test.v1.SomeMessage.name", typez=Typez.STRING)
    message = Message(
        name="SomeMessage",
        id=".test.v1.SomeMessage",
        package="test.v1",
        fields=[name, error, response],
        one_ofs=[OneOf(name="result", id=".test.v1.SomeMessage.result", fields=[error, response])],
    )
    code = Enum(
        name="Code",
        id=".test.v1.Code",
        package="test.v1",
        values=[EnumValue(name="CODE_OK", id=".test.v1.Code.CODE_OK")],
    )
    service = Service(
        name="SomeService",
        id=".test.v1.SomeService",
        package="test.v1",
        methods=[
            Method(
                name="GetThing",
                id=".test.v1.SomeService.GetThing",
                path_info=PathInfo(
                    bindings=[PathBinding("GET", [PathSegment.of_literal("v1")])]
                ),
            ),
            Method(name="GrpcOnly", id=".test.v1.SomeService.GrpcOnly"),
        ],
    )
    model = new_api("test", "test.v1", services=[service], messages=[message], enums=[code])
    links = DocLinks(model.state, TypeResolver(model.state, "test.v1"), RustCodec().generate_method)
    return model, links


class TestCrossReferences:
    """Tests for cross reference link definitions."""

    def test_message_and_oneof_member(self):
        _, links = link_model()
        text = "See [SomeMessage][test.v1.SomeMessage] and [error][test.v1.SomeMessage.error]."

        assert comments(text, resolve_link=links) == [
            "/// See [SomeMessage][test.v1.SomeMessage] and [error][test.v1.SomeMessage.error].",
            "///",
            "/// [test.v1.SomeMessage]: crate::model::SomeMessage",
            "/// [test.v1.SomeMessage.error]: crate::model::SomeMessage::result",
        ]

    def test_element_kinds(self):
        _, links = link_model()

        assert links("test.v1.SomeMessage.name", []) == "crate::model::SomeMessage::name"
        assert links("test.v1.SomeMessage.result", []) == "crate::model::SomeMessage::result"
        assert links("test.v1.Code", []) == "crate::model::Code"
        assert links("test.v1.Code.CODE_OK", []) == "crate::model::Code::Ok"
        assert links("test.v1.SomeService", []) == "crate::client::SomeService"
        assert links("test.v1.SomeService.GetThing", []) == (
            "crate::client::SomeService::get_thing"
        )

    def test_unresolved_references_are_dropped(self):
        _, links = link_model()

        assert links("test.v1.SomeService.GrpcOnly", []) == ""
        assert comments("See [Missing][test.v1.Missing].", resolve_link=links) == [
            "/// See [Missing][test.v1.Missing]."
        ]

    def test_relative_reference(self):
        """Relative references are resolved against each scope in turn."""
        model, links = link_model()
        message = model.messages[0]

        lines = comments("See [SomeMessage][].", scopes=message.scopes(), resolve_link=links)

        assert lines[-1] == "/// [SomeMessage]: crate::model::SomeMessage"
        assert comments("See [name][].", scopes=message.scopes(), resolve_link=links)[-1] == (
            "/// [name]: crate::model::SomeMessage::name"
        )
