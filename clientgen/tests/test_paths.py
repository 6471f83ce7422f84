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

"""Tests for path template compilation and idempotency."""

import logging

import pytest

from clientgen.api.loader import parse_path_template
from clientgen.api.model import Field, Message, Method, PathBinding, PathInfo, Service
from clientgen.api.state import new_api
from clientgen.api.types import Typez
from clientgen.codecs import annotate_model
from clientgen.codecs.rust.paths import (
    PathArg,
    annotate_segments,
    is_idempotent,
    make_accessors,
    make_binding_substitution,
    path_args,
    path_fmt,
)


def nested_request_model():
    child = Message(
        name="Child",
        id=".t.Child",
        package="t",
        fields=[Field(name="project", typez=Typez.STRING)],
    )
    request = Message(
        name="Request",
        id=".t.Request",
        package="t",
        fields=[
            Field(name="name", typez=Typez.STRING),
            Field(name="child", typez=Typez.MESSAGE, typez_id=".t.Child", optional=True),
        ],
    )
    method = Method(
        name="Get",
        id=".t.S.Get",
        input_type_id=".t.Request",
        output_type_id=".t.Child",
        path_info=PathInfo(
            bindings=[
                PathBinding("GET", parse_path_template("/v1/{child.project=projects/*}/foo"))
            ]
        ),
    )
    model = new_api(
        "t",
        "t",
        services=[Service(name="S", id=".t.S", package="t", methods=[method])],
        messages=[child, request],
    )
    return model, method


class TestPathFormat:
    """Tests for format strings built from path templates."""

    def test_literals_variables_and_verb(self):
        template = parse_path_template("/v1/{name=projects/*}:cancel")
        assert path_fmt(template) == "/v1/{}:cancel"

    def test_multiple_variables(self):
        template = parse_path_template("/v1/projects/{project}/locations/{location}/items")
        assert path_fmt(template) == "/v1/projects/{}/locations/{}/items"


class TestPathArgs:
    """Tests for path arguments and accessors."""

    def test_nested_optional_field(self):
        """Optional messages on the way to the variable must be present."""
        model, method = nested_request_model()

        args = path_args(method, model.state)

        assert args == [
            PathArg(
                name="child.project",
                accessor='.child.as_ref().ok_or_else(|| gaxi::path_parameter::missing("child"))?'
                ".project",
                check_for_empty=True,
            )
        ]

    def test_accessors(self):
        model, method = nested_request_model()

        accessors = make_accessors(["child", "project"], method, model.state)

        assert accessors == [
            ".and_then(|m| m.child.as_ref())",
            ".map(|m| &m.project)",
            ".map(|s| s.as_str())",
        ]

    def test_missing_field_is_skipped(self, caplog):
        """An unknown field logs an error and the remaining path is kept."""
        model, method = nested_request_model()

        with caplog.at_level(logging.ERROR):
            accessors = make_accessors(["missing", "name"], method, model.state)

        assert accessors == [".map(|m| &m.name)", ".map(|s| s.as_str())"]
        assert "invalid routing/path field missing" in caplog.text

    def test_binding_substitution(self):
        model, method = nested_request_model()
        variable = method.path_info.bindings[0].path_template[1].variable

        substitution = make_binding_substitution(variable, method, model.state)

        assert substitution.field_name == "child.project"
        assert substitution.field_accessor.startswith("Some(&req).and_then(")
        assert substitution.template_as_string == "projects/*"
        assert substitution.template_as_array == (
            '&[Segment::Literal("projects/"), Segment::SingleWildcard]'
        )


class TestSegments:
    """Tests for routing segment expressions."""

    def test_literals_are_merged(self):
        assert annotate_segments(["projects", "*", "locations", "*"]) == [
            'Segment::Literal("projects/")',
            "Segment::SingleWildcard",
            'Segment::Literal("/locations/")',
            "Segment::SingleWildcard",
        ]

    def test_multi_wildcard(self):
        assert annotate_segments(["**"]) == ["Segment::MultiWildcard"]

    def test_trailing_multi_wildcard(self):
        assert annotate_segments(["projects", "**"]) == [
            'Segment::Literal("projects")',
            "Segment::TrailingMultiWildcard",
        ]


class TestIdempotency:
    """Tests for idempotency classification."""

    @pytest.mark.parametrize(
        "verbs,expected",
        [
            (["GET"], True),
            (["PUT"], True),
            (["DELETE"], True),
            (["POST"], False),
            (["PATCH"], False),
            (["GET", "POST"], False),
            (["GET", "DELETE"], True),
            ([], False),
        ],
    )
    def test_verbs(self, verbs, expected):
        assert is_idempotent(verbs) is expected

    def test_method_uses_every_binding(self):
        """An additional POST binding makes a GET method non-idempotent."""
        model, method = nested_request_model()
        method.path_info.bindings.append(
            PathBinding("POST", parse_path_template("/v1/{name}:get"))
        )

        annotate_model(model, "rust")

        assert method.path_info.codec.method == "GET"
        assert not method.path_info.codec.is_idempotent
        assert not method.codec.is_idempotent

    def test_single_get_binding(self):
        model, method = nested_request_model()

        annotate_model(model, "rust")

        assert method.codec.is_idempotent
        assert method.path_info.codec.path_fmt == "/v1/{}/foo"
        assert method.path_info.codec.has_path_args
