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

"""Tests for dependency discovery."""

import pytest

from clientgen.api.dependencies import find_dependencies, find_service_dependencies
from clientgen.api.model import Enum, EnumValue, Field, Message, Method, OperationInfo, Service
from clientgen.api.state import new_api
from clientgen.api.types import Typez
from clientgen.errors import DependencyError


def make_model():
    inner = Message(name="Inner", id=".t.Outer.Inner")
    outer = Message(
        name="Outer",
        id=".t.Outer",
        fields=[Field(name="e", typez=Typez.ENUM, typez_id=".t.E")],
        messages=[inner],
    )
    request = Message(
        name="Req",
        id=".t.Req",
        fields=[Field(name="inner", typez=Typez.MESSAGE, typez_id=".t.Outer.Inner")],
    )
    response = Message(name="Resp", id=".t.Resp")
    metadata = Message(name="Meta", id=".t.Meta")
    unused = Message(name="Unused", id=".t.Unused")
    enum = Enum(name="E", id=".t.E", values=[EnumValue(name="E_UNSPECIFIED")])
    service = Service(
        name="S",
        id=".t.S",
        methods=[
            Method(name="M", id=".t.S.M", input_type_id=".t.Req", output_type_id=".t.Resp"),
        ],
    )
    other = Service(
        name="Other",
        id=".t.Other",
        methods=[
            Method(
                name="Lro",
                id=".t.Other.Lro",
                input_type_id=".t.Resp",
                output_type_id=".t.Resp",
                operation_info=OperationInfo(".t.Meta", ".t.Resp"),
            ),
        ],
    )
    return new_api(
        "t",
        "t",
        services=[service, other],
        messages=[outer, request, response, metadata, unused],
        enums=[enum],
    )


class TestFindDependencies:
    """Tests for find_dependencies and find_service_dependencies."""

    def test_service_dependencies(self):
        """Parents of nested messages and field types of parents are included."""
        model = make_model()

        deps = find_service_dependencies(model, ".t.S")

        assert deps.messages == [".t.Outer", ".t.Outer.Inner", ".t.Req", ".t.Resp"]
        assert deps.enums == [".t.E"]

    def test_lro_types_are_dependencies(self):
        model = make_model()

        deps = find_service_dependencies(model, ".t.Other")

        assert deps.messages == [".t.Meta", ".t.Resp"]
        assert deps.enums == []

    def test_method_pulls_in_service_only(self):
        """Selecting a method adds its service but not sibling methods."""
        model = make_model()

        found = find_dependencies(model, [".t.S.M"])

        assert ".t.S" in found
        assert ".t.Other.Lro" not in found
        assert ".t.Unused" not in found

    def test_unknown_id(self):
        model = make_model()

        with pytest.raises(DependencyError, match=r"\.t\.Missing"):
            find_dependencies(model, [".t.Missing"])
