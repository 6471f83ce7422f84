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

"""Tests for the Rust type resolver."""

import logging

import pytest

from clientgen.api.model import Enum, EnumValue, Field, Message, OneOf
from clientgen.api.recursive import label_recursive_fields
from clientgen.api.state import new_api
from clientgen.api.types import Typez
from clientgen.codecs.rust.options import RustPackage
from clientgen.codecs.rust.types import TypeResolver, load_well_known_types
from clientgen.errors import ModelError, TypeLookupError

WKT = RustPackage(name="wkt", package_name="google-cloud-wkt")
GTYPE = RustPackage(name="gtype", package_name="google-cloud-type")


def field(name, typez, type_id="", **kwargs):
    return Field(name=name, id=f".test.v1.Foo.{name}", typez=typez, typez_id=type_id, **kwargs)


def make_model(*fields, one_ofs=()):
    labels = Message(
        name="LabelsEntry",
        id=".test.v1.Foo.LabelsEntry",
        package="test.v1",
        is_map=True,
        fields=[
            Field(name="key", typez=Typez.STRING),
            Field(name="value", typez=Typez.INT64),
        ],
    )
    inner = Message(name="Inner", id=".test.v1.Foo.Inner", package="test.v1")
    state = Enum(
        name="State",
        id=".test.v1.Foo.State",
        package="test.v1",
        values=[EnumValue(name="STATE_UNSPECIFIED")],
    )
    foo = Message(
        name="Foo",
        id=".test.v1.Foo",
        package="test.v1",
        fields=list(fields),
        messages=[labels, inner],
        enums=[state],
        one_ofs=list(one_ofs),
    )
    bar = Message(name="Bar", id=".test.v1.Bar", package="test.v1")
    expr = Message(name="Expr", id=".google.type.Expr", package="google.type")
    thing = Message(name="Thing", id=".other.v1.Thing", package="other.v1")
    model = new_api("test", "test.v1", messages=[foo, bar, expr, thing])
    load_well_known_types(model.state)
    label_recursive_fields(model)
    return model


def resolver(model):
    return TypeResolver(
        model.state,
        "test.v1",
        "crate::model",
        {"google.protobuf": WKT, "google.type": GTYPE},
    )


class TestScalarTypes:
    """Tests for scalar mapping and wrapping."""

    @pytest.mark.parametrize(
        "typez,expected",
        [
            (Typez.DOUBLE, "f64"),
            (Typez.FLOAT, "f32"),
            (Typez.INT64, "i64"),
            (Typez.UINT64, "u64"),
            (Typez.INT32, "i32"),
            (Typez.UINT32, "u32"),
            (Typez.FIXED32, "u32"),
            (Typez.SINT64, "i64"),
            (Typez.BOOL, "bool"),
            (Typez.STRING, "std::string::String"),
            (Typez.BYTES, "::bytes::Bytes"),
        ],
    )
    def test_scalars(self, typez, expected):
        f = field("x", typez)
        assert resolver(make_model(f)).field_type(f) == expected

    def test_optional_and_repeated(self):
        count = field("count", Typez.INT32, optional=True)
        tags = field("tags", Typez.STRING, repeated=True)
        types = resolver(make_model(count, tags))

        assert types.field_type(count) == "std::option::Option<i32>"
        assert types.field_type(tags) == "std::vec::Vec<std::string::String>"
        assert types.field_type(tags, primitive=True) == "std::string::String"


class TestReferences:
    """Tests for message, enum and map references."""

    def test_local_messages(self):
        bar = field("bar", Typez.MESSAGE, ".test.v1.Bar")
        optional_bar = field("optional_bar", Typez.MESSAGE, ".test.v1.Bar", optional=True)
        inner = field("inner", Typez.MESSAGE, ".test.v1.Foo.Inner")
        types = resolver(make_model(bar, optional_bar, inner))

        assert types.field_type(bar) == "crate::model::Bar"
        assert types.field_type(optional_bar) == "std::option::Option<crate::model::Bar>"
        assert types.field_type(inner) == "crate::model::foo::Inner"

    def test_nested_enum(self):
        state = field("state", Typez.ENUM, ".test.v1.Foo.State")
        assert resolver(make_model(state)).field_type(state) == "crate::model::foo::State"

    def test_map(self):
        """Maps are never wrapped, and key and value resolve independently."""
        labels = field("labels", Typez.MESSAGE, ".test.v1.Foo.LabelsEntry")
        types = resolver(make_model(labels))

        assert types.field_type(labels) == "std::collections::HashMap<std::string::String,i64>"

    def test_repeated_map(self):
        """Descriptors mark map fields repeated; they still resolve to a plain map."""
        labels = field("labels", Typez.MESSAGE, ".test.v1.Foo.LabelsEntry", repeated=True)
        types = resolver(make_model(labels))

        assert types.field_type(labels) == "std::collections::HashMap<std::string::String,i64>"

    def test_mapped_packages(self):
        duration = field("timeout", Typez.MESSAGE, ".google.protobuf.Duration")
        expr = field("expr", Typez.MESSAGE, ".google.type.Expr")
        types = resolver(make_model(duration, expr))

        assert types.field_type(duration) == "wkt::Duration"
        assert types.field_type(expr) == "gtype::model::Expr"

    def test_unmapped_package_warns_once(self, caplog):
        thing = field("thing", Typez.MESSAGE, ".other.v1.Thing")
        types = resolver(make_model(thing))

        with caplog.at_level(logging.WARNING):
            assert types.field_type(thing) == "other.v1::Thing"
            types.field_type(thing)

        assert caplog.text.count("missing package mapping for other.v1") == 1

    def test_missing_type_is_fatal(self):
        broken = field("broken", Typez.MESSAGE, ".test.v1.Missing")
        types = resolver(make_model(broken))

        with pytest.raises(TypeLookupError, match=r"\.test\.v1\.Missing"):
            types.field_type(broken)

    def test_group_is_unsupported(self):
        group = field("group", Typez.GROUP)
        types = resolver(make_model(group))

        with pytest.raises(ModelError):
            types.field_type(group)

    def test_relative_name(self):
        types = resolver(make_model())
        assert types.relative_name("crate::model::foo::Inner") == "foo::Inner"
        assert types.relative_name("wkt::Duration") == "wkt::Duration"


class TestBoxing:
    """Tests for recursive and oneof wrapping."""

    def test_recursive_fields(self):
        optional_self = field("parent", Typez.MESSAGE, ".test.v1.Foo", optional=True)
        required_self = field("sibling", Typez.MESSAGE, ".test.v1.Foo")
        repeated_self = field("children", Typez.MESSAGE, ".test.v1.Foo", repeated=True)
        types = resolver(make_model(optional_self, required_self, repeated_self))

        assert optional_self.recursive
        assert types.field_type(optional_self) == (
            "std::option::Option<std::boxed::Box<crate::model::Foo>>"
        )
        assert types.field_type(required_self) == "std::boxed::Box<crate::model::Foo>"
        assert types.field_type(repeated_self) == "std::vec::Vec<crate::model::Foo>"

    def test_oneof_members(self):
        bar = field("bar", Typez.MESSAGE, ".test.v1.Bar")
        name = field("name", Typez.STRING, optional=True)
        types = resolver(make_model(bar, name, one_ofs=[OneOf(name="choice", fields=[bar, name])]))

        assert bar.is_oneof
        assert types.field_type(bar) == "std::boxed::Box<crate::model::Bar>"
        assert types.field_type(name) == "std::option::Option<std::string::String>"
