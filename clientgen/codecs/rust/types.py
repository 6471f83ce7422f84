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

"""Type resolution for the Rust codec."""

import logging
from typing import Dict, List, Optional, Set, Tuple

from clientgen import naming
from clientgen.api.bindings import field_is_map
from clientgen.api.model import APIState, Enum, EnumValue, Field, Message
from clientgen.api.types import Typez
from clientgen.codecs.rust.names import (
    enum_value_variant_name,
    to_camel,
    to_pascal,
    to_snake,
)
from clientgen.codecs.rust.options import RustPackage
from clientgen.errors import ModelError, TypeLookupError

logger = logging.getLogger(__name__)

WKT_PACKAGE = "google.protobuf"

WELL_KNOWN_MESSAGES = (
    "Any",
    "Struct",
    "Value",
    "ListValue",
    "Empty",
    "FieldMask",
    "Duration",
    "Timestamp",
)

SCALAR_TYPES = {
    Typez.DOUBLE: "f64",
    Typez.FLOAT: "f32",
    Typez.INT64: "i64",
    Typez.UINT64: "u64",
    Typez.INT32: "i32",
    Typez.FIXED64: "u64",
    Typez.FIXED32: "u32",
    Typez.BOOL: "bool",
    Typez.STRING: "std::string::String",
    Typez.BYTES: "::bytes::Bytes",
    Typez.UINT32: "u32",
    Typez.SFIXED32: "i32",
    Typez.SFIXED64: "i64",
    Typez.SINT32: "i32",
    Typez.SINT64: "i64",
}

_PRIMITIVE_SERDE_AS = {
    Typez.INT32: "wkt::internal::I32",
    Typez.SFIXED32: "wkt::internal::I32",
    Typez.SINT32: "wkt::internal::I32",
    Typez.INT64: "wkt::internal::I64",
    Typez.SFIXED64: "wkt::internal::I64",
    Typez.SINT64: "wkt::internal::I64",
    Typez.UINT32: "wkt::internal::U32",
    Typez.FIXED32: "wkt::internal::U32",
    Typez.UINT64: "wkt::internal::U64",
    Typez.FIXED64: "wkt::internal::U64",
    Typez.FLOAT: "wkt::internal::F32",
    Typez.DOUBLE: "wkt::internal::F64",
    Typez.BYTES: "serde_with::base64::Base64",
}

# Wrapper messages serialize like the primitive they wrap.
WRAPPER_TYPES = {
    ".google.protobuf.BytesValue": Typez.BYTES,
    ".google.protobuf.UInt64Value": Typez.UINT64,
    ".google.protobuf.Int64Value": Typez.INT64,
    ".google.protobuf.UInt32Value": Typez.UINT32,
    ".google.protobuf.Int32Value": Typez.INT32,
    ".google.protobuf.FloatValue": Typez.FLOAT,
    ".google.protobuf.DoubleValue": Typez.DOUBLE,
}

_PRIMITIVE_TYPES = frozenset(SCALAR_TYPES) | {Typez.ENUM}

_SKIP_IF_DEFAULT = frozenset(SCALAR_TYPES) - {Typez.STRING, Typez.BYTES} | {Typez.ENUM}


def map_entry_fields(entry: Message, field: Field) -> Tuple[Field, Field]:
    """Return the key and value fields of the map entry used by ``field``."""
    fields = {f.name: f for f in entry.fields}
    for name in ("key", "value"):
        if name not in fields:
            raise TypeLookupError(f"{entry.id}.{name}", f"field {field.id}")
    return fields["key"], fields["value"]


def load_well_known_types(state: APIState) -> None:
    """Register the well-known messages and enums in ``state``."""
    for name in WELL_KNOWN_MESSAGES:
        message = Message(name=name, id=f".{WKT_PACKAGE}.{name}", package=WKT_PACKAGE)
        state.message_by_id.setdefault(message.id, message)
    state.enum_by_id.setdefault(
        ".google.protobuf.NullValue",
        Enum(name="NullValue", id=".google.protobuf.NullValue", package=WKT_PACKAGE),
    )


def scalar_field_type(field: Field) -> str:
    try:
        return SCALAR_TYPES[field.typez]
    except KeyError:
        raise ModelError(f"unexpected type {field.typez.name} for field {field.id}") from None


def primitive_serde_as(typez: Typez) -> str:
    return _PRIMITIVE_SERDE_AS.get(typez, "")


def map_key_serde_as(field: Field) -> str:
    if field.typez == Typez.BOOL:
        return "serde_with::DisplayFromStr"
    return primitive_serde_as(field.typez)


def message_field_serde_as(field: Field) -> str:
    wrapped = WRAPPER_TYPES.get(field.typez_id)
    return primitive_serde_as(wrapped) if wrapped is not None else ""


def map_value_serde_as(field: Field) -> str:
    if field.typez == Typez.MESSAGE:
        return message_field_serde_as(field)
    return primitive_serde_as(field.typez)


def field_formatter(typez: Typez) -> str:
    return primitive_serde_as(typez) or "_"


def key_field_formatter(typez: Typez) -> str:
    if typez == Typez.BOOL:
        return "serde_with::DisplayFromStr"
    return field_formatter(typez)


def oneof_field_type_formatter(field: Field, is_map: bool, base_type: str) -> str:
    if field.repeated:
        return f"std::vec::Vec<{base_type}>"
    if field.typez == Typez.MESSAGE:
        # Maps are never boxed.
        return base_type if is_map else f"std::boxed::Box<{base_type}>"
    if field.optional:
        return f"std::option::Option<{base_type}>"
    return base_type


def field_skip_attributes(field: Field) -> List[str]:
    """Return the serde attributes that skip a field with no value."""
    if field.is_oneof:
        return []
    if field.optional:
        return ['#[serde(skip_serializing_if = "std::option::Option::is_none")]']
    if field.repeated:
        return ['#[serde(skip_serializing_if = "std::vec::Vec::is_empty")]']
    if field.typez == Typez.STRING:
        return ['#[serde(skip_serializing_if = "std::string::String::is_empty")]']
    if field.typez == Typez.BYTES:
        return ['#[serde(skip_serializing_if = "::bytes::Bytes::is_empty")]']
    if field.typez in _SKIP_IF_DEFAULT:
        return ['#[serde(skip_serializing_if = "wkt::internal::is_default")]']
    return []


def field_base_attributes(field: Field) -> List[str]:
    json_name = field.json_name or naming.to_lower_camel(field.name)
    # serde mishandles names starting with `_`.
    if to_camel(field.name) != json_name or field.name.startswith("_"):
        return [f'#[serde(rename = "{json_name}")]']
    return []


def _message_field_attributes(field: Field, attributes: List[str]) -> List[str]:
    if not field.is_oneof:
        if field.optional:
            attributes.append('#[serde(skip_serializing_if = "std::option::Option::is_none")]')
        if field.repeated:
            attributes.append('#[serde(skip_serializing_if = "std::vec::Vec::is_empty")]')
    wrapped = WRAPPER_TYPES.get(field.typez_id)
    formatter = field_formatter(wrapped) if wrapped is not None else "_"
    if field.is_oneof:
        if formatter != "_":
            wrapped_type = oneof_field_type_formatter(field, False, formatter)
            attributes.append(f'#[serde_as(as = "{wrapped_type}")]')
        return attributes
    if field.optional:
        if field.typez_id == ".google.protobuf.Value":
            attributes.append('#[serde_as(as = "wkt::internal::OptionalValue")]')
        elif formatter != "_":
            attributes.append(f'#[serde_as(as = "std::option::Option<{formatter}>")]')
        return attributes
    if field.repeated:
        attributes.append(
            f'#[serde_as(as = "serde_with::DefaultOnNull<std::vec::Vec<{formatter}>>")]'
        )
        return attributes
    attributes.append(f'#[serde_as(as = "serde_with::DefaultOnNull<{formatter}>")]')
    return attributes


def _map_field_attributes(field: Field, entry: Message, attributes: List[str]) -> List[str]:
    if not field.is_oneof:
        attributes.append(
            '#[serde(skip_serializing_if = "std::collections::HashMap::is_empty")]'
        )
    key, value = map_entry_fields(entry, field)
    key_format = key_field_formatter(key.typez)
    value_format = field_formatter(value.typez)
    attributes.append(
        '#[serde_as(as = "serde_with::DefaultOnNull<'
        f'std::collections::HashMap<{key_format}, {value_format}>>")]'
    )
    return attributes


def field_attributes(field: Field, state: APIState) -> List[str]:
    """Return the serde attributes of a struct field."""
    if field.synthetic:
        return ["#[serde(skip)]"]
    attributes = field_base_attributes(field)
    if field.typez == Typez.GROUP:
        return attributes + field_skip_attributes(field)
    if field.typez in _PRIMITIVE_TYPES:
        formatter = field_formatter(field.typez)
        attributes.extend(field_skip_attributes(field))
        if field.optional:
            if formatter != "_":
                attributes.append(f'#[serde_as(as = "std::option::Option<{formatter}>")]')
            return attributes
        if field.repeated:
            attributes.append(
                f'#[serde_as(as = "serde_with::DefaultOnNull<std::vec::Vec<{formatter}>>")]'
            )
            return attributes
        attributes.append(f'#[serde_as(as = "serde_with::DefaultOnNull<{formatter}>")]')
        return attributes
    if field.typez == Typez.MESSAGE:
        entry = state.message_by_id.get(field.typez_id)
        if entry is not None and entry.is_map:
            return _map_field_attributes(field, entry, attributes)
        return _message_field_attributes(field, attributes)
    raise ModelError(f"unexpected type {field.typez.name} for field {field.id}")


class TypeResolver:
    """Maps model types to fully qualified Rust paths.

    Types in the model's own package live under ``module_path``. Types in
    packages mapped by ``package:`` options live under ``<crate>::model``,
    except well-known types which live at the crate root. Any other package
    is used verbatim.
    """

    def __init__(
        self,
        state: APIState,
        package_name: str,
        module_path: str = "crate::model",
        package_mapping: Optional[Dict[str, RustPackage]] = None,
    ):
        self.state = state
        self.package_name = package_name
        self.module_path = module_path
        self.package_mapping = package_mapping or {}
        self._unmapped: Set[str] = set()

    def rust_package(self, package: str) -> str:
        if package == self.package_name:
            return self.module_path
        mapped = self.package_mapping.get(package)
        if mapped is None:
            if package not in self._unmapped:
                self._unmapped.add(package)
                logger.warning("missing package mapping for %s", package)
            return package
        if package == WKT_PACKAGE:
            return mapped.name
        return mapped.name + "::model"

    def message_scope_name(self, message: Optional[Message], child_package: str) -> str:
        """Return the module path of types nested in ``message``.

        A ``None`` message means the top-level module of ``child_package``.
        """
        if message is None:
            return self.rust_package(child_package)
        if message.parent is None:
            return self.rust_package(message.package) + "::" + to_snake(message.name)
        return self.message_scope_name(message.parent, message.package) + "::" + to_snake(
            message.name
        )

    def enum_scope_name(self, enum: Enum) -> str:
        return self.message_scope_name(enum.parent, enum.package)

    def message_name(self, message: Message) -> str:
        scope = self.message_scope_name(message.parent, message.package)
        return f"{scope}::{to_pascal(message.name)}"

    def enum_name(self, enum: Enum) -> str:
        return f"{self.enum_scope_name(enum)}::{to_pascal(enum.name)}"

    def enum_value_name(self, value: EnumValue) -> str:
        enum = value.parent
        variant = enum_value_variant_name(value.name, enum.name)
        return f"{self.enum_scope_name(enum)}::{to_pascal(enum.name)}::{variant}"

    def relative_name(self, qualified_name: str) -> str:
        prefix = self.module_path + "::"
        if qualified_name.startswith(prefix):
            return qualified_name[len(prefix) :]
        return qualified_name

    def lookup_message(self, type_id: str, context: str = "") -> Message:
        message = self.state.message_by_id.get(type_id)
        if message is None:
            raise TypeLookupError(type_id, context)
        return message

    def lookup_enum(self, type_id: str, context: str = "") -> Enum:
        enum = self.state.enum_by_id.get(type_id)
        if enum is None:
            raise TypeLookupError(type_id, context)
        return enum

    def map_type(self, field: Field) -> str:
        """Return the type of a map key or value."""
        if field.typez == Typez.MESSAGE:
            return self.message_name(self.lookup_message(field.typez_id, f"field {field.id}"))
        if field.typez == Typez.ENUM:
            return self.enum_name(self.lookup_enum(field.typez_id, f"field {field.id}"))
        return scalar_field_type(field)

    def base_field_type(self, field: Field) -> str:
        """Return the field type, ignoring any repeated or optional attributes."""
        context = f"field {field.id}"
        if field.typez == Typez.MESSAGE:
            message = self.lookup_message(field.typez_id, context)
            if message.is_map:
                key_field, value_field = map_entry_fields(message, field)
                key = self.map_type(key_field)
                value = self.map_type(value_field)
                return f"std::collections::HashMap<{key},{value}>"
            return self.message_name(message)
        if field.typez == Typez.ENUM:
            return self.enum_name(self.lookup_enum(field.typez_id, context))
        if field.typez == Typez.GROUP:
            raise ModelError(f"group fields are not supported: {field.id}")
        return scalar_field_type(field)

    def field_type(self, field: Field, primitive: bool = False) -> str:
        """Return the field type, wrapped for presence, repetition and recursion."""
        base_type = self.base_field_type(field)
        if primitive:
            return base_type
        is_map = field_is_map(field, self.state)
        if field.is_oneof:
            return oneof_field_type_formatter(field, is_map, base_type)
        # Map fields are never wrapped, even when marked repeated or recursive.
        if is_map:
            return base_type
        if field.repeated:
            return f"std::vec::Vec<{base_type}>"
        if field.recursive:
            if field.optional:
                return f"std::option::Option<std::boxed::Box<{base_type}>>"
            return f"std::boxed::Box<{base_type}>"
        if field.optional:
            return f"std::option::Option<{base_type}>"
        return base_type

    def method_io_type_name(self, type_id: str, context: str = "") -> str:
        if type_id == "":
            return ""
        return self.message_name(self.lookup_message(type_id, context))
