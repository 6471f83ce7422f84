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

"""Language neutral API model.

The model graph has back references (fields to their oneof, messages to their
parent, methods to their service), so nodes compare by identity. Each node has
a ``codec`` slot that a language codec fills with its annotation object.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from clientgen.api.types import Typez


@dataclass(eq=False)
class Field:
    """A field in a message."""

    name: str
    id: str = ""
    typez: Typez = Typez.UNDEFINED
    typez_id: str = ""
    json_name: str = ""
    documentation: str = ""
    optional: bool = False
    repeated: bool = False
    is_oneof: bool = False
    synthetic: bool = False
    recursive: bool = False
    group: Optional["OneOf"] = None
    parent: Optional["Message"] = None
    codec: Any = None

    def __repr__(self) -> str:
        modifiers = []
        if self.optional:
            modifiers.append("optional")
        if self.repeated:
            modifiers.append("repeated")
        if self.is_oneof:
            modifiers.append("oneof")
        mod_str = " ".join(modifiers) + " " if modifiers else ""
        type_str = self.typez_id or self.typez.name.lower()
        return f"Field({mod_str}{type_str} {self.name})"


@dataclass(eq=False)
class OneOf:
    """A group of mutually exclusive fields."""

    name: str
    id: str = ""
    documentation: str = ""
    fields: List[Field] = field(default_factory=list)
    codec: Any = None

    def __repr__(self) -> str:
        return f"OneOf({self.name}, fields={[f.name for f in self.fields]})"


@dataclass(eq=False)
class EnumValue:
    name: str
    number: int = 0
    id: str = ""
    documentation: str = ""
    parent: Optional["Enum"] = None
    codec: Any = None

    def scopes(self) -> List[str]:
        return self.parent.scopes() if self.parent is not None else []

    def __repr__(self) -> str:
        return f"EnumValue({self.name} = {self.number})"


@dataclass(eq=False)
class Enum:
    """An enum type."""

    name: str
    id: str = ""
    documentation: str = ""
    package: str = ""
    values: List[EnumValue] = field(default_factory=list)
    parent: Optional["Message"] = None
    codec: Any = None

    def scopes(self) -> List[str]:
        """Return the lookup scopes for references in this enum's docs."""
        parent_scopes = self.parent.scopes() if self.parent is not None else [self.package]
        return [self.id.lstrip(".")] + parent_scopes

    def __repr__(self) -> str:
        return f"Enum({self.id or self.name}, values={len(self.values)})"


@dataclass(eq=False)
class Message:
    """A message type, possibly nested inside another message."""

    name: str
    id: str = ""
    documentation: str = ""
    package: str = ""
    fields: List[Field] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    messages: List["Message"] = field(default_factory=list)
    one_ofs: List[OneOf] = field(default_factory=list)
    parent: Optional["Message"] = None
    is_map: bool = False
    codec: Any = None

    def scopes(self) -> List[str]:
        """Return the lookup scopes for references in this message's docs.

        The innermost scope comes first, the package last.
        """
        result = [self.id.lstrip(".")]
        parent = self.parent
        while parent is not None:
            result.append(parent.id.lstrip("."))
            parent = parent.parent
        result.append(self.package)
        return result

    def __repr__(self) -> str:
        return (
            f"Message({self.id or self.name}, fields={[f.name for f in self.fields]})"
        )


@dataclass
class PathVariable:
    """A path template variable bound to a (possibly nested) request field."""

    field_path: List[str]
    segments: List[str] = field(default_factory=lambda: ["*"])

    def __repr__(self) -> str:
        return f"PathVariable({'.'.join(self.field_path)}={'/'.join(self.segments)})"


@dataclass
class PathSegment:
    """One element of a path template: a literal, a variable, or a verb."""

    literal: Optional[str] = None
    variable: Optional[PathVariable] = None
    verb: Optional[str] = None

    @classmethod
    def of_literal(cls, value: str) -> "PathSegment":
        return cls(literal=value)

    @classmethod
    def of_variable(cls, *field_path: str, segments: Optional[List[str]] = None) -> "PathSegment":
        variable = PathVariable(list(field_path))
        if segments is not None:
            variable.segments = list(segments)
        return cls(variable=variable)

    @classmethod
    def of_verb(cls, value: str) -> "PathSegment":
        return cls(verb=value)


@dataclass(eq=False)
class PathBinding:
    """An HTTP verb plus a path template."""

    verb: str
    path_template: List[PathSegment] = field(default_factory=list)
    query_parameters: Optional[Set[str]] = None
    codec: Any = None

    def __repr__(self) -> str:
        return f"PathBinding({self.verb}, segments={len(self.path_template)})"


@dataclass(eq=False)
class PathInfo:
    bindings: List[PathBinding] = field(default_factory=list)
    body_field_path: str = ""
    codec: Any = None

    def __repr__(self) -> str:
        return f"PathInfo(bindings={self.bindings}, body={self.body_field_path!r})"


@dataclass(eq=False)
class OperationInfo:
    """Long-running operation metadata for a method."""

    metadata_type_id: str
    response_type_id: str
    codec: Any = None

    def __repr__(self) -> str:
        return f"OperationInfo({self.metadata_type_id}, {self.response_type_id})"


@dataclass(eq=False)
class RoutingInfoVariant:
    """One way of extracting a routing header value from the request."""

    field_path: List[str]
    prefix: List[str] = field(default_factory=list)
    matching: List[str] = field(default_factory=lambda: ["**"])
    suffix: List[str] = field(default_factory=list)
    codec: Any = None

    def __repr__(self) -> str:
        return f"RoutingInfoVariant({'.'.join(self.field_path)})"


@dataclass(eq=False)
class RoutingInfo:
    name: str
    variants: List[RoutingInfoVariant] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"RoutingInfo({self.name}, variants={len(self.variants)})"


@dataclass(eq=False)
class Method:
    """An RPC in a service."""

    name: str
    id: str = ""
    documentation: str = ""
    input_type_id: str = ""
    output_type_id: str = ""
    input_type: Optional[Message] = None
    output_type: Optional[Message] = None
    returns_empty: bool = False
    path_info: PathInfo = field(default_factory=PathInfo)
    client_side_streaming: bool = False
    server_side_streaming: bool = False
    operation_info: Optional[OperationInfo] = None
    routing: List[RoutingInfo] = field(default_factory=list)
    service: Optional["Service"] = None
    codec: Any = None

    def __repr__(self) -> str:
        return f"Method({self.id or self.name})"


@dataclass(eq=False)
class Service:
    name: str
    id: str = ""
    documentation: str = ""
    package: str = ""
    default_host: str = ""
    methods: List[Method] = field(default_factory=list)
    codec: Any = None

    def scopes(self) -> List[str]:
        return [self.id.lstrip("."), self.package]

    def __repr__(self) -> str:
        return f"Service({self.id or self.name}, methods={[m.name for m in self.methods]})"


@dataclass
class APIState:
    """Flat indexes over every service, method, message and enum by ID."""

    service_by_id: Dict[str, Service] = field(default_factory=dict)
    method_by_id: Dict[str, Method] = field(default_factory=dict)
    message_by_id: Dict[str, Message] = field(default_factory=dict)
    enum_by_id: Dict[str, Enum] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"APIState(services={len(self.service_by_id)}, "
            f"methods={len(self.method_by_id)}, "
            f"messages={len(self.message_by_id)}, enums={len(self.enum_by_id)})"
        )


@dataclass(eq=False)
class API:
    """The root of the model: top-level services, messages and enums."""

    name: str
    package_name: str = ""
    title: str = ""
    description: str = ""
    services: List[Service] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    enums: List[Enum] = field(default_factory=list)
    state: APIState = field(default_factory=APIState)
    codec: Any = None

    def __repr__(self) -> str:
        return (
            f"API({self.name}, package={self.package_name!r}, "
            f"services={len(self.services)}, messages={len(self.messages)}, "
            f"enums={len(self.enums)})"
        )
