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

"""The Dart codec: annotates a model for the Dart templates."""

import logging
from typing import Dict, List, Optional, Set

from clientgen import naming
from clientgen.api.bindings import path_params, query_params
from clientgen.api.model import (
    API,
    Enum,
    EnumValue,
    Field,
    Message,
    Method,
    OneOf,
    PathSegment,
    Service,
)
from clientgen.api.types import INT64_TYPES, Typez
from clientgen.codecs.base import BaseCodec
from clientgen.codecs.dart.annotations import (
    EnumAnnotation,
    EnumValueAnnotation,
    FieldAnnotation,
    MessageAnnotation,
    MethodAnnotation,
    ModelAnnotation,
    OneOfAnnotation,
    PackageDependency,
    QueryParameter,
    ServiceAnnotation,
)
from clientgen.codecs.dart.names import (
    DART_KEYWORDS,
    enum_name,
    enum_value_name,
    escape_keyword,
    field_name,
    message_name,
    to_pascal,
)
from clientgen.codecs.dart.options import DartOptions, parse_dart_options
from clientgen.errors import TypeLookupError

logger = logging.getLogger(__name__)

TYPED_DATA_IMPORT = "dart:typed_data"
HTTP_IMPORT = "package:http/http.dart"
COMMON_IMPORT = "package:google_cloud_gax/gax.dart"
COMMON_HELPERS_IMPORT = "package:google_cloud_gax/src/encoding.dart"

ANY_ID = ".google.protobuf.Any"
EMPTY_ID = ".google.protobuf.Empty"

IDEMPOTENT_VERBS = frozenset({"GET", "PUT", "DELETE"})

# Well-known messages whose JSON form is not an object.
CUSTOM_ENCODING_IDS = frozenset(
    {
        ".google.protobuf.Duration",
        ".google.protobuf.FieldMask",
        ".google.protobuf.Timestamp",
        ".google.protobuf.BoolValue",
        ".google.protobuf.BytesValue",
        ".google.protobuf.DoubleValue",
        ".google.protobuf.FloatValue",
        ".google.protobuf.Int32Value",
        ".google.protobuf.Int64Value",
        ".google.protobuf.StringValue",
        ".google.protobuf.UInt32Value",
        ".google.protobuf.UInt64Value",
    }
)

_SCALAR_TYPES = {
    Typez.BOOL: "bool",
    Typez.INT32: "int",
    Typez.INT64: "int",
    Typez.UINT32: "int",
    Typez.UINT64: "int",
    Typez.FIXED32: "int",
    Typez.FIXED64: "int",
    Typez.SFIXED32: "int",
    Typez.SFIXED64: "int",
    Typez.SINT32: "int",
    Typez.SINT64: "int",
    Typez.FLOAT: "double",
    Typez.DOUBLE: "double",
    Typez.STRING: "String",
    Typez.BYTES: "Uint8List",
}


def format_doc_comments(documentation: str) -> List[str]:
    """Return ``documentation`` as ``///`` comment lines."""
    lines = [line.rstrip() for line in documentation.split("\n")]
    while lines and lines[-1] == "":
        lines.pop()
    return ["/// " + line if line else "///" for line in lines]


def calculate_imports(imports: Set[str]) -> List[str]:
    """Return the import statements, ``dart:`` imports first.

    The two groups are separated by a blank line. The http package is
    imported with the ``http`` prefix.
    """
    results: List[str] = []
    previous = ""
    for uri in sorted(imports):
        group = uri.split(":", 1)[0]
        if previous and group != previous:
            results.append("")
        previous = group
        if uri == HTTP_IMPORT:
            results.append(f"import '{uri}' as http;")
        else:
            results.append(f"import '{uri}';")
    return results


def calculate_dependencies(imports: Set[str]) -> List[PackageDependency]:
    """Return the pub packages needed by the ``package:`` imports."""
    names = set()
    for uri in imports:
        if not uri.startswith("package:"):
            continue
        names.add(uri[len("package:") :].split("/", 1)[0])
    return [PackageDependency(name) for name in sorted(names)]


def path_fmt(template: List[PathSegment]) -> str:
    """Return the request path as a Dart string interpolation."""
    parts = []
    for segment in template:
        if segment.literal is not None:
            parts.append("/" + segment.literal)
        elif segment.variable is not None:
            accessor = "!.".join(naming.to_lower_camel(name) for name in segment.variable.field_path)
            parts.append("/${request." + accessor + "}")
        elif segment.verb is not None:
            parts.append(":" + segment.verb)
    return "".join(parts)


class DartCodec(BaseCodec):
    """Annotates models for Dart client libraries."""

    language_name = "dart"
    keywords = DART_KEYWORDS

    def parse_options(self, options: Dict[str, str]) -> DartOptions:
        return parse_dart_options(options)

    def escape_keyword(self, symbol: str) -> str:
        return escape_keyword(symbol)

    def generate_method(self, method: Method) -> bool:
        if method.client_side_streaming or method.server_side_streaming:
            return False
        bindings = method.path_info.bindings
        return bool(bindings) and bool(bindings[0].path_template)

    def annotate(self, model: API) -> ModelAnnotation:
        return _Annotator(self, model).run()


class _Annotator:
    """State for one annotation run: the imports and the required fields."""

    def __init__(self, codec: DartCodec, model: API):
        self.codec = codec
        self.options: DartOptions = codec.options
        self.model = model
        self.state = model.state
        self.imports: Set[str] = set()
        self.required_fields: Set[Field] = set()
        self._unmapped: Set[str] = set()

    def run(self) -> ModelAnnotation:
        model = self.model
        options = self.options
        self.load_well_known_types()

        for service in model.services:
            for method in service.methods:
                if not self.codec.generate_method(method):
                    continue
                self.required_fields.update(path_params(method))
                body = method.path_info.body_field_path
                if method.input_type is not None and body not in ("", "*"):
                    for f in method.input_type.fields:
                        if f.name == body:
                            self.required_fields.add(f)

        for enum in model.enums:
            self.annotate_enum(enum)
        for message in model.messages:
            self.annotate_message(message, self.imports)
        for service in model.services:
            self.annotate_service(service)

        self_import = options.package_mapping.get(model.package_name)
        if self_import is not None:
            self.imports.discard(self_import)
        self.imports.add(COMMON_IMPORT)
        if model.messages:
            self.imports.add(COMMON_HELPERS_IMPORT)
        self.imports.update(options.extra_imports)

        name = options.package_name_override or "google_cloud_" + naming.to_snake(model.name)
        part_file = ""
        if options.part_file:
            part_file = f"part '{options.part_file}';"
        annotation = ModelAnnotation(
            package_name=name,
            package_version=options.version,
            main_file_name=naming.to_snake(model.name),
            source_package_name=model.package_name,
            has_services=len(model.services) > 0,
            copyright_year=options.generation_year,
            default_host=model.services[0].default_host if model.services else "",
            doc_lines=[line.rstrip() for line in model.description.split("\n")],
            imports=calculate_imports(self.imports),
            part_file_reference=part_file,
            package_dependencies=calculate_dependencies(self.imports),
            dev_dependencies=list(options.dev_dependencies),
            not_for_publication=options.not_for_publication,
        )
        model.codec = annotation
        return annotation

    def load_well_known_types(self) -> None:
        for name in ("Any", "Empty"):
            type_id = f".google.protobuf.{name}"
            self.state.message_by_id.setdefault(
                type_id, Message(name=name, id=type_id, package="google.protobuf")
            )

    # Types

    def update_used_packages(self, package: str, imports: Set[str]) -> None:
        if package == self.model.package_name:
            return
        mapped = self.options.package_mapping.get(package)
        if mapped is not None:
            imports.add(mapped)
        elif package not in self._unmapped:
            self._unmapped.add(package)
            logger.warning("missing proto package mapping %s", package)

    def lookup_message(self, type_id: str, context: str = "") -> Message:
        message = self.state.message_by_id.get(type_id)
        if message is None:
            raise TypeLookupError(type_id, context)
        return message

    def resolve_type_name(self, type_id: str, imports: Set[str], for_method: bool = False) -> str:
        if for_method and type_id == EMPTY_ID:
            return "void"
        message = self.lookup_message(type_id, "method")
        self.update_used_packages(message.package, imports)
        return message_name(message)

    def field_type(self, f: Field, imports: Set[str]) -> str:
        if f.typez == Typez.MESSAGE:
            message = self.lookup_message(f.typez_id, f.id)
            if message.is_map:
                key = self.field_type(_map_entry(message, "key", f), imports)
                value = self.field_type(_map_entry(message, "value", f), imports)
                return f"Map<{key}, {value}>"
            self.update_used_packages(message.package, imports)
            base = message_name(message)
        elif f.typez == Typez.ENUM:
            enum = self.state.enum_by_id.get(f.typez_id)
            if enum is None:
                raise TypeLookupError(f.typez_id, f.id)
            self.update_used_packages(enum.package, imports)
            base = enum_name(enum)
        elif f.typez in _SCALAR_TYPES:
            base = _SCALAR_TYPES[f.typez]
            if f.typez == Typez.BYTES:
                imports.add(TYPED_DATA_IMPORT)
        else:
            raise TypeLookupError(f.typez_id or f.typez.name, f.id)
        if f.repeated:
            return f"List<{base}>"
        return base

    # JSON

    def _map_value(self, f: Field) -> Optional[Field]:
        if f.typez != Typez.MESSAGE:
            return None
        message = self.state.message_by_id.get(f.typez_id)
        if message is None or not message.is_map:
            return None
        return _map_entry(message, "value", f)

    def _custom(self, f: Field) -> bool:
        return f.typez == Typez.MESSAGE and f.typez_id in CUSTOM_ENCODING_IDS

    def _type_name(self, f: Field) -> str:
        if f.typez == Typez.ENUM:
            return enum_name(self.state.enum_by_id[f.typez_id])
        return message_name(self.state.message_by_id[f.typez_id])

    def from_json(self, f: Field, required: bool) -> str:
        data = f"json['{f.json_name or naming.to_lower_camel(f.name)}']"
        bang = "!" if required else ""
        value = self._map_value(f)
        if value is not None:
            if value.typez == Typez.ENUM:
                return f"decodeMapEnum({data}, {self._type_name(value)}.fromJson){bang}"
            if self._custom(value):
                return f"decodeMapMessageCustom({data}, {self._type_name(value)}.fromJson){bang}"
            if value.typez == Typez.MESSAGE:
                return f"decodeMapMessage({data}, {self._type_name(value)}.fromJson){bang}"
            if value.typez == Typez.BYTES:
                return f"decodeMapBytes({data}){bang}"
            return f"decodeMap({data}){bang}"
        if f.repeated:
            if f.typez == Typez.ENUM:
                return f"decodeListEnum({data}, {self._type_name(f)}.fromJson){bang}"
            if self._custom(f):
                return f"decodeListMessageCustom({data}, {self._type_name(f)}.fromJson){bang}"
            if f.typez == Typez.MESSAGE:
                return f"decodeListMessage({data}, {self._type_name(f)}.fromJson){bang}"
            if f.typez == Typez.BYTES:
                return f"decodeListBytes({data}){bang}"
            return f"decodeList({data}){bang}"
        if f.typez == Typez.ENUM:
            return f"decodeEnum({data}, {self._type_name(f)}.fromJson){bang}"
        if self._custom(f):
            return f"decodeCustom({data}, {self._type_name(f)}.fromJson){bang}"
        if f.typez == Typez.MESSAGE:
            return f"decode({data}, {self._type_name(f)}.fromJson){bang}"
        if f.typez == Typez.BYTES:
            return f"decodeBytes({data}){bang}"
        if f.typez in (Typez.FLOAT, Typez.DOUBLE):
            return f"decodeDouble({data}){bang}"
        if f.typez in INT64_TYPES:
            return f"decodeInt64({data}){bang}"
        return data

    def to_json(self, f: Field, name: str, required: bool) -> str:
        value = self._map_value(f)
        if value is not None:
            if value.typez in (Typez.MESSAGE, Typez.ENUM):
                return f"encodeMap({name})"
            if value.typez == Typez.BYTES:
                return f"encodeMapBytes({name})"
            return name
        if f.repeated:
            if f.typez in (Typez.MESSAGE, Typez.ENUM):
                return f"encodeList({name})"
            if f.typez == Typez.BYTES:
                return f"encodeListBytes({name})"
            return name
        if f.typez in (Typez.MESSAGE, Typez.ENUM):
            return f"{name}.toJson()" if required else f"{name}!.toJson()"
        if f.typez == Typez.BYTES:
            return f"encodeBytes({name})"
        if f.typez in INT64_TYPES:
            return f"encodeInt64({name})"
        if f.typez in (Typez.FLOAT, Typez.DOUBLE):
            return f"encodeDouble({name})"
        return name

    # Nodes

    def annotate_service(self, service: Service) -> None:
        methods = []
        for method in service.methods:
            if not self.codec.generate_method(method):
                continue
            self.annotate_method(method)
            methods.append(method.codec)
        if methods:
            self.imports.add(HTTP_IMPORT)
        service.codec = ServiceAnnotation(
            name=to_pascal(service.name),
            doc_lines=format_doc_comments(service.documentation),
            methods=methods,
            field_name=escape_keyword(naming.to_lower_camel(service.name)),
            struct_name=to_pascal(service.name),
            default_host=service.default_host,
        )

    def annotate_method(self, method: Method) -> None:
        # Request and response messages may live in other packages; their
        # imports are not needed by the message library itself.
        scratch: Set[str] = set()
        for message in (method.input_type, method.output_type):
            if message is not None:
                self.annotate_message(message, scratch)

        binding = method.path_info.bindings[0]
        body = method.path_info.body_field_path
        if body == "*":
            body_name = "request"
        else:
            body_name = "request." + naming.to_lower_camel(body)
        queries = []
        for f in query_params(method, binding):
            required = f in self.required_fields
            queries.append(
                QueryParameter(
                    name=field_name(f),
                    json_name=f.json_name or naming.to_lower_camel(f.name),
                    value=self.to_json(f, "request." + field_name(f), required),
                    nullable=not required,
                )
            )
        method.codec = MethodAnnotation(
            name=escape_keyword(naming.to_lower_camel(method.name)),
            doc_lines=format_doc_comments(method.documentation),
            request_method=binding.verb.lower(),
            request_type=self.resolve_type_name(method.input_type_id, self.imports, True),
            response_type=self.resolve_type_name(method.output_type_id, self.imports, True),
            has_body=body != "",
            returns_value=method.output_type_id != EMPTY_ID,
            body_message_name=body_name,
            path_fmt=path_fmt(binding.path_template),
            path_params=[field_name(f) for f in path_params(method)],
            query_params=queries,
            is_idempotent=all(
                b.verb in IDEMPOTENT_VERBS for b in method.path_info.bindings
            ),
        )

    def annotate_message(self, message: Message, imports: Set[str]) -> None:
        for f in message.fields:
            self.annotate_field(f, imports)
        for oneof in message.one_ofs:
            self.annotate_oneof(oneof)
        for enum in message.enums:
            self.annotate_enum(enum)
        for child in message.messages:
            if not child.is_map:
                self.annotate_message(child, imports)

        to_string_lines = []
        for f in message.fields:
            if f.repeated or f.typez == Typez.MESSAGE:
                continue
            name = field_name(f)
            if f in self.required_fields:
                to_string_lines.append(f"'{name}=${name}',")
            else:
                to_string_lines.append(f"if ({name} != null) '{name}=${name}',")

        name = message_name(message)
        message.codec = MessageAnnotation(
            name=name,
            qualified_name=name,
            doc_lines=format_doc_comments(message.documentation),
            has_fields=len(message.fields) > 0,
            has_custom_encoding=message.id in CUSTOM_ENCODING_IDS,
            to_string_lines=to_string_lines,
        )

    def annotate_oneof(self, oneof: OneOf) -> None:
        oneof.codec = OneOfAnnotation(
            name=escape_keyword(naming.to_lower_camel(oneof.name)),
            doc_lines=format_doc_comments(oneof.documentation),
        )

    def annotate_field(self, f: Field, imports: Set[str]) -> None:
        required = f in self.required_fields
        name = field_name(f)
        f.codec = FieldAnnotation(
            name=name,
            type=self.field_type(f, imports),
            doc_lines=format_doc_comments(f.documentation),
            required=required,
            nullable=not required,
            from_json=self.from_json(f, required),
            to_json=self.to_json(f, name, required),
        )

    def annotate_enum(self, enum: Enum) -> None:
        for value in enum.values:
            self.annotate_enum_value(value)
        enum.codec = EnumAnnotation(
            name=enum_name(enum),
            doc_lines=format_doc_comments(enum.documentation),
        )

    def annotate_enum_value(self, value: EnumValue) -> None:
        value.codec = EnumValueAnnotation(
            name=enum_value_name(value),
            doc_lines=format_doc_comments(value.documentation),
        )


def _map_entry(message: Message, name: str, f: Field) -> Field:
    for entry in message.fields:
        if entry.name == name:
            return entry
    raise TypeLookupError(f"{message.id}.{name}", f.id)
