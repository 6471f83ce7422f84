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

"""The Rust codec: annotates a model for the Rust templates."""

import json
import logging
from typing import Dict, List, Set

from clientgen import naming
from clientgen.api.bindings import field_is_map, has_nested_types, path_params, query_params
from clientgen.api.dependencies import find_service_dependencies
from clientgen.api.model import (
    API,
    Enum,
    EnumValue,
    Field,
    Message,
    Method,
    OneOf,
    PathBinding,
    Service,
)
from clientgen.api.types import Typez
from clientgen.codecs.base import BaseCodec
from clientgen.codecs.rust.annotations import (
    EnumAnnotation,
    EnumValueAnnotation,
    FieldAnnotation,
    MessageAnnotation,
    MethodAnnotation,
    ModelAnnotation,
    OneOfAnnotation,
    OperationInfoAnnotation,
    PathBindingAnnotation,
    PathInfoAnnotation,
    RoutingVariantAnnotation,
    ServiceAnnotation,
)
from clientgen.codecs.rust.docs import DocLinks, format_doc_comments
from clientgen.codecs.rust.names import (
    RUST_KEYWORDS,
    enum_value_name,
    enum_value_variant_name,
    escape_keyword,
    package_to_module_name,
    to_camel,
    to_pascal,
    to_snake,
    to_snake_no_mangling,
)
from clientgen.codecs.rust.options import RustOptions, RustPackage, parse_rust_options
from clientgen.codecs.rust.paths import (
    annotate_segments,
    body_accessor,
    is_idempotent,
    make_accessors,
    make_binding_substitution,
    path_args,
    path_fmt,
)
from clientgen.codecs.rust.types import (
    TypeResolver,
    field_attributes,
    load_well_known_types,
    map_entry_fields,
    map_key_serde_as,
    map_value_serde_as,
    message_field_serde_as,
    primitive_serde_as,
)

logger = logging.getLogger(__name__)

# Packages with more services than this should enable per-service features.
MAX_SERVICES_WITHOUT_FEATURES = 15

_QUERY_FOLD = (
    'let builder = req.{accessor}.iter().fold(builder, |builder, p| builder.query(&[("{json}", p)]));'
)
_QUERY_MESSAGE_OPTIONAL = (
    "let builder = req.{accessor}.as_ref().map(|p| serde_json::to_value(p).map_err(Error::ser) )"
    ".transpose()?.into_iter().fold(builder, |builder, v| "
    '{{ use gaxi::query_parameter::QueryParameter; v.add(builder, "{json}") }});'
)
_QUERY_MESSAGE = (
    "let builder = {{ use gaxi::query_parameter::QueryParameter; "
    'serde_json::to_value(&req.{accessor}).map_err(Error::ser)?.add(builder, "{json}") }};'
)
_QUERY_MESSAGE_ONEOF = (
    "let builder = req.{accessor}.map(|p| serde_json::to_value(p).map_err(Error::ser) )"
    ".transpose()?.into_iter().fold(builder, |builder, p| "
    '{{ use gaxi::query_parameter::QueryParameter; p.add(builder, "{json}") }});'
)
_QUERY_SCALAR = 'let builder = builder.query(&[("{json}", &req.{accessor})]);'


def add_query_parameter(f: Field) -> str:
    """Return the statement that adds ``f`` to the request query.

    Nested messages are converted to a ``serde_json::Value`` first, which is
    expensive, so the conversion is skipped when the field is absent.
    """
    name = to_snake(f.name)
    json_name = f.json_name or naming.to_lower_camel(f.name)
    if f.is_oneof:
        accessor = f"{name}()"
        if f.typez == Typez.MESSAGE:
            return _QUERY_MESSAGE_ONEOF.format(accessor=accessor, json=json_name)
        return _QUERY_FOLD.format(accessor=accessor, json=json_name)
    if f.typez == Typez.MESSAGE:
        if f.optional or f.repeated:
            return _QUERY_MESSAGE_OPTIONAL.format(accessor=name, json=json_name)
        return _QUERY_MESSAGE.format(accessor=name, json=json_name)
    if f.optional or f.repeated:
        return _QUERY_FOLD.format(accessor=name, json=json_name)
    return _QUERY_SCALAR.format(accessor=name, json=json_name)


def package_name(model: API, override: str = "") -> str:
    """Return the crate name, e.g. ``google-cloud-secretmanager-v1``."""
    if override:
        return override
    name = model.package_name
    for prefix in ("google.cloud.", "google."):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    name = name.replace(".", "-")
    if name == "":
        name = model.name
    return "google-cloud-" + name


def required_package_line(package: RustPackage) -> str:
    if package.features:
        features = ", ".join(json.dumps(f) for f in package.features)
        return f"{package.name:<20} = {{ workspace = true, features = [{features}] }}"
    return f"{package.name + '.workspace':<20} = true"


def partition_fields(fields: List[Field], state) -> Dict[str, List[Field]]:
    """Split ``fields`` into singular, repeated and map subsets.

    Map fields are never in the repeated subset.
    """
    partition: Dict[str, List[Field]] = {"singular": [], "repeated": [], "map": []}
    for f in fields:
        if field_is_map(f, state):
            partition["map"].append(f)
        elif f.repeated:
            partition["repeated"].append(f)
        else:
            partition["singular"].append(f)
    return partition


class RustCodec(BaseCodec):
    """Annotates models for Rust client libraries."""

    language_name = "rust"
    keywords = RUST_KEYWORDS

    def parse_options(self, options: Dict[str, str]) -> RustOptions:
        return parse_rust_options(options, self.protobuf_source)

    def escape_keyword(self, symbol: str) -> str:
        return escape_keyword(symbol)

    def generate_method(self, method: Method) -> bool:
        """Return True if a client method is generated for ``method``.

        Streaming methods are never generated. Other methods need an HTTP
        binding with a path, unless gRPC-only methods are included.
        """
        if method.client_side_streaming or method.server_side_streaming:
            return False
        if self.options.include_grpc_only_methods:
            return True
        bindings = method.path_info.bindings
        return bool(bindings) and bool(bindings[0].path_template)

    def service_name(self, service: Service) -> str:
        return self.options.name_overrides.get(service.id, service.name)

    def oneof_enum_name(self, oneof: OneOf) -> str:
        override = self.options.name_overrides.get(oneof.id)
        if override is not None:
            return override
        return to_pascal(oneof.name)

    def message_attributes(self) -> List[str]:
        if self.options.with_generated_serde:
            return ["#[derive(Clone, Debug, Default, PartialEq)]", "#[non_exhaustive]"]
        return [
            "#[serde_with::serde_as]",
            "#[derive(Clone, Debug, Default, PartialEq, serde::Deserialize, serde::Serialize)]",
            '#[serde(default, rename_all = "camelCase")]',
            "#[non_exhaustive]",
        ]

    def annotate(self, model: API) -> ModelAnnotation:
        return _Annotator(self, model).run()


class _Annotator:
    """State for one annotation run.

    The used-package marks live here, so the codec and its options can be
    shared across runs.
    """

    def __init__(self, codec: RustCodec, model: API):
        self.codec = codec
        self.options: RustOptions = codec.options
        self.model = model
        self.state = model.state
        self.types = TypeResolver(
            model.state,
            model.package_name,
            self.options.module_path,
            self.options.package_mapping,
        )
        self.links = DocLinks(model.state, self.types, codec.generate_method)
        self.used_packages: Set[str] = set()

    def doc_lines(self, documentation: str, element_id: str, scopes: List[str]) -> List[str]:
        return format_doc_comments(documentation, element_id, scopes, self.links)

    def run(self) -> ModelAnnotation:
        model = self.model
        codec = self.codec
        options = self.options
        load_well_known_types(self.state)
        self.resolve_used_packages()
        name = package_name(model, options.package_name_override)
        namespace = name.replace("-", "_")

        for enum in model.enums:
            self.annotate_enum(enum)
        for message in model.messages:
            self.annotate_message(message)
        has_lros = False
        for service in model.services:
            for method in service.methods:
                if method.operation_info is not None:
                    has_lros = True
                if not codec.generate_method(method):
                    continue
                self.annotate_method(method, service, namespace)
                if method.input_type is not None:
                    self.annotate_message(method.input_type)
                if method.output_type is not None:
                    self.annotate_message(method.output_type)
            self.annotate_service(service)

        services = [
            s for s in model.services if any(codec.generate_method(m) for m in s.methods)
        ]
        if len(services) > MAX_SERVICES_WITHOUT_FEATURES and not options.per_service_features:
            logger.warning(
                "package %s has %d services, consider enabling per-service features",
                name,
                len(services),
            )

        # Runs after every node is visited.
        self.find_used_packages()
        default_host = model.services[0].default_host if model.services else ""
        annotation = ModelAnnotation(
            package_name=name,
            package_namespace=namespace,
            package_version=options.version,
            release_level=options.release_level,
            required_packages=self.required_packages(),
            extern_packages=self.extern_packages(),
            has_lros=has_lros,
            copyright_year=options.generation_year,
            default_host=default_host,
            default_host_short=default_host.split(".", 1)[0],
            services=services,
            name_to_lower=model.name.lower(),
            not_for_publication=options.not_for_publication,
            is_wkt_crate=model.package_name == "google.protobuf",
            disabled_rustdoc_warnings=list(options.disabled_rustdoc_warnings),
            default_system_parameters=list(options.system_parameters),
            per_service_features=options.per_service_features and len(services) > 0,
            incomplete=any(
                not codec.generate_method(m) for s in model.services for m in s.methods
            ),
            message_attributes=codec.message_attributes(),
            template_override=options.template_override,
        )
        self.add_feature_annotations(annotation)
        model.codec = annotation
        return annotation

    # Packages

    def _is_used(self, package: RustPackage) -> bool:
        return package.force_used or package.name in self.used_packages

    def resolve_used_packages(self) -> None:
        has_services = len(self.state.service_by_id) > 0
        has_lros = any(
            m.operation_info is not None for s in self.model.services for m in s.methods
        )
        for package in self.options.extra_packages:
            for condition in package.used_if:
                if (condition == "services" and has_services) or (
                    condition == "lro" and has_lros
                ):
                    self.used_packages.add(package.name)
                    break

    def use_package(self, source: str) -> None:
        mapped = self.options.package_mapping.get(source)
        if mapped is not None and source != self.model.package_name:
            self.used_packages.add(mapped.name)

    def _find_used_in_message(self, message: Message, visited: Set[str]) -> None:
        if message.id in visited:
            return
        visited.add(message.id)
        self.use_package(message.package)
        for enum in message.enums:
            self.use_package(enum.package)
        for child in message.messages:
            self._find_used_in_message(child, visited)
        for f in message.fields:
            if f.typez == Typez.MESSAGE:
                target = self.state.message_by_id.get(f.typez_id)
            elif f.typez == Typez.ENUM:
                target = self.state.enum_by_id.get(f.typez_id)
            else:
                continue
            if target is not None:
                self.use_package(target.package)

    def find_used_packages(self) -> None:
        state = self.state
        for message in self.model.messages:
            self._find_used_in_message(message, set())
        for enum in self.model.enums:
            self.use_package(enum.package)
        for service in self.model.services:
            for method in service.methods:
                request = state.message_by_id.get(method.input_type_id)
                if request is not None:
                    self._find_used_in_message(request, set())
                ids = [method.output_type_id]
                if method.operation_info is not None:
                    ids.append(method.operation_info.metadata_type_id)
                    ids.append(method.operation_info.response_type_id)
                for type_id in ids:
                    message = state.message_by_id.get(type_id)
                    if message is not None:
                        self.use_package(message.package)

    def _required(self) -> List[RustPackage]:
        return [
            p for p in self.options.extra_packages if not p.ignore and self._is_used(p)
        ]

    def required_packages(self) -> List[str]:
        return sorted(required_package_line(p) for p in self._required())

    def extern_packages(self) -> List[str]:
        return sorted(p.name.replace("-", "_") for p in self._required())

    # Features

    def add_feature_annotations(self, annotation: ModelAnnotation) -> None:
        if not self.options.per_service_features:
            return
        state = self.state
        all_features = []
        for service in annotation.services:
            feature = service.codec.feature_name
            all_features.append(feature)
            deps = find_service_dependencies(self.model, service.id)
            for enum_id in deps.enums:
                enum = state.enum_by_id.get(enum_id)
                # External types are not annotated.
                if enum is None or enum.codec is None:
                    continue
                _add_feature(enum.codec, feature)
            for message_id in deps.messages:
                message = state.message_by_id.get(message_id)
                if message is None or message.codec is None:
                    continue
                _add_feature(message.codec, feature)
                for oneof in message.one_ofs:
                    if oneof.codec is not None:
                        _add_feature(oneof.codec, feature)
        # Types used by no service require every feature.
        all_features.sort()
        for node in list(state.message_by_id.values()) + list(state.enum_by_id.values()):
            if node.codec is None or node.codec.feature_gates:
                continue
            node.codec.feature_gates = list(all_features)
            node.codec.feature_gates_op = "all"

    # Services and methods

    def annotate_service(self, service: Service) -> None:
        codec = self.codec
        methods = [m for m in service.methods if codec.generate_method(m)]
        seen: Set[str] = set()
        lro_types = []
        for method in methods:
            info = method.operation_info
            if info is None:
                continue
            for type_id in (info.metadata_type_id, info.response_type_id):
                if type_id in seen:
                    continue
                seen.add(type_id)
                lro_types.append(
                    self.types.lookup_message(type_id, f"operation info of {method.id}")
                )
        name = codec.service_name(service)
        service.codec = ServiceAnnotation(
            name=to_pascal(name),
            package_module_name=package_to_module_name(service.package),
            module_name=to_snake(name),
            doc_lines=self.doc_lines(service.documentation, service.id, service.scopes()),
            methods=methods,
            default_host=service.default_host,
            lro_types=lro_types,
            api_title=self.model.title,
            per_service_features=self.options.per_service_features,
            has_veneer=self.options.has_veneer,
            incomplete=any(not codec.generate_method(m) for m in service.methods),
        )

    def annotate_method(self, method: Method, service: Service, namespace: str) -> None:
        bindings = method.path_info.bindings
        verbs = [b.verb for b in bindings]
        context = f"method {method.id}"
        if method.input_type_id:
            self.types.lookup_message(method.input_type_id, context)
        if bindings:
            args = path_args(method, self.state)
            path_info = PathInfoAnnotation(
                method=bindings[0].verb,
                method_to_lower=bindings[0].verb.lower(),
                path_fmt=path_fmt(bindings[0].path_template),
                path_args=args,
                has_path_args=len(args) > 0,
                has_body=method.path_info.body_field_path != "",
                is_idempotent=is_idempotent(verbs),
            )
        else:
            path_info = PathInfoAnnotation()
        method.path_info.codec = path_info

        for routing in method.routing:
            for index, variant in enumerate(routing.variants):
                variant.codec = RoutingVariantAnnotation(
                    first_variant=index == 0,
                    field_accessors=make_accessors(variant.field_path, method, self.state),
                    prefix_segments=annotate_segments(variant.prefix),
                    matching_segments=annotate_segments(variant.matching),
                    suffix_segments=annotate_segments(variant.suffix),
                )
        for binding in bindings:
            self.annotate_path_binding(binding, method)

        if method.returns_empty:
            return_type = "()"
        else:
            return_type = self.types.method_io_type_name(method.output_type_id, context)
        name = self.codec.service_name(service)
        annotation = MethodAnnotation(
            name=naming.to_snake(method.name),
            builder_name=to_pascal(method.name),
            doc_lines=self.doc_lines(method.documentation, method.id, service.scopes()),
            path_info=method.path_info,
            path_params=path_params(method),
            query_params=query_params(method, bindings[0] if bindings else None),
            body_accessor=body_accessor(method),
            service_name_to_pascal=to_pascal(name),
            service_name_to_camel=to_camel(name),
            service_name_to_snake=to_snake(name),
            system_parameters=list(self.options.system_parameters),
            return_type=return_type,
            has_veneer=self.options.has_veneer,
        )
        if annotation.name == "clone":
            # Clippy mistakes this for the standard trait method.
            annotation.attributes = ["#[allow(clippy::should_implement_trait)]"]
        info = method.operation_info
        if info is not None:
            info.codec = OperationInfoAnnotation(
                metadata_type=self.types.method_io_type_name(info.metadata_type_id, context),
                response_type=self.types.method_io_type_name(info.response_type_id, context),
                package_namespace=namespace,
            )
            annotation.operation_info = info.codec
        method.codec = annotation

    def annotate_path_binding(self, binding: PathBinding, method: Method) -> None:
        substitutions = [
            make_binding_substitution(segment.variable, method, self.state)
            for segment in binding.path_template
            if segment.variable is not None
        ]
        binding.codec = PathBindingAnnotation(
            path_fmt=path_fmt(binding.path_template),
            query_params=query_params(method, binding),
            substitutions=substitutions,
        )

    # Messages

    def annotate_message(self, message: Message) -> None:
        """Annotate ``message`` with its fields, oneofs and nested types."""
        for f in message.fields:
            self.annotate_field(f, message)
        for oneof in message.one_ofs:
            self.annotate_oneof(oneof, message)
        for enum in message.enums:
            self.annotate_enum(enum)
        for child in message.messages:
            self.annotate_message(child)
        basic_fields = [f for f in message.fields if not f.is_oneof]
        partition = partition_fields(basic_fields, self.state)
        qualified_name = self.types.message_name(message)
        message.codec = MessageAnnotation(
            name=to_pascal(message.name),
            module_name=to_snake(message.name),
            qualified_name=qualified_name,
            relative_name=self.types.relative_name(qualified_name),
            package_module_name=package_to_module_name(message.package),
            source_fqn=message.id.lstrip("."),
            doc_lines=self.doc_lines(message.documentation, message.id, message.scopes()),
            has_nested_types=has_nested_types(message),
            basic_fields=basic_fields,
            singular_fields=partition["singular"],
            repeated_fields=partition["repeated"],
            map_fields=partition["map"],
            has_synthetic_fields=any(f.synthetic for f in message.fields),
            attributes=self.codec.message_attributes(),
        )

    def annotate_oneof(self, oneof: OneOf, message: Message) -> None:
        scope = self.types.message_scope_name(message, "")
        enum_name = self.codec.oneof_enum_name(oneof)
        qualified_name = f"{scope}::{enum_name}"
        partition = partition_fields(oneof.fields, self.state)
        oneof.codec = OneOfAnnotation(
            field_name=to_snake(oneof.name),
            setter_name=to_snake_no_mangling(oneof.name),
            enum_name=enum_name,
            qualified_name=qualified_name,
            relative_name=self.types.relative_name(qualified_name),
            struct_qualified_name=self.types.message_name(message),
            field_type=qualified_name,
            doc_lines=self.doc_lines(oneof.documentation, oneof.id, message.scopes()),
            singular_fields=partition["singular"],
            repeated_fields=partition["repeated"],
            map_fields=partition["map"],
        )

    def annotate_field(self, f: Field, message: Message) -> None:
        types = self.types
        annotation = FieldAnnotation(
            field_name=to_snake(f.name),
            setter_name=to_snake_no_mangling(f.name),
            branch_name=to_pascal(f.name),
            fq_message_name=types.message_name(message),
            doc_lines=self.doc_lines(f.documentation, f.id, message.scopes()),
            field_type=types.field_type(f),
            primitive_field_type=types.field_type(f, primitive=True),
            add_query_parameter=add_query_parameter(f),
            attributes=field_attributes(f, self.state),
            is_boxed=f.recursive or (f.typez == Typez.MESSAGE and f.is_oneof),
            serde_as=primitive_serde_as(f.typez),
            skip_if_is_default=f.typez not in (Typez.STRING, Typez.BYTES),
            is_wkt_value=f.typez == Typez.MESSAGE and f.typez_id == ".google.protobuf.Value",
            is_wkt_null_value=(
                f.typez == Typez.ENUM and f.typez_id == ".google.protobuf.NullValue"
            ),
        )
        if f.typez == Typez.MESSAGE:
            entry = self.state.message_by_id.get(f.typez_id)
            if entry is not None and entry.is_map:
                key_field, value_field = map_entry_fields(entry, f)
                annotation.key_field = key_field
                annotation.key_type = types.map_type(key_field)
                annotation.value_field = value_field
                annotation.value_type = types.map_type(value_field)
                key = map_key_serde_as(key_field)
                value = map_value_serde_as(value_field)
                if key or value:
                    key = key or "serde_with::Same"
                    value = value or "serde_with::Same"
                    annotation.serde_as = f"std::collections::HashMap<{key}, {value}>"
            else:
                annotation.serde_as = message_field_serde_as(f)
        f.codec = annotation

    # Enums

    def annotate_enum(self, enum: Enum) -> None:
        for value in enum.values:
            self.annotate_enum_value(value, enum)
        # Some services have values that differ only in case, such as
        # `FULL` and `full`, and collide once mapped to Rust.
        seen: Dict[str, EnumValue] = {}
        unique = []
        for value in enum.values:
            name = enum_value_variant_name(value.name, enum.name)
            existing = seen.get(name)
            if existing is None:
                seen[name] = value
                unique.append(value)
            elif existing.number != value.number:
                logger.warning(
                    "conflicting names for enum values %s and %s in %s",
                    existing.name,
                    value.name,
                    enum.id,
                )
        qualified_name = self.types.enum_name(enum)
        enum.codec = EnumAnnotation(
            name=to_pascal(enum.name),
            module_name=to_snake(to_pascal(enum.name)),
            doc_lines=self.doc_lines(enum.documentation, enum.id, enum.scopes()),
            unique_names=unique,
            qualified_name=qualified_name,
            relative_name=self.types.relative_name(qualified_name),
        )

    def annotate_enum_value(self, value: EnumValue, enum: Enum) -> None:
        value.codec = EnumValueAnnotation(
            name=enum_value_name(value.name),
            variant_name=enum_value_variant_name(value.name, enum.name),
            enum_type=to_pascal(enum.name),
            doc_lines=self.doc_lines(value.documentation, value.id, value.scopes()),
        )


def _add_feature(annotation, feature: str) -> None:
    annotation.feature_gates.append(feature)
    annotation.feature_gates.sort()
    annotation.feature_gates_op = "any"
