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

"""Annotation objects attached by the Rust codec.

Templates read these by attribute name, so renaming a field here is a
breaking change for every template that uses it.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from clientgen.api.model import EnumValue, Field, Message, Method, PathInfo, Service
from clientgen.codecs.rust.options import SystemParameter
from clientgen.codecs.rust.paths import BindingSubstitution, PathArg
from clientgen.naming import to_kebab

WKT_EMPTY = "wkt::Empty"


class FeatureGated:
    """Mixin for annotations that may be gated behind cargo features."""

    feature_gates: List[str]

    @property
    def multi_feature_gates(self) -> bool:
        return len(self.feature_gates) > 1

    @property
    def single_feature_gate(self) -> bool:
        return len(self.feature_gates) == 1


@dataclass
class ModelAnnotation:
    package_name: str
    package_namespace: str
    package_version: str
    release_level: str
    required_packages: List[str]
    extern_packages: List[str]
    has_lros: bool
    copyright_year: str
    default_host: str
    default_host_short: str
    # Only services with at least one generated method.
    services: List[Service]
    name_to_lower: str
    not_for_publication: bool
    is_wkt_crate: bool
    disabled_rustdoc_warnings: List[str]
    default_system_parameters: List[SystemParameter]
    per_service_features: bool
    # True if some method could not be generated.
    incomplete: bool
    message_attributes: List[str] = field(default_factory=list)
    template_override: str = ""

    @property
    def has_services(self) -> bool:
        return len(self.services) > 0


@dataclass
class ServiceAnnotation:
    # ``IAM`` must become ``Iam``, but ``IAMService`` is kept.
    name: str
    # ``google.service.v1`` becomes ``google::service::v1``.
    package_module_name: str
    module_name: str
    doc_lines: List[str]
    methods: List[Method]
    default_host: str
    # Every metadata and response type used by the service's LROs.
    lro_types: List[Message]
    api_title: str
    per_service_features: bool
    has_veneer: bool
    incomplete: bool

    @property
    def has_lros(self) -> bool:
        return len(self.lro_types) > 0

    @property
    def feature_name(self) -> str:
        return to_kebab(self.module_name)


@dataclass
class MessageAnnotation(FeatureGated):
    name: str
    module_name: str
    # Includes the module path, or the crate name for external messages.
    qualified_name: str
    # The qualified name relative to the module path.
    relative_name: str
    package_module_name: str
    source_fqn: str
    doc_lines: List[str]
    has_nested_types: bool
    # All the fields except oneof members.
    basic_fields: List[Field]
    # The subsets of ``basic_fields`` that are singular, repeated and maps.
    singular_fields: List[Field]
    repeated_fields: List[Field]
    map_fields: List[Field]
    has_synthetic_fields: bool
    attributes: List[str] = field(default_factory=list)
    feature_gates: List[str] = field(default_factory=list)
    feature_gates_op: str = ""


@dataclass
class OneOfAnnotation(FeatureGated):
    # Possibly mangled with ``r#``.
    field_name: str
    # Never mangled.
    setter_name: str
    enum_name: str
    qualified_name: str
    relative_name: str
    # The struct containing the oneof.
    struct_qualified_name: str
    field_type: str
    doc_lines: List[str]
    singular_fields: List[Field]
    repeated_fields: List[Field]
    map_fields: List[Field]
    feature_gates: List[str] = field(default_factory=list)
    feature_gates_op: str = ""


@dataclass
class FieldAnnotation:
    field_name: str
    setter_name: str
    # Oneof members are also enum branches.
    branch_name: str
    fq_message_name: str
    doc_lines: List[str]
    field_type: str
    primitive_field_type: str
    add_query_parameter: str
    attributes: List[str]
    key_type: str = ""
    key_field: Optional[Field] = None
    value_type: str = ""
    value_field: Optional[Field] = None
    is_boxed: bool = False
    serde_as: str = ""
    skip_if_is_default: bool = False
    is_wkt_value: bool = False
    is_wkt_null_value: bool = False

    @property
    def skip_if_is_empty(self) -> bool:
        return not self.skip_if_is_default

    @property
    def requires_serde_as(self) -> bool:
        return self.serde_as != ""


@dataclass
class EnumAnnotation(FeatureGated):
    name: str
    module_name: str
    doc_lines: List[str]
    unique_names: List[EnumValue]
    qualified_name: str
    relative_name: str
    feature_gates: List[str] = field(default_factory=list)
    feature_gates_op: str = ""


@dataclass
class EnumValueAnnotation:
    name: str
    variant_name: str
    enum_type: str
    doc_lines: List[str]


@dataclass
class PathInfoAnnotation:
    method: str = ""
    method_to_lower: str = ""
    path_fmt: str = ""
    path_args: List[PathArg] = field(default_factory=list)
    has_path_args: bool = False
    has_body: bool = False
    # Computed over every binding; no bindings is not idempotent.
    is_idempotent: bool = False

    @property
    def requires_content_length(self) -> bool:
        """POST and PUT requests need a payload even without a body field."""
        return self.method in ("POST", "PUT")


@dataclass
class PathBindingAnnotation:
    # e.g. ``/v1/projects/{}/locations/{}``
    path_fmt: str
    query_params: List[Field]
    substitutions: List[BindingSubstitution]


@dataclass
class RoutingVariantAnnotation:
    first_variant: bool
    field_accessors: List[str]
    prefix_segments: List[str]
    matching_segments: List[str]
    suffix_segments: List[str]


@dataclass
class OperationInfoAnnotation:
    metadata_type: str
    response_type: str
    package_namespace: str

    @property
    def metadata_type_in_docs(self) -> str:
        return _strip_crate(self.metadata_type)

    @property
    def response_type_in_docs(self) -> str:
        return _strip_crate(self.response_type)

    @property
    def only_metadata_is_empty(self) -> bool:
        return self.metadata_type == WKT_EMPTY and self.response_type != WKT_EMPTY

    @property
    def only_response_is_empty(self) -> bool:
        return self.metadata_type != WKT_EMPTY and self.response_type == WKT_EMPTY

    @property
    def both_are_empty(self) -> bool:
        return self.metadata_type == WKT_EMPTY and self.response_type == WKT_EMPTY

    @property
    def none_are_empty(self) -> bool:
        return self.metadata_type != WKT_EMPTY and self.response_type != WKT_EMPTY


def _strip_crate(name: str) -> str:
    return name[len("crate::") :] if name.startswith("crate::") else name


@dataclass
class MethodAnnotation:
    name: str
    builder_name: str
    doc_lines: List[str]
    path_info: PathInfo
    path_params: List[Field]
    query_params: List[Field]
    body_accessor: str
    service_name_to_pascal: str
    service_name_to_camel: str
    service_name_to_snake: str
    system_parameters: List[SystemParameter]
    return_type: str
    has_veneer: bool
    attributes: List[str] = field(default_factory=list)
    operation_info: Optional[OperationInfoAnnotation] = None

    @property
    def is_idempotent(self) -> bool:
        return self.path_info.codec is not None and self.path_info.codec.is_idempotent
