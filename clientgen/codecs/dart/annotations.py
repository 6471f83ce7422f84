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

"""Annotation objects attached by the Dart codec."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ModelAnnotation:
    package_name: str
    package_version: str
    main_file_name: str
    source_package_name: str
    has_services: bool
    copyright_year: str
    default_host: str
    doc_lines: List[str]
    imports: List[str]
    part_file_reference: str
    package_dependencies: List["PackageDependency"]
    dev_dependencies: List[str]
    not_for_publication: bool

    @property
    def has_dependencies(self) -> bool:
        return len(self.package_dependencies) > 0

    @property
    def has_dev_dependencies(self) -> bool:
        return len(self.dev_dependencies) > 0


@dataclass(frozen=True)
class PackageDependency:
    name: str
    constraint: str = "any"


@dataclass
class ServiceAnnotation:
    name: str
    doc_lines: List[str]
    # Only the methods with a generated client method.
    methods: List["MethodAnnotation"]
    field_name: str
    struct_name: str
    default_host: str


@dataclass
class MethodAnnotation:
    name: str
    doc_lines: List[str]
    request_method: str
    request_type: str
    response_type: str
    has_body: bool
    returns_value: bool
    # The Dart expression for the request body, e.g. ``request.instance``.
    body_message_name: str
    path_fmt: str
    path_params: List[str]
    query_params: List["QueryParameter"]
    is_idempotent: bool = False


@dataclass
class QueryParameter:
    name: str
    json_name: str
    # Expression producing the query string value(s).
    value: str
    nullable: bool = True


@dataclass
class MessageAnnotation:
    name: str
    qualified_name: str
    doc_lines: List[str]
    has_fields: bool
    has_custom_encoding: bool
    to_string_lines: List[str] = field(default_factory=list)


@dataclass
class OneOfAnnotation:
    name: str
    doc_lines: List[str]


@dataclass
class FieldAnnotation:
    name: str
    type: str
    doc_lines: List[str]
    required: bool
    nullable: bool
    from_json: str
    to_json: str


@dataclass
class EnumAnnotation:
    name: str
    doc_lines: List[str]


@dataclass
class EnumValueAnnotation:
    name: str
    doc_lines: List[str]
