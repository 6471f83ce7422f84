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

"""Structural validation of an API model before annotation."""

from dataclasses import dataclass
from typing import List, Optional

from clientgen.api.model import API, Enum, Message
from clientgen.api.types import Typez

# Codecs register these on demand, so references to them are not errors.
WELL_KNOWN_PREFIX = ".google.protobuf."


@dataclass
class ValidationIssue:
    """Validation issue with the ID of the offending element."""

    message: str
    location: Optional[str]
    severity: str

    def __str__(self) -> str:
        if not self.location:
            return self.message
        return f"{self.location}: {self.message}"


class ModelValidator:
    """Validates a cross-referenced API model."""

    def __init__(self, model: API):
        self.model = model
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

    def validate(self) -> bool:
        self._check_messages()
        self._check_enums()
        self._check_methods()
        return not self.errors

    def _error(self, message: str, location: Optional[str]) -> None:
        self.errors.append(ValidationIssue(message, location, "error"))

    def _warn(self, message: str, location: Optional[str]) -> None:
        self.warnings.append(ValidationIssue(message, location, "warning"))

    def _check_messages(self) -> None:
        for message in self.model.state.message_by_id.values():
            self._check_message(message)

    def _check_message(self, message: Message) -> None:
        nested_names = {}
        for nested in list(message.messages) + list(message.enums):
            if nested.name in nested_names:
                self._error(f"Duplicate nested type name: {nested.name}", message.id)
            nested_names.setdefault(nested.name, nested)

        field_names = {}
        for f in message.fields:
            if f.name in field_names:
                self._error(f"Duplicate field name: {f.name}", message.id)
            field_names.setdefault(f.name, f)
            if f.typez in (Typez.MESSAGE, Typez.ENUM):
                self._check_reference(f.typez, f.typez_id, f.id or message.id)

        if message.is_map:
            names = [f.name for f in message.fields]
            if names != ["key", "value"]:
                self._error(
                    f"Map entry must have exactly the fields key and value, got {names}",
                    message.id,
                )

        for group in message.one_ofs:
            for f in group.fields:
                if not any(f is candidate for candidate in message.fields):
                    self._error(
                        f"Oneof {group.name} member {f.name} is not a field of the message",
                        message.id,
                    )

    def _check_reference(self, typez: Typez, type_id: str, location: str) -> None:
        if type_id.startswith(WELL_KNOWN_PREFIX):
            return
        state = self.model.state
        index = state.message_by_id if typez == Typez.MESSAGE else state.enum_by_id
        if type_id not in index:
            self._error(f"Unknown type reference: {type_id!r}", location)

    def _check_enums(self) -> None:
        for enum in self.model.state.enum_by_id.values():
            self._check_enum(enum)

    def _check_enum(self, enum: Enum) -> None:
        if not enum.values:
            self._warn(f"Enum {enum.name} has no values", enum.id)

    def _check_methods(self) -> None:
        for method in self.model.state.method_by_id.values():
            for type_id in (method.input_type_id, method.output_type_id):
                if type_id:
                    self._check_reference(Typez.MESSAGE, type_id, method.id)
            if method.operation_info is not None:
                info = method.operation_info
                for type_id in (info.metadata_type_id, info.response_type_id):
                    self._check_reference(Typez.MESSAGE, type_id, method.id)
