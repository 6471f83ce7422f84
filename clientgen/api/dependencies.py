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

"""Find the model elements required by a set of IDs."""

from dataclasses import dataclass, field
from typing import Iterable, List, Set

from clientgen.api.model import API, Message
from clientgen.api.types import Typez
from clientgen.errors import DependencyError


@dataclass
class ServiceDependencies:
    """Messages and enums required by one service, sorted by ID."""

    messages: List[str] = field(default_factory=list)
    enums: List[str] = field(default_factory=list)


def _field_type_ids(message: Message):
    for f in message.fields:
        if f.typez in (Typez.ENUM, Typez.MESSAGE) and f.typez_id:
            yield f.typez_id


def find_dependencies(model: API, ids: Iterable[str]) -> Set[str]:
    """Return the IDs of every element required by ``ids``.

    The first pass fans out from services to their methods, from methods to
    their request, response and LRO types, and from messages to their field
    types. The second pass adds the parents of everything found: a method's
    service, and the enclosing message of nested messages and enums. Sibling
    methods of a selected method are not included.

    Raises:
        DependencyError: if an ID is not present in the model state.
    """
    state = model.state
    included: Set[str] = set()
    candidates: List[str] = []

    def add(type_id: str):
        if type_id and type_id not in included:
            included.add(type_id)
            candidates.append(type_id)

    for type_id in ids:
        add(type_id)

    while candidates:
        type_id = candidates.pop()
        service = state.service_by_id.get(type_id)
        if service is not None:
            for method in service.methods:
                add(method.id)
            continue
        method = state.method_by_id.get(type_id)
        if method is not None:
            add(method.input_type_id)
            add(method.output_type_id)
            if method.operation_info is not None:
                add(method.operation_info.metadata_type_id)
                add(method.operation_info.response_type_id)
            continue
        message = state.message_by_id.get(type_id)
        if message is not None:
            for target in _field_type_ids(message):
                add(target)
            continue
        if type_id in state.enum_by_id:
            continue
        raise DependencyError(f"dependency traversal reached unknown ID={type_id!r}")

    candidates = sorted(included)
    while candidates:
        type_id = candidates.pop()
        method = state.method_by_id.get(type_id)
        if method is not None:
            if method.service is not None:
                add(method.service.id)
            continue
        message = state.message_by_id.get(type_id)
        if message is not None:
            if message.parent is not None:
                add(message.parent.id)
            # A message always carries all of its fields
            for target in _field_type_ids(message):
                add(target)
            continue
        enum = state.enum_by_id.get(type_id)
        if enum is not None:
            if enum.parent is not None:
                add(enum.parent.id)
            continue
        if type_id in state.service_by_id:
            continue
        raise DependencyError(f"dependency traversal reached unknown ID={type_id!r}")

    return included


def find_service_dependencies(model: API, service_id: str) -> ServiceDependencies:
    """Return the messages and enums used by a single service."""
    found = find_dependencies(model, [service_id])
    state = model.state
    return ServiceDependencies(
        messages=sorted(i for i in found if i in state.message_by_id),
        enums=sorted(i for i in found if i in state.enum_by_id),
    )
