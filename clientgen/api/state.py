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

"""Build the cross-reference indexes of a model."""

from typing import List, Optional

from clientgen.api.model import API, APIState, Enum, Message, Service


def new_api(
    name: str,
    package_name: str,
    services: Optional[List[Service]] = None,
    messages: Optional[List[Message]] = None,
    enums: Optional[List[Enum]] = None,
    title: str = "",
) -> API:
    """Create a model and index it in one step."""
    model = API(
        name=name,
        package_name=package_name,
        title=title,
        services=list(services or []),
        messages=list(messages or []),
        enums=list(enums or []),
    )
    cross_reference(model)
    return model


def cross_reference(model: API) -> APIState:
    """Index every node by ID and fill in the back references.

    Safe to call more than once; existing index entries that are not part of
    the model tree (for example registered well-known types) are kept.
    """
    state = model.state
    for message in model.messages:
        _index_message(state, message, None)
    for enum in model.enums:
        _index_enum(state, enum, None)
    for service in model.services:
        state.service_by_id[service.id] = service
        for method in service.methods:
            method.service = service
            state.method_by_id[method.id] = method
    for method in state.method_by_id.values():
        if method.input_type_id:
            method.input_type = state.message_by_id.get(method.input_type_id)
        if method.output_type_id:
            method.output_type = state.message_by_id.get(method.output_type_id)
    return state


def _index_message(state: APIState, message: Message, parent: Optional[Message]):
    message.parent = parent
    state.message_by_id[message.id] = message
    for field in message.fields:
        field.parent = message
        field.group = None
    for group in message.one_ofs:
        for field in group.fields:
            field.group = group
            field.is_oneof = True
    for child in message.messages:
        _index_message(state, child, message)
    for enum in message.enums:
        _index_enum(state, enum, message)


def _index_enum(state: APIState, enum: Enum, parent: Optional[Message]):
    enum.parent = parent
    state.enum_by_id[enum.id] = enum
    for value in enum.values:
        value.parent = enum
