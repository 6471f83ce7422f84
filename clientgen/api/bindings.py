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

"""Helpers shared by codecs to inspect methods and messages."""

from typing import List, Optional, Set

from clientgen.api.model import APIState, Field, Message, Method, PathBinding
from clientgen.api.types import Typez


def path_variable_names(binding: PathBinding) -> List[str]:
    """Return the dotted field paths of every variable in a binding."""
    return [
        ".".join(segment.variable.field_path)
        for segment in binding.path_template
        if segment.variable is not None
    ]


def path_params(method: Method) -> List[Field]:
    """Return the request fields bound to path variables of the first binding.

    Only the first hop of nested variables is reported, since that is the
    field of the request message itself.
    """
    if method.input_type is None or not method.path_info.bindings:
        return []
    names = {
        segment.variable.field_path[0]
        for segment in method.path_info.bindings[0].path_template
        if segment.variable is not None and segment.variable.field_path
    }
    return [f for f in method.input_type.fields if f.name in names]


def _derived_query_names(method: Method, binding: PathBinding) -> Set[str]:
    body = method.path_info.body_field_path
    if body == "*" or method.input_type is None:
        return set()
    excluded = {name.split(".")[0] for name in path_variable_names(binding)}
    if body:
        excluded.add(body)
    return {f.name for f in method.input_type.fields if f.name not in excluded}


def query_params(method: Method, binding: Optional[PathBinding]) -> List[Field]:
    """Return the request fields sent as query parameters for ``binding``.

    When the binding carries no explicit query parameter set, every request
    field that is neither a path variable nor the body is a query parameter.
    """
    if binding is None or method.input_type is None:
        return []
    names = binding.query_parameters
    if names is None:
        names = _derived_query_names(method, binding)
    return [f for f in method.input_type.fields if f.name in names]


def field_is_map(field: Field, state: APIState) -> bool:
    if field.typez != Typez.MESSAGE:
        return False
    message = state.message_by_id.get(field.typez_id)
    return message is not None and message.is_map


def has_nested_types(message: Message) -> bool:
    """Return True if the message defines enums, oneofs, or non-map messages."""
    if message.enums or message.one_ofs:
        return True
    return any(not child.is_map for child in message.messages)


def find_field(message: Optional[Message], name: str) -> Optional[Field]:
    if message is None:
        return None
    for f in message.fields:
        if f.name == name:
            return f
    return None
