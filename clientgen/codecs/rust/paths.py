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

"""Compiles HTTP path templates and routing variants into Rust snippets."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from clientgen.api.bindings import find_field
from clientgen.api.model import APIState, Message, Method, PathSegment, PathVariable
from clientgen.api.types import Typez
from clientgen.codecs.rust.names import to_snake

logger = logging.getLogger(__name__)

SINGLE_WILDCARD = "*"
MULTI_WILDCARD = "**"

IDEMPOTENT_VERBS = frozenset({"GET", "PUT", "DELETE"})


@dataclass
class PathArg:
    """A path variable and the Rust expression that reads it from ``req``."""

    name: str
    accessor: str
    check_for_empty: bool = False


def is_idempotent(verbs: Sequence[str]) -> bool:
    """Return True if every verb is idempotent; no verbs at all is not."""
    if not verbs:
        return False
    return all(verb in IDEMPOTENT_VERBS for verb in verbs)


def path_fmt(template: List[PathSegment]) -> str:
    """Return the format string for a path template, e.g. ``/v1/{}:cancel``."""
    result = []
    for segment in template:
        if segment.literal is not None:
            result.append("/" + segment.literal)
        elif segment.variable is not None:
            result.append("/{}")
        elif segment.verb is not None:
            result.append(":" + segment.verb)
    return "".join(result)


def _deref_field(
    name: str, message: Optional[Message], state: APIState
) -> Tuple[str, Optional[Message]]:
    target = find_field(message, name)
    if target is None:
        return "", None
    next_message = None
    if target.typez == Typez.MESSAGE:
        next_message = state.message_by_id.get(target.typez_id)
        if next_message is None:
            logger.error("cannot find next message for field %s in %s", name, message.id)
    if target.optional:
        accessor = f'.{name}.as_ref().ok_or_else(|| gaxi::path_parameter::missing("{name}"))?'
    else:
        accessor = f".{name}"
    return accessor, next_message


def deref_field_path(field_path: str, message: Optional[Message], state: APIState) -> str:
    """Return the accessor for a dotted field path starting at ``message``."""
    expression = []
    current = message
    for name in field_path.split("."):
        if current is None:
            logger.error("cannot build full expression for %s", field_path)
            break
        accessor, current = _deref_field(name, current, state)
        expression.append(accessor)
    return "".join(expression)


def leaf_field_typez(field_path: str, message: Optional[Message], state: APIState) -> Typez:
    typez = Typez.UNDEFINED
    current = message
    for name in field_path.split("."):
        if current is None:
            logger.error("cannot find leaf field type for %s", field_path)
            return typez
        target = find_field(current, name)
        if target is None:
            continue
        typez = target.typez
        if target.typez == Typez.MESSAGE:
            current = state.message_by_id.get(target.typez_id)
    return typez


def path_args(method: Method, state: APIState) -> List[PathArg]:
    """Return one argument per variable in the first binding of ``method``."""
    message = state.message_by_id.get(method.input_type_id)
    if message is None:
        logger.error("cannot find input message for method %s", method.id)
        return []
    args = []
    for segment in method.path_info.bindings[0].path_template:
        if segment.variable is None:
            continue
        name = ".".join(segment.variable.field_path)
        args.append(
            PathArg(
                name=name,
                accessor=deref_field_path(name, message, state),
                check_for_empty=leaf_field_typez(name, message, state) == Typez.STRING,
            )
        )
    return args


def make_accessors(field_path: List[str], method: Method, state: APIState) -> List[str]:
    """Return the ``Option`` combinators that walk ``field_path`` from the request."""
    accessors = []
    message = method.input_type
    for name in field_path:
        target = find_field(message, name)
        if target is None:
            logger.error(
                "invalid routing/path field %s for request message %s",
                name,
                message.id if message is not None else method.input_type_id,
            )
            continue
        if target.optional:
            accessors.append(f".and_then(|m| m.{name}.as_ref())")
        else:
            accessors.append(f".map(|m| &m.{name})")
        if target.typez == Typez.STRING:
            accessors.append(".map(|s| s.as_str())")
        if target.typez == Typez.MESSAGE:
            message = state.message_by_id.get(target.typez_id, message)
    return accessors


def annotate_segments(segments: List[str]) -> List[str]:
    """Convert template segments into ``Segment::...`` expressions.

    Consecutive literals are merged into one ``Segment::Literal``.
    """
    result = []
    buffer = []

    def flush():
        if buffer:
            result.append(f'Segment::Literal("{"".join(buffer)}")')
            buffer.clear()

    for index, segment in enumerate(segments):
        if segment == MULTI_WILDCARD:
            flush()
            if len(segments) != 1 and index + 1 == len(segments):
                result.append("Segment::TrailingMultiWildcard")
            else:
                result.append("Segment::MultiWildcard")
        elif segment == SINGLE_WILDCARD:
            if index != 0:
                buffer.append("/")
            flush()
            result.append("Segment::SingleWildcard")
        else:
            if index != 0:
                buffer.append("/")
            buffer.append(segment)
    flush()
    return result


@dataclass
class BindingSubstitution:
    """A path variable matched against its template at request time."""

    # Always an ``Option<&T>`` expression, starting from ``Some(&req)``.
    field_accessor: str
    # Dotted for nested fields, e.g. ``message_field.nested_field``.
    field_name: str
    template: List[str] = field(default_factory=list)

    @property
    def template_as_array(self) -> str:
        return "&[" + ", ".join(annotate_segments(self.template)) + "]"

    @property
    def template_as_string(self) -> str:
        return "/".join(self.template)


def make_binding_substitution(
    variable: PathVariable, method: Method, state: APIState
) -> BindingSubstitution:
    return BindingSubstitution(
        field_accessor="Some(&req)" + "".join(make_accessors(variable.field_path, method, state)),
        field_name=".".join(variable.field_path),
        template=list(variable.segments),
    )


def body_accessor(method: Method) -> str:
    body = method.path_info.body_field_path
    if body == "*":
        return ""
    return "." + to_snake(body)
