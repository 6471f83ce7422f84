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

"""Label fields that participate in a message type cycle."""

from typing import Dict, Set

from clientgen.api.model import API, Message
from clientgen.api.types import Typez


def _message_edges(message: Message):
    for field in message.fields:
        if field.typez == Typez.MESSAGE and field.typez_id:
            yield field.typez_id


def _reachable(model: API, start_id: str, cache: Dict[str, Set[str]]) -> Set[str]:
    """Return every message ID reachable from ``start_id``, itself included."""
    if start_id in cache:
        return cache[start_id]
    seen = {start_id}
    stack = [start_id]
    while stack:
        message = model.state.message_by_id.get(stack.pop())
        if message is None:
            continue
        for target in _message_edges(message):
            if target not in seen:
                seen.add(target)
                stack.append(target)
    cache[start_id] = seen
    return seen


def label_recursive_fields(model: API) -> None:
    """Set ``Field.recursive`` on every indexed message.

    A field is recursive iff its containing message is reachable from the
    field's message type. Map entries are ordinary messages here, so a map
    whose value type leads back to the container is labeled too. The labels
    are recomputed from scratch on every call.
    """
    cache: Dict[str, Set[str]] = {}
    for message in model.state.message_by_id.values():
        for field in message.fields:
            field.recursive = False
            if field.typez != Typez.MESSAGE or not field.typez_id:
                continue
            field.recursive = message.id in _reachable(model, field.typez_id, cache)
