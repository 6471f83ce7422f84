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

"""Load an API model from its JSON document form.

The document uses camelCase keys mirroring the model attributes, for example::

    {
      "name": "secretmanager",
      "packageName": "google.cloud.secretmanager.v1",
      "messages": [{"name": "Secret", "id": ".google.cloud.secretmanager.v1.Secret",
                    "fields": [{"name": "name", "type": "string"}]}],
      "services": [{"name": "SecretManagerService", "methods": [
          {"name": "GetSecret", "inputTypeId": "...", "outputTypeId": "...",
           "pathInfo": {"bindings": [{"verb": "GET",
                                      "path": "/v1/{name=projects/*/secrets/*}"}]}}]}]
    }

Element IDs default to ``.<package>.<Name>`` when omitted.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from clientgen import naming
from clientgen.api.bindings import field_is_map
from clientgen.api.model import (
    API,
    Enum,
    EnumValue,
    Field,
    Message,
    Method,
    OneOf,
    OperationInfo,
    PathBinding,
    PathInfo,
    PathSegment,
    RoutingInfo,
    RoutingInfoVariant,
    Service,
)
from clientgen.api.state import cross_reference
from clientgen.api.types import Typez
from clientgen.errors import ModelError


def _split_segments(body: str) -> List[str]:
    parts = []
    depth = 0
    current = []
    for c in body:
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
        if c == "/" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(c)
    parts.append("".join(current))
    return parts


def parse_path_template(template: str) -> List[PathSegment]:
    """Parse an HTTP rule path such as ``/v1/{name=projects/*}:cancel``."""
    if not template.startswith("/"):
        raise ModelError(f"path template must start with '/': {template!r}")
    body = template[1:]
    verb = None
    colon = body.rfind(":")
    if colon > body.rfind("}"):
        body, verb = body[:colon], body[colon + 1 :]
    segments = []
    for part in _split_segments(body):
        if not part:
            raise ModelError(f"empty segment in path template: {template!r}")
        if part.startswith("{"):
            if not part.endswith("}"):
                raise ModelError(f"unterminated variable in path template: {template!r}")
            name, _, pattern = part[1:-1].partition("=")
            variable_segments = pattern.split("/") if pattern else ["*"]
            segments.append(
                PathSegment.of_variable(*name.split("."), segments=variable_segments)
            )
        else:
            segments.append(PathSegment.of_literal(part))
    if verb:
        segments.append(PathSegment.of_verb(verb))
    return segments


class ModelLoader:
    """Builds model nodes from a parsed JSON document."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.package = document.get("packageName", "")

    def _require(self, node: Dict[str, Any], key: str, kind: str) -> Any:
        if key not in node:
            raise ModelError(f"{kind} is missing required key {key!r}: {node!r}")
        return node[key]

    def _default_id(self, node: Dict[str, Any], name: str, scope: str) -> str:
        return node.get("id") or f"{scope}.{name}"

    def load(self) -> API:
        doc = self.document
        scope = f".{self.package}" if self.package else ""
        model = API(
            name=self._require(doc, "name", "model"),
            package_name=self.package,
            title=doc.get("title", ""),
            description=doc.get("description", ""),
            messages=[self._message(m, scope) for m in doc.get("messages", [])],
            enums=[self._enum(e, scope) for e in doc.get("enums", [])],
            services=[self._service(s, scope) for s in doc.get("services", [])],
        )
        cross_reference(model)
        # Map fields are marked repeated in descriptors; the map kind wins.
        for message in model.state.message_by_id.values():
            for f in message.fields:
                if field_is_map(f, model.state):
                    f.repeated = False
        return model

    def _field(self, node: Dict[str, Any], scope: str) -> Field:
        name = self._require(node, "name", "field")
        try:
            typez = Typez.from_name(node.get("type", "string"))
        except ValueError as e:
            raise ModelError(f"field {name!r}: {e}") from None
        return Field(
            name=name,
            id=self._default_id(node, name, scope),
            typez=typez,
            typez_id=node.get("typeId", ""),
            json_name=node.get("jsonName") or naming.to_lower_camel(name),
            documentation=node.get("documentation", ""),
            optional=node.get("optional", False),
            repeated=node.get("repeated", False),
            synthetic=node.get("synthetic", False),
        )

    def _message(self, node: Dict[str, Any], scope: str) -> Message:
        name = self._require(node, "name", "message")
        message_id = self._default_id(node, name, scope)
        message = Message(
            name=name,
            id=message_id,
            documentation=node.get("documentation", ""),
            package=node.get("package", self.package),
            is_map=node.get("isMap", False),
        )
        message.fields = [self._field(f, message_id) for f in node.get("fields", [])]
        by_name = {f.name: f for f in message.fields}
        for group in node.get("oneOfs", []):
            group_name = self._require(group, "name", "oneof")
            members = []
            for member in group.get("fields", []):
                if member not in by_name:
                    raise ModelError(
                        f"oneof {group_name!r} in {message_id} names unknown field {member!r}"
                    )
                members.append(by_name[member])
            message.one_ofs.append(
                OneOf(
                    name=group_name,
                    id=self._default_id(group, group_name, message_id),
                    documentation=group.get("documentation", ""),
                    fields=members,
                )
            )
        message.messages = [self._message(m, message_id) for m in node.get("messages", [])]
        message.enums = [self._enum(e, message_id) for e in node.get("enums", [])]
        return message

    def _enum(self, node: Dict[str, Any], scope: str) -> Enum:
        name = self._require(node, "name", "enum")
        enum_id = self._default_id(node, name, scope)
        values = []
        for value in node.get("values", []):
            value_name = self._require(value, "name", "enum value")
            values.append(
                EnumValue(
                    name=value_name,
                    number=value.get("number", 0),
                    id=self._default_id(value, value_name, enum_id),
                    documentation=value.get("documentation", ""),
                )
            )
        return Enum(
            name=name,
            id=enum_id,
            documentation=node.get("documentation", ""),
            package=node.get("package", self.package),
            values=values,
        )

    def _path_info(self, node: Optional[Dict[str, Any]]) -> PathInfo:
        if not node:
            return PathInfo()
        bindings = []
        for binding in node.get("bindings", []):
            query = binding.get("queryParameters")
            bindings.append(
                PathBinding(
                    verb=self._require(binding, "verb", "binding").upper(),
                    path_template=parse_path_template(
                        self._require(binding, "path", "binding")
                    ),
                    query_parameters=set(query) if query is not None else None,
                )
            )
        return PathInfo(bindings=bindings, body_field_path=node.get("bodyFieldPath", ""))

    def _routing(self, nodes: List[Dict[str, Any]]) -> List[RoutingInfo]:
        result = []
        for node in nodes:
            variants = [
                RoutingInfoVariant(
                    field_path=self._require(v, "fieldPath", "routing variant"),
                    prefix=v.get("prefix", []),
                    matching=v.get("matching", ["**"]),
                    suffix=v.get("suffix", []),
                )
                for v in node.get("variants", [])
            ]
            result.append(RoutingInfo(name=self._require(node, "name", "routing"), variants=variants))
        return result

    def _method(self, node: Dict[str, Any], scope: str) -> Method:
        name = self._require(node, "name", "method")
        operation = node.get("operationInfo")
        return Method(
            name=name,
            id=self._default_id(node, name, scope),
            documentation=node.get("documentation", ""),
            input_type_id=node.get("inputTypeId", ""),
            output_type_id=node.get("outputTypeId", ""),
            returns_empty=node.get("returnsEmpty", False),
            path_info=self._path_info(node.get("pathInfo")),
            client_side_streaming=node.get("clientSideStreaming", False),
            server_side_streaming=node.get("serverSideStreaming", False),
            operation_info=(
                OperationInfo(
                    metadata_type_id=self._require(operation, "metadataTypeId", "operation"),
                    response_type_id=self._require(operation, "responseTypeId", "operation"),
                )
                if operation
                else None
            ),
            routing=self._routing(node.get("routing", [])),
        )

    def _service(self, node: Dict[str, Any], scope: str) -> Service:
        name = self._require(node, "name", "service")
        service_id = self._default_id(node, name, scope)
        return Service(
            name=name,
            id=service_id,
            documentation=node.get("documentation", ""),
            package=node.get("package", self.package),
            default_host=node.get("defaultHost", ""),
            methods=[self._method(m, service_id) for m in node.get("methods", [])],
        )


def load_model(path: Path) -> API:
    """Read and cross-reference a model document from ``path``."""
    try:
        document = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise ModelError(f"{path}: invalid JSON: {e}") from None
    return ModelLoader(document).load()
