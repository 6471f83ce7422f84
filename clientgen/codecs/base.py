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

"""Base class for language codecs."""

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional

from clientgen.api.model import API
from clientgen.errors import ConfigError

_TRUE_VALUES = frozenset({"1", "t", "T", "true", "TRUE", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "false", "FALSE", "False"})


def parse_bool(key: str, value: str) -> bool:
    """Parse a boolean option value.

    Raises:
        ConfigError: naming ``key`` and ``value`` if the value is not boolean.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(key, value, f"cannot convert `{key}` value {value!r} to boolean")


def split_list(value: str) -> List[str]:
    """Split a comma separated option; the empty string yields no items."""
    if value == "":
        return []
    return value.split(",")


class BaseCodec(ABC):
    """Base class for language specific annotation codecs.

    A codec is created from the flat ``key=value`` option map of one run. The
    options are parsed eagerly, so configuration errors surface before any
    node is annotated. ``annotate`` may be called any number of times; all
    state that accumulates during a run lives in a per-call context.
    """

    # Override in subclasses
    language_name: str = "base"
    keywords: FrozenSet[str] = frozenset()

    def __init__(self, options: Optional[Dict[str, str]] = None, protobuf_source: bool = True):
        self.raw_options = dict(options or {})
        self.protobuf_source = protobuf_source
        self.options = self.parse_options(self.raw_options)

    @abstractmethod
    def parse_options(self, options: Dict[str, str]) -> Any:
        """Parse the raw option map into this codec's typed options."""

    @abstractmethod
    def annotate(self, model: API) -> Any:
        """Annotate every node of ``model`` and return the model annotation."""

    @abstractmethod
    def escape_keyword(self, symbol: str) -> str:
        """Return ``symbol`` escaped if it is a reserved word."""

    def is_keyword(self, symbol: str) -> bool:
        return symbol in self.keywords
