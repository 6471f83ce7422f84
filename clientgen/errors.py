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


class ClientGenError(Exception):
    """Base class for all annotation engine errors."""


class ConfigError(ClientGenError):
    """A codec option could not be parsed.

    The message always quotes the offending key and its raw value.
    """

    def __init__(self, key: str, value: str, reason: str):
        super().__init__(f"invalid value for option `{key}`={value!r}: {reason}")
        self.key = key
        self.value = value
        self.reason = reason


class TypeLookupError(ClientGenError):
    """A type reference does not exist in the model state."""

    def __init__(self, type_id: str, context: str = ""):
        message = f"unable to lookup type {type_id!r}"
        if context:
            message += f" for {context}"
        super().__init__(message)
        self.type_id = type_id
        self.context = context


class DependencyError(ClientGenError):
    pass


class ModelError(ClientGenError):
    """The input model is structurally invalid."""
