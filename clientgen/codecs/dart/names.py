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

"""Dart identifiers."""

from clientgen import naming
from clientgen.api.model import Enum, EnumValue, Field, Message

# https://dart.dev/language/keywords
DART_KEYWORDS = frozenset(
    {
        "abstract",
        "as",
        "assert",
        "async",
        "await",
        "base",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "covariant",
        "default",
        "deferred",
        "do",
        "dynamic",
        "else",
        "enum",
        "export",
        "extends",
        "extension",
        "external",
        "factory",
        "false",
        "final",
        "finally",
        "for",
        "Function",
        "get",
        "hide",
        "if",
        "implements",
        "import",
        "in",
        "interface",
        "is",
        "late",
        "library",
        "mixin",
        "new",
        "null",
        "of",
        "on",
        "operator",
        "part",
        "required",
        "rethrow",
        "return",
        "sealed",
        "set",
        "show",
        "static",
        "super",
        "switch",
        "sync",
        "this",
        "throw",
        "true",
        "try",
        "type",
        "typedef",
        "var",
        "void",
        "when",
        "while",
        "with",
        "yield",
    }
)


def escape_keyword(symbol: str) -> str:
    if symbol in DART_KEYWORDS:
        return symbol + "_"
    return symbol


def to_pascal(symbol: str) -> str:
    return escape_keyword(naming.to_pascal(symbol))


def message_name(message: Message) -> str:
    """Nested messages are named ``Parent_Child``."""
    if message.parent is not None:
        return message_name(message.parent) + "_" + naming.to_pascal(message.name)
    return to_pascal(message.name)


def enum_name(enum: Enum) -> str:
    if enum.parent is not None:
        return message_name(enum.parent) + "_" + naming.to_pascal(enum.name)
    return to_pascal(enum.name)


def enum_value_name(value: EnumValue) -> str:
    name = value.name
    if name.upper() != name:
        name = naming.to_screaming_snake(name)
    enum = value.parent
    if enum is not None and enum.parent is not None:
        return message_name(enum.parent) + "_" + name
    return name


def field_name(f: Field) -> str:
    return escape_keyword(naming.to_lower_camel(f.name))
