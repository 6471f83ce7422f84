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

"""Rust identifiers: casing, keyword escaping and enum variant names."""

import re

from clientgen import naming

# Strict, 2018+ and reserved keywords.
RUST_KEYWORDS = frozenset(
    {
        "as",
        "break",
        "const",
        "continue",
        "crate",
        "else",
        "enum",
        "extern",
        "false",
        "fn",
        "for",
        "if",
        "impl",
        "in",
        "let",
        "loop",
        "match",
        "mod",
        "move",
        "mut",
        "pub",
        "ref",
        "return",
        "self",
        "Self",
        "static",
        "struct",
        "super",
        "trait",
        "true",
        "type",
        "unsafe",
        "use",
        "where",
        "while",
        "async",
        "await",
        "dyn",
        "abstract",
        "become",
        "box",
        "do",
        "final",
        "macro",
        "override",
        "priv",
        "typeof",
        "unsized",
        "virtual",
        "yield",
        "try",
    }
)

_DIGIT_SEPARATOR = re.compile(r"_([0-9])")


def escape_keyword(symbol: str) -> str:
    if symbol in RUST_KEYWORDS:
        return "r#" + symbol
    return symbol


def to_snake_no_mangling(symbol: str) -> str:
    if symbol.lower() == symbol:
        return symbol
    return naming.to_snake(symbol)


def to_snake(symbol: str) -> str:
    """Convert to ``snake_case``, escaping keywords such as ``true``."""
    return escape_keyword(to_snake_no_mangling(symbol))


def to_pascal(symbol: str) -> str:
    """Convert to ``PascalCase``.

    All-uppercase names such as ``IAM`` become ``Iam``. Names that already
    start with an uppercase letter and have no underscores are kept, so
    ``IAMPolicy`` stays as is.
    """
    if symbol == "":
        return ""
    if symbol.upper() == symbol:
        return escape_keyword(naming.to_pascal(symbol))
    if symbol[0].isupper() and "_" not in symbol:
        return escape_keyword(symbol)
    return escape_keyword(naming.to_pascal(symbol))


def to_camel(symbol: str) -> str:
    return escape_keyword(naming.to_lower_camel(symbol))


def to_screaming_snake(symbol: str) -> str:
    if symbol.upper() == symbol:
        return symbol
    return naming.to_screaming_snake(symbol)


def package_to_module_name(package: str) -> str:
    """Map ``google.foo.v1`` to ``google::foo::v1``."""
    return "::".join(to_snake(component) for component in package.split("."))


def enum_value_name(name: str) -> str:
    return escape_keyword(to_screaming_snake(name))


def _strip_prefix(name: str, prefix: str):
    if not name.startswith(prefix):
        return None
    trimmed = name[len(prefix) :]
    if trimmed and trimmed[0].isalpha():
        return trimmed
    return None


def enum_value_variant_name(name: str, enum_name: str) -> str:
    """Return the variant name for an enum value.

    Values conventionally repeat the enum name as a prefix, as in
    ``MY_ENUM_RED``; the prefix is dropped when what remains starts with a
    letter. Names with digits are tried twice, since ``Ipv6`` maps to
    ``IPV_6`` while the values usually spell it ``IPV6``.
    """
    prefix = to_screaming_snake(enum_name) + "_"
    trimmed = _strip_prefix(name, prefix)
    if trimmed is None:
        trimmed = _strip_prefix(name, _DIGIT_SEPARATOR.sub(r"\1", prefix))
    return to_pascal(trimmed if trimmed is not None else name)
