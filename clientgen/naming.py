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

"""Language neutral casing primitives.

Word boundaries are found at case changes and at letter/digit transitions.
Runs of capitals are treated as a single word, so ``JSONData`` splits into
``JSON`` and ``Data``. The separators ``_``, ``-``, ``.`` and space are
replaced by the target delimiter.
"""

_SEPARATORS = " _-."


def _is_upper(c: str) -> bool:
    return "A" <= c <= "Z"


def _is_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def to_delimited(name: str, delimiter: str, screaming: bool = False) -> str:
    """Split ``name`` into words and join them with ``delimiter``.

    Examples:
        to_delimited("IAMPolicy", "_") -> "iam_policy"
        to_delimited("Ipv6", "_") -> "ipv_6"
        to_delimited("fooBar", "-", screaming=True) -> "FOO-BAR"
    """
    name = name.strip()
    result = []
    for i, c in enumerate(name):
        is_cap = _is_upper(c)
        is_low = _is_lower(c)
        if is_low and screaming:
            c = c.upper()
        elif is_cap and not screaming:
            c = c.lower()

        if i + 1 < len(name):
            nxt = name[i + 1]
            is_num = _is_digit(c)
            next_cap = _is_upper(nxt)
            next_low = _is_lower(nxt)
            next_num = _is_digit(nxt)
            if (
                (is_cap and (next_low or next_num))
                or (is_low and (next_cap or next_num))
                or (is_num and (next_cap or next_low))
            ):
                # An acronym ends one character before the next word starts
                if is_cap and next_low and i > 0 and _is_upper(name[i - 1]):
                    result.append(delimiter)
                result.append(c)
                if is_low or is_num or next_num:
                    result.append(delimiter)
                continue

        if c in _SEPARATORS:
            result.append(delimiter)
        else:
            result.append(c)
    return "".join(result)


def to_snake(name: str) -> str:
    """Convert a name to snake_case."""
    return to_delimited(name, "_")


def to_screaming_snake(name: str) -> str:
    """Convert a name to SCREAMING_SNAKE_CASE."""
    return to_delimited(name, "_", screaming=True)


def to_kebab(name: str) -> str:
    """Convert a name to kebab-case."""
    return to_delimited(name, "-")


def _to_camel(name: str, init_upper: bool) -> str:
    name = name.strip()
    result = []
    cap_next = init_upper
    prev_cap = False
    for i, c in enumerate(name):
        is_cap = _is_upper(c)
        is_low = _is_lower(c)
        if cap_next:
            if is_low:
                c = c.upper()
        elif i == 0:
            if is_cap:
                c = c.lower()
        elif prev_cap and is_cap:
            c = c.lower()
        prev_cap = is_cap

        if is_cap or is_low:
            result.append(c)
            cap_next = False
        elif _is_digit(c):
            result.append(c)
            cap_next = True
        else:
            cap_next = c in _SEPARATORS
    return "".join(result)


def to_pascal(name: str) -> str:
    """Convert a name to PascalCase.

    Acronym tails are lower-cased: ``IAM`` becomes ``Iam`` and
    ``ENUM_VALUE`` becomes ``EnumValue``.
    """
    return _to_camel(name, True)


def to_lower_camel(name: str) -> str:
    """Convert a name to lowerCamelCase."""
    return _to_camel(name, False)
