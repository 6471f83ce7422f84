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

"""Wire type definitions for model fields."""

from enum import Enum


class Typez(Enum):
    """Field wire types, numbered as in protobuf descriptors."""

    UNDEFINED = 0
    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18

    @classmethod
    def from_name(cls, name: str) -> "Typez":
        """Look up a type by its lower-case protobuf name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"unknown field type: {name}") from None


INTEGER_TYPES = frozenset(
    {
        Typez.INT64,
        Typez.UINT64,
        Typez.INT32,
        Typez.FIXED64,
        Typez.FIXED32,
        Typez.UINT32,
        Typez.SFIXED32,
        Typez.SFIXED64,
        Typez.SINT32,
        Typez.SINT64,
    }
)

INT64_TYPES = frozenset(
    {
        Typez.INT64,
        Typez.UINT64,
        Typez.FIXED64,
        Typez.SFIXED64,
        Typez.SINT64,
    }
)

REFERENCE_TYPES = frozenset({Typez.MESSAGE, Typez.ENUM, Typez.GROUP})
