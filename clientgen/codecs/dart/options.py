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

"""Configuration of the Dart codec."""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from clientgen.codecs.base import parse_bool, split_list
from clientgen.errors import ConfigError

PROTO_PREFIX = "proto:"


@dataclass(frozen=True)
class DartOptions:
    package_name_override: str = ""
    generation_year: str = ""
    version: str = ""
    # A hand-written part file included by the main library file.
    part_file: str = ""
    dev_dependencies: Tuple[str, ...] = ()
    not_for_publication: bool = False
    # Maps proto packages to Dart imports, e.g.
    # ``google.protobuf`` to ``package:google_cloud_protobuf/protobuf.dart``.
    package_mapping: Dict[str, str] = field(default_factory=dict)
    extra_imports: Tuple[str, ...] = ()


def parse_dart_options(options: Dict[str, str]) -> DartOptions:
    """Parse the flat option map of the Dart codec.

    Raises:
        ConfigError: for unknown keys and malformed values.
    """
    values = {}
    package_mapping: Dict[str, str] = {}
    for key, definition in sorted(options.items()):
        if key == "package-name-override":
            values["package_name_override"] = definition
        elif key == "copyright-year":
            values["generation_year"] = definition
        elif key == "version":
            values["version"] = definition
        elif key == "part-file":
            values["part_file"] = definition
        elif key == "dev-dependencies":
            values["dev_dependencies"] = tuple(split_list(definition))
        elif key == "not-for-publication":
            values["not_for_publication"] = parse_bool(key, definition)
        elif key.startswith(PROTO_PREFIX):
            parts = key.split(":")
            if len(parts) != 2 or parts[1] == "":
                raise ConfigError(
                    key,
                    definition,
                    f"key should be in the format proto:<proto-package>, got={key!r}",
                )
            package_mapping[parts[1]] = definition
        elif key == "extra-imports":
            values["extra_imports"] = tuple(split_list(definition))
        else:
            raise ConfigError(key, definition, f"unknown Dart codec option {key!r}")
    return DartOptions(package_mapping=package_mapping, **values)
