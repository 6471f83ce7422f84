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

"""Configuration of the Rust codec."""

import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from clientgen.codecs.base import parse_bool, split_list
from clientgen.errors import ConfigError

PACKAGE_PREFIX = "package:"


@dataclass(frozen=True)
class SystemParameter:
    name: str
    value: str


@dataclass(frozen=True)
class RustPackage:
    """An external crate the generated code may depend on."""

    # The name the crate is imported under, e.g. ``wkt``.
    name: str
    # What the crate calls itself, e.g. ``google-cloud-wkt``.
    package_name: str = ""
    path: str = ""
    version: str = ""
    features: Tuple[str, ...] = ()
    default_features: bool = True
    ignore: bool = False
    force_used: bool = False
    # Named conditions that make the crate a dependency: ``services`` or ``lro``.
    used_if: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RustOptions:
    package_name_override: str = ""
    # Maps element IDs to unqualified names; services and oneofs only.
    name_overrides: Dict[str, str] = field(default_factory=dict)
    module_path: str = "crate::model"
    generation_year: str = ""
    not_for_publication: bool = False
    version: str = "0.0.0"
    release_level: str = "preview"
    extra_packages: Tuple[RustPackage, ...] = ()
    # Maps source packages such as ``google.type`` to the crate containing them.
    package_mapping: Dict[str, RustPackage] = field(default_factory=dict)
    disabled_rustdoc_warnings: Tuple[str, ...] = ()
    template_override: str = ""
    include_grpc_only_methods: bool = False
    per_service_features: bool = False
    has_veneer: bool = False
    with_generated_serde: bool = False
    system_parameters: Tuple[SystemParameter, ...] = ()


def parse_package_option(key: str, definition: str) -> Tuple[RustPackage, List[str]]:
    """Parse a ``package:<name>`` option.

    Returns the package and the source packages it provides.
    """
    values = {
        "package_name": "",
        "path": "",
        "version": "",
        "default_features": True,
        "ignore": False,
        "force_used": False,
    }
    features: List[str] = []
    used_if: List[str] = []
    sources: List[str] = []
    for element in definition.split(","):
        name, sep, value = element.partition("=")
        if not sep:
            raise ConfigError(
                key,
                definition,
                f"the definition for package {key!r} should be a comma-separated "
                f"list of key=value pairs, got={definition!r}",
            )
        if name == "package":
            values["package_name"] = value
        elif name == "path":
            values["path"] = value
        elif name == "version":
            values["version"] = value
        elif name == "source":
            sources.append(value)
        elif name == "feature":
            features.extend(value.split(","))
        elif name == "default-features":
            values["default_features"] = parse_bool(key, value)
        elif name == "ignore":
            values["ignore"] = parse_bool(key, value)
        elif name == "force-used":
            values["force_used"] = parse_bool(key, value)
        elif name == "used-if":
            used_if.append(value)
        else:
            raise ConfigError(
                key,
                definition,
                f"unknown field {name!r} in definition of rust package {key!r}, "
                f"got={definition!r}",
            )
    if not values["ignore"] and not values["package_name"]:
        raise ConfigError(
            key, definition, f"missing rust package name for package {key}, got={definition}"
        )
    package = RustPackage(
        name=key[len(PACKAGE_PREFIX) :],
        features=tuple(features),
        used_if=tuple(used_if),
        **values,
    )
    return package, sources


def parse_rust_options(options: Dict[str, str], protobuf_source: bool = True) -> RustOptions:
    """Parse the flat option map of the Rust codec.

    Raises:
        ConfigError: for unknown keys and malformed values.
    """
    alt = "json;enum-encoding=int" if protobuf_source else "json"
    values = {
        "generation_year": f"{datetime.date.today().year:04d}",
        "system_parameters": (SystemParameter("$alt", alt),),
    }
    extra_packages: List[RustPackage] = []
    package_mapping: Dict[str, RustPackage] = {}
    for key, definition in sorted(options.items()):
        if key == "package-name-override":
            values["package_name_override"] = definition
        elif key == "name-overrides":
            overrides = {}
            for override in definition.split(","):
                tokens = override.split("=")
                if len(tokens) != 2:
                    raise ConfigError(
                        key,
                        definition,
                        "cannot parse `name-overrides`. Expected input in the form "
                        f"of: 'n1=r1,n2=r2': {definition!r}",
                    )
                overrides[tokens[0]] = tokens[1]
            values["name_overrides"] = overrides
        elif key == "module-path":
            values["module_path"] = definition
        elif key == "copyright-year":
            values["generation_year"] = definition
        elif key == "not-for-publication":
            values["not_for_publication"] = parse_bool(key, definition)
        elif key == "version":
            values["version"] = definition
        elif key == "release-level":
            values["release_level"] = definition
        elif key.startswith(PACKAGE_PREFIX):
            package, sources = parse_package_option(key, definition)
            extra_packages.append(package)
            for source in sources:
                package_mapping[source] = package
        elif key == "disabled-rustdoc-warnings":
            values["disabled_rustdoc_warnings"] = tuple(split_list(definition))
        elif key == "template-override":
            values["template_override"] = definition
        elif key == "include-grpc-only-methods":
            values["include_grpc_only_methods"] = parse_bool(key, definition)
        elif key == "per-service-features":
            values["per_service_features"] = parse_bool(key, definition)
        elif key == "has-veneer":
            values["has_veneer"] = parse_bool(key, definition)
        elif key == "with-generated-serde":
            values["with_generated_serde"] = parse_bool(key, definition)
        else:
            raise ConfigError(key, definition, f"unknown Rust codec option {key!r}")
    return RustOptions(
        extra_packages=tuple(extra_packages),
        package_mapping=package_mapping,
        **values,
    )
