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

"""Tests for codec option parsing."""

import datetime

import pytest

from clientgen.api.state import new_api
from clientgen.codecs import annotate_model
from clientgen.codecs.base import parse_bool, split_list
from clientgen.codecs.dart import parse_dart_options
from clientgen.codecs.rust import RustPackage, parse_rust_options
from clientgen.codecs.rust.options import SystemParameter
from clientgen.errors import ConfigError


class TestHelpers:
    """Tests for shared option helpers."""

    @pytest.mark.parametrize("value", ["true", "True", "1", "t"])
    def test_true(self, value):
        assert parse_bool("flag", value) is True

    @pytest.mark.parametrize("value", ["false", "FALSE", "0", "f"])
    def test_false(self, value):
        assert parse_bool("flag", value) is False

    def test_invalid_bool_names_key_and_value(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_bool("not-for-publication", "maybe")

        assert exc_info.value.key == "not-for-publication"
        assert exc_info.value.value == "maybe"
        assert "`not-for-publication`" in str(exc_info.value)
        assert "'maybe'" in str(exc_info.value)

    def test_split_list(self):
        assert split_list("") == []
        assert split_list("a,b") == ["a", "b"]


class TestRustOptions:
    """Tests for Rust option parsing."""

    def test_defaults(self):
        options = parse_rust_options({})

        assert options.module_path == "crate::model"
        assert options.version == "0.0.0"
        assert options.release_level == "preview"
        assert options.generation_year == str(datetime.date.today().year)
        assert options.system_parameters == (
            SystemParameter("$alt", "json;enum-encoding=int"),
        )
        assert not options.per_service_features

    def test_openapi_source(self):
        options = parse_rust_options({}, protobuf_source=False)
        assert options.system_parameters == (SystemParameter("$alt", "json"),)

    def test_simple_values(self):
        options = parse_rust_options(
            {
                "module-path": "crate::generated",
                "copyright-year": "2024",
                "version": "1.2.3",
                "release-level": "stable",
                "not-for-publication": "true",
                "disabled-rustdoc-warnings": "redundant_explicit_links,broken_intra_doc_links",
                "template-override": "templates/mod",
                "has-veneer": "true",
            }
        )

        assert options.module_path == "crate::generated"
        assert options.generation_year == "2024"
        assert options.version == "1.2.3"
        assert options.release_level == "stable"
        assert options.not_for_publication
        assert options.disabled_rustdoc_warnings == (
            "redundant_explicit_links",
            "broken_intra_doc_links",
        )
        assert options.template_override == "templates/mod"
        assert options.has_veneer

    def test_packages(self):
        options = parse_rust_options(
            {
                "package:wkt": "package=google-cloud-wkt,source=google.protobuf,"
                "source=google.type,feature=chrono,default-features=false",
                "package:gax": "ignore=true",
            }
        )

        wkt = options.package_mapping["google.protobuf"]
        assert options.package_mapping["google.type"] is wkt
        assert wkt == RustPackage(
            name="wkt",
            package_name="google-cloud-wkt",
            features=("chrono",),
            default_features=False,
        )
        assert [p.name for p in options.extra_packages] == ["gax", "wkt"]

    def test_name_overrides(self):
        options = parse_rust_options({"name-overrides": ".a.S=Svc,.a.M.o=Choice"})
        assert options.name_overrides == {".a.S": "Svc", ".a.M.o": "Choice"}

    @pytest.mark.parametrize(
        "key,value,fragment",
        [
            ("package:x", "path=../x", "missing rust package name"),
            ("package:x", "package=y,bogus=1", "unknown field 'bogus'"),
            ("package:x", "package", "key=value pairs"),
            ("package:x", "package=y,ignore=maybe", "to boolean"),
            ("name-overrides", "a=b=c", "Expected input in the form"),
            ("per-service-features", "yes", "to boolean"),
            ("frobnicate", "1", "unknown Rust codec option"),
        ],
    )
    def test_errors(self, key, value, fragment):
        """Every error names the offending key."""
        with pytest.raises(ConfigError) as exc_info:
            parse_rust_options({key: value})

        assert exc_info.value.key == key
        assert fragment in str(exc_info.value)
        assert f"`{key}`" in str(exc_info.value)

    def test_errors_precede_annotation(self):
        """A bad option leaves the model untouched."""
        model = new_api("test", "test.v1")

        with pytest.raises(ConfigError):
            annotate_model(model, "rust", {"version": "1", "bogus": "x"})

        assert model.codec is None

    def test_unknown_language(self):
        with pytest.raises(ConfigError, match="language"):
            annotate_model(new_api("test", "test.v1"), "cobol")


class TestDartOptions:
    """Tests for Dart option parsing."""

    def test_values(self):
        options = parse_dart_options(
            {
                "package-name-override": "google_cloud_foo",
                "copyright-year": "2025",
                "version": "0.1.0",
                "part-file": "src/extra.dart",
                "dev-dependencies": "test,lints",
                "not-for-publication": "true",
                "proto:google.protobuf": "package:google_cloud_protobuf/protobuf.dart",
                "extra-imports": "package:meta/meta.dart",
            }
        )

        assert options.package_name_override == "google_cloud_foo"
        assert options.generation_year == "2025"
        assert options.version == "0.1.0"
        assert options.part_file == "src/extra.dart"
        assert options.dev_dependencies == ("test", "lints")
        assert options.not_for_publication
        assert options.package_mapping == {
            "google.protobuf": "package:google_cloud_protobuf/protobuf.dart"
        }
        assert options.extra_imports == ("package:meta/meta.dart",)

    @pytest.mark.parametrize(
        "key,value,fragment",
        [
            ("proto:", "package:x/x.dart", "proto:<proto-package>"),
            ("proto:a:b", "package:x/x.dart", "proto:<proto-package>"),
            ("not-for-publication", "yes", "to boolean"),
            ("module-path", "crate::model", "unknown Dart codec option"),
        ],
    )
    def test_errors(self, key, value, fragment):
        with pytest.raises(ConfigError) as exc_info:
            parse_dart_options({key: value})

        assert exc_info.value.key == key
        assert fragment in str(exc_info.value)
        assert repr(value) in str(exc_info.value)
