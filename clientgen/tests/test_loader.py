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

"""Tests for loading and validating model documents."""

import json

import pytest

from clientgen.api.loader import ModelLoader, load_model, parse_path_template
from clientgen.api.model import PathSegment
from clientgen.api.types import Typez
from clientgen.api.validator import ModelValidator
from clientgen.errors import ModelError


def document(**overrides):
    doc = {
        "name": "library",
        "packageName": "p",
        "messages": [
            {
                "name": "Book",
                "fields": [
                    {"name": "name"},
                    {"name": "page_count", "type": "int32"},
                    {"name": "shelf", "type": "message", "typeId": ".p.Shelf"},
                    {"name": "isbn"},
                    {"name": "ebook_url"},
                ],
                "oneOfs": [{"name": "identifier", "fields": ["isbn", "ebook_url"]}],
                "enums": [{"name": "Format", "values": [{"name": "HARDCOVER"}]}],
            },
            {"name": "Shelf", "fields": [{"name": "name"}]},
        ],
        "services": [
            {
                "name": "Library",
                "methods": [
                    {
                        "name": "GetBook",
                        "inputTypeId": ".p.Book",
                        "outputTypeId": ".p.Book",
                        "pathInfo": {
                            "bindings": [{"verb": "get", "path": "/v1/{name=shelves/*/books/*}"}]
                        },
                    }
                ],
            }
        ],
    }
    doc.update(overrides)
    return doc


class TestPathTemplates:
    """Tests for path template parsing."""

    def test_literals_and_variables(self):
        segments = parse_path_template("/v1/{name=projects/*/secrets/*}")

        assert segments[0] == PathSegment.of_literal("v1")
        assert segments[1].variable.field_path == ["name"]
        assert segments[1].variable.segments == ["projects", "*", "secrets", "*"]

    def test_nested_field_and_verb(self):
        segments = parse_path_template("/v1/{secret.name}:cancel")

        assert segments[1].variable.field_path == ["secret", "name"]
        assert segments[1].variable.segments == ["*"]
        assert segments[2] == PathSegment.of_verb("cancel")

    @pytest.mark.parametrize(
        "template",
        ["v1/things", "/v1//things", "/v1/{name"],
    )
    def test_invalid(self, template):
        with pytest.raises(ModelError):
            parse_path_template(template)


class TestLoader:
    """Tests for building models from documents."""

    def test_default_ids(self):
        model = ModelLoader(document()).load()
        book = model.messages[0]

        assert book.id == ".p.Book"
        assert book.fields[0].id == ".p.Book.name"
        assert book.enums[0].id == ".p.Book.Format"
        assert book.enums[0].values[0].id == ".p.Book.Format.HARDCOVER"
        assert model.services[0].methods[0].id == ".p.Library.GetBook"

    def test_fields(self):
        model = ModelLoader(document()).load()
        fields = model.messages[0].fields

        assert fields[1].typez == Typez.INT32
        assert fields[1].json_name == "pageCount"
        assert fields[2].typez_id == ".p.Shelf"
        assert fields[3].is_oneof
        assert fields[3].group is model.messages[0].one_ofs[0]
        assert not fields[0].is_oneof

    def test_map_fields_are_not_repeated(self):
        doc = document()
        doc["messages"][1]["fields"].append(
            {"name": "labels", "type": "message", "typeId": ".p.Shelf.LabelsEntry", "repeated": True}
        )
        doc["messages"][1]["messages"] = [
            {"name": "LabelsEntry", "isMap": True, "fields": [{"name": "key"}, {"name": "value"}]}
        ]
        doc["messages"][1]["fields"].append({"name": "tags", "repeated": True})

        model = ModelLoader(doc).load()
        name, labels, tags = model.messages[1].fields

        assert not labels.repeated
        assert tags.repeated

    def test_cross_references(self):
        model = ModelLoader(document()).load()
        method = model.services[0].methods[0]

        assert method.service is model.services[0]
        assert method.input_type is model.messages[0]
        assert method.path_info.bindings[0].verb == "GET"
        assert model.state.enum_by_id[".p.Book.Format"].parent is model.messages[0]

    def test_missing_name(self):
        with pytest.raises(ModelError, match="name"):
            ModelLoader({"packageName": "p"}).load()

    def test_unknown_oneof_member(self):
        doc = document()
        doc["messages"][0]["oneOfs"][0]["fields"].append("missing")

        with pytest.raises(ModelError, match="missing"):
            ModelLoader(doc).load()

    def test_unknown_field_type(self):
        doc = document(messages=[{"name": "Bad", "fields": [{"name": "f", "type": "complex"}]}])

        with pytest.raises(ModelError, match="complex"):
            ModelLoader(doc).load()

    def test_load_model(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(document()))

        model = load_model(path)

        assert model.name == "library"
        assert len(model.state.message_by_id) == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text("{not json")

        with pytest.raises(ModelError, match="invalid JSON"):
            load_model(path)


class TestValidator:
    """Tests for structural validation."""

    def validate(self, doc):
        validator = ModelValidator(ModelLoader(doc).load())
        validator.validate()
        return validator

    def test_valid_model(self):
        validator = self.validate(document())

        assert validator.errors == []
        assert validator.warnings == []

    def test_duplicate_field(self):
        doc = document()
        doc["messages"][1]["fields"].append({"name": "name"})

        validator = self.validate(doc)

        assert [str(e) for e in validator.errors] == [".p.Shelf: Duplicate field name: name"]

    def test_unknown_reference(self):
        doc = document()
        doc["messages"][1]["fields"].append(
            {"name": "owner", "type": "message", "typeId": ".p.Owner"}
        )

        validator = self.validate(doc)

        assert len(validator.errors) == 1
        assert "'.p.Owner'" in str(validator.errors[0])

    def test_well_known_reference(self):
        doc = document()
        doc["messages"][1]["fields"].append(
            {"name": "create_time", "type": "message", "typeId": ".google.protobuf.Timestamp"}
        )

        assert self.validate(doc).errors == []

    def test_bad_map_entry(self):
        doc = document()
        doc["messages"][1]["messages"] = [
            {"name": "LabelsEntry", "isMap": True, "fields": [{"name": "key"}]}
        ]

        validator = self.validate(doc)

        assert len(validator.errors) == 1
        assert "key and value" in str(validator.errors[0])

    def test_unknown_method_type(self):
        doc = document()
        doc["services"][0]["methods"][0]["outputTypeId"] = ".p.Missing"

        validator = self.validate(doc)

        assert [e.location for e in validator.errors] == [".p.Library.GetBook"]

    def test_empty_enum_warns(self):
        doc = document(enums=[{"name": "Empty"}])

        validator = self.validate(doc)

        assert validator.errors == []
        assert [w.severity for w in validator.warnings] == ["warning"]
        assert "has no values" in str(validator.warnings[0])
