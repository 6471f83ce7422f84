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

"""Annotating the same model again must produce the same annotations."""

import logging

import pytest

from clientgen.cli import summarize
from clientgen.codecs import annotate_model
from clientgen.tests.test_dart_codec import options as dart_options
from clientgen.tests.test_dart_codec import things_model
from clientgen.tests.test_rust_codec import secret_model


def field_codecs(model):
    return {
        f.id or f"{message.id}.{f.name}": f.codec
        for message in model.state.message_by_id.values()
        for f in message.fields
    }


@pytest.mark.parametrize(
    "build, language, options",
    [
        (secret_model, "rust", {}),
        (things_model, "dart", dart_options()),
    ],
)
def test_second_run_matches_first(build, language, options):
    model = build()

    annotate_model(model, language, options)
    first = summarize(model, language)
    first_fields = field_codecs(model)
    annotate_model(model, language, options)

    assert summarize(model, language) == first
    assert field_codecs(model) == first_fields


def test_warnings_repeat_per_run(caplog):
    """Each run reports an unmapped package once."""
    model = things_model()

    with caplog.at_level(logging.WARNING):
        annotate_model(model, "dart")
        annotate_model(model, "dart")

    assert caplog.text.count("missing proto package mapping google.protobuf") == 2


def test_fresh_codec_per_run():
    model = secret_model()

    first = annotate_model(model, "rust", {"package-name-override": "first"})
    second = annotate_model(model, "rust", {"package-name-override": "second"})

    assert first.package_name == "first"
    assert second.package_name == "second"
    assert model.codec is second
