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

"""Language codecs."""

from typing import Any, Dict, Optional

from clientgen.api.model import API
from clientgen.api.recursive import label_recursive_fields
from clientgen.codecs.base import BaseCodec
from clientgen.codecs.dart import DartCodec
from clientgen.codecs.rust import RustCodec
from clientgen.errors import ConfigError

CODECS = {
    "rust": RustCodec,
    "dart": DartCodec,
}


def annotate_model(
    model: API,
    language: str,
    options: Optional[Dict[str, str]] = None,
    protobuf_source: bool = True,
) -> Any:
    """Label recursive fields, then annotate ``model`` for ``language``.

    Options are parsed before any node is touched, so a configuration error
    leaves the model unannotated.
    """
    codec_class = CODECS.get(language)
    if codec_class is None:
        raise ConfigError("language", language, f"available: {', '.join(CODECS)}")
    codec: BaseCodec = codec_class(options, protobuf_source=protobuf_source)
    label_recursive_fields(model)
    return codec.annotate(model)


__all__ = ["BaseCodec", "CODECS", "DartCodec", "RustCodec", "annotate_model"]
