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

"""CLI entry point for the annotation engine."""

import argparse
import json
import logging
import sys
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from clientgen.api.loader import load_model
from clientgen.api.model import (
    API,
    Enum,
    EnumValue,
    Field,
    Message,
    Method,
    OneOf,
    PathInfo,
    Service,
)
from clientgen.api.validator import ModelValidator
from clientgen.codecs import CODECS, annotate_model
from clientgen.errors import ClientGenError, ConfigError

logger = logging.getLogger(__name__)

_MODEL_NODES = (API, Enum, EnumValue, Field, Message, Method, OneOf, Service)


def to_jsonable(value: Any) -> Any:
    """Convert an annotation to JSON values.

    Model nodes referenced from annotations are written as their IDs, which
    keeps the back references of the model graph out of the output.
    """
    if isinstance(value, PathInfo):
        return to_jsonable(value.codec)
    if isinstance(value, _MODEL_NODES):
        return value.id or value.name
    if is_dataclass(value):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def summarize(model: API, language: str) -> Dict[str, Any]:
    state = model.state

    def annotated(index):
        return {
            node_id: to_jsonable(node.codec)
            for node_id, node in sorted(index.items())
            if node.codec is not None
        }

    return {
        "language": language,
        "model": to_jsonable(model.codec),
        "services": annotated(state.service_by_id),
        "methods": annotated(state.method_by_id),
        "messages": annotated(state.message_by_id),
        "enums": annotated(state.enum_by_id),
    }


def parse_option(text: str) -> Tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep:
        raise ConfigError(text, "", "options must be written as key=value")
    return key, value


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="clientgen",
        description="Annotate API models for client library templates",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    annotate_parser = subparsers.add_parser(
        "annotate",
        help="Annotate a JSON model and print the annotations",
    )

    annotate_parser.add_argument(
        "model",
        type=Path,
        metavar="MODEL",
        help="JSON model document",
    )

    annotate_parser.add_argument(
        "--lang",
        type=str,
        required=True,
        choices=sorted(CODECS),
        help="Target language",
    )

    annotate_parser.add_argument(
        "-o",
        "--option",
        dest="options",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Codec option. Can be specified multiple times.",
    )

    annotate_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON summary to this file instead of stdout",
    )

    annotate_parser.add_argument(
        "--openapi",
        action="store_true",
        help="The model was built from an OpenAPI document, not protobuf",
    )

    annotate_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(args)


def cmd_annotate(args: argparse.Namespace) -> int:
    """Handle the annotate command."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = dict(parse_option(option) for option in args.options)
        model = load_model(args.model)
    except OSError as e:
        print(f"Error reading {args.model}: {e}", file=sys.stderr)
        return 1
    except ClientGenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    validator = ModelValidator(model)
    if not validator.validate():
        for error in validator.errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1
    for warning in validator.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    try:
        annotate_model(model, args.lang, options, protobuf_source=not args.openapi)
    except ClientGenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logger.debug("annotated %r", model)

    output = json.dumps(summarize(model, args.lang), indent=2, sort_keys=True)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output + "\n")
    else:
        print(output)
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    if parsed.command is None:
        print("Usage: clientgen <command> [options]", file=sys.stderr)
        print("Commands: annotate", file=sys.stderr)
        print("Use 'clientgen <command> --help' for more information", file=sys.stderr)
        return 1

    if parsed.command == "annotate":
        return cmd_annotate(parsed)

    return 0


if __name__ == "__main__":
    sys.exit(main())
