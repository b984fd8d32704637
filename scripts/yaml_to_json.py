#!/usr/bin/env python3
"""
Convert a YAML file to pretty-printed JSON under ./temp/.

Usage: python3 scripts/yaml_to_json.py --inputfile <input.yaml>

The output lands at ./temp/<input.yaml>.json; the input path is appended
verbatim, so nested inputs produce nested outputs. The output directory must
already exist.
"""
from __future__ import annotations

import argparse
import os
import sys

import yaml

from convert_core import (
    DEFAULT_OUTPUT_DIR,
    ConverterConfig,
    CyclicDocumentError,
    MissingArgumentError,
    convert,
    log_error,
)

OUTPUT_DIR_ENV = "YAML_TO_JSON_OUTPUT_DIR"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="yaml_to_json.py",
        description="Convert a YAML document to 2-space indented JSON.",
    )
    parser.add_argument(
        "--inputfile",
        help="YAML file to convert; also names the output file.",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get(OUTPUT_DIR_ENV, DEFAULT_OUTPUT_DIR),
        help=f"Existing directory receiving the JSON output (default: ${OUTPUT_DIR_ENV} or {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--remove-stale",
        action="store_true",
        help="Delete any previous output before converting, even if the conversion then fails.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logs.",
    )
    return parser.parse_args(argv)


def parse_config(argv: list[str]) -> ConverterConfig:
    args = parse_args(argv)
    return ConverterConfig(
        inputfile=args.inputfile or "",
        output_dir=args.output_dir,
        remove_stale=args.remove_stale,
        quiet=args.quiet,
    )


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        config = parse_config(argv)
    except MissingArgumentError as exc:
        print("usage: yaml_to_json.py --inputfile <input.yaml>", file=sys.stderr)
        log_error(str(exc))
        return 2

    try:
        convert(config)
    except yaml.YAMLError as exc:
        log_error(f"failed to parse {config.inputfile}: {exc}")
        return 1
    except UnicodeDecodeError as exc:
        log_error(f"{config.inputfile} is not UTF-8 text: {exc}")
        return 1
    except CyclicDocumentError as exc:
        log_error(f"{config.inputfile}: {exc}")
        return 1
    except OSError as exc:
        log_error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
