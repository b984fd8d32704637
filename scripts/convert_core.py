#!/usr/bin/env python3
"""Shared helpers for the YAML to JSON converter."""
from __future__ import annotations

import base64
import datetime
import json
import math
import os
import sys
import tempfile
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

DEFAULT_OUTPUT_DIR = "./temp/"
OUTPUT_SUFFIX = ".json"
LOG_PREFIX = "[yaml-to-json]"


def log_info(message: str) -> None:
    print(f"{LOG_PREFIX} {message}")


def log_warn(message: str) -> None:
    print(f"{LOG_PREFIX} warning: {message}", file=sys.stderr)


def log_error(message: str) -> None:
    print(f"{LOG_PREFIX} error: {message}", file=sys.stderr)


class MissingArgumentError(ValueError):
    """Raised when a required command-line option was not supplied."""


class CyclicDocumentError(ValueError):
    """Raised when a recursive YAML alias makes the document infinite."""


def derive_output_path(inputfile: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    """Return ``output_dir + inputfile + ".json"`` without normalizing the input path."""
    return output_dir.rstrip("/") + "/" + inputfile + OUTPUT_SUFFIX


@dataclass
class ConverterConfig:
    inputfile: str
    output_dir: str = DEFAULT_OUTPUT_DIR
    remove_stale: bool = False
    quiet: bool = False

    def __post_init__(self) -> None:
        if not self.inputfile:
            raise MissingArgumentError("--inputfile is required")
        if not self.output_dir:
            raise MissingArgumentError("--output-dir must not be empty")

    @property
    def outputfile(self) -> str:
        return derive_output_path(self.inputfile, self.output_dir)


def _js_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    # JavaScript only switches to exponent form below 1e-6 or from 1e21 up.
    if abs(value) >= 1e-6 and abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    return f"{mantissa}e{int(exponent):+d}"


def _js_timestamp(value: datetime.date) -> str:
    # Zone-less timestamps are UTC; output is always millisecond precision with a Z.
    if not isinstance(value, datetime.datetime):
        value = datetime.datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    if isinstance(key, int):
        return str(key)
    if isinstance(key, float):
        return _js_number(key)
    if isinstance(key, datetime.date):
        return _js_timestamp(key)
    return str(key)


class JsonSafeLoader(yaml.SafeLoader):
    """SafeLoader building mappings that JSON can hold as they are.

    Keys take their JSON string spelling while the mapping is built, so ``1`` and
    ``true`` stay distinct while ``1`` and ``'1'`` share one entry (later value
    wins, first position kept). ``!!set`` becomes a mapping of its members to
    null, in source order.
    """

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping = {}
        for key_node, value_node in node.value:
            key = _json_key(self.construct_object(key_node, deep=True))
            mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping

    def construct_ordered_set(self, node):
        data = {}
        yield data
        data.update(self.construct_mapping(node))


JsonSafeLoader.add_constructor("tag:yaml.org,2002:set", JsonSafeLoader.construct_ordered_set)


def read_yaml_text(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def decode_yaml(text: str) -> Any:
    """Decode a single YAML document; an empty document yields None."""
    return yaml.load(text, Loader=JsonSafeLoader)


def to_jsonable(value: Any, _active: set[int] | None = None) -> Any:
    """Map decoded YAML values onto types the json module can serialize.

    Timestamps become ``2024-03-01T00:00:00.000Z`` strings, binary blobs base64
    text and non-finite floats ``None``. A container that contains itself raises
    CyclicDocumentError.
    """
    if isinstance(value, (dict, list, tuple)):
        if _active is None:
            _active = set()
        if id(value) in _active:
            raise CyclicDocumentError("recursive alias cannot be written as JSON")
        _active.add(id(value))
        try:
            if isinstance(value, dict):
                return {_json_key(k): to_jsonable(v, _active) for k, v in value.items()}
            return [to_jsonable(item, _active) for item in value]
        finally:
            _active.discard(id(value))
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, datetime.date):
        return _js_timestamp(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def to_json_text(document: Any) -> str:
    # Key order follows the source document; no trailing newline.
    return json.dumps(to_jsonable(document), indent=2, ensure_ascii=False)


def _new_file_mode(dest: Path) -> int:
    try:
        return dest.stat().st_mode & 0o777
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_atomic(path: str | Path, text: str) -> None:
    """Write ``text`` next to ``path`` and rename it into place.

    The destination directory must already exist.
    """
    dest = Path(path)
    mode = _new_file_mode(dest)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, dest)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def remove_stale_output(path: str | Path) -> bool:
    target = Path(path)
    if target.exists():
        target.unlink()
        return True
    return False


def convert(config: ConverterConfig) -> str:
    """Convert ``config.inputfile`` to JSON and return the path written.

    Read, parse and write errors propagate unchanged. Unless ``remove_stale`` is
    set, an existing output file survives any failure untouched.
    """
    outputfile = config.outputfile
    if config.remove_stale and remove_stale_output(outputfile):
        if not config.quiet:
            log_info(f"removed stale {outputfile}")

    document = decode_yaml(read_yaml_text(config.inputfile))
    if document is None and not config.quiet:
        log_warn(f"{config.inputfile} holds no YAML document; writing null")
    write_atomic(outputfile, to_json_text(document))

    if not config.quiet:
        log_info(f"wrote {outputfile}")
    return outputfile
