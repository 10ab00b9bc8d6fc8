"""Parse and serialize npm package-lock.json documents."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from jsonschema import Draft202012Validator

from ..errors import ParseError
from ..models.lockfile import SUPPORTED_LOCKFILE_VERSION, Lockfile

# Shape of a version 1 lockfile. Unknown fields are allowed at every level.
LOCKFILE_V1_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["lockfileVersion"],
    "properties": {
        "lockfileVersion": {"const": SUPPORTED_LOCKFILE_VERSION},
        "dependencies": {"$ref": "#/$defs/dependencies"},
    },
    "$defs": {
        "dependencies": {
            "type": "object",
            "additionalProperties": {"$ref": "#/$defs/dependency"},
        },
        "dependency": {
            "type": "object",
            "required": ["version"],
            "properties": {
                "version": {"type": "string"},
                "resolved": {"type": ["string", "null"]},
                "integrity": {"type": ["string", "null"]},
                "dependencies": {"$ref": "#/$defs/dependencies"},
            },
        },
    },
}

_VALIDATOR = Draft202012Validator(LOCKFILE_V1_SCHEMA)


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def parse(data: bytes) -> Lockfile:
    """Return the lockfile model for raw ``package-lock.json`` bytes.

    Only ``lockfileVersion`` is required to be valid for every document; the
    dependency tree is validated and modelled for version 1 documents only.
    Anything else is kept as opaque passthrough content.

    Raises:
        ParseError: if the bytes are not a JSON object with an integer
            ``lockfileVersion``, or a version 1 tree is malformed.
    """
    try:
        document = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Lockfile is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError("Lockfile must be a JSON object")

    version = document.get("lockfileVersion")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ParseError("Lockfile is missing an integer 'lockfileVersion'")

    if version == SUPPORTED_LOCKFILE_VERSION:
        errors = sorted(_VALIDATOR.iter_errors(document), key=lambda e: list(e.path))
        if errors:
            raise ParseError("Lockfile failed validation:\n" + _format_errors(errors))

    return Lockfile.from_dict(document)


def dump(lockfile: Lockfile) -> bytes:
    """Serialize a lockfile the way npm writes it: two-space indent, trailing newline."""
    text = json.dumps(lockfile.to_dict(), indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")
