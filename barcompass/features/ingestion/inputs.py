"""Read ingestion input files (JSON or plain text)."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from barcompass.features.ingestion.schemas import VenueInput


class InputFileError(Exception):
    """The input file is missing, unreadable or malformed."""

    pass


def parse_json_inputs(text: str) -> list[VenueInput]:
    """Parse a JSON array of ``{name, searchQuery?, tags?}`` objects.

    Bare strings in the array are accepted as names.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputFileError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise InputFileError("JSON input must be an array of venues")

    inputs: list[VenueInput] = []
    for index, item in enumerate(data):
        if isinstance(item, str):
            item = {"name": item}
        try:
            inputs.append(VenueInput.model_validate(item))
        except PydanticValidationError as e:
            raise InputFileError(f"Entry {index} is invalid: {e.errors()[0]['msg']}") from e
    return inputs


def parse_text_inputs(text: str) -> list[VenueInput]:
    """One venue name per line; blank lines and ``#`` comments are ignored."""
    inputs: list[VenueInput] = []
    for number, line in enumerate(text.splitlines(), start=1):
        name = line.strip()
        if not name or name.startswith("#"):
            continue
        try:
            inputs.append(VenueInput(name=name))
        except PydanticValidationError as e:
            raise InputFileError(f"Line {number} is invalid: {e.errors()[0]['msg']}") from e
    return inputs


def read_input_file(path: Path) -> list[VenueInput]:
    """Load venue inputs from a ``.json`` or ``.txt`` file.

    Raises:
        InputFileError: Unsupported extension, unreadable file or bad content.
    """
    suffix = path.suffix.lower()
    if suffix not in {".json", ".txt"}:
        raise InputFileError(f"Unsupported input format {suffix!r}; use .json or .txt")

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InputFileError(f"{path} is not valid UTF-8: {e.reason}") from e
    except OSError as e:
        raise InputFileError(f"Cannot read {path}: {e}") from e

    inputs = parse_json_inputs(text) if suffix == ".json" else parse_text_inputs(text)
    if not inputs:
        raise InputFileError(f"No venues found in {path}")
    return inputs
