"""
Record loader — reads formula records from disk.

Supported encodings:
  - ``.rb``            Homebrew formula (see ruby_formula)
  - ``.yml`` / ``.yaml`` key-value record
  - ``.json``          key-value record

A key-value record may wrap its fields under a ``formula:`` key or be
flat.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from brewcheck.core.config.loader import SETTINGS_FILE
from brewcheck.core.models import PackageFormula
from brewcheck.core.parsers.errors import FormulaLoadError
from brewcheck.core.parsers.ruby_formula import parse_formula_rb

logger = logging.getLogger(__name__)

RUBY_SUFFIXES = {".rb"}
YAML_SUFFIXES = {".yml", ".yaml"}
JSON_SUFFIXES = {".json"}
RECORD_SUFFIXES = RUBY_SUFFIXES | YAML_SUFFIXES | JSON_SUFFIXES


def formula_from_mapping(data: Any, source: str = "<mapping>") -> PackageFormula:
    """Build a PackageFormula from a decoded key-value record.

    Raises:
        FormulaLoadError: If ``data`` is not a mapping or has fields of
            the wrong shape (e.g. ``install_steps`` is not a list).
    """
    if not isinstance(data, dict):
        raise FormulaLoadError(
            f"{source}: expected a mapping, got {type(data).__name__}"
        )

    # The record may sit under a "formula" key or be flat
    if isinstance(data.get("formula"), dict):
        data = data["formula"]

    try:
        return PackageFormula.model_validate(data)
    except ValidationError as e:
        raise FormulaLoadError(f"{source}: invalid record: {e}") from e


def load_record(path: Path) -> PackageFormula:
    """Load one formula record from a file.

    Args:
        path: A ``.rb``, ``.yml``, ``.yaml`` or ``.json`` file.

    Returns:
        The formula record.

    Raises:
        FormulaLoadError: If the file is missing, unreadable, of an
            unknown type, or does not decode to a record.
    """
    suffix = path.suffix.lower()
    if suffix not in RECORD_SUFFIXES:
        raise FormulaLoadError(
            f"{path}: unsupported file type '{suffix}' — "
            f"expected one of {sorted(RECORD_SUFFIXES)}"
        )

    if not path.is_file():
        raise FormulaLoadError(f"Record file not found: {path}")

    logger.debug("Loading formula record from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FormulaLoadError(f"Cannot read {path}: {e}") from e

    if suffix in RUBY_SUFFIXES:
        return parse_formula_rb(raw, source=str(path))

    if suffix in JSON_SUFFIXES:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FormulaLoadError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise FormulaLoadError(f"Invalid YAML in {path}: {e}") from e

    return formula_from_mapping(data, source=str(path))


def expand_paths(paths: list[Path]) -> list[Path]:
    """Expand directories into the record files they contain.

    Files are kept as given (even with an unsupported suffix, so the
    caller reports them).  Directories contribute their record files,
    recursively, in sorted order.
    """
    expanded: list[Path] = []
    for p in paths:
        if p.is_dir():
            found = sorted(
                f for f in p.rglob("*")
                if f.is_file()
                and f.suffix.lower() in RECORD_SUFFIXES
                and f.name != SETTINGS_FILE
            )
            logger.debug("Expanded %s to %d record file(s)", p, len(found))
            expanded.extend(found)
        else:
            expanded.append(p)
    return expanded
