"""
Validate use case — load and validate a batch of formula records.

Every input path produces exactly one report, in input order.  A record
that cannot be loaded is reported with an ``UnreadableRecord`` issue and
never stops the rest of the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from brewcheck.core.models import (
    CheckSettings,
    IssueKind,
    PackageFormula,
    ValidationIssue,
)
from brewcheck.core.parsers.errors import FormulaLoadError
from brewcheck.core.parsers.record_loader import RUBY_SUFFIXES, expand_paths, load_record
from brewcheck.core.services.formula_validate import is_accepted, validate_formula

logger = logging.getLogger(__name__)


@dataclass
class RecordReport:
    """Validation outcome for one record."""

    path: str = ""
    formula: PackageFormula | None = None
    issues: list[ValidationIssue] = field(default_factory=list)
    strict: bool = False

    @property
    def valid(self) -> bool:
        return is_accepted(self.issues, strict=self.strict)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.is_error]

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "class_name": self.formula.class_name if self.formula else None,
            "version": self.formula.version if self.formula else None,
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass
class BatchResult:
    """Validation outcome for a batch of records."""

    reports: list[RecordReport] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(r.valid for r in self.reports)

    @property
    def total(self) -> int:
        return len(self.reports)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.reports if not r.valid)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "total": self.total,
            "failed": self.failed,
            "records": [r.to_dict() for r in self.reports],
        }


def validate_record(
    formula: PackageFormula,
    settings: CheckSettings | None = None,
    path: str = "",
    filename: str | None = None,
) -> RecordReport:
    """Validate an in-memory record into a report."""
    settings = settings or CheckSettings()
    return RecordReport(
        path=path,
        formula=formula,
        issues=validate_formula(formula, settings=settings, filename=filename),
        strict=settings.strict,
    )


def validate_path(path: Path, settings: CheckSettings | None = None) -> RecordReport:
    """Load and validate one record file.

    Homebrew ``.rb`` files also get their class name checked against
    the file name.
    """
    settings = settings or CheckSettings()
    try:
        formula = load_record(path)
    except FormulaLoadError as e:
        logger.warning("Cannot load %s: %s", path, e)
        return RecordReport(
            path=str(path),
            issues=[ValidationIssue.of(IssueKind.UNREADABLE_RECORD, "record", str(e))],
            strict=settings.strict,
        )

    filename = path.name if path.suffix.lower() in RUBY_SUFFIXES else None
    return validate_record(formula, settings=settings, path=str(path), filename=filename)


def validate_paths(
    paths: list[Path],
    settings: CheckSettings | None = None,
) -> BatchResult:
    """Validate every record under ``paths``.

    Args:
        paths: Record files and/or directories holding them.
        settings: Validator tunables.

    Returns:
        BatchResult with one report per record file, in input order.
    """
    settings = settings or CheckSettings()
    result = BatchResult()

    for path in expand_paths(paths):
        report = validate_path(path, settings)
        result.reports.append(report)

    logger.info(
        "Validated %d record(s), %d failed", result.total, result.failed,
    )
    return result
