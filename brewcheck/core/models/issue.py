"""
Validation issue model — the validator's only output.

The validator never raises for bad input.  Everything it finds wrong
with a record is described by a ``ValidationIssue``; an empty list
means the record is accepted.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

Severity = Literal["error", "warning"]


class IssueKind(str, Enum):
    """Every kind of issue a record can be reported for."""

    MISSING_FIELD = "MissingField"
    MALFORMED_URL = "MalformedUrl"
    INVALID_CHECKSUM = "InvalidChecksum"
    VERSION_MISMATCH = "VersionMismatch"
    INVALID_DEPENDENCY_NAME = "InvalidDependencyName"
    ORDERING_VIOLATION = "OrderingViolation"
    INVALID_INSTALL_STEP = "InvalidInstallStep"
    INVALID_SMOKE_TEST = "InvalidSmokeTest"
    CLASS_NAME_MISMATCH = "ClassNameMismatch"
    UNREADABLE_RECORD = "UnreadableRecord"


# Kinds not listed here are errors
_WARNING_KINDS = {IssueKind.VERSION_MISMATCH, IssueKind.CLASS_NAME_MISMATCH}

KIND_DESCRIPTIONS: dict[IssueKind, str] = {
    IssueKind.MISSING_FIELD: "A required field is empty or absent.",
    IssueKind.MALFORMED_URL: "A URL lacks an http(s) scheme or a host.",
    IssueKind.INVALID_CHECKSUM: (
        "Checksum is empty, has the wrong length, is not hex, or is a placeholder."
    ),
    IssueKind.VERSION_MISMATCH: (
        "The version token in the source URL differs from the declared version."
    ),
    IssueKind.INVALID_DEPENDENCY_NAME: "A dependency is not a lowercase tool name.",
    IssueKind.ORDERING_VIOLATION: (
        "A step uses a path before any earlier step created it."
    ),
    IssueKind.INVALID_INSTALL_STEP: (
        "An install step has an unknown op, no path, a bad shell or a bad mode."
    ),
    IssueKind.INVALID_SMOKE_TEST: (
        "The smoke test is missing, expects nothing, or runs an uninstalled command."
    ),
    IssueKind.CLASS_NAME_MISMATCH: "The class name does not match the file name.",
    IssueKind.UNREADABLE_RECORD: "The record could not be read or parsed.",
}


def default_severity(kind: IssueKind) -> Severity:
    """Severity an issue of ``kind`` is reported with."""
    return "warning" if kind in _WARNING_KINDS else "error"


class ValidationIssue(BaseModel):
    """One problem found in one record."""

    model_config = ConfigDict(frozen=True)

    kind: IssueKind
    field: str
    message: str
    severity: Severity = "error"

    @classmethod
    def of(cls, kind: IssueKind, field: str, message: str) -> ValidationIssue:
        """Create an issue with the kind's default severity."""
        return cls(kind=kind, field=field, message=message, severity=default_severity(kind))

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "field": self.field,
            "message": self.message,
            "severity": self.severity,
        }

    def __str__(self) -> str:
        return f"{self.field}: {self.message} [{self.kind.value}]"
