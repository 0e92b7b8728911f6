"""
Domain models — Pydantic types for formula records and their issues.

All models are re-exported here for convenient access:

    from brewcheck.core.models import PackageFormula, ValidationIssue
"""

from brewcheck.core.models.formula import (
    COMPLETION_SHELLS,
    CREATING_OPS,
    INSTALL_ROOTS,
    STEP_OPS,
    InstallStep,
    PackageFormula,
    SmokeTest,
)
from brewcheck.core.models.issue import (
    KIND_DESCRIPTIONS,
    IssueKind,
    Severity,
    ValidationIssue,
    default_severity,
)
from brewcheck.core.models.settings import CheckSettings

__all__ = [
    "COMPLETION_SHELLS",
    "CREATING_OPS",
    "INSTALL_ROOTS",
    # settings.py
    "CheckSettings",
    # formula.py
    "InstallStep",
    # issue.py
    "IssueKind",
    "KIND_DESCRIPTIONS",
    "PackageFormula",
    "STEP_OPS",
    "Severity",
    "SmokeTest",
    "ValidationIssue",
    "default_severity",
]
