"""
Formula record validation — pure checks over one PackageFormula.

Checks, each independent (a failure in one never hides another):
  1. Required fields present
  2. homepage / source_url well-formed
  3. Checksum shape (length, hex, placeholder)
  4. Version token in source_url matches version   (warning)
  5. Dependency names
  6. Install steps: shape + create-before-use ordering
  7. Smoke test runs something the install produced
  8. Class name matches the formula file name     (warning)

No I/O.  The validator never raises for malformed input; it always
returns a list of issues, empty when the record is accepted.
"""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import PurePath
from urllib.parse import urlparse

from brewcheck.core.models import (
    COMPLETION_SHELLS,
    INSTALL_ROOTS,
    STEP_OPS,
    CheckSettings,
    IssueKind,
    PackageFormula,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

# ── Constants ───────────────────────────────────────────────────

REQUIRED_FIELDS = ("class_name", "homepage", "source_url", "checksum", "license", "version")

# Hex digest length per algorithm
DIGEST_LENGTHS = {
    "sha256": 64,
    "sha512": 128,
    "sha1": 40,
    "md5": 32,
}

# Compared case-insensitively
PLACEHOLDER_CHECKSUMS = {
    "REPLACE_WITH_REAL_SHA256",
    "REPLACE_WITH_ACTUAL_SHA256",
    "REPLACE_ME",
    "REPLACEME",
    "CHANGEME",
    "PLACEHOLDER",
    "TODO",
    "FIXME",
    "XXX",
    "SHA256",
}

_PLACEHOLDER_PREFIX_RE = re.compile(
    r"^(?:replace|todo|fixme|change|placeholder|insert|your)[_\-\s]", re.IGNORECASE,
)
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

_URL_HOST_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://[^/]*")

# Ruby interpolation of the declared version inside a URL
VERSION_INTERPOLATION = "#{version}"

_ARCHIVE_EXT_RE = re.compile(
    r"\.(?:tar\.gz|tgz|tar\.bz2|tbz2?|tar\.xz|txz|tar\.zst|tar|zip)$", re.IGNORECASE,
)

# Where a version/tag token sits in a source URL path, most specific first
_URL_TAG_PATTERNS = (
    re.compile(r"/archive/refs/tags/([^/]+)$"),
    re.compile(r"/releases/download/([^/]+)/[^/]+$"),
    re.compile(r"/tags/([^/]+)$"),
    re.compile(r"/archive/([^/]+)$"),
)

# Fallback: name-1.2.3.tar.gz
_FILENAME_VERSION_RE = re.compile(r"[-_]v?(\d+(?:\.\d+)+[0-9A-Za-z.+-]*)$")

_VERSION_CORE_RE = re.compile(r"\d[0-9A-Za-z.+-]*")

_DEPENDENCY_RE = re.compile(r"^[a-z0-9][a-z0-9@+._/-]*$")

_MODE_RE = re.compile(r"^0?[0-7]{3,4}$")

_COMMAND_ROOT_RE = re.compile(r"^#?\{(\w+)\}(/.*)?$")


# ── Helpers ─────────────────────────────────────────────────────


def extract_url_version(url: str) -> str | None:
    """Pull the version/tag token out of an archive URL.

    Examples::

        .../archive/refs/tags/v1.0.0.tar.gz   → "v1.0.0"
        .../releases/download/v2.1/tool.zip   → "v2.1"
        .../tool-3.4.5.tar.gz                 → "3.4.5"

    Returns:
        The raw token (archive extension stripped), or None.
    """
    # "#" is literal here; "v#{version}" is an interpolation, not a fragment
    path = _URL_HOST_RE.sub("", url.strip()).split("?", 1)[0] if url else ""
    if not path:
        return None

    for pattern in _URL_TAG_PATTERNS:
        m = pattern.search(path)
        if m:
            token = _ARCHIVE_EXT_RE.sub("", m.group(1))
            return token or None

    filename = _ARCHIVE_EXT_RE.sub("", path.rsplit("/", 1)[-1])
    m = _FILENAME_VERSION_RE.search(filename)
    return m.group(1) if m else None


def normalize_version(token: str) -> str:
    """Drop tag decoration (``v``, ``release-``) to compare versions."""
    m = _VERSION_CORE_RE.search(token)
    return m.group(0) if m else token.strip()


def formula_class_name(name: str) -> str:
    """Class name Homebrew expects for a formula file name.

    ``stack_refreshr_cli`` → ``StackRefreshrCli``,
    ``python@3.12`` → ``PythonAT312``.
    """
    s = name[:1].upper() + name[1:].lower()
    s = re.sub(r"[-_.\s]([a-zA-Z0-9])", lambda m: m.group(1).upper(), s)
    s = s.replace("+", "x")
    return re.sub(r"(.)@(\d)", r"\1AT\2", s, count=1)


def _norm_path(path: str) -> str:
    path = path.strip()
    if not path:
        return ""
    return posixpath.normpath(path)


def _is_created(path: str, created: list[str]) -> bool:
    """True if ``path`` is a created path or lies inside one."""
    target = _norm_path(path)
    for c in map(_norm_path, created):
        if target == c or target.startswith(c + "/"):
            return True
    return False


def _command_path(command: str) -> str | None:
    """Executable of a smoke-test command, as an install-root path.

    ``#{bin}/tool --help`` and ``{bin}/tool`` → ``bin/tool``;
    a bare ``tool`` is looked up in ``bin``.
    """
    parts = command.split()
    if not parts:
        return None
    exe = parts[0].strip("'\"")

    m = _COMMAND_ROOT_RE.match(exe)
    if m:
        return _norm_path(m.group(1) + (m.group(2) or ""))
    if exe.startswith("/"):
        return None
    if "/" not in exe:
        return f"bin/{exe}"
    return _norm_path(exe)


# ── Individual checks ───────────────────────────────────────────


def _check_required(f: PackageFormula) -> list[ValidationIssue]:
    issues = []
    for name in REQUIRED_FIELDS:
        if not getattr(f, name).strip():
            issues.append(ValidationIssue.of(
                IssueKind.MISSING_FIELD, name, f"'{name}' is required",
            ))
    return issues


def _check_urls(f: PackageFormula) -> list[ValidationIssue]:
    issues = []
    for name in ("homepage", "source_url"):
        value = getattr(f, name).strip()
        if not value:
            continue  # reported as missing
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            issues.append(ValidationIssue.of(
                IssueKind.MALFORMED_URL, name,
                f"'{value}' is not an http(s) URL with a host",
            ))
    return issues


def _checksum_problem(f: PackageFormula, settings: CheckSettings) -> str | None:
    """Describe what is wrong with the checksum, or None."""
    value = f.checksum.strip()
    algorithm = (f.checksum_algorithm or settings.checksum_algorithm).lower()

    if not value:
        return "checksum is empty"

    expected_len = DIGEST_LENGTHS.get(algorithm)
    if expected_len is None:
        return (
            f"unknown checksum algorithm '{algorithm}' — "
            f"must be one of {sorted(DIGEST_LENGTHS)}"
        )

    placeholders = PLACEHOLDER_CHECKSUMS | {p.upper() for p in settings.placeholders}
    if value.upper() in placeholders or _PLACEHOLDER_PREFIX_RE.match(value):
        return f"checksum '{value}' is a placeholder, not a real digest"

    if not _HEX_RE.match(value):
        return "checksum contains non-hex characters"

    if len(value) != expected_len:
        return (
            f"{algorithm} checksum must be {expected_len} hex characters, "
            f"got {len(value)}"
        )

    if set(value) == {"0"}:
        return "checksum is all zeros"

    return None


def _check_checksum(f: PackageFormula, settings: CheckSettings) -> list[ValidationIssue]:
    problem = _checksum_problem(f, settings)
    if problem is None:
        return []
    return [ValidationIssue.of(IssueKind.INVALID_CHECKSUM, "checksum", problem)]


def _check_version(f: PackageFormula) -> list[ValidationIssue]:
    if not f.source_url.strip() or not f.version.strip():
        return []  # reported as missing

    url = f.source_url.replace(VERSION_INTERPOLATION, f.version.strip())
    token = extract_url_version(url)
    if token is None:
        return [ValidationIssue.of(
            IssueKind.VERSION_MISMATCH, "source_url",
            "source URL carries no version or tag token",
        )]

    if normalize_version(token) != normalize_version(f.version):
        return [ValidationIssue.of(
            IssueKind.VERSION_MISMATCH, "version",
            f"source URL carries version '{token}' but version is '{f.version}'",
        )]
    return []


def _check_dependencies(f: PackageFormula) -> list[ValidationIssue]:
    issues = []
    for dep in sorted(f.dependencies):
        if not dep.strip():
            issues.append(ValidationIssue.of(
                IssueKind.INVALID_DEPENDENCY_NAME, "dependencies",
                "dependency name is empty",
            ))
        elif not _DEPENDENCY_RE.match(dep):
            issues.append(ValidationIssue.of(
                IssueKind.INVALID_DEPENDENCY_NAME, "dependencies",
                f"'{dep}' is not a lowercase tool name",
            ))
    return issues


def _check_install_steps(f: PackageFormula) -> list[ValidationIssue]:
    """Validate step shape and create-before-use ordering.

    Walks the steps in order, tracking paths created so far.  A
    ``chmod`` target, or a completion source inside an install root,
    must already exist at that point.
    """
    issues: list[ValidationIssue] = []
    created: list[str] = []

    for i, step in enumerate(f.install_steps):
        prefix = f"install_steps[{i}]"

        if step.op not in STEP_OPS:
            issues.append(ValidationIssue.of(
                IssueKind.INVALID_INSTALL_STEP, prefix,
                f"unknown op '{step.op}' — must be one of {list(STEP_OPS)}",
            ))
            continue

        if not step.path.strip():
            issues.append(ValidationIssue.of(
                IssueKind.INVALID_INSTALL_STEP, prefix, f"'{step.op}' step has no path",
            ))

        if step.op == "chmod":
            if step.mode is not None and not _MODE_RE.match(step.mode):
                issues.append(ValidationIssue.of(
                    IssueKind.INVALID_INSTALL_STEP, prefix,
                    f"'{step.mode}' is not an octal file mode",
                ))
            if step.path.strip() and not _is_created(step.path, created):
                issues.append(ValidationIssue.of(
                    IssueKind.ORDERING_VIOLATION, prefix,
                    f"chmod on '{step.path}' before any step creates it",
                ))

        elif step.op == "register_completion":
            if not step.shell:
                issues.append(ValidationIssue.of(
                    IssueKind.INVALID_INSTALL_STEP, prefix,
                    "completion step names no shell",
                ))
            elif step.shell not in COMPLETION_SHELLS:
                issues.append(ValidationIssue.of(
                    IssueKind.INVALID_INSTALL_STEP, prefix,
                    f"unsupported completion shell '{step.shell}' — "
                    f"must be one of {list(COMPLETION_SHELLS)}",
                ))
            source = _norm_path(step.source or "")
            if (
                source
                and source.split("/", 1)[0] in INSTALL_ROOTS
                and not _is_created(source, created)
            ):
                issues.append(ValidationIssue.of(
                    IssueKind.ORDERING_VIOLATION, prefix,
                    f"completion source '{step.source}' is used before any step creates it",
                ))

        if step.creates_path and step.path.strip():
            created.append(_norm_path(step.path))

    return issues


def _check_smoke_test(f: PackageFormula) -> list[ValidationIssue]:
    test = f.smoke_test
    if test is None:
        return [ValidationIssue.of(
            IssueKind.INVALID_SMOKE_TEST, "smoke_test", "no smoke test defined",
        )]

    issues = []
    if not test.expect_substring:
        issues.append(ValidationIssue.of(
            IssueKind.INVALID_SMOKE_TEST, "smoke_test.expect_substring",
            "expected output substring is empty",
        ))

    exe = _command_path(test.command)
    if exe is None:
        issues.append(ValidationIssue.of(
            IssueKind.INVALID_SMOKE_TEST, "smoke_test.command",
            "command is empty" if not test.command.strip()
            else f"command '{test.command}' does not run an installed path",
        ))
    elif not _is_created(exe, f.created_paths()):
        issues.append(ValidationIssue.of(
            IssueKind.INVALID_SMOKE_TEST, "smoke_test.command",
            f"command runs '{exe}', which no install step produces",
        ))
    return issues


def _check_class_name(f: PackageFormula, filename: str) -> list[ValidationIssue]:
    if not f.class_name.strip():
        return []
    stem = PurePath(filename).stem
    expected = formula_class_name(stem)
    if f.class_name != expected:
        return [ValidationIssue.of(
            IssueKind.CLASS_NAME_MISMATCH, "class_name",
            f"file '{PurePath(filename).name}' should define '{expected}', "
            f"found '{f.class_name}'",
        )]
    return []


# ── Public API ──────────────────────────────────────────────────


def validate_formula(
    formula: PackageFormula,
    settings: CheckSettings | None = None,
    filename: str | None = None,
) -> list[ValidationIssue]:
    """Validate one formula record.

    Args:
        formula: The record to check.
        settings: Validator tunables (default: built-in defaults).
        filename: Name of the formula file the record came from.  When
            given, the class name is checked against it.

    Returns:
        Ordered list of issues.  Empty means the record is accepted.
    """
    settings = settings or CheckSettings()

    issues: list[ValidationIssue] = []
    issues += _check_required(formula)
    issues += _check_urls(formula)
    issues += _check_checksum(formula, settings)
    issues += _check_version(formula)
    issues += _check_dependencies(formula)
    issues += _check_install_steps(formula)
    issues += _check_smoke_test(formula)
    if filename:
        issues += _check_class_name(formula, filename)

    logger.debug(
        "Validated %s: %d issue(s)", formula.class_name or "<unnamed>", len(issues),
    )
    return issues


def is_accepted(issues: list[ValidationIssue], strict: bool = False) -> bool:
    """Whether a record with these issues passes.

    Warnings pass unless ``strict`` is set.
    """
    if strict:
        return not issues
    return not any(i.is_error for i in issues)
