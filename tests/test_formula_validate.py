"""
Tests for formula record validation — every check, plus the batch-free
properties (accepted records, idempotence, independence of checks).
"""

import pytest

from brewcheck.core.models import CheckSettings, IssueKind, PackageFormula
from brewcheck.core.services.formula_validate import (
    extract_url_version,
    formula_class_name,
    is_accepted,
    normalize_version,
    validate_formula,
)


def _formula(data: dict, **overrides) -> PackageFormula:
    return PackageFormula.model_validate({**data, **overrides})


def _kinds(issues) -> list[IssueKind]:
    return [i.kind for i in issues]


class TestAcceptedRecord:
    def test_valid_record_has_no_issues(self, valid_record: dict):
        assert validate_formula(_formula(valid_record)) == []

    def test_idempotent(self, valid_record: dict):
        f = _formula(valid_record, checksum="nope", version="9.9")
        assert validate_formula(f) == validate_formula(f)

    def test_placeholder_scenario(self, valid_record: dict):
        """Placeholder checksum + tag ahead of the declared version."""
        f = _formula(
            valid_record,
            checksum="REPLACE_WITH_REAL_SHA256",
            version="1.0.0",
            source_url="https://github.com/example/tool/archive/refs/tags/v1.2.1.tar.gz",
        )
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM, IssueKind.VERSION_MISMATCH]
        assert [i.severity for i in issues] == ["error", "warning"]


class TestRequiredFields:
    @pytest.mark.parametrize(
        "name", ["class_name", "homepage", "source_url", "license", "version"],
    )
    def test_missing_field(self, valid_record: dict, name: str):
        issues = validate_formula(_formula(valid_record, **{name: ""}))
        assert _kinds(issues) == [IssueKind.MISSING_FIELD]
        assert issues[0].field == name

    def test_whitespace_only_is_missing(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, license="   "))
        assert _kinds(issues) == [IssueKind.MISSING_FIELD]

    def test_missing_checksum_also_invalid(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum=""))
        assert _kinds(issues) == [IssueKind.MISSING_FIELD, IssueKind.INVALID_CHECKSUM]

    def test_all_missing_reported_together(self):
        issues = validate_formula(PackageFormula())
        missing = [i.field for i in issues if i.kind == IssueKind.MISSING_FIELD]
        assert missing == [
            "class_name", "homepage", "source_url", "checksum", "license", "version",
        ]


class TestUrls:
    @pytest.mark.parametrize(
        "url", ["github.com/example/tool", "ftp://example.com/tool", "https://"],
    )
    def test_malformed_homepage(self, valid_record: dict, url: str):
        issues = validate_formula(_formula(valid_record, homepage=url))
        assert _kinds(issues) == [IssueKind.MALFORMED_URL]
        assert issues[0].field == "homepage"

    def test_malformed_source_url(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, source_url="not a url/v1.0.0.tar.gz"))
        assert IssueKind.MALFORMED_URL in _kinds(issues)


class TestChecksum:
    def test_placeholder_only_issue(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum="REPLACE_WITH_REAL_SHA256"))
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]
        assert "placeholder" in issues[0].message

    def test_placeholder_case_insensitive(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum="replace_me"))
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]

    def test_settings_placeholder(self, valid_record: dict):
        settings = CheckSettings(placeholders=["OUR_FAKE_DIGEST"])
        issues = validate_formula(_formula(valid_record, checksum="OUR_FAKE_DIGEST"), settings)
        assert "placeholder" in issues[0].message

    def test_wrong_length(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum="abc123"))
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]
        assert "64" in issues[0].message

    def test_non_hex(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum="g" * 64))
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]
        assert "non-hex" in issues[0].message

    def test_all_zero(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, checksum="0" * 64))
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]

    def test_uppercase_hex_accepted(self, valid_record: dict):
        upper = valid_record["checksum"].upper()
        assert validate_formula(_formula(valid_record, checksum=upper)) == []

    def test_sha512_length(self, valid_record: dict):
        f = _formula(valid_record, checksum="ab" * 64, checksum_algorithm="sha512")
        assert validate_formula(f) == []

    def test_sha512_rejects_sha256_digest(self, valid_record: dict):
        f = _formula(valid_record, checksum_algorithm="sha512")
        assert _kinds(validate_formula(f)) == [IssueKind.INVALID_CHECKSUM]

    def test_settings_default_algorithm(self, valid_record: dict):
        settings = CheckSettings(checksum_algorithm="sha1")
        f = _formula(valid_record, checksum="a" * 40)
        assert validate_formula(f, settings) == []

    def test_unknown_algorithm(self, valid_record: dict):
        f = _formula(valid_record, checksum_algorithm="crc32")
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_CHECKSUM]
        assert "crc32" in issues[0].message


class TestVersion:
    def test_mismatch_is_warning_and_still_accepted(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, version="2.0.0"))
        assert _kinds(issues) == [IssueKind.VERSION_MISMATCH]
        assert issues[0].severity == "warning"
        assert is_accepted(issues)
        assert not is_accepted(issues, strict=True)

    def test_leading_v_ignored(self, valid_record: dict):
        assert validate_formula(_formula(valid_record, version="v1.0.0")) == []

    def test_no_token(self, valid_record: dict):
        f = _formula(valid_record, source_url="https://example.com/download/latest.tar.gz")
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.VERSION_MISMATCH]
        assert issues[0].field == "source_url"

    def test_interpolated_version(self, valid_record: dict):
        url = "https://github.com/example/stack-refreshr/archive/refs/tags/v#{version}.tar.gz"
        assert validate_formula(_formula(valid_record, source_url=url)) == []


class TestExtractUrlVersion:
    @pytest.mark.parametrize(
        ("url", "token"),
        [
            ("https://github.com/o/r/archive/refs/tags/v1.0.0.tar.gz", "v1.0.0"),
            ("https://github.com/o/r/archive/v2.3.tar.gz", "v2.3"),
            ("https://gitlab.com/o/r/-/tags/1.4.0.zip", "1.4.0"),
            ("https://github.com/o/r/releases/download/v0.9.1/tool-mac.tar.gz", "v0.9.1"),
            ("https://example.com/dist/tool-3.4.5.tar.xz", "3.4.5"),
            ("https://example.com/dist/tool.tar.gz", None),
            ("https://github.com/o/r/archive/refs/tags/v#{version}.tar.gz", "v#{version}"),
            ("https://example.com/dist/tool-1.2.0.tar.gz?raw=1", "1.2.0"),
            ("", None),
        ],
    )
    def test_extract(self, url: str, token):
        assert extract_url_version(url) == token

    @pytest.mark.parametrize(
        ("token", "expected"),
        [("v1.2.3", "1.2.3"), ("release-2.0", "2.0"), ("1.0.0-rc1", "1.0.0-rc1")],
    )
    def test_normalize(self, token: str, expected: str):
        assert normalize_version(token) == expected


class TestDependencies:
    @pytest.mark.parametrize("dep", ["JQ", "my tool", "-flag"])
    def test_invalid_names(self, valid_record: dict, dep: str):
        issues = validate_formula(_formula(valid_record, dependencies=["bash", dep]))
        assert _kinds(issues) == [IssueKind.INVALID_DEPENDENCY_NAME]
        assert dep in issues[0].message

    def test_empty_name(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, dependencies=[""]))
        assert _kinds(issues) == [IssueKind.INVALID_DEPENDENCY_NAME]

    @pytest.mark.parametrize("dep", ["python@3.12", "gnu-sed", "libxml2", "user/tap/tool"])
    def test_valid_names(self, valid_record: dict, dep: str):
        assert validate_formula(_formula(valid_record, dependencies=[dep])) == []

    def test_sorted_output(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, dependencies=["ZED", "ALPHA"]))
        assert "ALPHA" in issues[0].message
        assert "ZED" in issues[1].message


class TestInstallSteps:
    def _steps(self, valid_record: dict, steps: list[dict]) -> PackageFormula:
        # keep the smoke test satisfiable
        steps = [{"op": "copy", "path": "bin/stack_refreshr"}, *steps]
        return _formula(valid_record, install_steps=steps)

    def test_chmod_before_create(self, valid_record: dict):
        f = _formula(valid_record, install_steps=[
            {"op": "chmod", "path": "bin/stack_refreshr", "mode": "0755"},
            {"op": "copy", "path": "bin/stack_refreshr"},
        ])
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.ORDERING_VIOLATION]
        assert issues[0].field == "install_steps[0]"

    def test_chmod_never_created(self, valid_record: dict):
        f = self._steps(valid_record, [{"op": "chmod", "path": "bin/other"}])
        assert _kinds(validate_formula(f)) == [IssueKind.ORDERING_VIOLATION]

    def test_chmod_inside_created_directory(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "copy", "path": "libexec", "source": "*"},
            {"op": "chmod", "path": "libexec/bin/stack_refreshr"},
        ])
        assert validate_formula(f) == []

    def test_chmod_after_move(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "move", "path": "bin/tool", "source": "bin/tool.sh"},
            {"op": "chmod", "path": "./bin/tool"},
        ])
        assert validate_formula(f) == []

    def test_sibling_prefix_not_inside(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "copy", "path": "lib"},
            {"op": "chmod", "path": "libexec/tool"},
        ])
        assert _kinds(validate_formula(f)) == [IssueKind.ORDERING_VIOLATION]

    def test_unknown_op(self, valid_record: dict):
        f = self._steps(valid_record, [{"op": "symlink", "path": "bin/x"}])
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_INSTALL_STEP]
        assert "symlink" in issues[0].message

    def test_empty_path(self, valid_record: dict):
        f = self._steps(valid_record, [{"op": "copy", "path": ""}])
        assert _kinds(validate_formula(f)) == [IssueKind.INVALID_INSTALL_STEP]

    def test_bad_mode(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "chmod", "path": "bin/stack_refreshr", "mode": "rwx"},
        ])
        assert _kinds(validate_formula(f)) == [IssueKind.INVALID_INSTALL_STEP]

    def test_unsupported_shell(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "register_completion", "path": "completions/x", "shell": "powershell"},
        ])
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_INSTALL_STEP]
        assert "powershell" in issues[0].message

    def test_completion_without_shell(self, valid_record: dict):
        f = self._steps(valid_record, [
            {"op": "register_completion", "path": "completions/x"},
        ])
        assert _kinds(validate_formula(f)) == [IssueKind.INVALID_INSTALL_STEP]

    @pytest.mark.parametrize("shell", ["bash", "zsh", "fish"])
    def test_supported_shells(self, valid_record: dict, shell: str):
        f = self._steps(valid_record, [
            {"op": "register_completion", "path": f"{shell}_completion/x", "shell": shell},
        ])
        assert validate_formula(f) == []

    def test_completion_source_in_uncreated_root(self, valid_record: dict):
        f = self._steps(valid_record, [{
            "op": "register_completion",
            "path": "fish_completion/x.fish",
            "source": "libexec/completions/x.fish",
            "shell": "fish",
        }])
        assert _kinds(validate_formula(f)) == [IssueKind.ORDERING_VIOLATION]

    @pytest.mark.parametrize("source", ["doc/x.fish", "man1/x.fish", "sbin/x.fish"])
    def test_every_install_root_needs_creating(self, valid_record: dict, source: str):
        f = self._steps(valid_record, [{
            "op": "register_completion",
            "path": "fish_completion/x.fish",
            "source": source,
            "shell": "fish",
        }])
        assert _kinds(validate_formula(f)) == [IssueKind.ORDERING_VIOLATION]

    def test_completion_source_from_archive(self, valid_record: dict):
        """Sources outside the install roots come from the unpacked archive."""
        f = self._steps(valid_record, [{
            "op": "register_completion",
            "path": "fish_completion/x.fish",
            "source": "completions/x.fish",
            "shell": "fish",
        }])
        assert validate_formula(f) == []


class TestSmokeTest:
    def test_missing(self, valid_record: dict):
        issues = validate_formula(_formula(valid_record, smoke_test=None))
        assert _kinds(issues) == [IssueKind.INVALID_SMOKE_TEST]

    def test_empty_expectation(self, valid_record: dict):
        f = _formula(valid_record, smoke_test={
            "command": "#{bin}/stack_refreshr --help", "expect_substring": "",
        })
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_SMOKE_TEST]
        assert issues[0].field == "smoke_test.expect_substring"

    def test_command_not_installed(self, valid_record: dict):
        f = _formula(valid_record, smoke_test={
            "command": "#{bin}/other --help", "expect_substring": "Usage",
        })
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_SMOKE_TEST]
        assert "bin/other" in issues[0].message

    @pytest.mark.parametrize(
        "command",
        ["{bin}/stack_refreshr --help", "stack_refreshr --help", "bin/stack_refreshr"],
    )
    def test_command_forms(self, valid_record: dict, command: str):
        f = _formula(valid_record, smoke_test={
            "command": command, "expect_substring": "Usage",
        })
        assert validate_formula(f) == []

    @pytest.mark.parametrize("path", ["./bin/stack_refreshr", "bin/", "./bin"])
    def test_created_path_spelling(self, valid_record: dict, path: str):
        f = _formula(valid_record, install_steps=[
            {"op": "copy", "path": path},
            {"op": "chmod", "path": "bin/stack_refreshr", "mode": "0755"},
        ])
        assert validate_formula(f) == []

    def test_absolute_command(self, valid_record: dict):
        f = _formula(valid_record, smoke_test={
            "command": "/usr/bin/env true", "expect_substring": "x",
        })
        assert _kinds(validate_formula(f)) == [IssueKind.INVALID_SMOKE_TEST]

    def test_empty_command(self, valid_record: dict):
        f = _formula(valid_record, smoke_test={"command": "", "expect_substring": "x"})
        issues = validate_formula(f)
        assert _kinds(issues) == [IssueKind.INVALID_SMOKE_TEST]
        assert issues[0].message == "command is empty"


class TestClassName:
    @pytest.mark.parametrize(
        ("stem", "expected"),
        [
            ("stack_refreshr_cli", "StackRefreshrCli"),
            ("stack-refrehsr-cli", "StackRefrehsrCli"),
            ("python@3.12", "PythonAT312"),
            ("gtk+3", "Gtkx3"),
            ("jq", "Jq"),
        ],
    )
    def test_formula_class_name(self, stem: str, expected: str):
        assert formula_class_name(stem) == expected

    def test_matching_filename(self, valid_record: dict):
        f = _formula(valid_record)
        assert validate_formula(f, filename="Formula/stack_refreshr_cli.rb") == []

    def test_mismatched_filename(self, valid_record: dict):
        f = _formula(valid_record, class_name="SlimContainerCli")
        issues = validate_formula(f, filename="stack-refrehsr-cli.rb")
        assert _kinds(issues) == [IssueKind.CLASS_NAME_MISMATCH]
        assert issues[0].severity == "warning"
        assert "StackRefrehsrCli" in issues[0].message

    def test_no_filename_no_check(self, valid_record: dict):
        f = _formula(valid_record, class_name="Anything")
        assert validate_formula(f) == []
