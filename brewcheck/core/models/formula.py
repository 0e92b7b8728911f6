"""
Formula model — one package formula record.

A formula describes how to fetch, install and smoke-test a packaged
tool. It is authored once per release and replaced (never edited) when
the version changes, so every model here is frozen.

The models are deliberately lenient: enumerated fields are plain
strings so that a malformed record can still be represented and
reported on by the validator instead of failing at construction.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Install-step operations.  The first three create their target path.
CREATING_OPS = ("copy", "move", "write")
STEP_OPS = (*CREATING_OPS, "chmod", "register_completion")

# Shell dialects a completion script can be registered for
COMPLETION_SHELLS = ("bash", "zsh", "fish")

# Homebrew prefix directories a formula installs into
INSTALL_ROOTS = frozenset({
    "bin", "sbin", "libexec", "lib", "share", "pkgshare", "etc",
    "include", "man", "man1", "man5", "man8", "doc", "prefix",
})


def _none_to_empty(value: Any) -> Any:
    return "" if value is None else value


class InstallStep(BaseModel):
    """A single file-placement action performed at install time."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    op: str
    path: str = ""                  # target, relative to the install root
    source: str | None = None       # where the file comes from
    shell: str | None = None        # register_completion only
    mode: str | None = None         # chmod only, octal string

    @field_validator("op", "path", mode="before")
    @classmethod
    def _blank_strings(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("mode", mode="before")
    @classmethod
    def _int_mode_to_octal(cls, v: Any) -> Any:
        """An integer mode is a permission value, as YAML reads ``0755``."""
        if isinstance(v, int) and not isinstance(v, bool):
            return f"0{v:o}"
        return v

    @property
    def creates_path(self) -> bool:
        """Whether this step brings ``path`` into existence."""
        return self.op in CREATING_OPS


class SmokeTest(BaseModel):
    """Post-install check: run ``command``, expect a substring."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    command: str = ""
    expect_substring: str = ""

    @field_validator("command", "expect_substring", mode="before")
    @classmethod
    def _blank_strings(cls, v: Any) -> Any:
        return _none_to_empty(v)


class PackageFormula(BaseModel):
    """A declarative package-installation descriptor."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    class_name: str = ""
    description: str = ""
    homepage: str = ""
    source_url: str = ""
    checksum: str = ""
    checksum_algorithm: str = ""    # empty = settings default
    license: str = ""
    version: str = ""

    dependencies: frozenset[str] = Field(default_factory=frozenset)
    install_steps: tuple[InstallStep, ...] = ()
    post_install_message: str = ""
    smoke_test: SmokeTest | None = None

    @field_validator(
        "class_name", "description", "homepage", "source_url", "checksum",
        "checksum_algorithm", "license", "version", "post_install_message",
        mode="before",
    )
    @classmethod
    def _blank_strings(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("dependencies", "install_steps", mode="before")
    @classmethod
    def _blank_collections(cls, v: Any) -> Any:
        return () if v is None else v

    def created_paths(self) -> list[str]:
        """Target paths of every step that creates a file or directory."""
        return [s.path for s in self.install_steps if s.creates_path and s.path]

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["dependencies"] = sorted(self.dependencies)
        return data
