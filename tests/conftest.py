"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def formula_dir(fixtures_dir: Path) -> Path:
    """Directory of real Homebrew formula files."""
    return fixtures_dir / "Formula"


@pytest.fixture
def records_dir(fixtures_dir: Path) -> Path:
    """Directory of key-value formula records."""
    return fixtures_dir / "records"


@pytest.fixture
def valid_record() -> dict:
    """A complete, well-formed record as decoded from YAML."""
    return {
        "class_name": "StackRefreshrCli",
        "description": "Bash-powered stack refresher",
        "homepage": "https://github.com/example/stack-refreshr",
        "source_url": (
            "https://github.com/example/stack-refreshr/archive/refs/tags/v1.0.0.tar.gz"
        ),
        "checksum": "c8891dbce241044fa40727cf777f62f9c86ef5de18540ffab0cbea598c96ff10",
        "license": "MIT",
        "version": "1.0.0",
        "dependencies": ["bash", "jq"],
        "install_steps": [
            {"op": "copy", "path": "libexec", "source": "*"},
            {"op": "write", "path": "bin/stack_refreshr"},
            {"op": "chmod", "path": "bin/stack_refreshr", "mode": "0755"},
            {
                "op": "register_completion",
                "path": "bash_completion/stack_refreshr",
                "source": "libexec/completions/stack_refreshr.bash",
                "shell": "bash",
            },
            {
                "op": "register_completion",
                "path": "zsh_completion/_stack_refreshr",
                "source": "libexec/completions/_stack_refreshr",
                "shell": "zsh",
            },
        ],
        "post_install_message": "Quickstart:\n  stack_refreshr",
        "smoke_test": {
            "command": "#{bin}/stack_refreshr --help",
            "expect_substring": "Usage: stack_refreshr",
        },
    }
