"""
Settings model — optional brewcheck.yml.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CheckSettings(BaseModel):
    """Tunables for the validator and the batch use case."""

    # Digest algorithm assumed when a record does not name one
    checksum_algorithm: str = "sha256"

    # Extra placeholder strings, on top of the built-in list
    placeholders: list[str] = Field(default_factory=list)

    # Treat warnings as failures
    strict: bool = False
