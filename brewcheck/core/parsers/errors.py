"""
Record loading errors.
"""

from __future__ import annotations


class FormulaLoadError(Exception):
    """Raised when a formula record cannot be read or parsed."""
