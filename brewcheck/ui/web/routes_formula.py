"""
Formula routes — validation endpoints.

Blueprint: formula_bp
Prefix: /api

Thin HTTP wrappers over ``brewcheck.core.use_cases.validate``.

Endpoints:
    POST /formulas/validate  — validate one or more records
    GET  /formulas/checks    — issue kinds and severities
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from brewcheck.core.models import (
    KIND_DESCRIPTIONS,
    CheckSettings,
    IssueKind,
    ValidationIssue,
    default_severity,
)
from brewcheck.core.parsers.errors import FormulaLoadError
from brewcheck.core.parsers.record_loader import formula_from_mapping
from brewcheck.core.parsers.ruby_formula import parse_formula_rb
from brewcheck.core.use_cases.validate import RecordReport, validate_record

logger = logging.getLogger(__name__)

formula_bp = Blueprint("formula", __name__)


def _settings() -> CheckSettings:
    return current_app.config["CHECK_SETTINGS"]


def _report_for(item: object, index: int, settings: CheckSettings) -> RecordReport:
    """Validate one request item; load failures become issues."""
    source = f"records[{index}]"
    try:
        if isinstance(item, dict) and isinstance(item.get("ruby"), str):
            filename = item.get("filename")
            if filename is not None and not isinstance(filename, str):
                raise FormulaLoadError(f"{source}: 'filename' must be a string")
            record = parse_formula_rb(item["ruby"], source=source)
            filename = filename or None
        else:
            record = formula_from_mapping(item, source=source)
            filename = None
    except FormulaLoadError as e:
        return RecordReport(
            path=source,
            issues=[ValidationIssue.of(IssueKind.UNREADABLE_RECORD, "record", str(e))],
            strict=settings.strict,
        )
    return validate_record(record, settings=settings, path=source, filename=filename)


@formula_bp.route("/formulas/validate", methods=["POST"])
def formulas_validate():  # type: ignore[no-untyped-def]
    """Validate a record, a list of records, or Ruby formula source.

    Body: ``{...record...}``, ``[{...}, ...]`` or
    ``{"ruby": "<formula source>", "filename": "tool.rb"}``.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Request body must be JSON"}), 400

    items = payload if isinstance(payload, list) else [payload]
    settings = _settings()
    reports = [_report_for(item, i, settings) for i, item in enumerate(items)]

    logger.debug("Validated %d record(s) over HTTP", len(reports))
    return jsonify({
        "valid": all(r.valid for r in reports),
        "results": [r.to_dict() for r in reports],
    })


@formula_bp.route("/formulas/checks")
def formulas_checks():  # type: ignore[no-untyped-def]
    """Issue kinds and their default severities."""
    return jsonify([
        {"kind": k.value, "severity": default_severity(k), "description": d}
        for k, d in KIND_DESCRIPTIONS.items()
    ])
