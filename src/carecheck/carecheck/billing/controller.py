from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..attendance.controller import error_response
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import MonthWindow

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _parse_window(value: str | None) -> MonthWindow | None:
        if not value:
            return None
        try:
            return MonthWindow.parse(value)
        except ValueError:
            raise ValidationError("month must be formatted YYYY-MM") from None

    def _parse_rate(value: str | None) -> float | None:
        if value in (None, ""):
            return None
        try:
            rate = float(value)
        except ValueError:
            raise ValidationError("fallback_rate must be a number") from None
        if rate <= 0:
            raise ValidationError("fallback_rate must be positive")
        return rate

    @app.route("/api/beneficiaries/<int:beneficiary_id>/summary", methods=["GET"], endpoint="api_monthly_summary")
    def api_monthly_summary(beneficiary_id: int):
        """Monthly bill: per caregiver figures, totals, unpaired events, warnings."""
        try:
            window = _parse_window(request.args.get("month"))
            summary = container.monthly_summary_service.compute_monthly_summary(
                beneficiary_id,
                window,
                fallback_rate=_parse_rate(request.args.get("fallback_rate")),
            )
            return jsonify({"success": True, **summary.to_dict()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Monthly summary failed for beneficiary %s", beneficiary_id)
            return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500
