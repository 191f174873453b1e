from __future__ import annotations

import io
import logging
from typing import Any, Optional

import qrcode
from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_instant
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def error_response(exc: DomainError):
    return jsonify({"success": False, "error": exc.code, "message": str(exc)}), exc.http_status


def _parse_timestamp(value: Any, field_name: str):
    if value in (None, ""):
        return None
    try:
        return parse_instant(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp") from None


def register(app: Flask, container: Container) -> None:
    def _json_body() -> dict:
        data: Optional[dict] = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    @app.route("/api/nfc/challenge", methods=["POST"], endpoint="api_issue_challenge")
    def api_issue_challenge():
        """Step 1 of a tap: trade the card/QR secret for a single-use token."""
        try:
            data = _json_body()
            issued = container.challenge_authority.issue_challenge(
                code=data.get("qr_code"),
                presented_secret=data.get("secret"),
                method=data.get("method"),
                client_timestamp=_parse_timestamp(data.get("timestamp"), "timestamp"),
            )
            return jsonify({"success": True, **issued.to_dict()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Challenge issuance failed")
            return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500

    @app.route("/api/checkin", methods=["POST"], endpoint="api_submit_event")
    def api_submit_event():
        """Step 2 of a tap: record the check-in/check-out backed by the token."""
        try:
            data = _json_body()
            event = container.event_validator.submit_event(
                beneficiary_code=data.get("beneficiary_qr_code"),
                presented_secret=data.get("secret"),
                challenge_token=data.get("challenge_token"),
                tap_timestamp=_parse_timestamp(data.get("tap_timestamp"), "tap_timestamp"),
                method=data.get("verification_method"),
                caregiver_name=data.get("caregiver_name"),
                action=data.get("action"),
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
                photo_url=data.get("photo_url"),
                is_training=data.get("is_training"),
            )
            verb = "checked in" if event.action.value == "check-in" else "checked out"
            return jsonify({"success": True, "checkIn": event.to_dict(), "message": f"Successfully {verb}"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Check event submission failed")
            return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500

    @app.route("/api/beneficiaries/<int:beneficiary_id>/status", methods=["GET"], endpoint="api_current_status")
    def api_current_status(beneficiary_id: int):
        try:
            status = container.attendance_status_service.current_status(beneficiary_id)
            return jsonify({"success": True, **status.to_dict()}), 200
        except DomainError as e:
            return error_response(e)

    @app.route("/api/beneficiaries/<int:beneficiary_id>/qr.png", methods=["GET"], endpoint="api_beneficiary_qr")
    def api_beneficiary_qr(beneficiary_id: int):
        """QR code to print for the beneficiary's home; it opens the check-in page."""
        try:
            beneficiary = container.beneficiaries_repo.get_by_id(beneficiary_id)
            if not beneficiary:
                raise NotFoundError("Beneficiary not found")
        except DomainError as e:
            return error_response(e)

        base_url = str(app.config.get("PUBLIC_BASE_URL", "")).rstrip("/")
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(f"{base_url}/checkin/{beneficiary.qr_code}")
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)
        return send_file(buf, mimetype="image/png")
