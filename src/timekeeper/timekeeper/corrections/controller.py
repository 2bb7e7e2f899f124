from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, int_arg, json_body, login_required
from ..core.constants import DEFAULT_PAGE, DEFAULT_PER_PAGE
from ..core.exceptions import ValidationError
from ..container import Container
from .model import CorrectionChanges
from .service import parse_status_filter


def register(app: Flask, container: Container) -> None:
    service = container.correction_service

    # -------- Employee --------
    @app.route("/api/attendance-corrections", methods=["GET"], endpoint="my_corrections")
    @login_required
    def my_corrections(actor):
        rows = service.list_my_requests(actor=actor)
        return jsonify([r.to_response() for r in rows])

    @app.route("/api/attendance-corrections", methods=["POST"], endpoint="create_correction")
    @login_required
    def create_correction(actor):
        data = json_body()
        raw_date = data.get("date")
        if not raw_date:
            raise ValidationError("date is required")
        created = service.create_request(
            actor=actor,
            work_date=parse_iso_date(str(raw_date)),
            reason=data.get("reason"),
            changes=CorrectionChanges.from_payload(data),
        )
        return jsonify(created.to_response()), 201

    @app.route("/api/attendance-corrections/<int:request_id>", methods=["GET"], endpoint="get_my_correction")
    @login_required
    def get_my_correction(actor, request_id: int):
        return jsonify(service.get_my_request(actor=actor, request_id=request_id).to_response())

    @app.route("/api/attendance-corrections/<int:request_id>", methods=["PUT"], endpoint="update_correction")
    @login_required
    def update_correction(actor, request_id: int):
        data = json_body()
        updated = service.update_request(
            actor=actor,
            request_id=request_id,
            reason=data.get("reason"),
            changes=CorrectionChanges.from_payload(data),
        )
        return jsonify(updated.to_response())

    @app.route("/api/attendance-corrections/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_correction")
    @login_required
    def cancel_correction(actor, request_id: int):
        return jsonify(service.cancel(actor=actor, request_id=request_id).to_response())

    # -------- Admin --------
    @app.route("/api/admin/attendance-corrections", methods=["GET"], endpoint="admin_corrections")
    @admin_required
    def admin_corrections(actor):
        page = int_arg("page", DEFAULT_PAGE)
        per_page = int_arg("per_page", DEFAULT_PER_PAGE)
        rows = service.list_requests(
            actor=actor,
            status=parse_status_filter(request.args.get("status")),
            user_id=int_arg("user_id"),
            page=page,
            per_page=per_page,
        )
        return jsonify({"page": page, "items": [r.to_response() for r in rows]})

    @app.route("/api/admin/attendance-corrections/<int:request_id>", methods=["GET"], endpoint="admin_correction_detail")
    @admin_required
    def admin_correction_detail(actor, request_id: int):
        found = service.get_request(actor=actor, request_id=request_id)
        effective = service.get_effective_values(actor=actor, attendance_ids=[found.attendance_id])
        body = found.to_response()
        body["effective_values"] = [e.to_dict() for e in effective if e.source_request_id == found.request_id]
        return jsonify(body)

    @app.route(
        "/api/admin/attendance-corrections/<int:request_id>/approve",
        methods=["POST"],
        endpoint="approve_correction",
    )
    @admin_required
    def approve_correction(actor, request_id: int):
        data = json_body()
        approved = service.approve(actor=actor, request_id=request_id, comment=data.get("comment"))
        return jsonify(approved.to_response())

    @app.route(
        "/api/admin/attendance-corrections/<int:request_id>/reject",
        methods=["POST"],
        endpoint="reject_correction",
    )
    @admin_required
    def reject_correction(actor, request_id: int):
        data = json_body()
        rejected = service.reject(actor=actor, request_id=request_id, comment=data.get("comment"))
        return jsonify(rejected.to_response())
