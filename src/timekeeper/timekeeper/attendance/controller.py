from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import login_required
from ..container import Container
from .service import attendance_to_dict


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in(actor):
        record = service.clock_in(actor.user_id)
        return jsonify(attendance_to_dict(record)), 201

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out(actor):
        record = service.clock_out(actor.user_id)
        return jsonify(attendance_to_dict(record))

    @app.route("/api/attendance/break-start", methods=["POST"], endpoint="break_start")
    @login_required
    def break_start(actor):
        break_id = service.start_break(actor.user_id)
        return jsonify({"id": break_id}), 201

    @app.route("/api/attendance/break-end", methods=["POST"], endpoint="break_end")
    @login_required
    def break_end(actor):
        service.end_break(actor.user_id)
        return jsonify({"status": "ok"})

    @app.route("/api/attendance/day", methods=["GET"], endpoint="attendance_day")
    @login_required
    def attendance_day(actor):
        raw = request.args.get("date")
        work_date = parse_iso_date(raw) if raw else date.today()
        return jsonify(service.get_day(actor.user_id, work_date))
