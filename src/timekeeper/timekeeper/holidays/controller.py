from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_local_datetime, parse_iso_date
from ..common.web import admin_required, int_arg, json_body, login_required
from ..core.exceptions import ValidationError
from ..container import Container
from .model import HolidayException, PublicHoliday, WeeklyHolidayRule


def _public_to_dict(h: PublicHoliday) -> dict:
    return {
        "id": h.holiday_id,
        "holiday_date": h.holiday_date.isoformat(),
        "name": h.name,
        "description": h.description,
    }


def _rule_to_dict(r: WeeklyHolidayRule) -> dict:
    return {
        "id": r.rule_id,
        "weekday": r.weekday,
        "starts_on": r.starts_on.isoformat(),
        "ends_on": r.ends_on.isoformat() if r.ends_on else None,
        "enforced_from": r.enforced_from.isoformat(),
        "enforced_to": r.enforced_to.isoformat() if r.enforced_to else None,
        "created_by": r.created_by,
        "created_at": format_local_datetime(r.created_at),
    }


def _exception_to_dict(e: HolidayException) -> dict:
    return {
        "id": e.exception_id,
        "user_id": e.user_id,
        "exception_date": e.exception_date.isoformat(),
        "override": e.override,
        "reason": e.reason,
        "created_by": e.created_by,
        "created_at": format_local_datetime(e.created_at),
    }


def _optional_date(value) -> date | None:
    if value is None or value == "":
        return None
    return parse_iso_date(str(value))


def register(app: Flask, container: Container) -> None:
    holidays = container.holiday_service
    admin = container.holiday_admin_service

    @app.route("/api/holidays/check", methods=["GET"], endpoint="holiday_check")
    @login_required
    def holiday_check(actor):
        raw = request.args.get("date")
        if not raw:
            raise ValidationError("date is required")
        day = parse_iso_date(raw)
        decision = holidays.decide(day, actor.user_id)
        return jsonify({
            "date": day.isoformat(),
            "is_holiday": decision.is_holiday,
            "reason": decision.reason.value,
        })

    @app.route("/api/holidays/month", methods=["GET"], endpoint="holiday_month")
    @login_required
    def holiday_month(actor):
        today = date.today()
        year = int_arg("year", today.year)
        month = int_arg("month", today.month)
        entries = holidays.list_month(year, month, actor.user_id)
        return jsonify({"year": year, "month": month, "holidays": [e.to_dict() for e in entries]})

    # -------- Admin: public holidays --------
    @app.route("/api/admin/holidays", methods=["GET"], endpoint="admin_list_holidays")
    @admin_required
    def admin_list_holidays(actor):
        rows = holidays.list_public_holidays(int_arg("year"))
        return jsonify([_public_to_dict(h) for h in rows])

    @app.route("/api/admin/holidays", methods=["POST"], endpoint="admin_create_holiday")
    @admin_required
    def admin_create_holiday(actor):
        data = json_body()
        holiday_id = admin.create_public_holiday(
            actor=actor,
            holiday_date=parse_iso_date(str(data.get("holiday_date") or "")),
            name=data.get("name"),
            description=data.get("description"),
        )
        return jsonify({"id": holiday_id}), 201

    @app.route("/api/admin/holidays/<int:holiday_id>", methods=["DELETE"], endpoint="admin_delete_holiday")
    @admin_required
    def admin_delete_holiday(actor, holiday_id: int):
        admin.delete_public_holiday(actor=actor, holiday_id=holiday_id)
        return "", 204

    # -------- Admin: weekly rules --------
    @app.route("/api/admin/weekly-holidays", methods=["GET"], endpoint="admin_list_weekly_holidays")
    @admin_required
    def admin_list_weekly_holidays(actor):
        return jsonify([_rule_to_dict(r) for r in admin.list_weekly_rules()])

    @app.route("/api/admin/weekly-holidays", methods=["POST"], endpoint="admin_create_weekly_holiday")
    @admin_required
    def admin_create_weekly_holiday(actor):
        data = json_body()
        weekday = data.get("weekday")
        if not isinstance(weekday, int) or isinstance(weekday, bool):
            raise ValidationError("weekday must be an integer between 0 and 6")
        rule_id = admin.create_weekly_rule(
            actor=actor,
            weekday=weekday,
            starts_on=parse_iso_date(str(data.get("starts_on") or "")),
            ends_on=_optional_date(data.get("ends_on")),
        )
        return jsonify({"id": rule_id}), 201

    @app.route("/api/admin/weekly-holidays/<int:rule_id>", methods=["DELETE"], endpoint="admin_delete_weekly_holiday")
    @admin_required
    def admin_delete_weekly_holiday(actor, rule_id: int):
        admin.delete_weekly_rule(actor=actor, rule_id=rule_id)
        return "", 204

    # -------- Admin: per-user exceptions --------
    @app.route(
        "/api/admin/users/<int:user_id>/holiday-exceptions",
        methods=["GET"],
        endpoint="admin_list_holiday_exceptions",
    )
    @admin_required
    def admin_list_holiday_exceptions(actor, user_id: int):
        rows = admin.list_exceptions(
            actor=actor,
            user_id=user_id,
            start=_optional_date(request.args.get("start")),
            end=_optional_date(request.args.get("end")),
        )
        return jsonify([_exception_to_dict(e) for e in rows])

    @app.route(
        "/api/admin/users/<int:user_id>/holiday-exceptions",
        methods=["POST"],
        endpoint="admin_create_holiday_exception",
    )
    @admin_required
    def admin_create_holiday_exception(actor, user_id: int):
        data = json_body()
        override = data.get("override", False)
        if not isinstance(override, bool):
            raise ValidationError("override must be true or false")
        exception_id = admin.create_exception(
            actor=actor,
            user_id=user_id,
            exception_date=parse_iso_date(str(data.get("exception_date") or "")),
            override=override,
            reason=data.get("reason"),
        )
        return jsonify({"id": exception_id}), 201

    @app.route(
        "/api/admin/users/<int:user_id>/holiday-exceptions/<int:exception_id>",
        methods=["DELETE"],
        endpoint="admin_delete_holiday_exception",
    )
    @admin_required
    def admin_delete_holiday_exception(actor, user_id: int, exception_id: int):
        admin.delete_exception(actor=actor, exception_id=exception_id, user_id=user_id)
        return "", 204
