from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

from src.timekeeper.timekeeper.attendance.model import AttendanceRecord, BreakRecord
from src.timekeeper.timekeeper.container import wire
from src.timekeeper.timekeeper.core.enums import AttendanceStatus, CorrectionStatus
from src.timekeeper.timekeeper.core.exceptions import ConflictError, StorageError
from src.timekeeper.timekeeper.corrections.model import (
    AttendanceCorrectionEffectiveValue,
    AttendanceCorrectionRequest,
)
from src.timekeeper.timekeeper.holidays.model import HolidayException, PublicHoliday, WeeklyHolidayRule

CREATED_AT = datetime(2025, 1, 1, 0, 0, 0)


class InMemoryDB:
    """Every table the fakes share, so a unit of work can snapshot all of it."""

    def __init__(self):
        self.next_id = 1
        self.public: dict[int, PublicHoliday] = {}
        self.weekly: dict[int, WeeklyHolidayRule] = {}
        self.exceptions: dict[int, HolidayException] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self.breaks: dict[int, BreakRecord] = {}
        self.requests: dict[int, AttendanceCorrectionRequest] = {}
        self.effective: dict[int, AttendanceCorrectionEffectiveValue] = {}

    def new_id(self) -> int:
        rid = self.next_id
        self.next_id += 1
        return rid


class FakeUnitOfWork:
    def __init__(self, db: InMemoryDB):
        self._db = db
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        saved = copy.deepcopy(self._db.__dict__)
        try:
            yield "tx"
        except Exception:
            self._db.__dict__.clear()
            self._db.__dict__.update(saved)
            self.rollbacks += 1
            raise
        self.commits += 1


# -------- Holidays --------
class FakePublicHolidayRepo:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def find_public_holiday(self, holiday_date):
        return next((h for h in self._db.public.values() if h.holiday_date == holiday_date), None)

    def list_between(self, start, end):
        return sorted((h for h in self._db.public.values() if start <= h.holiday_date <= end), key=lambda h: h.holiday_date)

    def list_all(self):
        return sorted(self._db.public.values(), key=lambda h: h.holiday_date)

    def create(self, *, holiday_date, name, description):
        if self.find_public_holiday(holiday_date):
            raise ConflictError("A holiday already exists on this date")
        hid = self._db.new_id()
        self._db.public[hid] = PublicHoliday(holiday_id=hid, holiday_date=holiday_date, name=name, description=description)
        return hid

    def delete(self, holiday_id):
        return self._db.public.pop(int(holiday_id), None) is not None


class FakeWeeklyHolidayRepo:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def list_weekly_rules(self):
        return list(self._db.weekly.values())

    def list_for_range(self, start, end):
        return [r for r in self._db.weekly.values() if r.overlaps(start, end)]

    def create(self, *, weekday, starts_on, ends_on, enforced_from, enforced_to, created_by):
        rid = self._db.new_id()
        self._db.weekly[rid] = WeeklyHolidayRule(
            rule_id=rid,
            weekday=weekday,
            starts_on=starts_on,
            ends_on=ends_on,
            enforced_from=enforced_from,
            enforced_to=enforced_to,
            created_by=created_by,
            created_at=CREATED_AT,
        )
        return rid

    def delete(self, rule_id):
        return self._db.weekly.pop(int(rule_id), None) is not None


class FakeHolidayExceptionRepo:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def find_exception(self, user_id, exception_date):
        return next(
            (e for e in self._db.exceptions.values() if e.user_id == user_id and e.exception_date == exception_date),
            None,
        )

    def list_for_user(self, user_id, start=None, end=None):
        rows = [e for e in self._db.exceptions.values() if e.user_id == user_id]
        if start is not None:
            rows = [e for e in rows if e.exception_date >= start]
        if end is not None:
            rows = [e for e in rows if e.exception_date <= end]
        return sorted(rows, key=lambda e: e.exception_date)

    def create(self, *, user_id, exception_date, override, reason, created_by):
        if self.find_exception(user_id, exception_date):
            raise ConflictError("An exception already exists for this user and date")
        eid = self._db.new_id()
        self._db.exceptions[eid] = HolidayException(
            exception_id=eid,
            user_id=user_id,
            exception_date=exception_date,
            override=override,
            reason=reason,
            created_by=created_by,
            created_at=CREATED_AT,
        )
        return eid

    def delete(self, exception_id, user_id):
        found = self._db.exceptions.get(int(exception_id))
        if not found or found.user_id != int(user_id):
            return False
        del self._db.exceptions[int(exception_id)]
        return True


# -------- Attendance --------
class FakeAttendanceRepo:
    def __init__(self, db: InMemoryDB):
        self._db = db
        self.fail_updates = False

    def find_by_user_and_date(self, user_id, work_date):
        return next(
            (a for a in self._db.attendance.values() if a.user_id == user_id and a.work_date == work_date),
            None,
        )

    def find_by_id(self, attendance_id):
        return self._db.attendance.get(int(attendance_id))

    def create(self, *, user_id, work_date, clock_in_time, status=AttendanceStatus.PRESENT):
        aid = self._db.new_id()
        self._db.attendance[aid] = AttendanceRecord(
            attendance_id=aid,
            user_id=user_id,
            work_date=work_date,
            clock_in_time=clock_in_time,
            clock_out_time=None,
            status=status,
        )
        return aid

    def update(self, *, attendance_id, clock_in_time, clock_out_time, total_work_hours):
        current = self._db.attendance.get(int(attendance_id))
        if not current:
            return False
        self._db.attendance[current.attendance_id] = replace(
            current, clock_in_time=clock_in_time, clock_out_time=clock_out_time, total_work_hours=total_work_hours
        )
        return True

    def find_by_id_in_transaction(self, tx, attendance_id):
        return self.find_by_id(attendance_id)

    def update_in_transaction(self, tx, *, attendance_id, clock_in_time, clock_out_time, total_work_hours):
        if self.fail_updates:
            raise StorageError("Database error")
        self.update(
            attendance_id=attendance_id,
            clock_in_time=clock_in_time,
            clock_out_time=clock_out_time,
            total_work_hours=total_work_hours,
        )


class FakeBreakRepo:
    def __init__(self, db: InMemoryDB):
        self._db = db

    def find_by_attendance(self, attendance_id):
        rows = [b for b in self._db.breaks.values() if b.attendance_id == attendance_id]
        return sorted(rows, key=lambda b: (b.break_start_time, b.break_id))

    def find_active(self, attendance_id):
        return next((b for b in self.find_by_attendance(attendance_id) if b.is_active), None)

    def create(self, *, attendance_id, break_start_time):
        bid = self._db.new_id()
        self._db.breaks[bid] = BreakRecord(
            break_id=bid, attendance_id=attendance_id, break_start_time=break_start_time, break_end_time=None
        )
        return bid

    def update(self, *, break_id, break_end_time, duration_minutes):
        current = self._db.breaks.get(int(break_id))
        if not current:
            return False
        self._db.breaks[current.break_id] = replace(
            current, break_end_time=break_end_time, duration_minutes=duration_minutes
        )
        return True

    def delete_by_attendance(self, attendance_id):
        doomed = [bid for bid, b in self._db.breaks.items() if b.attendance_id == attendance_id]
        for bid in doomed:
            del self._db.breaks[bid]
        return len(doomed)

    def find_by_attendance_in_transaction(self, tx, attendance_id):
        return self.find_by_attendance(attendance_id)

    def create_in_transaction(self, tx, *, attendance_id, break_start_time, break_end_time, duration_minutes):
        bid = self._db.new_id()
        self._db.breaks[bid] = BreakRecord(
            break_id=bid,
            attendance_id=attendance_id,
            break_start_time=break_start_time,
            break_end_time=break_end_time,
            duration_minutes=duration_minutes,
        )
        return bid

    def delete_in_transaction(self, tx, attendance_id):
        return self.delete_by_attendance(attendance_id)


# -------- Corrections --------
class FakeCorrectionRepo:
    """Stores snapshots the way MySQL does: as JSON text, parsed back on read."""

    def __init__(self, db: InMemoryDB):
        self._db = db
        self.fail_effective_insert = False

    def _set(self, request_id, **changes):
        self._db.requests[request_id] = replace(self._db.requests[request_id], **changes)

    def _pending(self, request_id):
        found = self._db.requests.get(int(request_id))
        return found if found and found.status == CorrectionStatus.PENDING else None

    def create(self, *, user_id, attendance_id, work_date, reason, original_snapshot, proposed_values, now):
        rid = self._db.new_id()
        self._db.requests[rid] = AttendanceCorrectionRequest(
            request_id=rid,
            user_id=user_id,
            attendance_id=attendance_id,
            work_date=work_date,
            status=CorrectionStatus.PENDING,
            reason=reason,
            original_snapshot_json=json.loads(json.dumps(original_snapshot.to_dict())),
            proposed_values_json=json.loads(json.dumps(proposed_values.to_dict())),
            created_at=now,
            updated_at=now,
        )
        return rid

    def find_by_id(self, request_id):
        return self._db.requests.get(int(request_id))

    def list_by_user(self, user_id):
        rows = [r for r in self._db.requests.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id), reverse=True)

    def list_paginated(self, *, status=None, user_id=None, page=1, per_page=20):
        rows = list(self._db.requests.values())
        if status is not None:
            rows = [r for r in rows if r.status == status]
        if user_id is not None:
            rows = [r for r in rows if r.user_id == user_id]
        rows.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        offset = (page - 1) * per_page
        return rows[offset:offset + per_page]

    def update_pending(self, *, request_id, user_id, reason, proposed_values, now):
        found = self._pending(request_id)
        if not found or found.user_id != user_id:
            return False
        self._set(found.request_id, reason=reason, proposed_values_json=proposed_values.to_dict(), updated_at=now)
        return True

    def cancel_pending(self, *, request_id, user_id, now):
        found = self._pending(request_id)
        if not found or found.user_id != user_id:
            return False
        self._set(found.request_id, status=CorrectionStatus.CANCELLED, cancelled_at=now, updated_at=now)
        return True

    def reject_pending(self, *, request_id, approver_id, comment, now):
        found = self._pending(request_id)
        if not found:
            return False
        self._set(
            found.request_id,
            status=CorrectionStatus.REJECTED,
            rejected_by=approver_id,
            rejected_at=now,
            decision_comment=comment,
            updated_at=now,
        )
        return True

    def find_by_id_in_transaction(self, tx, request_id):
        return self.find_by_id(request_id)

    def approve_in_transaction(self, tx, *, request_id, approver_id, comment, now):
        found = self._pending(request_id)
        if not found:
            return False
        self._set(
            found.request_id,
            status=CorrectionStatus.APPROVED,
            approved_by=approver_id,
            approved_at=now,
            decision_comment=comment,
            updated_at=now,
        )
        return True

    def mark_conflict_in_transaction(self, tx, *, request_id, comment, now):
        found = self._pending(request_id)
        if not found:
            return False
        self._set(found.request_id, status=CorrectionStatus.CONFLICT, decision_comment=comment, updated_at=now)
        return True

    def insert_effective_value_in_transaction(self, tx, *, attendance_id, source_request_id, snapshot, applied_by, applied_at):
        if self.fail_effective_insert:
            raise StorageError("Database error")
        eid = self._db.new_id()
        self._db.effective[eid] = AttendanceCorrectionEffectiveValue(
            effective_value_id=eid,
            attendance_id=attendance_id,
            source_request_id=source_request_id,
            clock_in_time_corrected=snapshot.clock_in_time,
            clock_out_time_corrected=snapshot.clock_out_time,
            breaks_corrected=snapshot.breaks,
            applied_by=applied_by,
            applied_at=applied_at,
        )
        return eid

    def list_effective_values(self, attendance_ids):
        ids = set(attendance_ids)
        return [v for v in self._db.effective.values() if v.attendance_id in ids]


def build_fake_container(db: InMemoryDB | None = None):
    db = db or InMemoryDB()
    return wire(
        conn=None,
        public_holidays_repo=FakePublicHolidayRepo(db),
        weekly_holidays_repo=FakeWeeklyHolidayRepo(db),
        holiday_exceptions_repo=FakeHolidayExceptionRepo(db),
        attendance_repo=FakeAttendanceRepo(db),
        breaks_repo=FakeBreakRepo(db),
        corrections_repo=FakeCorrectionRepo(db),
        uow=FakeUnitOfWork(db),
    )
