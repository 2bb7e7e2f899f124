from __future__ import annotations

import pytest

from src.timekeeper.timekeeper.core.enums import CorrectionStatus, HolidayReason
from src.timekeeper.timekeeper.core.exceptions import StorageError


@pytest.mark.parametrize("status", list(CorrectionStatus))
def test_correction_status_storage_encoding(status):
    assert CorrectionStatus.from_db(status.to_db()) is status


@pytest.mark.parametrize("raw", ["PENDING", "Approved", "", "done"])
def test_correction_status_decoding_is_exact(raw):
    with pytest.raises(StorageError):
        CorrectionStatus.from_db(raw)


def test_terminal_states():
    assert not CorrectionStatus.PENDING.is_terminal
    assert all(s.is_terminal for s in CorrectionStatus if s != CorrectionStatus.PENDING)


def test_holiday_reason_labels():
    assert HolidayReason.PUBLIC_HOLIDAY.label == "public holiday"
    assert HolidayReason.WEEKLY_HOLIDAY.label == "weekly holiday"
    assert HolidayReason.EXCEPTION_OVERRIDE.label == "forced holiday"
