from datetime import datetime, timezone, timedelta

import pytest
from pydantic import ValidationError

from src.schemas.common import parse_naive_datetime
from src.schemas.task import TaskCreate, TaskUpdate


class TestParseNaiveDatetime:
    """Due dates are stored as naive UTC"""

    def test_utc_suffix(self):
        assert parse_naive_datetime("2025-05-15T20:59:59.000Z") == datetime(2025, 5, 15, 20, 59, 59)

    def test_aware_datetime_drops_tzinfo(self):
        value = datetime(2025, 5, 29, 20, 59, 59, tzinfo=timezone.utc)

        result = parse_naive_datetime(value)

        assert result.tzinfo is None
        assert result == datetime(2025, 5, 29, 20, 59, 59)

    def test_other_values_pass_through(self):
        naive = datetime(2025, 5, 29)

        assert parse_naive_datetime(naive) is naive
        assert parse_naive_datetime(None) is None
        assert parse_naive_datetime("2025-05-29T10:00:00") == "2025-05-29T10:00:00"


class TestTaskDueDate:
    def test_create_with_utc_due_date(self):
        task = TaskCreate(column_id=4, title="Ship it", due_date="2025-05-15T20:59:59.000Z")

        assert task.due_date == datetime(2025, 5, 15, 20, 59, 59)
        assert task.due_date.tzinfo is None

    def test_update_with_offset_due_date(self):
        task = TaskUpdate(due_date=datetime(2025, 5, 15, 23, 0, tzinfo=timezone(timedelta(hours=3))))

        assert task.due_date.tzinfo is None

    def test_update_without_due_date(self):
        task = TaskUpdate(status="completed")

        assert task.due_date is None
        assert task.model_dump(exclude_unset=True) == {"status": "completed"}

    def test_invalid_due_date(self):
        with pytest.raises(ValidationError):
            TaskCreate(column_id=4, title="Ship it", due_date="next tuesday")
