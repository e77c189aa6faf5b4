"""
Unit tests for domain model validation and helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from logos_core.core.errors import InsufficientData, StructuralAnomaly
from logos_core.core.models import (
    CognitiveLoad,
    Construct,
    Item,
    Response,
    days_between,
)


class TestItem:
    def test_with_priority_copies(self):
        item = Item("a", 0.5, 0.5, 0.5, irt_difficulty=0.0)
        updated = item.with_priority(0.7)
        assert updated.priority == 0.7
        assert item.priority == 0.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"frequency": 1.5},
            {"relational_density": -0.1},
            {"irt_discrimination": 0.0},
            {"irt_difficulty": float("nan")},
        ],
    )
    def test_invalid_values(self, kwargs):
        base = dict(
            item_id="a",
            frequency=0.5,
            relational_density=0.5,
            contextual_contribution=0.5,
            irt_difficulty=0.0,
        )
        base.update(kwargs)
        with pytest.raises(ValueError):
            Item(**base)


class TestResponse:
    def test_cue_level_range(self):
        with pytest.raises(ValueError):
            Response("a", True, cue_level=4, response_time_ms=100, timestamp=datetime(2024, 1, 1))


class TestCognitiveLoad:
    def test_total_and_mean(self):
        load = CognitiveLoad(1, 2, 3, 4, 5)
        assert load.total == 15
        assert load.mean == 3.0

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            CognitiveLoad(intrinsic=6)


class TestConstruct:
    def test_prerequisites_normalized(self):
        construct = Construct("a", complexity=0.2, frequency=0.3, prerequisites=["b", "c"])
        assert construct.prerequisites == frozenset({"b", "c"})


class TestDaysBetween:
    def test_fractional(self):
        start = datetime(2024, 1, 1)
        assert days_between(start, start + timedelta(hours=36)) == pytest.approx(1.5)

    def test_negative_when_earlier(self):
        start = datetime(2024, 1, 2)
        assert days_between(start, datetime(2024, 1, 1)) == pytest.approx(-1.0)

    def test_mixed_awareness(self):
        aware = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert days_between(aware, datetime(2024, 1, 3)) == pytest.approx(2.0)

    def test_mixed_awareness_converts_offset_to_utc(self):
        plus_five = timezone(timedelta(hours=5))
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=plus_five)
        naive_utc = datetime(2024, 3, 1, 7, 0)
        assert days_between(aware, naive_utc) == pytest.approx(0.0)
        assert days_between(naive_utc, aware) == pytest.approx(0.0)
        assert days_between(aware, datetime(2024, 3, 2, 7, 0)) == pytest.approx(1.0)


class TestErrors:
    def test_insufficient_data_message(self):
        err = InsufficientData(available=1, required=3)
        assert "1" in str(err) and "3" in str(err)

    def test_structural_anomaly_ids(self):
        err = StructuralAnomaly(["a", "b"])
        assert err.construct_ids == ["a", "b"]
        assert "a, b" in str(err)
