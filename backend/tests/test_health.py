from __future__ import annotations

import pytest

from aptomizer.services.health import UserPosition, classify_health, compute_health, merge_leg, score_position


@pytest.mark.parametrize(
    ("health", "status"),
    [(1.0, "Danger"), (1.099, "Danger"), (1.10, "Warning"), (1.249, "Warning"), (1.25, "Healthy"), (2.0, "Healthy")],
)
def test_health_thresholds(health, status):
    assert classify_health(health) == status


def test_health_ratio_edge_cases():
    assert compute_health(150.0, 100.0) == 1.5
    assert compute_health(100.0, 0.0) == 2.0
    assert compute_health(0.0, 0.0) == 2.0
    assert compute_health(0.0, 50.0) == 0.0


def test_merging_a_borrow_leg_recomputes_health():
    position = UserPosition(position_id="1", position_name="Main", token_address="0x1::a::A", token_symbol="A")
    supplied = merge_leg(position, supplied=10, supplied_usd=120)
    assert supplied.health == 2.0
    assert supplied.health_status == "Healthy"

    both = merge_leg(supplied, borrowed=1, borrowed_usd=100)
    assert both.supplied_usd == 120
    assert both.health == pytest.approx(1.2)
    assert both.health_status == "Warning"


def test_position_health_spans_every_token_record():
    lent = UserPosition("1", "Main", "0x1::a::A", "A", supplied=10, supplied_usd=100)
    owed = UserPosition("1", "Main", "0x1::b::B", "B", borrowed=20, borrowed_usd=20).rescored()
    assert owed.health_status == "Danger"

    scored = score_position([lent, owed])

    assert [record.health for record in scored] == [5.0, 5.0]
    assert [record.health_status for record in scored] == ["Healthy", "Healthy"]
    assert scored[1].supplied_usd == 0.0
