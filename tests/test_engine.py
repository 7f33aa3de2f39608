import math

import pytest

from erlangkit.engine import calculate_achievable_metrics, calculate_staffing, result_to_dict
from erlangkit.erlangc import service_level
from erlangkit.inputs import (
    AchievableRequest,
    Behavior,
    Constraints,
    ErlangModel,
    StaffingRequest,
    Workload,
    normalize_model,
)

# 100 contacts x 180s over 30 minutes = 10 Erlangs
TEN_ERLANGS = Workload(volume=100, aht_seconds=180, interval_minutes=30)


def test_normalize_model_aliases():
    assert normalize_model("B") is ErlangModel.BLOCKING
    assert normalize_model("erlangB") is ErlangModel.BLOCKING
    assert normalize_model("ErlangC") is ErlangModel.DELAY
    assert normalize_model("erlang_a") is ErlangModel.ABANDONMENT
    assert normalize_model("erlangX") is ErlangModel.RETRIAL
    assert normalize_model("something-else") is ErlangModel.DELAY
    assert normalize_model(ErlangModel.RETRIAL) is ErlangModel.RETRIAL


def test_delay_staffing_returns_positive():
    res = calculate_staffing(StaffingRequest(model="C", workload=TEN_ERLANGS))
    assert res is not None
    assert res.model is ErlangModel.DELAY
    assert 12 <= res.required_agents <= 14
    assert res.service_level >= 80.0
    assert res.occupancy <= 90.0
    assert res.traffic_intensity == pytest.approx(10.0)


def test_shrinkage_scales_fte():
    res = calculate_staffing(
        StaffingRequest(model="C", workload=TEN_ERLANGS, behavior=Behavior(shrinkage_percent=30))
    )
    assert res is not None
    assert res.total_fte == pytest.approx(res.required_agents / 0.70)
    assert res.total_fte >= res.required_agents


def test_blocking_staffing():
    res = calculate_staffing(
        StaffingRequest(model="B", workload=TEN_ERLANGS, constraints=Constraints(target_sl_percent=99))
    )
    assert res is not None
    assert res.required_agents == 18
    assert res.blocking_probability <= 0.01
    assert res.service_level == pytest.approx((1.0 - res.blocking_probability) * 100.0)
    assert res.asa_seconds == 0.0
    assert res.can_achieve_target


def test_abandonment_staffing():
    res = calculate_staffing(
        StaffingRequest(model="A", workload=TEN_ERLANGS, behavior=Behavior(average_patience_seconds=120))
    )
    assert res is not None
    assert res.model is ErlangModel.ABANDONMENT
    assert res.required_agents > 0
    assert res.abandonment_rate is not None
    assert res.answered_contacts + res.expected_abandonments == pytest.approx(100.0)


def test_retrial_staffing():
    res = calculate_staffing(
        StaffingRequest(model="X", workload=TEN_ERLANGS, behavior=Behavior(average_patience_seconds=120))
    )
    assert res is not None
    assert res.model is ErlangModel.RETRIAL
    assert res.virtual_traffic >= res.traffic_intensity
    assert res.service_level >= 80.0


def test_patience_required_for_abandonment_models():
    assert calculate_staffing(StaffingRequest(model="A", workload=TEN_ERLANGS)) is None
    assert calculate_staffing(StaffingRequest(model="X", workload=TEN_ERLANGS)) is None


def test_invalid_request_returns_none():
    bad = Workload(volume=-5, aht_seconds=180, interval_minutes=30)
    assert calculate_staffing(StaffingRequest(model="C", workload=bad)) is None
    assert (
        calculate_staffing(
            StaffingRequest(model="C", workload=TEN_ERLANGS, constraints=Constraints(max_occupancy_percent=0))
        )
        is None
    )


def test_unreachable_target_returns_none():
    req = StaffingRequest(model="C", workload=TEN_ERLANGS, constraints=Constraints(target_sl_percent=100))
    assert calculate_staffing(req) is None


def test_zero_volume_is_zero_agents_not_none():
    idle = Workload(volume=0, aht_seconds=180, interval_minutes=30)
    for model in ("B", "C"):
        res = calculate_staffing(StaffingRequest(model=model, workload=idle))
        assert res is not None
        assert res.required_agents == 0
        assert res.service_level == 100.0

    for model in ("A", "X"):
        res = calculate_staffing(
            StaffingRequest(model=model, workload=idle, behavior=Behavior(average_patience_seconds=60))
        )
        assert res is not None
        assert res.required_agents == 0


def test_achievable_without_cap():
    res = calculate_achievable_metrics(AchievableRequest(model="C", workload=TEN_ERLANGS, fixed_agents=14))
    assert res is not None
    assert res.required_agents == 14
    assert not res.occupancy_cap_applied
    assert res.occupancy_penalty == 1.0
    assert res.required_agents_for_max_occupancy == 12
    assert res.service_level == pytest.approx(service_level(14, 10.0, 180, 20) * 100.0)


def test_achievable_occupancy_penalty():
    res = calculate_achievable_metrics(
        AchievableRequest(model="C", workload=TEN_ERLANGS, fixed_agents=14, actual_agents=10)
    )
    base = calculate_achievable_metrics(AchievableRequest(model="C", workload=TEN_ERLANGS, fixed_agents=14))
    assert res.occupancy_cap_applied
    assert res.occupancy_penalty == pytest.approx(10 / 12)
    assert res.service_level == pytest.approx(base.service_level * 10 / 12)
    assert res.asa_seconds == pytest.approx(base.asa_seconds * 12 / 10)
    assert res.actual_occupancy == 100.0


def test_achievable_unstable_keeps_infinite_asa():
    res = calculate_achievable_metrics(AchievableRequest(model="C", workload=TEN_ERLANGS, fixed_agents=8))
    assert res is not None
    assert res.service_level == 0.0
    assert math.isinf(res.asa_seconds)


def test_achievable_rejects_zero_agents():
    assert calculate_achievable_metrics(AchievableRequest(model="C", workload=TEN_ERLANGS, fixed_agents=0)) is None


def test_achievable_blocking_and_abandonment():
    blocking = calculate_achievable_metrics(AchievableRequest(model="B", workload=TEN_ERLANGS, fixed_agents=18))
    assert blocking.blocking_probability <= 0.01

    abandon = calculate_achievable_metrics(
        AchievableRequest(
            model="A",
            workload=TEN_ERLANGS,
            fixed_agents=13,
            behavior=Behavior(average_patience_seconds=120),
        )
    )
    assert abandon is not None
    assert 0.0 <= abandon.abandonment_rate <= 1.0


def test_result_to_dict():
    res = calculate_staffing(StaffingRequest(model="C", workload=TEN_ERLANGS))
    d = result_to_dict(res)
    assert d["model"] == "C"
    assert d["required_agents"] == res.required_agents
    assert d["blocking_probability"] is None


def test_achievable_retrial():
    res = calculate_achievable_metrics(
        AchievableRequest(
            model="X",
            workload=TEN_ERLANGS,
            fixed_agents=14,
            behavior=Behavior(average_patience_seconds=120),
        )
    )
    assert res is not None
    assert res.model is ErlangModel.RETRIAL
    assert 0.0 <= res.service_level <= 100.0
    assert res.virtual_traffic >= res.traffic_intensity
    assert 0.40 <= res.retrial_probability <= 0.70
    assert res.answered_contacts + res.expected_abandonments == pytest.approx(100.0)
    assert math.isfinite(res.asa_seconds)


def test_achievable_retrial_unstable():
    res = calculate_achievable_metrics(
        AchievableRequest(
            model="X",
            workload=TEN_ERLANGS,
            fixed_agents=8,
            behavior=Behavior(average_patience_seconds=120),
        )
    )
    assert res is not None
    assert res.service_level == 0.0
    assert math.isinf(res.asa_seconds)
    assert res.occupancy_cap_applied
