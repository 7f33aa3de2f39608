import math

import pytest

from erlangkit.erlangc import (
    average_speed_of_answer,
    erlang_c,
    occupancy,
    offered_load_erlangs,
    service_level,
    solve_agents,
    staffing_metrics,
    total_fte,
    traffic_intensity,
)


def test_offered_load():
    a = offered_load_erlangs(volume=120, aht_seconds=300, interval_seconds=900)  # 15-min
    assert a == 40.0


def test_offered_load_rejects_bad_interval():
    with pytest.raises(ValueError):
        offered_load_erlangs(volume=10, aht_seconds=300, interval_seconds=0)


def test_traffic_intensity():
    assert traffic_intensity(1000, 240, 1800) == pytest.approx(133.3333, rel=1e-4)
    assert traffic_intensity(100, 180) == pytest.approx(10.0)
    assert traffic_intensity(0, 180) == 0.0
    assert traffic_intensity(100, -5) == 0.0


def test_erlang_c_mm1_equals_rho():
    assert erlang_c(1, 0.5) == pytest.approx(0.5)


def test_erlang_c_mm2():
    assert erlang_c(2, 1.0) == pytest.approx(1.0 / 3.0)


def test_erlang_c_wait_prob_bounds():
    a = 10.0
    pw = erlang_c(15, a)
    assert 0.0 <= pw <= 1.0
    assert erlang_c(10, a) == 1.0
    assert erlang_c(5, 0.0) == 0.0


def test_service_level_increases_with_agents():
    a = 10.0
    sl_12 = service_level(12, a, aht_seconds=300, threshold_seconds=20)
    sl_20 = service_level(20, a, aht_seconds=300, threshold_seconds=20)
    assert sl_20 >= sl_12


def test_service_level_edges():
    assert service_level(1, 0.5, aht_seconds=60, threshold_seconds=0) == pytest.approx(0.5)
    assert service_level(5, 0.0, aht_seconds=60, threshold_seconds=20) == 1.0
    assert service_level(5, 6.0, aht_seconds=60, threshold_seconds=20) == 0.0


def test_asa_decreases_with_agents():
    a = 10.0
    asa_12 = average_speed_of_answer(12, a, aht_seconds=300)
    asa_20 = average_speed_of_answer(20, a, aht_seconds=300)
    assert asa_20 <= asa_12


def test_asa_mm1_and_unstable():
    # M/M/1 at rho 0.5: Wq = rho / (mu - lambda) = AHT
    assert average_speed_of_answer(1, 0.5, aht_seconds=60) == pytest.approx(60.0)
    assert math.isinf(average_speed_of_answer(3, 3.0, aht_seconds=60))
    assert average_speed_of_answer(3, 0.0, aht_seconds=60) == 0.0


def test_occupancy():
    assert occupancy(9.0, 10) == pytest.approx(0.9)
    assert occupancy(12.0, 10) == 1.0
    assert occupancy(5.0, 0) == 0.0


def test_total_fte():
    assert total_fte(10, 0.30) == pytest.approx(14.2857, rel=1e-4)
    assert total_fte(10, 0.0) == 10.0
    assert total_fte(10, -0.1) == 10.0
    assert math.isinf(total_fte(10, 1.0))


def test_solve_agents_eighty_twenty():
    agents = solve_agents(10.0, 180, target_sl=0.80, threshold_seconds=20)
    assert agents is not None
    assert 12 <= agents <= 14
    assert service_level(agents, 10.0, 180, 20) >= 0.80
    assert service_level(agents - 1, 10.0, 180, 20) < 0.80


def test_solve_agents_respects_occupancy_cap():
    agents = solve_agents(10.0, 180, target_sl=0.10, threshold_seconds=20, max_occupancy=0.5)
    assert agents == 20


def test_solve_agents_zero_traffic_and_unreachable():
    assert solve_agents(0.0, 180, 0.80, 20) == 0
    assert solve_agents(10.0, 180, 1.0, 20) is None


def test_staffing_metrics_bundle():
    m = staffing_metrics(volume=100, aht_seconds=180, target_sl=0.80, threshold_seconds=20, shrinkage=0.25)
    assert m.traffic_intensity == pytest.approx(10.0)
    assert m.can_achieve_target
    assert m.total_fte == pytest.approx(m.required_agents / 0.75)
    assert m.service_level >= 0.80


def test_erlang_c_mm1_at_high_load():
    assert erlang_c(1, 0.8) == pytest.approx(0.8)


def test_traffic_intensity_is_linear():
    base = traffic_intensity(100, 180, 1800)
    assert traffic_intensity(200, 180, 1800) == pytest.approx(2 * base)
    assert traffic_intensity(100, 360, 1800) == pytest.approx(2 * base)
    assert traffic_intensity(100, 180, 3600) == pytest.approx(base / 2)


def test_fte_with_quarter_shrinkage():
    assert total_fte(10, 0.25) == pytest.approx(13.333, rel=1e-3)


def test_service_level_non_decreasing_over_range():
    for a in (2.0, 10.0, 25.0):
        values = [service_level(n, a, 180, 20) for n in range(int(a) + 1, int(3 * a) + 6)]
        assert all(x <= y + 1e-12 for x, y in zip(values, values[1:]))
