import logging

import pytest

from erlangkit.erlangb import MAX_LINES, erlang_b, required_lines


def test_single_line_blocking():
    # B(1, A) = A / (1 + A)
    assert erlang_b(1.0, 1) == pytest.approx(0.5)
    assert erlang_b(3.0, 1) == pytest.approx(0.75)


def test_known_table_value():
    assert erlang_b(10.0, 10) == pytest.approx(0.2146, abs=1e-4)


def test_degenerate_inputs():
    assert erlang_b(0.0, 5) == 0.0
    assert erlang_b(0.0, 0) == 0.0
    assert erlang_b(-1.0, 3) == 0.0
    assert erlang_b(2.0, -1) == 0.0
    assert erlang_b(2.0, 0) == 1.0


def test_blocking_decreases_with_lines():
    values = [erlang_b(10.0, n) for n in range(5, 25)]
    assert all(b > nxt for b, nxt in zip(values, values[1:]))


def test_required_lines_one_percent():
    # Standard table: 10 Erlangs at 1% grade of service needs 18 lines
    assert required_lines(10.0, 0.01) == 18
    assert erlang_b(10.0, 17) > 0.01


def test_required_lines_zero_traffic():
    assert required_lines(0.0, 0.01) == 0
    assert required_lines(-3.0, 0.01) == 0


def test_required_lines_small_traffic():
    lines = required_lines(0.5, 0.05)
    assert lines >= 1
    assert erlang_b(0.5, lines) <= 0.05


def test_required_lines_stops_at_cap(caplog):
    with caplog.at_level(logging.WARNING, logger="erlangkit.erlangb"):
        lines = required_lines(1.0, -1.0)
    assert lines == MAX_LINES + 1
    assert "not reached" in caplog.text
