# Copyright 2019 Joan Puig
# See LICENSE for details


import pytest

from VO2.averaging import TrailingWindow, trailing_average


def test_constant_series():
    assert trailing_average([5] * 12) == pytest.approx([5.0] * 12)


def test_empty_series():
    assert trailing_average([]) == []


def test_running_mean_until_window_is_full():
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    expected = [sum(values[:i + 1]) / (i + 1) for i in range(len(values))]
    assert trailing_average(values) == pytest.approx(expected)


def test_window_replaces_oldest_value():
    values = list(range(1, 14))
    averaged = trailing_average(values)

    assert averaged[10] == pytest.approx(sum(values[1:11]) / 10)
    assert averaged[12] == pytest.approx(sum(values[3:13]) / 10)


def test_zero_samples_restart_the_running_mean():
    averaged = trailing_average([10, 0] * 6)

    assert averaged[:10] == pytest.approx([10, 5, 20 / 3, 5, 6, 5, 40 / 7, 5, 50 / 9, 5])
    assert averaged[10] == pytest.approx(5)
    # Slot 1 held a 0, so the mean over 12 samples is taken instead of a 10 sample window
    assert averaged[11] == pytest.approx(55 / 12)


def test_window_update():
    window = TrailingWindow(3)
    assert window.capacity == 3
    assert window.update(3) == pytest.approx(3)
    assert window.update(6) == pytest.approx(4.5)
    assert window.update(9) == pytest.approx(6)
    assert window.update(12) == pytest.approx(9)
    assert window.average == pytest.approx(9)
    assert window.count == 4
    assert list(window.values) == [12, 6, 9]


def test_fresh_window_per_series():
    assert trailing_average([4, 4]) == trailing_average([4, 4])


def test_invalid_capacity():
    with pytest.raises(ValueError):
        TrailingWindow(0)
