import dataclasses

import pytest

from simpletx.calibration import (
    CALIB_MARK,
    CalibValues,
    CalibrationStore,
    Calibrator,
)


@pytest.fixture
def store(tmp_path):
    return CalibrationStore(tmp_path / "eeprom.bin")


def _sample():
    return CalibValues(10, 1000, 500, 20, 990, 505, 30, 980, 40, 970, 510)


def test_defaults_match_source():
    values = CalibValues.defaults()
    assert values.aileron_center == 988
    assert values.elevator_center == 988
    assert values.rudder_center == 988
    assert values.aileron_min == 0
    assert values.aileron_max == 1023


def test_centered_collapses_all_fields():
    values = CalibValues.centered()
    assert set(dataclasses.astuple(values)) == {511}


def test_bytes_round_trip():
    values = _sample()
    assert CalibValues.from_bytes(values.to_bytes()) == values


def test_bytes_round_trip_negative():
    values = CalibValues(*([-5] * 11))
    assert CalibValues.from_bytes(values.to_bytes()) == values


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        CalibValues.from_bytes(b"\x00" * 3)


def test_store_absent_initially(store):
    assert store.present() is False


def test_store_erased_loads_all_bits_set(store):
    assert set(dataclasses.astuple(store.load())) == {-1}


def test_store_save_and_load(store):
    values = _sample()
    store.save(values)
    assert store.present() is True
    assert store.load() == values
    assert store.path.read_bytes()[0] == CALIB_MARK


def test_store_reset(store):
    store.save(_sample())
    returned = store.reset()
    assert store.present() is False
    assert store.load() == CalibValues.defaults()
    assert returned == CalibValues.defaults()


def test_process_takes_centers_early(store):
    cal = Calibrator(store)
    cal.active = True
    assert cal.process(100, 400, 450, 0, 600) is True
    assert cal.values.aileron_center == 400
    assert cal.values.elevator_center == 450
    assert cal.values.rudder_center == 600
    assert cal.values.aileron_min == CalibValues.centered().aileron_min


def test_process_widens_limits(store):
    cal = Calibrator(store)
    cal.active = True
    cal.process(6000, 100, 900, 50, 700)
    cal.process(7000, 950, 20, 1000, 300)
    v = cal.values
    assert (v.aileron_min, v.aileron_max) == (100, 950)
    assert (v.elevator_min, v.elevator_max) == (20, 900)
    assert (v.thr_min, v.thr_max) == (50, 1000)
    assert (v.rudder_min, v.rudder_max) == (300, 700)
    assert cal.active is True


def test_process_finishes_and_saves(store):
    cal = Calibrator(store)
    cal.active = True
    cal.process(6000, 100, 900, 50, 700)
    cal.process(20000, 0, 0, 0, 0)
    assert cal.active is False
    assert store.present() is True
    assert store.load() == cal.values


def test_run_inactive_counts_only(store):
    cal = Calibrator(store)
    before = cal.values
    assert cal.run(0, 1, 100, 1, 2, 3, 4) is False
    assert cal.values == before
    assert store.present() is False


def test_run_active_processes(store):
    cal = Calibrator(store)
    cal.active = True
    assert cal.run(0, 0, 100, 300, 301, 302, 303) is True
    assert cal.values.aileron_center == 300


def test_count_armed_resets(store):
    cal = Calibrator(store)
    cal.aux2_count = 3
    assert cal.count(1, 1, 50000) == 0


def test_count_within_window_stays_zero(store):
    cal = Calibrator(store)
    flips = [1, 0, 1, 0, 1]
    counts = [cal.count(0, flip, t) for t, flip in enumerate(flips)]
    assert counts == [0, 0, 0, 0, 0]
    assert cal.timer_start_ms == 4