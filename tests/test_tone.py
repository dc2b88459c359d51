import pytest

from simpletx.tone import SILENT, TONE_DUTY, TonePlayer


def test_play_uses_source_duty_values():
    assert TonePlayer().play(2, 0) == 128
    assert TonePlayer().play(2, 300) == 0


@pytest.mark.parametrize(
    "now, expected",
    [
        (0, TONE_DUTY),
        (200, TONE_DUTY),
        (300, SILENT),
        (400, SILENT),
        (500, TONE_DUTY),
        (600, TONE_DUTY),
        (1000, SILENT),
        (5000, SILENT),
    ],
)
def test_pattern_for_duration_two(now, expected):
    player = TonePlayer()
    assert player.play(2, now) == expected


def test_pattern_restarts_after_period():
    player = TonePlayer()
    assert player.play(2, 6000) == SILENT
    assert player.previous_ms == 6000
    assert player.play(2, 6000) == TONE_DUTY


def test_pattern_does_not_restart_within_period():
    player = TonePlayer()
    player.play(5, 4000)
    assert player.previous_ms == 0


def test_long_duration_beeps_past_period():
    player = TonePlayer()
    # 20 * 100 ms beeps: the second beep lasts until 6000 ms
    assert player.play(20, 5500) == TONE_DUTY
    assert player.previous_ms == 0