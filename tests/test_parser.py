from datetime import datetime, timezone

import pytest

from wordle_stats.parser import FAILED_ATTEMPTS, ScoreRecord, parse_score

POSTED_AT = datetime(2024, 5, 4, 8, 30, tzinfo=timezone.utc)


def test_parses_thousands_separator_and_hard_mode():
    result = parse_score("Wordle 1,234 3/6*", POSTED_AT)

    assert result == ScoreRecord(
        puzzle_number=1234,
        attempts=3,
        max_attempts=6,
        hard_mode=True,
        timestamp=POSTED_AT,
    )


def test_failed_game_maps_to_sentinel():
    result = parse_score("Wordle 500 X/6", POSTED_AT)

    assert result is not None
    assert result.puzzle_number == 500
    assert result.attempts == FAILED_ATTEMPTS == 7
    assert result.max_attempts == 6
    assert result.hard_mode is False
    assert result.failed


def test_lowercase_failure_marker():
    result = parse_score("wordle 1,001 x/6", POSTED_AT)

    assert result is not None
    assert result.attempts == FAILED_ATTEMPTS


def test_ignores_regular_chatter():
    assert parse_score("just chatting, no wordle here", POSTED_AT) is None


@pytest.mark.parametrize("content", ["", "Wordle 1,234 0/6", "Wordle 1,234 7/6", "Wordle abc 3/6", "Wordle 12 /6"])
def test_rejects_invalid_results(content):
    assert parse_score(content, POSTED_AT) is None


def test_share_with_board_uses_header_line():
    content = "Wordle 1,100 4/6\n\n⬛🟨⬛⬛⬛\n⬛⬛🟩🟨⬛\n🟩🟩🟩⬛🟩\n🟩🟩🟩🟩🟩"

    result = parse_score(content, POSTED_AT)

    assert result is not None
    assert result.puzzle_number == 1100
    assert result.attempts == 4


def test_share_embedded_in_message_text():
    result = parse_score("finally got it! Wordle 987 6/6", POSTED_AT)

    assert result is not None
    assert result.attempts == 6


def test_keeps_observed_max_attempts():
    result = parse_score("Wordle 42 2/5", POSTED_AT)

    assert result is not None
    assert result.max_attempts == 5


def test_parsing_is_deterministic():
    first = parse_score("Wordle 1,234 5/6*", POSTED_AT)
    second = parse_score("Wordle 1,234 5/6*", POSTED_AT)

    assert first == second
    assert first.timestamp is POSTED_AT
