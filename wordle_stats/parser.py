import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

FAILED_ATTEMPTS = 7

WORDLE_REGEX = re.compile(
    r"Wordle\s+(?P<puzzle>\d+(?:,\d+)*)\s+(?P<score>[1-6X])/(?P<max>\d+)(?P<hard>\*?)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScoreRecord:
    """A single Wordle result as shared in the channel."""

    puzzle_number: int
    attempts: int
    max_attempts: int
    hard_mode: bool
    timestamp: datetime

    @property
    def failed(self) -> bool:
        return self.attempts == FAILED_ATTEMPTS


def parse_score(content: str, timestamp: datetime) -> Optional[ScoreRecord]:
    """Return a ScoreRecord if the message contains a Wordle share line.

    ``timestamp`` is the creation time of the message the text came from, so the
    same text always parses to the same record. A failed game (``X/6``) is stored
    with the sentinel attempt count ``FAILED_ATTEMPTS``.
    """

    if not content:
        return None

    match = WORDLE_REGEX.search(content)
    if not match:
        return None

    puzzle_number = int(match.group("puzzle").replace(",", ""))
    score_raw = match.group("score").upper()
    attempts = FAILED_ATTEMPTS if score_raw == "X" else int(score_raw)

    return ScoreRecord(
        puzzle_number=puzzle_number,
        attempts=attempts,
        max_attempts=int(match.group("max")),
        hard_mode=bool(match.group("hard")),
        timestamp=timestamp,
    )
