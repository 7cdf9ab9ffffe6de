import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .parser import FAILED_ATTEMPTS, ScoreRecord

logger = logging.getLogger(__name__)

BUCKET_LABELS = ("1", "2", "3", "4", "5", "6", "X")

UserHistory = Tuple[ScoreRecord, ...]


@dataclass(frozen=True)
class GuessDistribution:
    """Counts per bucket: six solved buckets followed by the failed bucket."""

    counts: Tuple[int, int, int, int, int, int, int] = (0, 0, 0, 0, 0, 0, 0)

    @classmethod
    def from_records(cls, records: Iterable[ScoreRecord]) -> "GuessDistribution":
        counts = [0] * len(BUCKET_LABELS)
        for record in records:
            counts[record.attempts - 1] += 1
        return cls(counts=tuple(counts))

    def __getitem__(self, bucket) -> int:
        """Look up a bucket by label (``"1"``..``"6"``, ``"X"``) or attempt count (1..7)."""
        if bucket == FAILED_ATTEMPTS:
            bucket = "X"
        label = str(bucket).upper()
        if label not in BUCKET_LABELS:
            raise KeyError(f"Unknown distribution bucket {bucket!r}")
        return self.counts[BUCKET_LABELS.index(label)]

    @property
    def failed(self) -> int:
        return self.counts[FAILED_ATTEMPTS - 1]

    @property
    def total(self) -> int:
        return sum(self.counts)

    def items(self) -> List[Tuple[str, int]]:
        return list(zip(BUCKET_LABELS, self.counts))


@dataclass(frozen=True)
class UserStat:
    user_id: str
    display_name: Optional[str]
    total_games: int
    average_score: float
    distribution: GuessDistribution


def round_average(total: int, count: int) -> float:
    """Mean rounded to two places, halves rounded away from zero."""
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def aggregate(
    histories: Sequence[Tuple[str, UserHistory]],
    start: datetime,
    end: datetime,
    names: Optional[Dict[str, str]] = None,
) -> List[UserStat]:
    """Rank users by average attempts over records timestamped in ``[start, end]``.

    Users without games in the window are left out. Equal averages keep the order
    of ``histories``, which the store yields in first-seen order.
    """
    names = names or {}
    entries: List[UserStat] = []
    for user_id, records in histories:
        in_window = [record for record in records if start <= record.timestamp <= end]
        if not in_window:
            continue
        entries.append(
            UserStat(
                user_id=user_id,
                display_name=names.get(user_id),
                total_games=len(in_window),
                average_score=round_average(sum(record.attempts for record in in_window), len(in_window)),
                distribution=GuessDistribution.from_records(in_window),
            )
        )

    entries.sort(key=lambda item: item.average_score)
    return entries


class ScoreStore:
    """Append-only, in-memory history of Wordle results per user."""

    def __init__(self):
        self._scores: Dict[str, List[ScoreRecord]] = {}
        self._display_names: Dict[str, str] = {}
        self._processed_messages: set[str] = set()
        self._lock = asyncio.Lock()

    async def record(
        self,
        user_id,
        record: ScoreRecord,
        *,
        display_name: Optional[str] = None,
        message_id: int | None = None,
    ) -> bool:
        """Append a parsed result to the user's history.

        Returns False when the message was already recorded.
        """
        async with self._lock:
            key = str(message_id) if message_id is not None else None
            if key and key in self._processed_messages:
                logger.debug("Skipping already recorded message %s", key)
                return False

            user_key = str(user_id)
            self._scores.setdefault(user_key, []).append(record)
            if display_name:
                self._display_names[user_key] = display_name
            if key:
                self._processed_messages.add(key)

            logger.info(
                "Recording Wordle %s for %s (attempts=%s/%s hard_mode=%s)",
                record.puzzle_number,
                display_name or user_key,
                "X" if record.failed else record.attempts,
                record.max_attempts,
                record.hard_mode,
            )
            return True

    def all_users(self) -> List[Tuple[str, UserHistory]]:
        return [(user_id, tuple(records)) for user_id, records in self._scores.items()]

    def history(self, user_id) -> UserHistory:
        return tuple(self._scores.get(str(user_id), ()))

    def display_name(self, user_id) -> Optional[str]:
        return self._display_names.get(str(user_id))

    def aggregate(self, start: datetime, end: datetime) -> List[UserStat]:
        return aggregate(self.all_users(), start, end, names=dict(self._display_names))

    def __len__(self) -> int:
        return sum(len(records) for records in self._scores.values())
