import os
from dataclasses import dataclass, field
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


class SettingsError(RuntimeError):
    """Raised when required configuration is missing."""


@dataclass(frozen=True)
class BotSettings:
    token: str
    wordle_channel_id: int | None = None
    wordle_channel_name: str | None = None
    command_prefix: str = "!"
    leaderboard_size: int = 10
    timezone: tzinfo = field(default_factory=lambda: ZoneInfo("UTC"))
    backfill_page_delay: float = 1.0
    fourth_place_marker: str = ":kekw:"

    def is_wordle_channel(self, channel) -> bool:
        if self.wordle_channel_id is not None:
            return getattr(channel, "id", None) == self.wordle_channel_id
        return getattr(channel, "name", None) == self.wordle_channel_name

    @classmethod
    def from_env(cls) -> "BotSettings":
        load_dotenv()

        token = os.getenv("DISCORD_TOKEN")
        if not token:
            raise SettingsError("Missing DISCORD_TOKEN")

        channel_raw = os.getenv("WORDLE_CHANNEL_ID")
        channel_name = (os.getenv("WORDLE_CHANNEL_NAME") or "").strip().lstrip("#") or None
        if not channel_raw and not channel_name:
            raise SettingsError("Missing WORDLE_CHANNEL_ID or WORDLE_CHANNEL_NAME")

        channel_id: int | None = None
        if channel_raw:
            try:
                channel_id = int(channel_raw)
            except ValueError as exc:
                raise SettingsError("WORDLE_CHANNEL_ID must be an integer") from exc

        try:
            leaderboard_size = int(os.getenv("LEADERBOARD_SIZE", "10"))
        except ValueError as exc:
            raise SettingsError("LEADERBOARD_SIZE must be an integer") from exc
        if not 1 <= leaderboard_size <= 25:
            # embeds hold at most 25 fields
            raise SettingsError("LEADERBOARD_SIZE must be between 1 and 25")

        tz_name = os.getenv("WORDLE_TZ", "UTC").strip() or "UTC"
        try:
            zone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise SettingsError(f"Unknown WORDLE_TZ {tz_name!r}") from exc

        try:
            page_delay = float(os.getenv("BACKFILL_PAGE_DELAY", "1.0"))
        except ValueError as exc:
            raise SettingsError("BACKFILL_PAGE_DELAY must be a number of seconds") from exc
        if page_delay < 0:
            raise SettingsError("BACKFILL_PAGE_DELAY must not be negative")

        return cls(
            token=token.strip(),
            wordle_channel_id=channel_id,
            wordle_channel_name=channel_name,
            command_prefix=os.getenv("COMMAND_PREFIX", "!").strip() or "!",
            leaderboard_size=leaderboard_size,
            timezone=zone,
            backfill_page_delay=page_delay,
            fourth_place_marker=os.getenv("FOURTH_PLACE_MARKER", ":kekw:").strip(),
        )
