import logging

from .parser import parse_score
from .stats import ScoreStore

logger = logging.getLogger(__name__)


async def record_message(store: ScoreStore, message) -> bool:
    """Parse a channel message and store its score under the message author.

    Returns True when a new score was recorded.
    """
    result = parse_score(message.content, message.created_at)
    if result is None:
        return False
    author = message.author
    return await store.record(
        author.id,
        result,
        display_name=getattr(author, "display_name", None),
        message_id=message.id,
    )


async def ingest_message(store: ScoreStore, message, *, bot_user_id: int | None = None) -> bool:
    """Record a live message; failures are logged so the next message still gets handled."""
    if bot_user_id is not None and message.author.id == bot_user_id:
        return False
    try:
        return await record_message(store, message)
    except Exception:
        logger.exception("Failed to ingest message %s", getattr(message, "id", "n/a"))
        return False
