from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime

import discord
from discord import app_commands
from discord.ext import commands

from .backfill import BackfillCrawler, CrawlReport, channel_page_fetcher
from .config import BotSettings, SettingsError
from .ingest import ingest_message
from .periods import Period, resolve_window
from .stats import ScoreStore, UserStat

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

MEDALS = ("🥇", "🥈", "🥉")
WORDLE_GREEN = discord.Color(0x538D4E)
NO_DATA_MESSAGE = "No Wordle scores found for this time period!"


def position_marker(index: int, fourth_place_marker: str = ":kekw:") -> str:
    if index < len(MEDALS):
        return MEDALS[index]
    if index == len(MEDALS):
        return fourth_place_marker
    return ""


def format_breakdown(stat: UserStat) -> str:
    lines = [f"Games: {stat.total_games}"]
    for bucket, count in stat.distribution.items():
        lines.append(f"{bucket}/6: {count} times")
    return "\n".join(lines)


def build_stats_embed(
    stats: list[UserStat],
    period: Period,
    start: datetime,
    end: datetime,
    *,
    limit: int = 10,
    fourth_place_marker: str = ":kekw:",
) -> discord.Embed:
    embed = discord.Embed(
        title=f"Wordle Statistics ({period.value})",
        description=(
            f"Statistics from {discord.utils.format_dt(start, style='D')} "
            f"to {discord.utils.format_dt(end, style='D')}"
        ),
        color=WORDLE_GREEN,
        timestamp=end,
    )
    for index, stat in enumerate(stats[:limit]):
        marker = position_marker(index, fourth_place_marker)
        name = stat.display_name or "Unknown Player"
        label = f"{marker} {name} (Avg: {stat.average_score:.2f})".strip()
        embed.add_field(name=label, value=format_breakdown(stat), inline=False)
    return embed


async def find_wordle_channel(bot: commands.Bot, settings: BotSettings) -> discord.abc.Messageable | None:
    if settings.wordle_channel_id is not None:
        channel = bot.get_channel(settings.wordle_channel_id)
        if channel is None:
            try:
                channel = await bot.fetch_channel(settings.wordle_channel_id)
            except discord.DiscordException as exc:
                logger.warning("Could not fetch Wordle channel %s: %s", settings.wordle_channel_id, exc)
                return None
        return channel

    if not bot.guilds:
        logger.error("Bot is not in any guild")
        return None
    guild = bot.guilds[0]
    channel = discord.utils.get(guild.text_channels, name=settings.wordle_channel_name)
    if channel is None:
        logger.error("Channel #%s not found in %s", settings.wordle_channel_name, guild.name)
    return channel


async def resolve_display_names(bot: commands.Bot, stats: list[UserStat]) -> list[UserStat]:
    resolved = []
    for stat in stats:
        if stat.display_name:
            resolved.append(stat)
            continue
        user = bot.get_user(int(stat.user_id))
        if user is None:
            try:
                user = await bot.fetch_user(int(stat.user_id))
            except discord.DiscordException as exc:
                logger.debug("Failed to fetch user %s: %s", stat.user_id, exc)
        resolved.append(replace(stat, display_name=user.display_name if user else None))
    return resolved


async def build_stats_reply(
    bot: commands.Bot,
    store: ScoreStore,
    settings: BotSettings,
    period: Period,
    *,
    now: datetime | None = None,
) -> tuple[str | None, discord.Embed | None]:
    """Return either a plain-text reply or a leaderboard embed for ``period``."""
    now = now or datetime.now(tz=settings.timezone)
    start, end = resolve_window(period, now)
    stats = store.aggregate(start, end)
    if not stats:
        return NO_DATA_MESSAGE, None
    top = await resolve_display_names(bot, stats[: settings.leaderboard_size])
    embed = build_stats_embed(
        top,
        period,
        start,
        end,
        limit=settings.leaderboard_size,
        fourth_place_marker=settings.fourth_place_marker,
    )
    return None, embed


async def reject_outside_wordle_channel(interaction: discord.Interaction, settings: BotSettings) -> bool:
    if settings.is_wordle_channel(interaction.channel):
        return False
    await interaction.response.send_message("Wordle stats are only available in the Wordle channel.", ephemeral=True)
    return True


async def run_backfill(
    store: ScoreStore,
    channel: discord.abc.Messageable,
    settings: BotSettings,
    *,
    bot_user_id: int | None = None,
) -> CrawlReport | None:
    crawler = BackfillCrawler(
        store,
        channel_page_fetcher(channel),
        page_delay=settings.backfill_page_delay,
        bot_user_id=bot_user_id,
    )
    try:
        report = await crawler.run()
    except Exception:
        logger.exception("Backfill crashed in state %s", crawler.state.value)
        return None
    if not report.completed:
        logger.warning(
            "Backfill did not complete; statistics only include %s scores from %s messages plus live traffic",
            report.scores_recorded,
            report.messages_scanned,
        )
    return report


def create_bot(settings: BotSettings, store: ScoreStore) -> commands.Bot:
    intents = discord.Intents.default()
    intents.message_content = True

    bot = commands.Bot(command_prefix=settings.command_prefix, intents=intents)
    background_tasks: set[asyncio.Task] = set()
    started = False

    @bot.event
    async def on_ready():
        nonlocal started
        logger.info("Logged in as %s (id=%s)", bot.user, getattr(bot.user, "id", "n/a"))
        if started:
            return
        started = True

        try:
            synced = await bot.tree.sync()
            logger.info("Synced %s slash commands", len(synced))
        except discord.DiscordException as exc:
            logger.warning("Slash command sync failed: %s", exc)

        channel = await find_wordle_channel(bot, settings)
        if channel is None:
            logger.warning("Skipping backfill: Wordle channel unavailable")
            return
        task = asyncio.create_task(run_backfill(store, channel, settings, bot_user_id=getattr(bot.user, "id", None)))
        background_tasks.add(task)
        task.add_done_callback(background_tasks.discard)

    @bot.event
    async def on_message(message: discord.Message):
        if bot.user and message.author.id == bot.user.id:
            return

        await bot.process_commands(message)

        if not settings.is_wordle_channel(message.channel):
            return

        await ingest_message(store, message)

    @bot.tree.command(name="wordlestats", description="Get Wordle statistics for a specific time period")
    @app_commands.describe(period="Time period for statistics")
    @app_commands.choices(period=[app_commands.Choice(name=item.label, value=item.value) for item in Period])
    async def wordlestats(interaction: discord.Interaction, period: app_commands.Choice[str]):
        if await reject_outside_wordle_channel(interaction, settings):
            return
        await interaction.response.defer()
        content, embed = await build_stats_reply(bot, store, settings, Period.parse(period.value))
        if embed is None:
            await interaction.followup.send(content)
        else:
            await interaction.followup.send(embed=embed)

    def is_wordle_channel(ctx: commands.Context) -> bool:
        return settings.is_wordle_channel(ctx.channel)

    @bot.command(name="wordle_stats")
    @commands.check(is_wordle_channel)
    async def wordle_stats(ctx: commands.Context, period: str = ""):
        try:
            selected = Period.parse(period)
        except ValueError as exc:
            await ctx.send(str(exc))
            return
        content, embed = await build_stats_reply(bot, store, settings, selected)
        if embed is None:
            await ctx.send(content)
        else:
            await ctx.send(embed=embed)

    return bot


def main():
    try:
        settings = BotSettings.from_env()
    except SettingsError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(1) from exc

    store = ScoreStore()
    bot = create_bot(settings, store)
    bot.run(settings.token)


if __name__ == "__main__":
    main()
