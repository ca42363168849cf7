"""
Welcome message for members joining the guild.

The member's permanent join number is claimed from the join ledger before
anything is sent, so a member who leaves and comes back is greeted with the
same number again.
"""

import datetime

import discord

from welcomer.configuration.app_configuration import app_config
from welcomer.database.join_ledger import join_ledger
from welcomer.errors import LedgerError
from welcomer.util import discord_utils
from welcomer.util.logger import get_logger

logger = get_logger("welcome_event")

event_name = "on_member_join"
once = False
prod_only = False

DEFAULT_MESSAGE = "Welcome {mention}! 🎉"


def format_welcome_message(template: str, member: discord.Member, join_number: int) -> str:
    """Fill the ``{mention}``, ``{name}``, ``{guild}`` and ``{join_number}`` placeholders.

    A template with unknown or malformed placeholders is sent as written.
    """
    template = template or DEFAULT_MESSAGE
    try:
        return template.format(
            mention=member.mention,
            name=member.name,
            guild=member.guild.name,
            join_number=join_number,
        )
    except (KeyError, IndexError, ValueError):
        logger.warning("Welcome message template %r could not be formatted; sending it unchanged", template)
        return template


def build_welcome_embed(member: discord.Member, join_number: int) -> discord.Embed:
    """Build the embed that follows the welcome message."""
    joined_at = member.joined_at or datetime.datetime.now(datetime.timezone.utc)
    embed = discord.Embed(
        title=f"Welcome to {member.guild.name}!",
        description=f"{member.mention} just joined the server!\n\nYou are member **#{join_number}**",
        color=discord.Color.blurple(),
    )
    embed.set_thumbnail(url=member.display_avatar.url)
    embed.add_field(name="Account Created", value=discord_utils.discord_timestamp(member.created_at), inline=True)
    embed.add_field(name="Joined Server", value=discord_utils.discord_timestamp(joined_at), inline=True)
    embed.set_footer(text=f"User ID: {member.id}")
    return embed


async def execute(client: discord.Client, member: discord.Member) -> None:
    """Record the join and post the welcome message in the configured channel."""
    settings = app_config.welcome
    if not settings.enabled:
        return

    if settings.channel_id is None:
        logger.warning("Welcome system enabled but no channel ID configured")
        return

    try:
        join_number = await join_ledger.record_join(member.id, member.name)
    except LedgerError as exc:
        logger.error("Could not record join for %s (%s); skipping welcome message: %s", member, member.id, exc)
        return

    channel = await discord_utils.fetch_text_channel(client, settings.channel_id)
    if channel is None:
        logger.warning("Welcome channel %s not found or is not a text channel", settings.channel_id)
        return

    logger.info("Sending welcome message for %s (Member #%d)", member, join_number)

    try:
        await channel.send(content=format_welcome_message(settings.custom_message, member, join_number))
        if settings.send_embed:
            await channel.send(embed=build_welcome_embed(member, join_number))
    except discord.HTTPException as exc:
        logger.error("Failed to send welcome message for %s: %s", member, exc)
        return

    logger.debug("Welcome message sent successfully for %s", member)
