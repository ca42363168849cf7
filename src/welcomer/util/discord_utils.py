"""
discord_utils.py
================

Stateless Discord helpers used by the bundled event handlers.
"""

import datetime
from typing import Optional

import discord

from welcomer.util.logger import get_logger

logger = get_logger("discord_utils")


def discord_timestamp(moment: datetime.datetime, style: str = "R") -> str:
    """
    Format a datetime as a Discord timestamp tag, e.g. ``<t:1700000000:R>``.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return f"<t:{int(moment.timestamp())}:{style}>"


async def fetch_text_channel(client: discord.Client, channel_id: int) -> Optional[discord.abc.Messageable]:
    """
    Resolve a channel the bot can send messages to.

    Uses the client cache first and falls back to an API fetch.

    Returns:
        The channel, or None if it does not exist, cannot be fetched or is not
        text based.
    """
    channel = client.get_channel(channel_id)
    if channel is None:
        try:
            channel = await client.fetch_channel(channel_id)
        except (discord.HTTPException, discord.InvalidData) as exc:
            logger.debug("Could not fetch channel %s: %s", channel_id, exc)
            return None

    if not isinstance(channel, discord.abc.Messageable):
        return None
    return channel


async def assign_role(member: discord.Member, role_id: int, reason: str) -> bool:
    """
    Give ``member`` the role ``role_id``.

    Returns:
        True if the member has the role afterwards, False if the role does not
        exist or Discord refused the change.
    """
    role = member.guild.get_role(role_id)
    if role is None:
        logger.warning("Role %s not found in guild %s", role_id, member.guild.id)
        return False

    if role in member.roles:
        return True

    try:
        await member.add_roles(role, reason=reason)
    except discord.Forbidden:
        logger.warning("Missing permissions to assign role %s in guild %s", role_id, member.guild.id)
        return False
    except discord.HTTPException as exc:
        logger.error("Failed to assign role %s to %s: %s", role_id, member.id, exc)
        return False
    return True
