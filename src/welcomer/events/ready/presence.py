"""
First-ready handler: log the connected account and set the bot presence.

Registered with ``once`` so reconnects do not repeat it.
"""

import discord

from welcomer.configuration.app_configuration import app_config
from welcomer.util.logger import get_logger

logger = get_logger("ready_event")

event_name = "on_ready"
once = True
prod_only = False


async def execute(client: discord.Client) -> None:
    if not client.user:
        logger.warning("Bot connected without user info; skipping presence update.")
        return

    await client.change_presence(
        status=discord.Status.online,
        activity=discord.Activity(
            type=discord.ActivityType.watching,
            name=app_config.presence_activity,
        ),
    )
    logger.info("Bot connected as %s (ID: %s)", client.user, client.user.id)
