"""
Automatic role assignment for members joining the guild.
"""

import discord

from welcomer.configuration.app_configuration import app_config
from welcomer.util import discord_utils
from welcomer.util.logger import get_logger

logger = get_logger("auto_role_event")

event_name = "on_member_join"
once = False
prod_only = False

ROLE_REASON = "Auto-assigned on join"


async def execute(client: discord.Client, member: discord.Member) -> None:
    settings = app_config.auto_role
    if not settings.enabled:
        return

    if settings.role_id is None:
        logger.warning("Auto-role system enabled but no role ID configured")
        return

    if await discord_utils.assign_role(member, settings.role_id, ROLE_REASON):
        logger.info("Assigned role %s to %s (%s)", settings.role_id, member, member.id)
    else:
        logger.warning("Failed to assign role %s to %s (%s)", settings.role_id, member, member.id)
