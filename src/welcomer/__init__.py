"""Welcomer: a Discord bot that greets new members with a permanent join number."""

__version__ = "0.0.1"
