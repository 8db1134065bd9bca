"""Embeds and interactive views shown by the slash commands."""
