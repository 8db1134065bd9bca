"""Shared data types: Discord snowflake wrappers and reform workflow records."""
