"""Logging setup and small Discord helpers shared across AIreform."""
