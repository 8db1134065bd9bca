"""
Configuration management for AIreform.

This package handles application and guild-level configuration:

- **app_configuration.py**: YAML configuration loader for global settings.
  Provides access to the AI endpoint settings (base URL, API key, model),
  reform workflow tuning (approval window, stagger interval, status channel
  lifetime), per-guild limits, the persistence path, and the bot owner id.
  Falls back gracefully on missing or malformed config files.

- **settings.py**: Typed wrappers around the ``ai_settings``, ``reform`` and
  ``limits`` sections.

- **guild_config.py**: Per-guild configuration persistence (context text,
  reform suggestions, channel whitelist) backed by a single JSON document
  that is read and written whole.
"""
