"""
Discord integration: the shared service container and the command cogs.

- **services.py**: Builds the config store, planner, approval gate, scheduler
  and reform workflow once per process and hands them to the cogs.
- **cogs/**: Slash commands (reform, configuration, help) and lifecycle events.
"""
