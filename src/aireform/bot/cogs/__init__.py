"""
Slash-command and event cogs.

- **config_cmds.py**: Admin-only context, suggestion and whitelist commands.
- **reform_cmds.py**: ``/evaluate_server``, ``/reform`` and ``/delete_all``.
- **general_cmds.py**: ``/help``.
- **events_listener.py**: Ready logging and application-command error handling.
"""
