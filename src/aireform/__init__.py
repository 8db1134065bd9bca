"""
AIreform - AI-assisted Discord server evaluation and restructuring

Core Components:

- **Configuration**: YAML application settings plus a JSON document holding
  each guild's AI context, reform suggestions and channel whitelist
- **Approval Gate**: Owner + admin-quorum confirmation with a deadline before
  any structural change
- **Reform Scheduler**: One reform per guild at a time, with staggered starts
  across guilds
- **Structure Applier**: Idempotent, best-effort creation of the roles,
  categories, channels and overwrites suggested by the model
- **Status Reporting**: A temporary channel tracking reform progress

Usage:
    from aireform.main import main
    main()
"""
