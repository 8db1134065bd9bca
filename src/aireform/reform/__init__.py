"""
Server reform workflow.

- **approval_gate.py**: Multi-party approval (owner + admin quorum, or the
  owner alone when they are the only administrator) with a fixed deadline.
- **reform_scheduler.py**: Per-guild mutual exclusion with staggered starts
  across guilds.
- **structure_snapshotter.py**: Read-only capture of roles, categories and
  channels.
- **change_set_parsing.py**: Schema validation of the planner's JSON output.
- **structure_applier.py**: Best-effort, idempotent application of a
  change-set in dependency order.
- **status_reporter.py**: Transient progress channel.
- **reform_workflow.py**: Drives one reform from channel lock to release.
- **server_teardown.py**: Owner-only wipe of roles and channels.
"""
