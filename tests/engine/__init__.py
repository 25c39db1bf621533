"""
Dispatch Engine Test Suite.

- Registry invariants (sent <= index <= total, one-way status)
- Log sink capacity and queries
- Dispatcher tick paths (success, skip-on-failure, finish, single-flight)
- Pacer interval and task lifecycle
- Reporting heartbeat and twice-daily status slots
- Service operations (list, stop, delete)
"""
