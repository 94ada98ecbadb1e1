"""Workstation installer for Windows development machines.

Core design goals:
- Idempotent steps: every step probes before it acts
- Sequential, one external command at a time
- Non-critical failures are reported, never fatal to the run
- Terminal settings are merged, never overwritten wholesale
- Centralized logging
"""

__all__ = []
