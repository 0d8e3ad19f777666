"""Resilience core: snapshot persistence, auto-save scheduling, crash
recovery and inactive-tab suspension.

- **store**: Key-value persistence adapters (local JSON files, in-memory)
- **platform**: Tab platform and notification adapters (host bridge)
- **managers**: Data access over the store (settings, workspaces, snapshots, activity)
- **services**: Time-based state machines (auto-save, recovery, inactivity)
- **service**: Process-level composition and start/stop procedures
"""
