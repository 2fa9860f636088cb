"""pifleet: Raspberry Pi fleet provisioning, audit and restore.

Core design goals:
- One audit record per run, replayable on a fresh device
- Idempotent, individually non-fatal steps
- Explicit paths (host root, output dir, sidecar dir) instead of cwd magic
- Centralized logging
"""

__all__ = []
