"""Exception types shared by the process implementations."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised while normalising a process config.

    Process implementations catch it inside ``init`` and surface the message
    as ``failed_reason`` so callers never see it.
    """
