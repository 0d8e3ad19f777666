"""Tab platform and notification adapters."""

from tabvault.resilience.platform.base import Notifier, TabPlatform, notify_quietly
from tabvault.resilience.platform.bridge import HttpTabPlatform

__all__ = ["HttpTabPlatform", "Notifier", "TabPlatform", "notify_quietly"]
