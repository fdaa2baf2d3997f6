"""Core configuration, constants and caching.

Import what you need from `intel_radar.core.config` and
`intel_radar.core.constants` to avoid heavy side effects at import time.
"""

__all__ = ["cache", "config", "constants", "profile"]
