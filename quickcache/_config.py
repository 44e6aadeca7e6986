"""
Engine configuration.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path


def _default_cache_dir() -> Path:
    return Path(tempfile.gettempdir()) / "quick-cache"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """
    Process-wide engine configuration.

    Example:
        config = CacheConfig().with_cache_dir("/var/cache/myapp")
        engine = CacheEngine(config)
    """

    cache_dir: Path = field(default_factory=_default_cache_dir)
    file_suffix: str = ".json"

    def with_cache_dir(self, path: str | Path) -> CacheConfig:
        """Set directory for persisted entries."""
        return replace(self, cache_dir=Path(path))


__all__ = ("CacheConfig",)
