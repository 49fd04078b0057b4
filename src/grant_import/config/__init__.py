"""Typed, validated settings of the grant import engine.

Values come from environment variables or the Frappe site config, and the
engine still runs without a Frappe site.
"""

from ._casters import Csv
from ._sources import ConfigSource, SiteConfig, StaticConfig, override_config
from .settings import ImportConfig

__all__ = [
    "ImportConfig",
    "ConfigSource",
    "SiteConfig",
    "StaticConfig",
    "Csv",
    "override_config",
]
