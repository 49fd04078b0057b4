"""Where import settings are read from.

A key is looked up in the environment first, then in the site's
``site_config.json``, then in ``common_site_config.json``. ``None`` means
the key is not set anywhere.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Iterator, Protocol, runtime_checkable

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None


@runtime_checkable
class ConfigSource(Protocol):
    def get(self, key: str, *, env: str | None = None) -> Any:
        ...


class SiteConfig:
    """Reads ``os.environ`` and the config files of the connected Frappe site."""

    def get(self, key: str, *, env: str | None = None) -> Any:
        if env is not None and env in os.environ:
            return os.environ[env]
        if frappe is None:
            return None

        conf = getattr(frappe, "conf", None)
        value = conf.get(key) if conf is not None else None
        if value is not None:
            return value

        try:
            return frappe.get_common_site_config().get(key)
        except (AttributeError, OSError):
            return None


class StaticConfig:
    """Settings held in plain dicts, for tests and scripted runs.

    >>> StaticConfig(site={"grant_import_subsidiaries": "SMRU"}).get("grant_import_subsidiaries")
    'SMRU'
    """

    def __init__(
        self,
        *,
        env: dict[str, str] | None = None,
        site: dict[str, Any] | None = None,
        common: dict[str, Any] | None = None,
    ) -> None:
        self.env = dict(env or {})
        self.site = dict(site or {})
        self.common = dict(common or {})

    def get(self, key: str, *, env: str | None = None) -> Any:
        if env is not None and env in self.env:
            return self.env[env]
        if self.site.get(key) is not None:
            return self.site[key]
        return self.common.get(key)


_active: ConfigSource | None = None


def active_source() -> ConfigSource:
    """Return the source installed by ``override_config``, else the live site."""
    return _active if _active is not None else SiteConfig()


@contextmanager
def override_config(
    *,
    site: dict[str, Any] | None = None,
    common: dict[str, Any] | None = None,
    env: dict[str, str] | None = None,
) -> Iterator[StaticConfig]:
    """Temporarily read every setting from a ``StaticConfig``.

    Usage::

        with override_config(site={"grant_import_subsidiaries": "SMRU,BHF"}):
            assert ImportConfig.load().subsidiaries == ["SMRU", "BHF"]
    """
    global _active
    previous = _active
    _active = StaticConfig(env=env, site=site, common=common)
    try:
        yield _active
    finally:
        _active = previous
