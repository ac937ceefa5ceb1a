"""Plugin catalog: fetches the public plugin list and exposes it as actions.

The catalog is the single writer of its ``SharedValue``; the actions (and
anything else handed the same container at wiring time) only read it.
"""

from __future__ import annotations

import threading
from typing import Any

import httpx

from rtk.core.errors import CatalogError, ErrorContext
from rtk.core.logging import get_logger
from rtk.core.shared import SharedValue
from rtk.framework.registry import ActionDescriptor, action

logger = get_logger(__name__)

DEFAULT_CATALOG_URL = "http://bukget.org/api/plugins"


class PluginCatalog:
    """One-shot fetch of the plugin list into a shared, lock-guarded tuple.

    Example:
        >>> catalog = PluginCatalog("http://bukget.org/api/plugins")
        >>> catalog.refresh()
        ('WorldEdit', 'Essentials', ...)
        >>> catalog.plugins()[0]
        'WorldEdit'
    """

    def __init__(
        self,
        url: str = DEFAULT_CATALOG_URL,
        timeout: float = 30.0,
        *,
        store: SharedValue[tuple[Any, ...]] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.store: SharedValue[tuple[Any, ...]] = store if store is not None else SharedValue(())
        self.transport = transport

    def refresh(self) -> tuple[Any, ...]:
        """Fetch the catalog and publish it.

        Raises:
            CatalogError: on transport or HTTP errors, undecodable JSON, or
                a payload that is not a JSON array. The published list is
                left untouched.
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                response = client.get(self.url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise CatalogError(
                f"Unable to fetch plugin catalog: {e}", cause=e, context=ErrorContext(url=self.url)
            ) from e
        except ValueError as e:
            raise CatalogError(
                "Plugin catalog is not valid JSON", cause=e, context=ErrorContext(url=self.url)
            ) from e

        if not isinstance(payload, list):
            raise CatalogError(
                f"Plugin catalog must be a JSON array, got {type(payload).__name__}",
                context=ErrorContext(url=self.url),
            )

        plugins = tuple(payload)
        self.store.set(plugins)
        logger.info("plugins.refreshed", url=self.url, count=len(plugins))
        return plugins

    def refresh_in_background(self) -> threading.Thread:
        """Run one ``refresh`` on a daemon thread."""

        def _run() -> None:
            try:
                self.refresh()
            except CatalogError as e:
                logger.error("plugins.refresh_failed", url=self.url, error_message=e.message)

        thread = threading.Thread(target=_run, daemon=True, name="rtk-plugin-catalog")
        thread.start()
        return thread

    def plugins(self) -> tuple[Any, ...]:
        return self.store.get()


class PluginActions:
    """Handler group for plugin catalog actions."""

    def __init__(self, catalog: PluginCatalog) -> None:
        self.catalog = catalog

    def descriptors(self) -> list[ActionDescriptor]:
        return [
            action("refreshPlugins", self.refresh_plugins, aliases=["requestPlugins"]),
            action("getPlugins", self.get_plugins, aliases=["plugins"]),
        ]

    def refresh_plugins(self) -> bool:
        """Fetch the plugin catalog now."""
        self.catalog.refresh()
        return True

    def get_plugins(self) -> list[Any]:
        """Last fetched plugin catalog."""
        return list(self.catalog.plugins())
