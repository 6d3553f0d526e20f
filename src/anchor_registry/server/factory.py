# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Builds the table store and the cache from :class:`Settings`."""

from __future__ import annotations

from anchor_registry.cache import AnchorKeyCache
from anchor_registry.exceptions import ConfigError
from anchor_registry.stores import InMemoryTableStore, SQLiteTableStore, TableStore

from .schema import Settings, StoreConfigSchema


def create_store(config: StoreConfigSchema) -> TableStore:
    """Create a table store from configuration.

    Raises:
        ConfigError: If the sqlite store has no path or the table name is invalid.
    """
    if config.type == "sqlite":
        if not config.path:
            raise ConfigError("SQLite store requires 'path' configuration")
        try:
            return SQLiteTableStore(
                config.path,
                table_name=config.table_name,
                page_size=config.page_size,
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    return InMemoryTableStore(page_size=config.page_size)


def create_cache(settings: Settings) -> AnchorKeyCache:
    return AnchorKeyCache(
        create_store(settings.store),
        partition_size=settings.partition_size,
    )
