# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Service configuration.

Settings are read from environment variables once at startup.  Tests build
:class:`Settings` directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from anchor_registry.exceptions import ConfigError


class StoreConfigSchema(BaseModel):
    """Table backend configuration.

    Attributes:
        type: Store type ("memory" or "sqlite")
        path: Path to SQLite database file (for sqlite type)
        table_name: Name of the anchor table
        page_size: Maximum rows per scan segment
    """

    type: Literal["memory", "sqlite"] = "memory"
    path: str = ""
    table_name: str = "AnchorCache"
    page_size: int = Field(default=1000, gt=0)


class Settings(BaseModel):
    """Complete service configuration.

    Attributes:
        store: Table backend configuration
        partition_size: Consecutive anchor numbers per partition
        host: Interface the HTTP server binds to
        port: Port the HTTP server listens on
        log_level: Root log level
    """

    store: StoreConfigSchema = Field(default_factory=StoreConfigSchema)
    partition_size: int = Field(default=500, gt=0)
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``ANCHOR_*``, ``HOST``, ``PORT`` and ``LOG_LEVEL``.

        Raises:
            ConfigError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        try:
            return cls(
                store=StoreConfigSchema(
                    type=env.get("ANCHOR_STORE_TYPE", "memory").lower(),
                    path=env.get("ANCHOR_STORE_PATH", ""),
                    table_name=env.get("ANCHOR_TABLE_NAME", "AnchorCache"),
                    page_size=env.get("ANCHOR_PAGE_SIZE", "1000"),
                ),
                partition_size=env.get("ANCHOR_PARTITION_SIZE", "500"),
                host=env.get("HOST", "0.0.0.0"),
                port=env.get("PORT", "8080"),
                log_level=env.get("LOG_LEVEL", "INFO").upper(),
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
