# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""HTTP boundary for the anchor registry.

Usage:
    python -m anchor_registry.server

Exports:
    create_app: Builds the FastAPI application around an AnchorKeyCache
    create_cache: Builds a cache from Settings
    create_store: Builds a table store from StoreConfigSchema
    Settings: Service configuration loaded from the environment
"""

from .app import create_app
from .factory import create_cache, create_store
from .schema import Settings, StoreConfigSchema

__all__ = [
    "Settings",
    "StoreConfigSchema",
    "create_app",
    "create_cache",
    "create_store",
]
