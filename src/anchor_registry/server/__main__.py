# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Entry point for the anchor registry HTTP service.

Usage:
    python -m anchor_registry.server

Configuration is read from the environment; see :class:`Settings`.
"""

from __future__ import annotations

import sys

import uvicorn

from anchor_registry.exceptions import ConfigError

from .app import create_app
from .obs import setup_logging
from .schema import Settings


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for a clean shutdown, 1 for bad configuration)
    """
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    setup_logging(settings.log_level)
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
