from __future__ import annotations

import logging

import sentry_sdk

from ats_engine.core.config import Settings, settings as default_settings

_configured = False


def configure_logging(cfg: Settings | None = None) -> None:
    """Set up root logging and optional Sentry reporting once per process."""
    global _configured
    if _configured:
        return

    resolved = cfg or default_settings
    logging.basicConfig(level=resolved.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if resolved.sentry_dsn:
        sentry_sdk.init(dsn=resolved.sentry_dsn)
    _configured = True
