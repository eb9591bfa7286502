import logging
import re

import sentry_sdk

from abacus.settings import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app_settings: Settings) -> None:
    """Configure root logging once for the process."""

    logging.basicConfig(level=app_settings.log_level.upper(), format=LOG_FORMAT)


def mask_database_url(database_url: str) -> str:
    """Hide the password part of a database URL for logging."""

    return re.sub(r":[^:@/]+@", ":***@", database_url)


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured."""

    if not app_settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=app_settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )
