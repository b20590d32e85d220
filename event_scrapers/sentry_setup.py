import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.pymongo import PyMongoIntegration

from event_scrapers.config import settings

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry() -> bool:
    """
    Initializes the Sentry SDK if a DSN is configured.
    Safe to call from every run entry point; only the first call initializes.
    Returns True when Sentry is active.
    """
    global _initialized
    if _initialized:
        return True

    sentry_settings = settings.sentry
    if not sentry_settings.dsn:
        logger.debug("Sentry DSN not found in settings. Sentry SDK will not be initialized.")
        return False

    effective_environment = sentry_settings.environment or settings.environment
    logger.info(f"Sentry DSN found. Initializing Sentry SDK for environment: '{effective_environment}'.")

    integrations = [
        LoggingIntegration(
            level=logging.INFO,        # breadcrumbs
            event_level=logging.ERROR  # events
        ),
        PyMongoIntegration(),
    ]

    try:
        sentry_sdk.init(
            dsn=str(sentry_settings.dsn),
            environment=effective_environment,
            traces_sample_rate=sentry_settings.traces_sample_rate if sentry_settings.enable_performance_monitoring else 0.0,
            profiles_sample_rate=sentry_settings.profiles_sample_rate if sentry_settings.enable_performance_monitoring else 0.0,
            integrations=integrations,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry SDK: {e}", exc_info=True)
        return False

    _initialized = True
    logger.info("Sentry SDK initialized successfully.")
    return True
