"""Sentry error tracking for unexpected ledger failures."""

import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.utils import BadDsn

from posledger.core.logging import get_logger

logger = get_logger(__name__)

_sentry_initialized = False


def init_sentry() -> bool:
    """
    Initialize Sentry if SENTRY_DSN holds a usable DSN.

    Returns True when error tracking is active. Repeated calls are no-ops.
    SQLAlchemy integration is left out on purpose so statements and bound
    amounts never leave the process.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    sentry_dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not sentry_dsn.startswith(("https://", "http://")):
        logger.info("sentry.disabled", message="No valid Sentry DSN, error tracking disabled")
        return False

    environment = os.getenv("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=0.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(level=None, event_level=None),
            ],
            before_send=filter_sensitive_data,
        )
    except BadDsn as exc:
        logger.warning("sentry.init_failed", error=str(exc))
        return False

    _sentry_initialized = True
    logger.info("sentry.initialized", environment=environment)
    return True


def filter_sensitive_data(event: dict, hint: dict) -> dict:
    """Drop extras and breadcrumbs that look like SQL from outgoing events."""
    extra = event.get("extra")
    if isinstance(extra, dict):
        event["extra"] = {
            key: value
            for key, value in extra.items()
            if "sql" not in str(key).lower() and "sql" not in str(value).lower()
        }

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        # sentry-sdk 2.x wraps them as {"values": [...]}
        values = breadcrumbs.get("values", [])
        breadcrumbs["values"] = [b for b in values if not _mentions_sql(b)]
    elif isinstance(breadcrumbs, list):
        event["breadcrumbs"] = [b for b in breadcrumbs if not _mentions_sql(b)]

    return event


def _mentions_sql(breadcrumb) -> bool:
    if isinstance(breadcrumb, dict):
        if breadcrumb.get("category") == "query":
            return True
        breadcrumb = breadcrumb.get("message", "")
    return "sql" in str(breadcrumb).lower()
