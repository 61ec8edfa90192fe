# backend/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from pythonjsonlogger import jsonlogger
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "ops-tracker", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            handler.setFormatter(jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            ))
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "ops_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "ops_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

ENTRIES_CREATED = Counter(
    "ops_entries_created_total",
    "Entries interpreted and stored",
    ["category", "severity"],
)

ENTRIES_DELETED = Counter(
    "ops_entries_deleted_total",
    "Entries deleted",
)

REJECTED_SUBMISSIONS = Counter(
    "ops_rejected_submissions_total",
    "Submissions rejected before interpretation",
    ["error_code"],
)

INTERPRET_LATENCY = Histogram(
    "ops_interpret_latency_seconds",
    "Time spent interpreting one submission",
)

STORE_SIZE = Gauge(
    "ops_store_entries",
    "Entries currently held by the store",
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def observe_interpret(start_ts: float):
    try:
        INTERPRET_LATENCY.observe(time.time() - start_ts)
    except Exception:
        pass


def inc_entry_created(category: str, severity: str):
    try:
        ENTRIES_CREATED.labels(category=category, severity=severity).inc()
    except Exception:
        pass


def inc_entry_deleted():
    try:
        ENTRIES_DELETED.inc()
    except Exception:
        pass


def inc_rejected(code: str):
    try:
        REJECTED_SUBMISSIONS.labels(error_code=code).inc()
    except Exception:
        pass


def set_store_size(n: int):
    try:
        STORE_SIZE.set(n)
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
