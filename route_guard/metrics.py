"""Prometheus metrics for the execution guard.

Gate outcomes are counted per label so dashboards can tell apart wallets
that were already on the right chain, switches that wait for the user and
switches that completed or failed.
"""

from __future__ import annotations
import logging

from prometheus_client import Counter, start_http_server

from .config import get_settings

logger = logging.getLogger(__name__)


chain_switch_total = Counter(
    "route_guard_chain_switch_total",
    "Chain switch gate outcomes",
    ["outcome"],
)


def start_metrics_server_if_enabled() -> bool:
    cfg = get_settings()
    if not cfg.METRICS_PORT:
        return False
    try:
        start_http_server(cfg.METRICS_PORT)
    except OSError:
        logger.exception("failed to start metrics server on port %s", cfg.METRICS_PORT)
        return False
    logger.info("metrics server listening on port %s", cfg.METRICS_PORT)
    return True
