"""Log records for completed requests and cache classifications."""

import logging

from cachelens.config import ConfigStore
from cachelens.types import CacheAnalysis

logger = logging.getLogger(__name__)


class CacheLogger:
    """Turns request outcomes into log lines, gated by the debug settings."""

    def __init__(
        self,
        config: ConfigStore,
        *,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._log = log or logger

    def request_log(self, method: str, url: str, status: int) -> None:
        self._log.info("[%s] %s [%s]", method, url, status)

    def cache_status(self, analysis: CacheAnalysis, url: str, method: str) -> None:
        debug = self._config.get().debug
        if not debug.cache_logging:
            return

        metadata = analysis.metadata
        self._log.info(
            "[CACHE] [%s]: %s %s (%sms)",
            analysis.status.value,
            method,
            url,
            round(metadata.duration),
        )
        if metadata.tags:
            self._log.info("   └─ Tags: [%s]", ", ".join(metadata.tags))
        if debug.show_cache_confidence:
            self._log.info("   └─ Confidence: (%d%%)", round(analysis.confidence * 100))
        if debug.show_cache_strategy and metadata.strategy:
            self._log.info("   └─ Strategy: %s", metadata.strategy)
        if debug.show_cache_indicators and analysis.indicators:
            self._log.info("   └─ Indicators: %s", ", ".join(analysis.indicators))
