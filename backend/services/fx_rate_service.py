"""FX rate service - process-wide USD/JPY state."""

import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from config import settings
from integrations.quote_protocol import FxRate
from integrations.source_registry import SourceRegistry

logger = logging.getLogger(__name__)


class FxRateService:
    """Holds the current USD/JPY rate for the whole process.

    The rate starts at the configured default and is replaced only by a
    successful fetch. A failed refresh keeps the last good rate.
    """

    _state_lock = threading.Lock()
    _current: Optional[FxRate] = None

    def __init__(self, registry: Optional[SourceRegistry] = None):
        self._registry = registry

    @property
    def registry(self) -> SourceRegistry:
        if self._registry is None:
            from integrations.source_registry import get_source_registry

            self._registry = get_source_registry()
        return self._registry

    @staticmethod
    def default_rate() -> FxRate:
        return FxRate(rate=Decimal(settings.DEFAULT_FX_RATE), source_id="default", fallback=True)

    @classmethod
    def current(cls) -> FxRate:
        """Last successfully fetched rate, or the default if none yet."""
        with cls._state_lock:
            return cls._current if cls._current is not None else cls.default_rate()

    @classmethod
    def reset(cls) -> None:
        """Forget the fetched rate (used by tests)."""
        with cls._state_lock:
            cls._current = None

    def refresh(self) -> FxRate:
        """Fetch the rate from the FX sources in order.

        Returns:
            The new rate, or the previous one if every source failed.
        """
        for source in self.registry.fx_sources():
            try:
                result = source.fetch_rate()
            except Exception:
                logger.warning("FX source %s raised", source.source_id, exc_info=True)
                continue
            if result.has_price:
                rate = FxRate(
                    rate=result.price,
                    fetched_at=datetime.now(timezone.utc),
                    source_id=result.source_id,
                    fallback=False,
                )
                with self._state_lock:
                    FxRateService._current = rate
                logger.info("USD/JPY = %s via %s", rate.rate, rate.source_id)
                return rate

        previous = self.current()
        logger.warning(
            "All FX sources failed; keeping %s (%s)", previous.rate, previous.source_id
        )
        return previous
