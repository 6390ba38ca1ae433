"""Per-provider availability tracking with a cooldown window."""
import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 5 * 60


class ProviderHealth:
    """Availability flag for one provider."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        self.available = True
        self.last_state_change_at: Optional[float] = None  # clock() reading
        self.last_checked: Optional[datetime] = None
        self.lock = threading.Lock()


class ProviderHealthTracker:
    """
    Circuit breaker state shared by every request.

    A provider goes unavailable only when an invocation fails, and is skipped
    until `cooldown_seconds` have passed since that failure. Any success marks
    it available again.
    """

    def __init__(
        self,
        provider_ids: Iterable[str],
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._entries: Dict[str, ProviderHealth] = {
            provider_id: ProviderHealth(provider_id) for provider_id in provider_ids
        }

    def _entry(self, provider_id: str) -> ProviderHealth:
        try:
            return self._entries[provider_id]
        except KeyError:
            raise KeyError(f"Unknown provider: {provider_id}") from None

    def should_skip(self, provider_id: str) -> bool:
        """True while a failed provider is still inside its cooldown window."""
        entry = self._entry(provider_id)
        with entry.lock:
            if entry.available or entry.last_state_change_at is None:
                return False
            return self._clock() - entry.last_state_change_at < self.cooldown_seconds

    def retry_after(self, provider_id: str) -> float:
        """Seconds until a cooling-down provider may be probed again."""
        entry = self._entry(provider_id)
        with entry.lock:
            if entry.available or entry.last_state_change_at is None:
                return 0.0
            elapsed = self._clock() - entry.last_state_change_at
            return max(0.0, self.cooldown_seconds - elapsed)

    def record_success(self, provider_id: str) -> None:
        entry = self._entry(provider_id)
        with entry.lock:
            recovered = not entry.available
            entry.available = True
            entry.last_state_change_at = self._clock()
            entry.last_checked = datetime.utcnow()
        if recovered:
            logger.info(f"[PROVIDER HEALTH] {provider_id} recovered")

    def record_failure(self, provider_id: str) -> None:
        entry = self._entry(provider_id)
        with entry.lock:
            entry.available = False
            entry.last_state_change_at = self._clock()
            entry.last_checked = datetime.utcnow()
        logger.warning(
            f"[PROVIDER HEALTH] {provider_id} marked unavailable for "
            f"{self.cooldown_seconds:.0f}s"
        )

    def is_available(self, provider_id: str) -> bool:
        entry = self._entry(provider_id)
        with entry.lock:
            return entry.available

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Health of every provider, for status reporting."""
        result = {}
        for provider_id, entry in self._entries.items():
            with entry.lock:
                available = entry.available
                last_checked = entry.last_checked
            result[provider_id] = {
                "available": available,
                "last_check": last_checked.isoformat() if last_checked else None,
                "retry_after_seconds": round(self.retry_after(provider_id), 1),
            }
        return result
