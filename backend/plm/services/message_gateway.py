"""Message delivery gateway abstraction.

The notification engine only talks to ``MessageDeliveryGateway``; concrete
providers live in ``plm.services.messaging``.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class DeliveryResult:
    """Outcome of a single card delivery."""

    success: bool
    msg_id: str | None = None
    error: str | None = None


class MessageDeliveryGateway(ABC):
    """Abstract base class for card-message providers."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when credentials are present and delivery can be attempted."""
        pass  # pragma: no cover

    @abstractmethod
    def send_card(
        self,
        external_id: str,
        title: str,
        description: str,
        url: str,
        button_label: str,
    ) -> DeliveryResult:
        """Send a card message to one external messaging identity."""
        pass  # pragma: no cover


class AccessTokenCache:
    """Process-wide provider access token with an explicit expiry.

    The token is treated as expired ``refresh_margin`` seconds before the
    provider-declared TTL. Concurrent refreshes are harmless: the last
    stored token wins.
    """

    def __init__(
        self,
        refresh_margin: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._token: str | None = None
        self._expires_at: float = 0.0

    def get(self) -> str | None:
        if self._token and self._clock() < self._expires_at:
            return self._token
        return None

    def store(self, token: str, expires_in: float) -> None:
        self._token = token
        self._expires_at = self._clock() + max(expires_in - self.refresh_margin, 0)

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    @property
    def is_valid(self) -> bool:
        return self.get() is not None
