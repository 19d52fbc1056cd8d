"""WeChat Work card-message provider.

Tokens come from ``/gettoken`` and are cached in an ``AccessTokenCache``;
cards are posted to ``/message/send`` as ``textcard`` messages. Every failure
mode (missing credentials, transport error, non-zero ``errcode``) is reported
as a failed ``DeliveryResult`` instead of an exception.
"""

import logging
from typing import Any

import httpx

from plm.core.config import settings
from plm.services.message_gateway import AccessTokenCache, DeliveryResult, MessageDeliveryGateway

logger = logging.getLogger(__name__)

# WeChat Work declares 7200s when expires_in is omitted
DEFAULT_TOKEN_TTL = 7200
# Invalid or expired access_token; the next send fetches a fresh one
TOKEN_EXPIRED_ERRCODES = frozenset({40014, 42001})


class WeChatWorkGateway(MessageDeliveryGateway):
    """Deliver card messages through the WeChat Work application API."""

    def __init__(
        self,
        corp_id: str | None = None,
        agent_id: int | None = None,
        secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        token_cache: AccessTokenCache | None = None,
    ):
        self.corp_id = corp_id if corp_id is not None else settings.WECHAT_CORP_ID
        self.agent_id = agent_id if agent_id is not None else settings.WECHAT_AGENT_ID
        self.secret = secret if secret is not None else settings.WECHAT_SECRET
        self.base_url = (base_url or settings.WECHAT_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.WECHAT_REQUEST_TIMEOUT
        self.token_cache = token_cache or AccessTokenCache(
            refresh_margin=settings.WECHAT_TOKEN_REFRESH_MARGIN
        )

    def is_configured(self) -> bool:
        return bool(self.corp_id and self.agent_id and self.secret)

    def get_access_token(self) -> str | None:
        """Return a cached token, refreshing it from the API when expired."""
        if not self.is_configured():
            logger.warning("WeChat Work is not configured, cannot obtain access token")
            return None

        token = self.token_cache.get()
        if token:
            return token

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(
                    f"{self.base_url}/gettoken",
                    params={"corpid": self.corp_id, "corpsecret": self.secret},
                )
            data: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("WeChat Work token request failed: %s", exc)
            return None

        if data.get("errcode") == 0 and data.get("access_token"):
            token = str(data["access_token"])
            self.token_cache.store(token, float(data.get("expires_in") or DEFAULT_TOKEN_TTL))
            return token

        logger.error("WeChat Work token request rejected: %s", data.get("errmsg"))
        return None

    def send_card(
        self,
        external_id: str,
        title: str,
        description: str,
        url: str,
        button_label: str,
    ) -> DeliveryResult:
        token = self.get_access_token()
        if not token:
            return DeliveryResult(success=False, error="Failed to get access token")

        message = {
            "touser": external_id,
            "msgtype": "textcard",
            "agentid": self.agent_id,
            "textcard": {
                "title": title,
                "description": description,
                "url": url,
                "btntxt": button_label,
            },
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/message/send",
                    params={"access_token": token},
                    json=message,
                )
            data: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("WeChat Work card delivery to %s failed: %s", external_id, exc)
            return DeliveryResult(success=False, error=str(exc)[:1000])

        if data.get("errcode") == 0:
            msg_id = data.get("msgid")
            return DeliveryResult(success=True, msg_id=str(msg_id) if msg_id else None)

        if data.get("errcode") in TOKEN_EXPIRED_ERRCODES:
            self.token_cache.invalidate()
        errmsg = str(data.get("errmsg") or "unknown error")
        logger.warning("WeChat Work rejected card for %s: %s", external_id, errmsg)
        return DeliveryResult(success=False, error=errmsg)


_default_gateway: WeChatWorkGateway | None = None


def get_wechat_gateway() -> WeChatWorkGateway:
    """Shared gateway so the access token cache survives across requests."""
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = WeChatWorkGateway()
    return _default_gateway
