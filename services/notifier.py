import logging
from typing import Optional, Protocol

import httpx

from utils.phone import to_whatsapp_id

logger = logging.getLogger(__name__)

GRAPH_API_BASE_URL = "https://graph.facebook.com"


class Notifier(Protocol):
    async def send_text(self, phone: str, text: str) -> bool: ...

    async def send_location_request(self, phone: str, prompt: str) -> bool: ...


class WhatsAppNotifier:
    """
    Best-effort replies through the WhatsApp Cloud API.

    Every send returns True/False and logs failures; nothing is raised to the
    caller and nothing is retried.
    """

    def __init__(
        self,
        token: str,
        phone_number_id: str,
        api_version: str = "v20.0",
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = f"{GRAPH_API_BASE_URL}/{api_version}/{phone_number_id}/messages"
        self._headers = {"Authorization": f"Bearer {token}"}
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def _post(self, payload: dict) -> bool:
        try:
            response = await self._client.post(self._url, json=payload, headers=self._headers)
            response.raise_for_status()
            return True
        except httpx.HTTPStatusError as http_error:
            logger.error(
                f"[NOTIFIER] ❌ Graph API returned {http_error.response.status_code} "
                f"for {payload.get('to')}: {http_error.response.text}"
            )
        except httpx.TimeoutException:
            logger.error(f"[NOTIFIER] ❌ Timed out sending {payload.get('type')} to {payload.get('to')}")
        except httpx.HTTPError as e:
            logger.error(f"[NOTIFIER] ❌ Error sending {payload.get('type')} to {payload.get('to')}: {e}")
        return False

    async def send_text(self, phone: str, text: str) -> bool:
        payload = {
            "messaging_product": "whatsapp",
            "to": to_whatsapp_id(phone),
            "type": "text",
            "text": {"body": text},
        }
        return await self._post(payload)

    async def send_location_request(self, phone: str, prompt: str) -> bool:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to_whatsapp_id(phone),
            "type": "interactive",
            "interactive": {
                "type": "location_request_message",
                "body": {"text": prompt},
                "action": {"name": "send_location"},
            },
        }
        if await self._post(payload):
            return True
        logger.warning(f"[NOTIFIER] ⚠️ Location request failed for {phone}, falling back to plain text")
        return await self.send_text(phone, prompt)

    async def aclose(self) -> None:
        await self._client.aclose()
