from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx


RESEND_API_URL = "https://api.resend.com/emails"


class EmailDeliveryError(Exception):
    """The email provider refused or failed to accept a message."""


class Notifier(Protocol):
    async def send(self, *, sender: str, recipient: str, subject: str, html: str) -> str | None: ...


@dataclass(frozen=True)
class ResendConfig:
    api_key: str
    api_url: str = RESEND_API_URL
    timeout_seconds: float = 15.0


class ResendClient:
    """Sends email through the Resend HTTP API."""

    def __init__(self, http_client: httpx.AsyncClient, config: ResendConfig):
        self._http = http_client
        self.config = config

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    async def send(self, *, sender: str, recipient: str, subject: str, html: str) -> str | None:
        if not self.configured:
            raise EmailDeliveryError("RESEND_API_KEY not set")
        payload = {"from": sender, "to": [recipient], "subject": subject, "html": html}
        try:
            resp = await self._http.post(
                self.config.api_url,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            msg = f"{type(exc).__name__}: {exc}".replace(self.config.api_key, "<redacted>")
            raise EmailDeliveryError(msg) from exc
        if resp.status_code >= 400:
            detail = resp.text[:300]
            try:
                data = resp.json()
                if isinstance(data, dict) and data.get("message"):
                    detail = str(data["message"])
            except ValueError:
                pass
            raise EmailDeliveryError(f"Resend rejected message ({resp.status_code}): {detail}")
        try:
            data = resp.json()
        except ValueError:
            return None
        return str(data.get("id")) if isinstance(data, dict) and data.get("id") else None
