"""Optional Telegram side channel for failure digests."""

from __future__ import annotations

from dataclasses import dataclass

import httpx


MAX_MESSAGE_LEN = 3900
BLOCK_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str
    chat_id: str


class TelegramDeliveryError(Exception):
    pass


def chunk_message(text: str, *, max_len: int = MAX_MESSAGE_LEN) -> list[str]:
    """Pack the digest's blank-line separated blocks into messages of at most max_len.

    A failed check is one block and is never split across messages unless the
    block alone exceeds max_len, in which case it is hard-cut.
    """
    max_len = max(1, int(max_len))
    chunks: list[str] = []
    current = ""
    for block in (b.strip() for b in (text or "").split(BLOCK_SEPARATOR)):
        while len(block) > max_len:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(block[:max_len])
            block = block[max_len:].lstrip()
        if not block:
            continue
        joined = f"{current}{BLOCK_SEPARATOR}{block}" if current else block
        if len(joined) <= max_len:
            current = joined
        else:
            chunks.append(current)
            current = block
    if current:
        chunks.append(current)
    return chunks


async def send_digest(client: httpx.AsyncClient, config: TelegramConfig, text: str) -> int:
    """Send text in chunks; returns the number of messages delivered."""
    url = f"https://api.telegram.org/bot{config.bot_token}/sendMessage"
    sent = 0
    for chunk in chunk_message(text):
        try:
            resp = await client.post(url, json={"chat_id": config.chat_id, "text": chunk}, timeout=15.0)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            msg = f"{type(exc).__name__}: {exc}".replace(config.bot_token, "<redacted>")
            raise TelegramDeliveryError(msg) from exc
        if not (isinstance(data, dict) and data.get("ok")):
            desc = data.get("description") if isinstance(data, dict) else None
            raise TelegramDeliveryError(f"Telegram refused message: {desc or resp.status_code}")
        sent += 1
    return sent
