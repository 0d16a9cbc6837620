# refurb_watch/notify/slack_notifier.py

"""Slack-compatible webhook announcements for newly listed products."""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests
from rich.console import Console

from refurb_watch.config.settings import Settings
from refurb_watch.models.product import Product
from refurb_watch.normalize.attribute_normalizer import format_spec_summary

logger = logging.getLogger("refurb_watch.notify")


class NotificationError(RuntimeError):
    """The webhook endpoint rejected or failed the notification."""


def format_price(product: Product) -> str:
    """Render a record's price, e.g. ``$1,299.00`` or ``EUR 899.00``."""
    if product.price_amount is None:
        return "price unknown"
    if product.price_currency == "USD":
        return f"${product.price_amount:,.2f}"
    return f"{product.price_currency} {product.price_amount:,.2f}"


class SlackNotifier:
    """Build and post listing announcements to an incoming webhook."""

    def __init__(
        self,
        webhook_url: str | None = None,
        listing_url: str | None = None,
    ) -> None:
        self.webhook_url = (
            Settings.SLACK_WEBHOOK_URL if webhook_url is None
            else webhook_url
        )
        self.listing_url = listing_url or Settings.LISTING_URL
        self.session = curl_requests.Session()
        self._console = Console()

    def build_message(self, records: list[Product]) -> dict[str, Any]:
        """Compose the ``{"text": ...}`` payload for *records*."""
        lines: list[str] = []
        for p in records:
            specs = format_spec_summary(p.description)
            spec_line = f"\n    {specs}" if specs else ""
            lines.append(f"• *{format_price(p)}* — {p.name}{spec_line}")

        plural = "s" if len(records) != 1 else ""
        text = "\n".join([
            f"🖥️ *{len(records)} Mac Mini{plural} spotted on "
            "Apple Refurbished!*",
            "",
            *lines,
            "",
            f"👉 {self.listing_url}",
        ])
        return {"text": text}

    def send(self, message: dict[str, Any]) -> bool:
        """Post *message*; returns False when no webhook is configured.

        Raises:
            NotificationError: on a transport failure or non-2xx reply.
        """
        if not self.webhook_url:
            logger.info("SLACK_WEBHOOK_URL not set — skipping notification")
            self._console.print("[dim]Message that would be sent:[/dim]")
            self._console.print_json(json.dumps(message, ensure_ascii=False))
            return False

        try:
            resp = self.session.post(
                self.webhook_url,
                json=message,
                timeout=Settings.WEBHOOK_TIMEOUT,
            )
        except Exception as exc:
            raise NotificationError(f"Webhook request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise NotificationError(
                f"Webhook failed: {resp.status_code} {resp.text[:200]}"
            )

        logger.info("Slack notification sent")
        return True

    def notify(self, records: list[Product]) -> bool:
        """Announce *records*; nothing is sent for an empty list."""
        if not records:
            logger.info("No records to announce")
            return False
        return self.send(self.build_message(records))
