"""Webhook report sink implementation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from run_outcome.models.result import ReportEntry
from run_outcome.reporting.base import ReportSink
from run_outcome.reporting.webhook.config import WebhookConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class WebhookReportSink(ReportSink):
    """Posts failure records as JSON to a CI endpoint."""

    config: WebhookConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: WebhookConfig
    ) -> AsyncGenerator["WebhookReportSink", None]:
        """Create sink with managed session lifecycle."""
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"

        async with aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def emit(self, entry: ReportEntry) -> None:
        """Post ``entry`` to the configured URL."""
        payload = {
            "category": entry.category,
            "title": entry.title,
            "detail": entry.detail,
            "source_log_path": str(entry.source_log_path),
        }

        log.info(
            "Publishing %s failure report: url=%s", entry.category, self.config.url
        )

        async with self.session.post(self.config.url, json=payload) as response:
            if response.status >= 300:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to publish failure report: {response.status} {text}"
                )
