"""Integration tests for the webhook report sink."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from run_outcome.reporting.webhook import WebhookConfig, WebhookReportSink
from run_outcome.testing.factories import ReportEntryFactory

WEBHOOK_URL = "http://ci.test/hooks/test-failures"


@pytest.fixture
def config() -> WebhookConfig:
    """Create test configuration."""
    return WebhookConfig(url=WEBHOOK_URL, token=SecretStr("test-token"))


@pytest.fixture
async def sink(
    config: WebhookConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[WebhookReportSink, None]:
    """Create sink with managed session."""
    async with WebhookReportSink.from_config(config) as impl:
        yield impl


class TestEmit:
    """Tests for emit."""

    async def test_posts_entry_as_json(
        self,
        sink: WebhookReportSink,
        aioresponses: aioresponses_cls,
    ) -> None:
        """Posts the report entry to the configured URL."""
        aioresponses.post(WEBHOOK_URL, status=201)
        entry = ReportEntryFactory.build(
            category="crash",
            title="App Crash monotouchtest Debug",
            detail="Killed by the OS (signal)",
            source_log_path=Path("/logs/main.log"),
        )

        await sink.emit(entry)

        [call] = aioresponses.requests[("POST", URL(WEBHOOK_URL))]
        assert call.kwargs["json"] == {
            "category": "crash",
            "title": "App Crash monotouchtest Debug",
            "detail": "Killed by the OS (signal)",
            "source_log_path": "/logs/main.log",
        }

    async def test_sends_bearer_token(self, config: WebhookConfig) -> None:
        """Adds the token as bearer authorization."""
        async with WebhookReportSink.from_config(config) as sink:
            assert sink.session.headers["Authorization"] == "Bearer test-token"

    async def test_no_authorization_without_token(self) -> None:
        """Omits authorization when no token is configured."""
        config = WebhookConfig(url=WEBHOOK_URL)

        async with WebhookReportSink.from_config(config) as sink:
            assert "Authorization" not in sink.session.headers

    @pytest.mark.parametrize("status", [400, 500])
    async def test_raises_on_error_status(
        self,
        sink: WebhookReportSink,
        aioresponses: aioresponses_cls,
        status: int,
    ) -> None:
        """Raises RuntimeError when the endpoint rejects the report."""
        aioresponses.post(WEBHOOK_URL, status=status, body="nope")

        with pytest.raises(RuntimeError, match=f"Failed to publish failure report: {status} nope"):
            await sink.emit(ReportEntryFactory.build())
