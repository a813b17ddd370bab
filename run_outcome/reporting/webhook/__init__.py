"""Webhook report sink module."""

from run_outcome.reporting.webhook.config import WebhookConfig
from run_outcome.reporting.webhook.sink import WebhookReportSink

__all__ = ["WebhookConfig", "WebhookReportSink"]
