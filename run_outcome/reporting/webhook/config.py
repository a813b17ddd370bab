"""Configuration for the webhook report sink."""

from pydantic import BaseModel, SecretStr


class WebhookConfig(BaseModel):
    """Configuration for the webhook report sink."""

    url: str
    token: SecretStr | None = None
    timeout: float = 30.0
