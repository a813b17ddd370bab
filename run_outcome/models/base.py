"""Base model configuration for documents read from outside the process."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Crash snapshots and configuration files carry many keys we do not use,
    so unknown fields are ignored rather than rejected.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")
