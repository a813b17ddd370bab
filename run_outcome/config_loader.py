"""Load resolver configuration from YAML files."""

import asyncio
import logging
from pathlib import Path

import yaml

from run_outcome.config import ResolverConfig

log = logging.getLogger(__name__)


class ConfigNotFoundError(Exception):
    """Raised when a configuration file does not exist."""


async def load_resolver_config(path: Path) -> ResolverConfig:
    """Load and validate a resolver configuration file.

    Args:
        path: Path to a YAML document with the ResolverConfig fields

    Returns:
        Validated configuration

    Raises:
        ConfigNotFoundError: If the file does not exist
        pydantic.ValidationError: If the document does not match the schema

    """
    if not path.exists():
        raise ConfigNotFoundError(f"Configuration file '{path}' not found")

    content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    data = yaml.safe_load(content) or {}

    log.debug("Loaded resolver configuration from %s", path)
    return ResolverConfig.model_validate(data)
