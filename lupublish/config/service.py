"""
Configuration Service for lupublish.

Builds the per-publish BuildConfig from project settings and loads
publish profiles from disk.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from lupublish.pipeline.errors import ConfigError

from .schemas import (
    DEFAULT_REGION,
    BuildConfig,
    DownsamplingPolicy,
    LuisSettings,
    PublishProfile,
    QnaSettings,
)

logger = logging.getLogger(__name__)


def authoring_region(luis: LuisSettings) -> str:
    """Authoring region, falling back to the prediction region, then westus."""
    return luis.authoring_region or luis.region or DEFAULT_REGION


def authoring_endpoint(luis: LuisSettings) -> str:
    """Authoring endpoint, derived from the authoring region when unset."""
    if luis.authoring_endpoint:
        return luis.authoring_endpoint.rstrip("/")
    return f"https://{authoring_region(luis)}.api.cognitive.microsoft.com"


def configure(
    luis: LuisSettings,
    qna: QnaSettings,
    downsampling: DownsamplingPolicy | None = None,
) -> BuildConfig:
    """
    Merge LUIS and QnA settings into a single build configuration.

    The two settings objects have disjoint keys, so the merge is shallow.
    The downsampling policy is passed through unchanged.

    Args:
        luis: LUIS authoring settings
        qna: QnA Maker settings
        downsampling: Training data reduction policy

    Returns:
        Immutable BuildConfig

    Raises:
        ConfigError: If the LUIS authoring key is missing
    """
    if luis.authoring_key is None or not luis.authoring_key.get_secret_value():
        raise ConfigError("LUIS authoring key is required to build LU resources")

    config = BuildConfig(
        authoring_key=luis.authoring_key,
        authoring_endpoint=authoring_endpoint(luis),
        authoring_region=authoring_region(luis),
        qna_subscription_key=qna.subscription_key,
        qna_region=qna.qna_region,
        downsampling=downsampling or DownsamplingPolicy(),
    )
    logger.debug(
        f"Build configured: region={config.authoring_region}, "
        f"endpoint={config.authoring_endpoint}, qna_region={config.qna_region}"
    )
    return config


def load_publish_profile(path: str | Path) -> PublishProfile:
    """
    Load a publish profile from a YAML or JSON file.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read publish profile {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Publish profile {path} must contain a mapping")

    try:
        profile = PublishProfile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid publish profile {path}: {e}") from e

    logger.info(f"Loaded publish profile for '{profile.name}' ({profile.environment})")
    return profile
