"""
lupublish Configuration

Publish profiles, project build settings and the merged BuildConfig.
"""

from .schemas import (
    BuildConfig,
    DownsamplingPolicy,
    LuisSettings,
    PublishProfile,
    QnaSettings,
    RuntimeSettings,
)
from .service import authoring_endpoint, authoring_region, configure, load_publish_profile

__all__ = [
    "BuildConfig",
    "DownsamplingPolicy",
    "LuisSettings",
    "PublishProfile",
    "QnaSettings",
    "RuntimeSettings",
    "authoring_endpoint",
    "authoring_region",
    "configure",
    "load_publish_profile",
]
