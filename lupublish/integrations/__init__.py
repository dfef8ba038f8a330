"""
lupublish Integrations Layer.

This module provides clients for the cloud control-plane APIs the publish
pipeline talks to. Each integration follows a consistent pattern:

1. Client: Handles authentication and API communication
2. Schemas: Pydantic models for request/response validation
3. Processors: Pipeline processors that call the client (in pipeline/processors/)

Directory Structure:
    integrations/
    ├── base.py           # Base classes and error mapping
    └── luis/             # LUIS authoring API
        ├── client.py     # LuisAuthoringClient
        └── schemas.py    # Pydantic models
"""

from lupublish.integrations.base import (
    AuthenticationError,
    IntegrationClient,
    IntegrationConfig,
    IntegrationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "IntegrationClient",
    "IntegrationConfig",
    "IntegrationError",
    "NotFoundError",
    "RateLimitError",
    "ValidationError",
]
