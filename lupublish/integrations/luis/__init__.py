"""
LUIS Integration for lupublish.

LUIS (Language Understanding) apps are trained by the LU build step and
must have a prediction account bound to them before they can serve
traffic. This integration provides:
- Azure account listing
- Account-to-application assignment
- Error envelope parsing (token expiry detection)

Usage:
    from lupublish.integrations.luis import LuisAuthoringClient, LuisAuthoringConfig

    client = LuisAuthoringClient(LuisAuthoringConfig(
        api_key="<authoring key>",
        access_token="<ARM token>",
        base_url="https://westus.api.cognitive.microsoft.com",
    ))

    accounts = await client.list_azure_accounts()
    await client.assign_azure_account("app-id", accounts[0])
"""

from lupublish.integrations.luis.client import LuisAuthoringClient, LuisAuthoringConfig
from lupublish.integrations.luis.schemas import (
    TOKEN_EXPIRY_MARKER,
    AzureAccount,
    LuisErrorBody,
    LuisErrorDetail,
)

__all__ = [
    "TOKEN_EXPIRY_MARKER",
    "AzureAccount",
    "LuisAuthoringClient",
    "LuisAuthoringConfig",
    "LuisErrorBody",
    "LuisErrorDetail",
]
