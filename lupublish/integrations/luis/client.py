"""
LUIS Authoring API Client for lupublish.

This client provides async access to the Azure account endpoints of the
LUIS authoring API. It handles authentication and error mapping; it does
not retry, callers wrap calls with ``with_retry``.

Usage:
    async with LuisAuthoringClient(config) as client:
        # List the accounts visible to the ARM token
        accounts = await client.list_azure_accounts()

        # Bind an account to an application's prediction endpoint
        await client.assign_azure_account(app_id="...", account=accounts[0])

API Reference:
    https://westus.dev.cognitive.microsoft.com/docs/services/5890b47c39e2bb17b84a55ff
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lupublish.integrations.base import IntegrationClient, IntegrationConfig
from lupublish.integrations.luis.schemas import AzureAccount

logger = logging.getLogger(__name__)

ACCOUNTS_PATH = "/luis/api/v2.0/azureaccounts"
APPS_PATH = "/luis/api/v2.0/apps"
SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class LuisAuthoringConfig(IntegrationConfig):
    """Configuration for the LUIS authoring client."""

    # Required
    api_key: str = ""
    access_token: str = ""
    base_url: str = ""

    timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration."""
        if not self.api_key:
            raise ValueError("LUIS authoring key is required")
        if not self.access_token:
            raise ValueError("Access token is required")
        if not self.base_url:
            raise ValueError("LUIS authoring endpoint is required")


# =============================================================================
# Client
# =============================================================================


class LuisAuthoringClient(IntegrationClient):
    """
    Async client for the LUIS authoring API.

    Authenticates every request with both the ARM bearer token and the
    authoring subscription key.
    """

    def __init__(self, config: LuisAuthoringConfig, **kwargs):
        super().__init__(config, **kwargs)
        self._config: LuisAuthoringConfig = config

    @property
    def name(self) -> str:
        return "luis"

    def _get_auth_headers(self) -> dict[str, str]:
        """Return LUIS authentication headers."""
        return {
            "Authorization": f"Bearer {self._config.access_token}",
            SUBSCRIPTION_KEY_HEADER: self._config.api_key,
        }

    async def list_azure_accounts(self) -> list[AzureAccount]:
        """
        List the Azure accounts the access token can see.

        Returns:
            Account records with subscription id, resource group and name
        """
        response = await self._request("GET", ACCOUNTS_PATH)
        data = response.json()
        return [AzureAccount.model_validate(item) for item in data or []]

    async def assign_azure_account(self, app_id: str, account: AzureAccount) -> None:
        """
        Assign an Azure account to an application.

        The service treats re-assigning an already bound account as success.

        Args:
            app_id: LUIS application id
            account: Account record, as returned by list_azure_accounts()
        """
        await self._request(
            "POST",
            f"{APPS_PATH}/{app_id}/azureaccounts",
            json=account.to_api_dict(),
        )
        logger.debug(f"[luis] Assigned account '{account.account_name}' to app {app_id}")
