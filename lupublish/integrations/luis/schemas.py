"""
Pydantic schemas for the LUIS authoring API.

These schemas provide type-safe representations of the control-plane
resources the publish pipeline touches: Azure account records and the
JSON error envelope returned on failed calls.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Marker the authoring service puts in the error message of a stale ARM token
TOKEN_EXPIRY_MARKER = "access token expiry"


# =============================================================================
# Accounts
# =============================================================================


class AzureAccount(BaseModel):
    """
    Azure account record returned by ``GET /luis/api/v2.0/azureaccounts``.

    The record is posted back unchanged when assigning the account to an
    application, so unknown fields are preserved.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    azure_subscription_id: str = Field("", alias="AzureSubscriptionId")
    resource_group: str = Field("", alias="ResourceGroup")
    account_name: str = Field("", alias="AccountName")

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to the wire format expected by the assign endpoint."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Errors
# =============================================================================


class LuisErrorDetail(BaseModel):
    """Inner ``error`` object of a LUIS error response."""

    model_config = ConfigDict(extra="allow")

    code: str | None = None
    message: str | None = None


class LuisErrorBody(BaseModel):
    """LUIS error envelope: ``{"error": {"code": ..., "message": ...}}``."""

    model_config = ConfigDict(extra="allow")

    error: LuisErrorDetail | None = None

    @classmethod
    def parse(cls, body: str | None) -> LuisErrorBody | None:
        """Parse a raw response body, returning None when it is not a LUIS error."""
        if not body:
            return None
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValidationError:
            # JSON, but not the {"error": {code, message}} envelope
            return None

    @property
    def is_token_expiry(self) -> bool:
        """Check whether the error reports an expired access token."""
        if self.error is None or not self.error.message:
            return False
        return TOKEN_EXPIRY_MARKER in self.error.message
