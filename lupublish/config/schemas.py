"""
Configuration Schemas for lupublish.

Pydantic models for publish profiles and build settings. Field aliases
follow the camelCase keys used by the bot project's settings files, so a
``settings/appsettings.json`` fragment or a publish profile can be
validated directly.

Security:
    Sensitive fields use SecretStr to prevent accidental logging
    of credentials. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_REGION = "westus"


def _secret(value: SecretStr | None) -> str:
    return value.get_secret_value() if value is not None else ""


class DownsamplingPolicy(BaseModel):
    """
    Training data reduction applied by the LU build.

    ``max_imbalance_ratio`` of -1 disables class balancing.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_imbalance_ratio: int = Field(-1, alias="maxImbalanceRatio")
    max_utterance_allowed: int = Field(15000, alias="maxUtteranceAllowed", ge=1)

    def to_builder_dict(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)


class LuisSettings(BaseModel):
    """LUIS authoring settings from the project's ``luis`` section."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    authoring_key: SecretStr | None = Field(None, alias="authoringKey")
    authoring_endpoint: str = Field("", alias="authoringEndpoint")
    authoring_region: str = Field("", alias="authoringRegion")
    region: str = ""
    endpoint_key: SecretStr | None = Field(None, alias="endpointKey")
    endpoint: str = ""


class QnaSettings(BaseModel):
    """QnA Maker settings from the project's ``qna`` section."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    subscription_key: SecretStr | None = Field(None, alias="subscriptionKey")
    qna_region: str = Field(DEFAULT_REGION, alias="qnaRegion")


class RuntimeSettings(BaseModel):
    """Runtime template the bot is deployed with."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key: str = ""
    custom_runtime: bool = Field(False, alias="customRuntime")
    path: str = ""


class BuildConfig(BaseModel):
    """
    Merged build configuration handed to the LU compiler.

    Assembled once per publish invocation and immutable afterwards.
    """

    model_config = ConfigDict(frozen=True)

    authoring_key: SecretStr
    authoring_endpoint: str
    authoring_region: str
    qna_subscription_key: SecretStr | None = None
    qna_region: str = DEFAULT_REGION
    downsampling: DownsamplingPolicy = Field(default_factory=DownsamplingPolicy)

    def to_builder_settings(self) -> dict[str, Any]:
        """Render the flat camelCase mapping the compiler expects."""
        return {
            "authoringKey": _secret(self.authoring_key),
            "authoringEndpoint": self.authoring_endpoint,
            "authoringRegion": self.authoring_region,
            "subscriptionKey": _secret(self.qna_subscription_key),
            "qnaRegion": self.qna_region,
        }


class PublishProfile(BaseModel):
    """
    Publish profile for one bot/environment pair.

    Example (YAML):
        name: Foo
        environment: dev
        accessToken: eyJ0eXAi...
        luisResource: Foo-dev-luis
        luis:
          authoringKey: 0123...
          authoringRegion: westus
        qna:
          subscriptionKey: 4567...
        runtime:
          key: adaptive-runtime-dotnet-webapp
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1, description="Bot name")
    environment: str = Field("dev", description="Deployment environment")
    access_token: SecretStr | None = Field(None, alias="accessToken")
    luis_resource: str | None = Field(None, alias="luisResource")

    luis: LuisSettings = Field(default_factory=LuisSettings)
    qna: QnaSettings = Field(default_factory=QnaSettings)
    downsampling: DownsamplingPolicy = Field(default_factory=DownsamplingPolicy)
    runtime: RuntimeSettings | None = None

    # Hardening
    request_timeout: float = Field(30.0, gt=0, alias="requestTimeout")
    max_concurrency: int = Field(1, ge=1, alias="maxConcurrency")
