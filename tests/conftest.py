"""
Pytest configuration and fixtures for lupublish tests.
"""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add the repository root to path for imports
# This allows `from lupublish.pipeline import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from lupublish.config import PublishProfile
from lupublish.integrations.luis import LuisAuthoringClient, LuisAuthoringConfig
from lupublish.integrations.luis.client import ACCOUNTS_PATH, APPS_PATH
from lupublish.pipeline import CollectingNotifier, NoBackoff, RetryPolicy
from lupublish.pipeline.frames import FileInfo

AUTHORING_ENDPOINT = "https://westus.api.cognitive.microsoft.com"

EXPIRY_BODY = {
    "error": {
        "code": "Unauthorized",
        "message": "The access token expiry UTC time '1/2/2026 10:00:00 AM' "
        "is earlier than current UTC time '1/2/2026 11:00:00 AM'.",
    }
}


def account_record(name: str = "Foo-dev-luis") -> dict:
    """Account record as returned by the authoring API."""
    return {
        "AzureSubscriptionId": "sub-0001",
        "ResourceGroup": "foo-rg",
        "AccountName": name,
    }


def expiry_response() -> httpx.Response:
    return httpx.Response(401, json=EXPIRY_BODY)


def server_error() -> httpx.Response:
    return httpx.Response(500, json={"error": {"code": "InternalError", "message": "boom"}})


# =============================================================================
# Fake LUIS service
# =============================================================================


class FakeLuisService:
    """
    In-memory stand-in for the LUIS authoring API, served through httpx.MockTransport.

    Scripted responses are consumed first; once a script is empty the
    service answers with success. A scripted exception is raised as-is.
    """

    def __init__(self, accounts: list[dict] | None = None):
        self.accounts = accounts if accounts is not None else [account_record()]
        self.list_script: list = []
        self.assign_script: dict[str, list] = {}
        self.requests: list[httpx.Request] = []

    def _next(self, script: list, default: httpx.Response) -> httpx.Response:
        if not script:
            return default
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == ACCOUNTS_PATH:
            return self._next(self.list_script, httpx.Response(200, json=self.accounts))

        if request.method == "POST" and path.startswith(APPS_PATH + "/"):
            app_id = path.split("/")[-2]
            return self._next(
                self.assign_script.setdefault(app_id, []),
                httpx.Response(201, json={"code": "Success", "message": "Operation Successful"}),
            )

        return httpx.Response(404, json={"error": {"code": "NotFound", "message": path}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def list_calls(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")

    @property
    def assigned_app_ids(self) -> list[str]:
        """App ids of every assignment request, in request order (retries included)."""
        return [r.url.path.split("/")[-2] for r in self.requests if r.method == "POST"]


# =============================================================================
# Fake LU builder
# =============================================================================


class FakeBuilder:
    """
    LuBuilder that writes pre-set ``luis.settings`` fragments under its root_dir.

    ``settings`` maps fragment file names to their ``luis`` mapping.
    """

    def __init__(self, settings: dict[str, dict] | None = None, *, fail_with=None):
        self.root_dir = ""
        self.settings = settings or {}
        self.fail_with = fail_with
        self.copy_fail_with = None
        self.build_config: dict | None = None
        self.downsampling: dict | None = None
        self.build_calls: list[dict] = []
        self.copy_calls: list[bool] = []

    def set_build_config(self, config, downsampling) -> None:
        self.build_config = dict(config)
        self.downsampling = dict(downsampling)

    async def build(self, lu_files, qna_files, all_files, empty_files) -> None:
        self.build_calls.append(
            {
                "lu": [f.name for f in lu_files],
                "qna": [f.name for f in qna_files],
                "all": [f.name for f in all_files],
                "empty": dict(empty_files),
            }
        )
        if self.fail_with is not None:
            raise self.fail_with

        out = Path(self.root_dir) / "generated"
        out.mkdir(parents=True, exist_ok=True)
        for name, luis in self.settings.items():
            (out / name).write_text(json.dumps({"luis": luis}), encoding="utf-8")

    async def copy_model_path_to_bot(self, is_adaptive: bool) -> None:
        self.copy_calls.append(is_adaptive)
        if self.copy_fail_with is not None:
            raise self.copy_fail_with


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def luis_service():
    """Fake LUIS authoring API with one account named Foo-dev-luis."""
    return FakeLuisService()


@pytest.fixture
def luis_client(luis_service):
    """Authoring client wired to the fake service."""
    config = LuisAuthoringConfig(
        api_key="authoring-key",
        access_token="arm-token",
        base_url=AUTHORING_ENDPOINT,
    )
    return LuisAuthoringClient(config, transport=luis_service.transport)


@pytest.fixture
def fast_retry():
    """Retry once, without waiting."""
    return RetryPolicy(max_attempts=2, backoff=NoBackoff())


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def project_files():
    """File store of a small bot project."""
    files = [
        FileInfo(name="greeting.lu", content="# Greet\n- hi\n- hello", path="/bots/foo/greeting.lu"),
        FileInfo(name="faq.qna", content="", path="/bots/foo/faq.qna"),
        FileInfo(name="foo.dialog", content="{}", path="/bots/foo/foo.dialog"),
    ]
    return {f.name: f for f in files}


@pytest.fixture
def sample_apps():
    """Compiled application map with three dialogs."""
    return {
        "greeting_en_us_lu": {"appId": "app-1", "version": "0.1"},
        "order_en_us_lu": {"appId": "app-2", "version": "0.1"},
        "help_en_us_lu": {"appId": "app-3", "version": "0.1"},
    }


@pytest.fixture
def profile():
    """Publish profile for bot Foo in dev on the adaptive runtime."""
    return PublishProfile.model_validate(
        {
            "name": "Foo",
            "environment": "dev",
            "accessToken": "arm-token",
            "luis": {"authoringKey": "authoring-key", "authoringRegion": "westus"},
            "qna": {"subscriptionKey": "qna-key"},
            "runtime": {"key": "adaptive-runtime-dotnet-webapp"},
        }
    )
