"""Test configuration and shared fixtures."""

import json
import threading

import pytest
import yaml

from featurebook.sdk import configuration as sdk_configuration
from featurebook.sdk import runtime
from featurebook.sdk.client import FeatureBook, FeatureBookConfig
from featurebook.sdk.disk_cache import InMemoryDiskCache
from featurebook.sdk.exceptions import TransportError

TEST_URL = "https://host.com/api/features/4r23r324f23"

FEATURES = {
    "onboarding": {
        "defaultValue": "top",
        "rules": [
            {
                "condition": {"id": "2435245"},
                "variations": ["top", "bottom", "center"],
                "weights": [0.25, 0.5, 0.25],
                "hashAttribute": "id",
            }
        ],
    },
    "qrscanpayment": {
        "defaultValue": {"scanType": "static"},
        "rules": [
            {"condition": {"loggedIn": True}, "force": {"scanType": "dynamic"}},
        ],
    },
    "dark-mode": {"defaultValue": False, "rules": [{"force": True}]},
}


def encode_payload(features: dict) -> bytes:
    return json.dumps({"features": features}).encode()


class StubFetcher:
    """RemoteFetcher double returning canned payloads in order.

    Each entry is either bytes (returned) or an exception (raised). The last
    entry repeats once the list is exhausted. When ``gate`` is set the fetch
    blocks until the test releases it.
    """

    def __init__(self, *responses, gate: threading.Event | None = None) -> None:
        self.responses = list(responses) or [encode_payload(FEATURES)]
        self.gate = gate
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch(self, endpoint: str) -> bytes:
        if self.gate is not None:
            assert self.gate.wait(5), "fetch gate was never released"
        with self._lock:
            self.calls.append(endpoint)
            index = min(len(self.calls), len(self.responses)) - 1
            response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def feature_url() -> str:
    return TEST_URL


@pytest.fixture
def feature_defs() -> dict:
    return json.loads(json.dumps(FEATURES))


@pytest.fixture
def features_payload() -> bytes:
    return encode_payload(FEATURES)


@pytest.fixture
def memory_cache() -> InMemoryDiskCache:
    return InMemoryDiskCache()


@pytest.fixture
def stub_fetcher_factory():
    return StubFetcher


@pytest.fixture
def failing_fetcher() -> StubFetcher:
    return StubFetcher(TransportError(TEST_URL, "connection refused"))


@pytest.fixture
def make_sdk(memory_cache):
    """Build FeatureBook handles that are closed at teardown."""

    handles: list[FeatureBook] = []

    def _make(**overrides) -> FeatureBook:
        overrides.setdefault("host_url", TEST_URL)
        overrides.setdefault("disk_cache", memory_cache)
        overrides.setdefault("fetcher", StubFetcher())
        sdk = FeatureBook(FeatureBookConfig(**overrides))
        handles.append(sdk)
        return sdk

    yield _make
    for sdk in handles:
        sdk.close()


@pytest.fixture
def configure_sdk(tmp_path, monkeypatch):
    def _apply(data: dict, *, filename: str = "featurebook.yml") -> str:
        cfg_path = tmp_path / filename
        cfg_path.write_text(yaml.safe_dump(data))
        monkeypatch.chdir(tmp_path)
        sdk_configuration.reset_runtime_config_cache()
        runtime.reload()
        return str(cfg_path)

    try:
        yield _apply
    finally:
        monkeypatch.undo()
        sdk_configuration.reset_runtime_config_cache()
        runtime.reload()
