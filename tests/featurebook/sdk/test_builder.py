import logging

import pytest

from featurebook.foundation.config import CacheConfig, ClientConfig, RuntimeConfig, UnifiedConfig
from featurebook.sdk.builder import FeatureBookBuilder
from featurebook.sdk.client import FeatureBook
from featurebook.sdk.context import noop_tracking
from featurebook.sdk.evaluation import DefaultEvaluator


def test_requires_a_feature_source():
    with pytest.raises(ValueError):
        FeatureBookBuilder()


def test_defaults(feature_url):
    config = FeatureBookBuilder(host_url=feature_url).config

    assert config.host_url == feature_url
    assert config.features is None
    assert config.attributes == {}
    assert config.tracking_callback is noop_tracking
    assert config.enabled is True
    assert config.qa_mode is False
    assert config.forced_variations is None
    assert config.log_level == "INFO"
    assert config.fetcher is None and config.disk_cache is None


def test_setters_chain_and_override(feature_url, memory_cache, stub_fetcher_factory):
    fetcher = stub_fetcher_factory()
    evaluator = DefaultEvaluator()
    forced = {"checkout": 1}

    builder = (
        FeatureBookBuilder(host_url=feature_url, attributes={"id": 3})
        .set_fetcher(fetcher)
        .set_disk_cache(memory_cache)
        .set_evaluator(evaluator)
        .set_forced_variations(forced)
        .set_qa_mode(True)
        .set_enabled(False)
        .set_log_level("debug")
    )
    forced["checkout"] = 0

    config = builder.config
    assert config.fetcher is fetcher
    assert config.disk_cache is memory_cache
    assert config.evaluator is evaluator
    assert config.forced_variations == {"checkout": 1}
    assert config.qa_mode is True
    assert config.enabled is False
    assert config.log_level == logging.DEBUG
    assert config.attributes == {"id": 3}


def test_unknown_log_level_is_rejected(feature_url):
    with pytest.raises(ValueError):
        FeatureBookBuilder(host_url=feature_url).set_log_level("chatty")


def test_build_returns_working_handle(feature_url, memory_cache, stub_fetcher_factory):
    sdk = (
        FeatureBookBuilder(host_url=feature_url)
        .set_fetcher(stub_fetcher_factory())
        .set_disk_cache(memory_cache)
        .set_log_level(logging.WARNING)
        .build()
    )
    try:
        assert isinstance(sdk, FeatureBook)
        assert sdk.initial_refresh.result(timeout=5) is True
        assert sdk.get_feature_value("onboarding", None) == "top"
        assert logging.getLogger("featurebook").level == logging.WARNING
    finally:
        sdk.close()


def test_build_with_explicit_features(features_payload, stub_fetcher_factory):
    fetcher = stub_fetcher_factory()
    with FeatureBookBuilder(features=features_payload).set_fetcher(fetcher).build() as sdk:
        assert sdk.get_context().host_url is None
        assert "dark-mode" in sdk.get_features()
    assert fetcher.calls == []


def test_from_config_uses_unified_settings(feature_url):
    unified = UnifiedConfig(
        client=ClientConfig(
            host_url=feature_url,
            enabled=False,
            qa_mode=True,
            forced_variations={"checkout": 1},
            log_level="WARNING",
        ),
        cache=CacheConfig(cache_key="custom.json"),
        runtime=RuntimeConfig(max_workers=2),
    )

    config = FeatureBookBuilder.from_config(unified, attributes={"id": 9}).config

    assert config.host_url == feature_url
    assert config.enabled is False
    assert config.qa_mode is True
    assert config.forced_variations == {"checkout": 1}
    assert config.log_level == "WARNING"
    assert config.cache_key == "custom.json"
    assert config.max_workers == 2
    assert config.attributes == {"id": 9}


def test_from_config_discovers_yaml(configure_sdk, feature_url):
    configure_sdk({"client": {"hostURL": feature_url, "isQaMode": True}})

    config = FeatureBookBuilder.from_config().config

    assert config.host_url == feature_url
    assert config.qa_mode is True


def test_from_config_without_host_is_rejected(configure_sdk):
    configure_sdk({"client": {"qa_mode": True}})

    with pytest.raises(ValueError):
        FeatureBookBuilder.from_config()
