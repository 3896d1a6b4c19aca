from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from featurebook.foundation.config import (
    UnifiedConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
)


def _write(tmp_path: Path, data, name: str = "featurebook.yml") -> str:
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_load_config_populates_sections(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "client": {
                "host_url": "https://cdn.example.com/api/features/key",
                "qa_mode": True,
                "forced_variations": {"checkout": 1},
            },
            "cache": {"cache_dir": str(tmp_path / "cache")},
            "runtime": {"http_timeout_seconds": 0.5},
        },
    )

    cfg = load_config(path)

    assert cfg.client.host_url == "https://cdn.example.com/api/features/key"
    assert cfg.client.qa_mode is True
    assert cfg.client.enabled is True
    assert cfg.client.forced_variations == {"checkout": 1}
    assert cfg.cache.cache_dir == str(tmp_path / "cache")
    assert cfg.cache.cache_key == "gb-features.txt"
    assert cfg.runtime.http_timeout_seconds == 0.5
    assert cfg.present_sections == frozenset({"client", "cache", "runtime"})


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "featurebook.yml"
    path.write_text("")

    cfg = load_config(str(path))

    assert cfg == UnifiedConfig()


def test_client_aliases_are_normalized(tmp_path: Path, caplog) -> None:
    path = _write(
        tmp_path,
        {"client": {"hostURL": "https://alias.example", "isQaMode": True, "isEnabled": False}},
    )

    with caplog.at_level("WARNING"):
        cfg = load_config(path)

    assert cfg.client.host_url == "https://alias.example"
    assert cfg.client.qa_mode is True
    assert cfg.client.enabled is False
    assert "deprecated" in caplog.text


def test_canonical_key_wins_over_alias(tmp_path: Path) -> None:
    path = _write(tmp_path, {"client": {"host_url": "https://canonical", "endpoint": "https://alias"}})

    assert load_config(path).client.host_url == "https://canonical"


def test_non_mapping_document_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path, ["client"])

    with pytest.raises(TypeError):
        load_config(path)


def test_non_mapping_section_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path, {"cache": "nope"})

    with pytest.raises(TypeError):
        load_config(path)


def test_unknown_field_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path, {"runtime": {"warp_speed": 9}})

    with pytest.raises(TypeError):
        load_config(path)


def test_invalid_yaml_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "featurebook.yml"
    path.write_text("client: [unclosed")

    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yml"))


def test_find_config_file_prefers_yml(tmp_path: Path) -> None:
    assert find_config_file(tmp_path) is None

    yaml_path = _write(tmp_path, {}, name="featurebook.yaml")
    assert find_config_file(tmp_path) == yaml_path

    yml_path = _write(tmp_path, {}, name="featurebook.yml")
    assert find_config_file(tmp_path) == yml_path


def test_env_overrides_are_coerced() -> None:
    cfg = apply_env_overrides(
        UnifiedConfig(),
        {
            "FEATUREBOOK_HOST_URL": "https://env.example",
            "FEATUREBOOK_QA_MODE": "yes",
            "FEATUREBOOK_ENABLED": "0",
            "FEATUREBOOK_MAX_WORKERS": "8",
            "FEATUREBOOK_HTTP_TIMEOUT": "1.5",
            "FEATUREBOOK_CACHE_KEY": "env.json",
        },
    )

    assert cfg.client.host_url == "https://env.example"
    assert cfg.client.qa_mode is True
    assert cfg.client.enabled is False
    assert cfg.runtime.max_workers == 8
    assert cfg.runtime.http_timeout_seconds == 1.5
    assert cfg.cache.cache_key == "env.json"


def test_env_overrides_leave_input_untouched() -> None:
    original = UnifiedConfig()

    apply_env_overrides(original, {"FEATUREBOOK_QA_MODE": "true"})

    assert original.client.qa_mode is False


@pytest.mark.parametrize(
    "key, value",
    [("FEATUREBOOK_ENABLED", "maybe"), ("FEATUREBOOK_MAX_WORKERS", "many")],
)
def test_invalid_env_override_raises(key: str, value: str) -> None:
    with pytest.raises(ValueError):
        apply_env_overrides(UnifiedConfig(), {key: value})
