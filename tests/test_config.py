import pytest

from n8n_mcp.config import DEFAULT_API_PATH, DEFAULT_TIMEOUT_MS, N8nConfig


def test_trailing_slashes_are_stripped():
    config = N8nConfig(api_url="https://n8n.example.com///", api_key="k")
    assert config.api_url == "https://n8n.example.com"
    assert config.base_url == "https://n8n.example.com/api/v1"


def test_api_path_is_normalized():
    config = N8nConfig(api_url="https://n8n.example.com", api_key="k", api_path="custom/api/")
    assert config.api_path == "/custom/api"
    assert config.base_url == "https://n8n.example.com/custom/api"


def test_repr_hides_api_key():
    config = N8nConfig(api_url="https://n8n.example.com", api_key="super-secret")
    assert "super-secret" not in repr(config)


def test_from_mapping_defaults():
    config = N8nConfig.from_mapping({"N8N_URL": "https://n8n.example.com/", "N8N_API_KEY": "k"})
    assert config is not None
    assert config.timeout_ms == DEFAULT_TIMEOUT_MS
    assert config.api_path == DEFAULT_API_PATH


def test_from_mapping_optional_settings():
    config = N8nConfig.from_mapping({
        "N8N_URL": "https://n8n.example.com",
        "N8N_API_KEY": "k",
        "N8N_TIMEOUT": "5000",
        "N8N_API_PATH": "/rest",
    })
    assert config.timeout_ms == 5000
    assert config.api_path == "/rest"


@pytest.mark.parametrize("values", [
    {},
    {"N8N_URL": "https://n8n.example.com"},
    {"N8N_API_KEY": "k"},
    {"N8N_URL": "", "N8N_API_KEY": "k"},
])
def test_from_mapping_requires_url_and_key(values):
    assert N8nConfig.from_mapping(values) is None


@pytest.mark.parametrize("raw", ["abc", "0", "-10"])
def test_invalid_timeout_is_rejected(raw):
    with pytest.raises(ValueError):
        N8nConfig.from_mapping({"N8N_URL": "https://n8n.example.com", "N8N_API_KEY": "k", "N8N_TIMEOUT": raw})


def test_from_env(monkeypatch):
    monkeypatch.setenv("N8N_URL", "https://env.example.com/")
    monkeypatch.setenv("N8N_API_KEY", "env-key")
    monkeypatch.delenv("N8N_TIMEOUT", raising=False)
    monkeypatch.delenv("N8N_API_PATH", raising=False)
    config = N8nConfig.from_env()
    assert config.api_url == "https://env.example.com"
    assert config.api_key == "env-key"


def test_from_env_missing(monkeypatch):
    monkeypatch.delenv("N8N_URL", raising=False)
    monkeypatch.delenv("N8N_API_KEY", raising=False)
    assert N8nConfig.from_env() is None
