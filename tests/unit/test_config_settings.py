import pytest

from stackit_keyflow.config import settings
from stackit_keyflow.config.settings import (
    DEFAULT_TOKEN_ENDPOINT,
    ProviderConfig,
    load_credential_sources,
    load_provider_config,
)


def test_load_credential_sources_reads_both_layers():
    config = ProviderConfig(
        service_account_key="cfg-key",
        service_account_key_path="/cfg/sa.json",
        private_key="cfg-pem",
        private_key_path="/cfg/key.pem",
    )
    environ = {
        "STACKIT_SERVICE_ACCOUNT_KEY": "env-key",
        "STACKIT_SERVICE_ACCOUNT_KEY_PATH": "/env/sa.json",
        "STACKIT_PRIVATE_KEY": "env-pem",
        "STACKIT_PRIVATE_KEY_PATH": "/env/key.pem",
    }

    sources = load_credential_sources(config, environ)

    assert sources.env_service_account_key == "env-key"
    assert sources.env_service_account_key_path == "/env/sa.json"
    assert sources.service_account_key == "cfg-key"
    assert sources.service_account_key_path == "/cfg/sa.json"
    assert sources.env_private_key == "env-pem"
    assert sources.env_private_key_path == "/env/key.pem"
    assert sources.private_key == "cfg-pem"
    assert sources.private_key_path == "/cfg/key.pem"


def test_load_credential_sources_defaults_token_endpoint():
    sources = load_credential_sources(ProviderConfig(), {})
    assert sources.token_endpoint == DEFAULT_TOKEN_ENDPOINT


def test_load_credential_sources_uses_custom_token_endpoint():
    sources = load_credential_sources(ProviderConfig(token_custom_endpoint="https://custom/token"), {})
    assert sources.token_endpoint == "https://custom/token"


def test_load_credential_sources_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("STACKIT_PRIVATE_KEY_PATH", "/from/process.pem")
    sources = load_credential_sources()
    assert sources.env_private_key_path == "/from/process.pem"


def test_provider_config_from_mapping_ignores_nulls():
    config = ProviderConfig.from_mapping({
        "service_account_key_path": "/sa.json",
        "private_key": None,
        "enable_beta_resources": True,
    })
    assert config.service_account_key_path == "/sa.json"
    assert config.private_key == ""
    assert config.enable_beta_resources is True


@pytest.mark.parametrize(
    "data",
    [
        {"unknown_key": "x"},
        {"private_key_path": 42},
        {"enable_beta_resources": "yes"},
    ],
)
def test_provider_config_from_mapping_rejects_invalid(data):
    with pytest.raises(ValueError):
        ProviderConfig.from_mapping(data)


def test_load_provider_config_from_yaml(tmp_path):
    config_file = tmp_path / "provider.yaml"
    config_file.write_text(
        "service_account_key_path: /secrets/sa.json\n"
        "private_key_path: /secrets/key.pem\n"
        "token_custom_endpoint: https://token.example/token\n"
        "enable_beta_resources: true\n"
    )

    config = load_provider_config(config_file)

    assert config.service_account_key_path == "/secrets/sa.json"
    assert config.private_key_path == "/secrets/key.pem"
    assert config.token_custom_endpoint == "https://token.example/token"
    assert config.enable_beta_resources is True


def test_load_provider_config_empty_file(tmp_path):
    config_file = tmp_path / "provider.yaml"
    config_file.write_text("")
    assert load_provider_config(config_file) == ProviderConfig()


def test_load_provider_config_rejects_non_mapping(tmp_path):
    config_file = tmp_path / "provider.yaml"
    config_file.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_provider_config(config_file)


def test_load_provider_config_rejects_invalid_yaml(tmp_path):
    config_file = tmp_path / "provider.yaml"
    config_file.write_text("key: [unclosed\n")
    with pytest.raises(ValueError):
        load_provider_config(config_file)


def test_load_provider_config_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_provider_config(tmp_path / "missing.yaml")


def test_reprs_hide_literal_secrets():
    config = ProviderConfig(service_account_key="sa-secret-value", private_key="pem-secret-value")
    sources = load_credential_sources(
        config,
        {"STACKIT_SERVICE_ACCOUNT_KEY": "env-sa-secret", "STACKIT_PRIVATE_KEY": "env-pem-secret"},
    )

    for text in (repr(config), repr(sources)):
        assert "sa-secret-value" not in text
        assert "pem-secret-value" not in text
        assert "env-sa-secret" not in text
        assert "env-pem-secret" not in text
    assert settings.DEFAULT_TOKEN_ENDPOINT in repr(sources)
