import json

import pytest
from pydantic import ValidationError

from swagger_adapter.config import (
    ApiConfig,
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    NoAuth,
    Settings,
    load_config,
    load_config_file,
    with_credential,
)


def _api(**overrides):
    api = {
        "name": "demo",
        "title": "Demo",
        "swaggerUrl": "https://x/spec.json",
        "baseUrl": "https://x/api",
    }
    api.update(overrides)
    return api


class TestApiConfig:
    def test_accepts_original_field_names(self):
        config = ApiConfig.model_validate(
            _api(
                maxTools=15,
                auth={"type": "apiKey", "apiKey": "k", "apiKeyName": "api_key", "apiKeyIn": "query"},
            )
        )

        assert config.spec_url == "https://x/spec.json"
        assert config.base_url == "https://x/api"
        assert config.max_endpoints == 15
        assert config.enabled is True
        assert config.auth == ApiKeyAuth(api_key="k", api_key_name="api_key", api_key_in="query")

    def test_defaults(self):
        config = ApiConfig.model_validate(_api())

        assert isinstance(config.auth, NoAuth)
        assert config.max_endpoints == 10

    def test_null_auth_means_none(self):
        assert isinstance(ApiConfig.model_validate(_api(auth=None)).auth, NoAuth)

    @pytest.mark.parametrize(
        "auth, expected",
        [
            ({"type": "bearer", "token": "t"}, BearerAuth(token="t")),
            ({"type": "basic", "username": "u", "password": "p"}, BasicAuth(username="u", password="p")),
            ({"type": "none"}, NoAuth()),
        ],
    )
    def test_auth_variants(self, auth, expected):
        assert ApiConfig.model_validate(_api(auth=auth)).auth == expected

    def test_unknown_auth_type_rejected(self):
        with pytest.raises(ValidationError):
            ApiConfig.model_validate(_api(auth={"type": "oauth2"}))

    def test_non_http_urls_rejected(self):
        with pytest.raises(ValidationError):
            ApiConfig.model_validate(_api(baseUrl="ftp://x"))

    def test_negative_cap_rejected(self):
        with pytest.raises(ValidationError):
            ApiConfig.model_validate(_api(maxEndpoints=-1))

    def test_frozen(self):
        config = ApiConfig.model_validate(_api())
        with pytest.raises(ValidationError):
            config.name = "other"


class TestLoadConfig:
    def test_valid_config(self):
        config = load_config({"apis": [_api()], "log": {"level": "DEBUG"}, "server": {"port": 8080}})

        assert [api.name for api in config.apis] == ["demo"]
        assert config.log_level() == "DEBUG"
        assert config.server.port == 8080
        assert config.server.host == "0.0.0.0"

    def test_warn_level_maps_to_warning(self):
        assert load_config({"apis": [_api()], "log": {"level": "warn"}}).log_level() == "WARNING"

    def test_duplicate_names_fall_back_to_defaults(self, caplog):
        config = load_config({"apis": [_api(), _api(title="Again")]})

        assert [api.name for api in config.apis] == ["iot_device_mgr", "petstore"]
        assert "Using default configuration" in caplog.text

    def test_empty_api_list_falls_back_to_defaults(self):
        assert load_config({"apis": []}).apis[0].name == "iot_device_mgr"

    def test_default_set(self):
        config = load_config()

        petstore = config.apis[1]
        assert petstore.enabled is False
        assert petstore.max_endpoints == 5
        assert petstore.auth == ApiKeyAuth(api_key="special-key", api_key_name="api_key")

    def test_file(self, tmp_path):
        path = tmp_path / "apis.json"
        path.write_text(json.dumps({"apis": [_api(name="from_file")]}))

        assert load_config_file(str(path)).apis[0].name == "from_file"

    def test_missing_file_falls_back(self, tmp_path):
        config = load_config_file(str(tmp_path / "missing.json"))

        assert config.apis[0].name == "iot_device_mgr"

    def test_unparseable_file_falls_back(self, tmp_path):
        path = tmp_path / "apis.json"
        path.write_text("{not json")

        assert load_config_file(str(path)).apis[0].name == "iot_device_mgr"


class TestWithCredential:
    def test_bearer(self):
        assert with_credential(BearerAuth(token="a"), "b") == BearerAuth(token="b")

    def test_api_key_keeps_placement(self):
        policy = ApiKeyAuth(api_key="a", api_key_name="key", api_key_in="query")

        assert with_credential(policy, "b") == ApiKeyAuth(
            api_key="b", api_key_name="key", api_key_in="query"
        )

    def test_basic_and_none_unchanged(self):
        assert with_credential(BasicAuth(username="u"), "b") == BasicAuth(username="u")
        assert with_credential(NoAuth(), "b") == NoAuth()


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ADAPTER_TRANSPORT", "stdio")
    monkeypatch.setenv("ADAPTER_HTTP_TIMEOUT_SECONDS", "5")

    settings = Settings()

    assert settings.adapter_transport == "stdio"
    assert settings.adapter_http_timeout_seconds == 5
