import pytest

from swagger_adapter.naming import (
    OPERATION_OVERRIDES,
    normalize,
    synthesize_operation_id,
    tool_identifier,
)


class TestNormalize:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("listPets", "list_pets"),
            ("listPetsUsingGET", "list_pets"),
            ("findPetsByStatusUsingGET_1", "find_pets_by_status"),
            ("updateUserUsingPUT_12", "update_user"),
            ("OrderController", "order"),
            ("getHTTPStatus", "get_http_status"),
            ("openApiDeviceV2", "open_api_device_v2"),
            ("get-pet-by-id", "get_pet_by_id"),
            ("already_snake__case", "already_snake_case"),
            ("_leading", "leading"),
        ],
    )
    def test_mechanical_conversion(self, raw, expected):
        assert normalize(raw) == expected

    def test_override_after_suffix_stripping(self):
        assert normalize("deviceDetailUsingGET") == "device_detail"
        assert normalize("sendData2") == "send_data_v2"
        assert normalize("obtainCurrentWeatherOnDkUsingPOST_3") == "get_current_weather"

    def test_override_is_exact_match(self):
        assert normalize("settings") == "settings"
        assert normalize("setting") == "get_setting"

    def test_overrides_are_read_only(self):
        with pytest.raises(TypeError):
            OPERATION_OVERRIDES["listPets"] = "pets"  # type: ignore[index]

    def test_is_deterministic(self):
        assert normalize("batchUnbindlingDevice") == normalize("batchUnbindlingDevice")

    def test_empty_result_has_placeholder(self):
        assert normalize("___") == "operation"


class TestToolIdentifier:
    def test_synthesizes_missing_operation_id(self):
        assert synthesize_operation_id("GET", "/items/{id}") == "get_items__id_"
        assert tool_identifier("demo", None, "GET", "/items/{id}") == "demo_get_items_id"

    def test_namespaced_by_api(self):
        assert tool_identifier("petstore", "addPetUsingPOST", "POST", "/pet") == "petstore_add_pet"

    def test_distinct_apis_never_share_identifiers(self):
        first = tool_identifier("alpha", "listPets", "GET", "/pets")
        second = tool_identifier("beta", "listPets", "GET", "/pets")
        assert first != second
