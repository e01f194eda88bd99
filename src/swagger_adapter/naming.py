"""Operation id normalization for tool identifiers."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional


_VERB_SUFFIX = re.compile(r"Using(GET|POST|PUT|DELETE|PATCH)(_\d+)?$")
_CONTROLLER_SUFFIX = re.compile(r"Controller$")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9]+")
_REPEATED_SEPARATOR = re.compile(r"_+")
_PATH_PUNCTUATION = re.compile(r"[{}/]")

# Readable names for high-traffic operations whose mechanical conversion is awkward.
OPERATION_OVERRIDES: Mapping[str, str] = MappingProxyType(
    {
        # Device management
        "deviceDetail": "device_detail",
        "deviceList": "device_list",
        "verifiedDevice": "verify_device",
        "addSnList": "add_sn_list",
        "deleteSnList": "delete_sn_list",
        "findDkList": "find_dk_list",
        "findSnList": "find_sn_list",
        "generateSnList": "generate_sn_list",
        # App service
        "appQueryProductPanel": "query_product_panel",
        "appReportingCapability": "reporting_capability",
        "appRequestPanelByPk": "request_panel_by_pk",
        "guidanceDetail": "guidance_detail",
        "itemList": "item_list",
        "setting": "get_setting",
        # Binding
        "batchControlDevice": "batch_control_device",
        "batchGetPureBtResetCredentials": "batch_get_bt_reset_credentials",
        "batchUnbindlingDevice": "batch_unbind_device",
        "bind3rdMatterDevice": "bind_matter_device",
        "bindDeviceBt": "bind_device_bt",
        "bindDeviceDk": "bind_device_dk",
        "bindDeviceByPkDk": "bind_device_by_pk_dk",
        "deviceUserList": "device_user_list",
        "getUserListByBind": "get_user_list_by_bind",
        "unbundlingUserDevice": "unbind_user_device",
        "userDeviceList": "user_device_list",
        "verifyBindingCode": "verify_binding_code",
        # Device groups
        "acceptDeviceGroupShare": "accept_group_share",
        "addDeviceGroup": "add_device_group",
        "addDeviceToGroup": "add_device_to_group",
        "deleteDeviceGroup": "delete_device_group",
        "deleteDeviceToGroup": "remove_device_from_group",
        # Device shadow
        "getLocation": "get_location",
        "sendData": "send_data",
        "batchSendData": "batch_send_data",
        "deviceResource": "device_resource",
        "sendData2": "send_data_v2",
        "readData": "read_data",
        # Users
        "addConsentRecord": "add_consent_record",
        "addReasonCancellation": "add_reason_cancellation",
        "alipayAuthLogin": "alipay_auth_login",
        "appLogUpload": "app_log_upload",
        "appleAuthLogin": "apple_auth_login",
        # Products
        "productDetail": "product_detail",
        "overviewProjects": "overview_projects",
        "overviewProducts": "overview_products",
        "products": "products",
        "openApiProductDetailV3": "open_api_product_detail_v3",
        # OTA
        "addDeviceUpgrade": "add_device_upgrade",
        "closeFinishTips": "close_finish_tips",
        "deleteDeviceUpgrade": "delete_device_upgrade",
        "getAutoUpgradeSwitch": "get_auto_upgrade_switch",
        "getDeviceUpgradePlan": "get_device_upgrade_plan",
        # Data storage
        "getZhxyPropertyDataList": "get_zhxy_property_data_list",
        "getDeviceEventList": "get_device_event_list",
        "getLocationHistory": "get_location_history",
        "getPropertyChartList": "get_property_chart_list",
        "getPropertyDataList": "get_property_data_list",
        # Weather
        "deviceLocationDelete": "delete_device_location",
        "deviceLocationFind": "find_device_location",
        "deviceLocationSave": "save_device_location",
        "obtainCurrentWeatherOnDk": "get_current_weather",
    }
)


def synthesize_operation_id(method: str, path: str) -> str:
    return method.lower() + _PATH_PUNCTUATION.sub("_", path)


def normalize(operation_id: str) -> str:
    """Turn an upstream operation id into a short snake_case name.

    Springfox-style suffixes (``listPetsUsingGET_1``) and ``Controller`` are
    stripped first. Names found in :data:`OPERATION_OVERRIDES` are returned
    verbatim; everything else is converted mechanically.
    """
    name = _VERB_SUFFIX.sub("", operation_id)
    name = _CONTROLLER_SUFFIX.sub("", name)

    override = OPERATION_OVERRIDES.get(name)
    if override is not None:
        return override

    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    name = _NON_IDENTIFIER.sub("_", name).lower()
    name = _REPEATED_SEPARATOR.sub("_", name).strip("_")
    return name or "operation"


def tool_identifier(
    api_name: str, operation_id: Optional[str], method: str, path: str
) -> str:
    raw = operation_id or synthesize_operation_id(method, path)
    return f"{api_name}_{normalize(raw)}"
