from swagger_adapter.logging import redact_payload


def test_redacts_credentials_recursively():
    payload = {
        "id": "42",
        "auth_token": "secret",
        "nested": {"api_key": "k", "name": "n"},
        "items": [{"password": "p"}, "plain"],
        "Authorization": "Bearer x",
    }

    assert redact_payload(payload) == {
        "id": "42",
        "auth_token": "***REDACTED***",
        "nested": {"api_key": "***REDACTED***", "name": "n"},
        "items": [{"password": "***REDACTED***"}, "plain"],
        "Authorization": "***REDACTED***",
    }


def test_does_not_mutate_input():
    payload = {"token": "t"}

    redact_payload(payload)

    assert payload == {"token": "t"}
