from __future__ import annotations

from jollykite._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "applicationKey": "APP",
        "apiKey": "KEY",
        "limit": 1,
        "headers": {"Authorization": "Bearer s3cret"},
        "nested": [{"cron_secret": "x"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["applicationKey"] == "<redacted>"
    assert redacted["apiKey"] == "<redacted>"
    assert redacted["limit"] == 1
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["nested"][0]["cron_secret"] == "<redacted>"
    assert payload["apiKey"] == "KEY"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
