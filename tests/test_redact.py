from __future__ import annotations

from pebblewx._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "lat": "52.52",
        "appid": "secret-key",
        "nested": {"password": "pw", "ok": 1},
    }

    redacted = redact_for_log(payload)
    assert redacted["appid"] == "<redacted>"
    assert redacted["nested"]["password"] == "<redacted>"
    assert redacted["nested"]["ok"] == 1
    assert redacted["lat"] == "52.52"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_url_hides_credential_only() -> None:
    url = "http://api.example/weather?lat=1.5&lon=2.5&appid=secret-key"

    shown = redact_url(url)

    assert "secret-key" not in shown
    assert "appid=<redacted>" in shown
    assert "lat=1.5" in shown
    assert shown.startswith("http://api.example/weather?")


def test_redact_url_without_query_is_unchanged() -> None:
    assert redact_url("http://api.example/weather") == "http://api.example/weather"
