import json
import logging

from fallback_proxy.common.logging_config import ApiKeyFilter, JSONFormatter


def make_record(msg, *args):
    return logging.LogRecord("FallbackProxy", logging.INFO, __file__, 1, msg, args, None)


def test_masks_bearer_tokens_and_query_keys():
    f = ApiKeyFilter()
    record = make_record("GET /v0/management?key=abc123 Authorization: Bearer secret-token")
    f.filter(record)
    assert "abc123" not in record.msg
    assert "secret-token" not in record.msg
    assert "***MASKED***" in record.msg


def test_masks_registered_management_key_in_args():
    ApiKeyFilter.add_sensitive_keys(["my-management-key", None, ""])
    f = ApiKeyFilter()
    record = make_record("auth failed for %s", "my-management-key")
    f.filter(record)
    assert record.getMessage() == "auth failed for ***MASKED***"


def test_model_names_are_not_masked():
    f = ApiKeyFilter()
    record = make_record("Model fallback 'gemini-2.5-pro' -> 'gemini-2.5-flash' already exists.")
    f.filter(record)
    assert "gemini-2.5-pro" in record.msg


def test_model_names_containing_sk_dash_are_not_masked():
    f = ApiKeyFilter()
    message = "Model fallback 'claude-task-router-experimental-2025' -> 'gpt-4o' already exists."
    assert f.mask(message) == message
    message = "Model fallback 'gpt-sk-aaaaaaaaaaaaaaaaaaaaaaaa' -> 'gpt-4o' already exists."
    assert f.mask(message) == message


def test_standalone_provider_key_is_masked():
    f = ApiKeyFilter()
    masked = f.mask("upstream rejected sk-abcdefghijklmnopqrstuvwxyz123456")
    assert masked == "upstream rejected ***MASKED***"


def test_json_formatter_fields():
    line = JSONFormatter().format(make_record("hello %s", "world"))
    data = json.loads(line)
    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["name"] == "FallbackProxy"
    assert data["timestamp"].endswith("Z")
