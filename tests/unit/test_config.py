"""Tests for settings and the exception hierarchy."""

import pytest
from pydantic import ValidationError

from apicache.config import APIConfig, CacheSettings, LogFormat, ResponseFormat
from apicache.core.exceptions import (
    TRANSPORT_ERRORS,
    APICacheError,
    InvalidRequestError,
    NoResponseError,
    TransportError,
)


class TestCacheSettings:
    """Tests for CacheSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PERFORM_CACHING", "APIS", "BACKUPS_ENABLED", "LOG_FORMAT"):
            monkeypatch.delenv(f"APICACHE_{name}", raising=False)

        settings = CacheSettings(_env_file=None)

        assert settings.perform_caching is False
        assert settings.apis == {}
        assert settings.timeout_length == 5.0
        assert settings.cache_stale_backup_time == 300
        assert settings.read_from_cache is True
        assert settings.backups_enabled is True
        assert settings.use_json_logs is False

    def test_apis_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APICACHE_PERFORM_CACHING", "true")
        monkeypatch.setenv(
            "APICACHE_APIS",
            '{"api.example.com": {"key_name": "example", "expire_in": 3600}}',
        )

        settings = CacheSettings(_env_file=None)

        assert settings.perform_caching is True
        assert settings.apis == {
            "api.example.com": APIConfig(key_name="example", expire_in=3600)
        }
        assert settings.configured_hosts == frozenset({"api.example.com"})

    def test_json_logs(self) -> None:
        settings = CacheSettings(_env_file=None, log_format=LogFormat.JSON)

        assert settings.use_json_logs is True

    @pytest.mark.parametrize(
        "api",
        [
            {"key_name": "", "expire_in": 60},
            {"key_name": "example", "expire_in": 0},
        ],
    )
    def test_invalid_api_config(self, api: dict) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(_env_file=None, apis={"api.example.com": api})

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(_env_file=None, timeout_length=0)

    def test_hosts_are_lowercased(self) -> None:
        settings = CacheSettings(
            _env_file=None,
            apis={"API.Example.com": APIConfig(key_name="example", expire_in=3600)},
        )

        assert settings.configured_hosts == frozenset({"api.example.com"})

    def test_api_format_defaults_to_json(self) -> None:
        assert APIConfig(key_name="example", expire_in=60).format is ResponseFormat.JSON

    @pytest.mark.parametrize("expire_in", [300, 120])
    def test_stale_time_must_be_shorter_than_expire_in(self, expire_in: int) -> None:
        with pytest.raises(ValidationError, match="cache_stale_backup_time"):
            CacheSettings(
                _env_file=None,
                cache_stale_backup_time=300,
                apis={
                    "api.example.com": APIConfig(
                        key_name="example", expire_in=expire_in
                    )
                },
            )


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_no_response_error_details(self) -> None:
        error = NoResponseError(normalized_uri="https://h/p", key_name="example")

        assert error.to_dict() == {
            "error": {
                "code": "NO_RESPONSE_AVAILABLE",
                "message": NoResponseError.message,
                "details": {"normalized_uri": "https://h/p", "key_name": "example"},
            }
        }

    def test_invalid_request_error(self) -> None:
        error = InvalidRequestError(url="/relative", message="URI must be absolute")

        assert isinstance(error, APICacheError)
        assert str(error) == "URI must be absolute"
        assert error.details == {"url": "/relative"}

    def test_transport_failures_classified(self) -> None:
        import asyncio
        import json

        import httpx

        failures = [
            TransportError(),
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            asyncio.TimeoutError(),
            ConnectionResetError("peer reset"),
            ConnectionRefusedError(),
            json.JSONDecodeError("bad", "{", 0),
        ]

        for failure in failures:
            assert isinstance(failure, TRANSPORT_ERRORS)

    def test_no_response_error_not_a_transport_failure(self) -> None:
        assert not isinstance(NoResponseError(), TRANSPORT_ERRORS)
