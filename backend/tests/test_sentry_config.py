"""Sentry bootstrap: disabled without a DSN, initialised with scrubbing when set."""

from unittest.mock import patch

import environ
from modules.core.settings.sentry import configure_sentry


def test_no_dsn_leaves_sentry_disabled(monkeypatch):
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.setenv("SENTRY_ENVIRONMENT", "staging")

    with patch("sentry_sdk.init") as mock_init:
        config = configure_sentry(environ.Env())

    mock_init.assert_not_called()
    assert config["dsn"] == ""
    assert config["environment"] == "staging"


def test_dsn_initialises_sdk_with_scrubbing_and_sampling(monkeypatch):
    monkeypatch.setenv("SENTRY_DSN", "https://abc@o1.ingest.sentry.io/1")
    monkeypatch.delenv("SENTRY_ENVIRONMENT", raising=False)
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "0.5")

    with patch("sentry_sdk.init") as mock_init:
        config = configure_sentry(environ.Env(), default_environment="development")

    assert config == {
        "dsn": "https://abc@o1.ingest.sentry.io/1",
        "environment": "development",
        "traces_sample_rate": 0.5,
    }
    kwargs = mock_init.call_args.kwargs
    assert kwargs["send_default_pii"] is False

    event = {"contexts": {"runtime": {"env": {"DATABASE_URL": "postgres://u:p@db/x"}}}}
    scrubbed = kwargs["before_send"](event, None)
    assert scrubbed["contexts"]["runtime"]["env"]["DATABASE_URL"] == "[Filtered]"

    sampler = kwargs["traces_sampler"]
    assert sampler({"wsgi_environ": {"PATH_INFO": "/healthz"}}) == 0.0
    assert sampler({"wsgi_environ": {"PATH_INFO": "/badge/acme/"}}) == 0.0
    assert sampler({"wsgi_environ": {"PATH_INFO": "/api/pages/"}}) == 0.5
