import json
import logging
from unittest.mock import patch
import requests
from command_center.logging_setup import AxiomHandler, RedactingJsonFormatter, log_event, request_id_var

FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

def _record(**extra):
    record = logging.LogRecord("command-center", logging.WARNING, __file__, 1, "media_uploaded", None, None)
    record.__dict__.update(extra)
    return record

def test_formatter_redacts_secret_fields_but_keeps_identifiers():
    token = request_id_var.set("req-123")
    try:
        line = RedactingJsonFormatter(FORMAT).format(_record(access_token="abc", api_secret="xyz", media_key="2026/photo.png", user_id=7))
    finally:
        request_id_var.reset(token)

    entry = json.loads(line)
    assert entry["access_token"] == "***REDACTED***"
    assert entry["api_secret"] == "***REDACTED***"
    assert entry["media_key"] == "2026/photo.png"
    assert entry["user_id"] == 7
    assert entry["level"] == "WARNING"
    assert entry["request_id"] == "req-123"
    assert entry["service_name"] == "command-center"
    assert entry["timestamp"]

def test_axiom_handler_posts_formatted_record():
    handler = AxiomHandler("axiom-token", "logs", url="https://axiom.example/", org_id="org-1")
    handler.setFormatter(RedactingJsonFormatter(FORMAT))

    with patch("command_center.logging_setup.requests.post") as post:
        handler.emit(_record(post_id=3))

    assert post.call_args.args[0] == "https://axiom.example/v1/datasets/logs/ingest"
    assert post.call_args.kwargs["headers"]["X-Axiom-Org-Id"] == "org-1"
    [entry] = post.call_args.kwargs["json"]
    assert entry["message"] == "media_uploaded"
    assert entry["post_id"] == 3

def test_axiom_handler_survives_network_errors(capsys):
    handler = AxiomHandler("axiom-token", "logs")
    handler.setFormatter(RedactingJsonFormatter(FORMAT))

    with patch("command_center.logging_setup.requests.post", side_effect=requests.ConnectionError("down")):
        handler.emit(_record())

    assert "axiom shipping failed" in capsys.readouterr().err

def test_log_event_drops_empty_fields(caplog):
    with caplog.at_level(logging.INFO, logger="command-center"):
        log_event("post_created", level="warning", post_id=5, slug=None)

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert record.event == "post_created"
    assert record.post_id == 5
    assert not hasattr(record, "slug")
