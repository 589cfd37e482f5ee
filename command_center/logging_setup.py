# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import logging
import sys
import contextvars
import json
import requests
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger
from .config import settings

request_id_var = contextvars.ContextVar("request_id", default=None)

SERVICE_NAME = "command-center"

REDACTED = "***REDACTED***"
SECRET_WORDS = ("token", "secret", "password", "key", "authorization", "cookie")

# Identifier fields whose names happen to contain a secret word
SAFE_KEYS = {"key_name", "media_key"}

LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}

def _is_secret(key: str) -> bool:
    return key not in SAFE_KEYS and any(word in key.lower() for word in SECRET_WORDS)

class RedactingJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service_name"] = SERVICE_NAME
        log_record["environment"] = "production" if settings.axiom_token else "local"

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id

        for key, value in list(log_record.items()):
            if isinstance(value, str) and _is_secret(key):
                log_record[key] = REDACTED

class AxiomHandler(logging.Handler):
    """Posts each formatted record to an Axiom dataset."""

    def __init__(self, token: str, dataset: str, url: str = "https://api.axiom.co", org_id: str | None = None):
        super().__init__(level=logging.INFO)
        self.endpoint = f"{url.rstrip('/')}/v1/datasets/{dataset}/ingest"
        self.headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        if org_id:
            self.headers["X-Axiom-Org-Id"] = org_id

    def emit(self, record):
        try:
            entry = json.loads(self.format(record))
            requests.post(self.endpoint, headers=self.headers, json=[entry], timeout=2.0)
        except requests.RequestException as e:
            # The root logger would route this straight back here
            sys.stderr.write(f"axiom shipping failed: {e}\n")
        except ValueError:
            self.handleError(record)

def setup_logging():
    logger = logging.getLogger()
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = RedactingJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if settings.axiom_token and settings.axiom_dataset:
        axiom = AxiomHandler(settings.axiom_token, settings.axiom_dataset, settings.axiom_url, settings.axiom_org_id)
        axiom.setFormatter(formatter)
        logger.addHandler(axiom)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

def log_event(event: str, level: str = "info", **fields):
    """Logs one structured event; None-valued fields are dropped."""
    extra = {k: v for k, v in fields.items() if v is not None}
    extra["event"] = event
    logging.getLogger(SERVICE_NAME).log(LEVELS.get(level.lower(), logging.INFO), event, extra=extra)
