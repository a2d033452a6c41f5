import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("GALLERY_API_URL", "http://gallery.test")

from gallery.core.logging import JsonLogFormatter
from gallery.middlewares import location_ctx_var, principal_ctx_var, request_id_ctx_var


def _record(message="Loaded exhibitions", **extra):
    record = logging.LogRecord("gallery.services.exhibitions", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_tags_records_with_page_context():
    tokens = [
        (request_id_ctx_var, request_id_ctx_var.set("req-1")),
        (location_ctx_var, location_ctx_var.set("/browse/art-fashion")),
        (principal_ctx_var, principal_ctx_var.set("visitor@example.com")),
    ]
    try:
        line = JsonLogFormatter().format(_record(extra_data={"count": 3, "matchers": ["Art"]}))
    finally:
        for var, token in tokens:
            var.reset(token)

    payload = json.loads(line)
    assert payload["message"] == "Loaded exhibitions"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["location"] == "/browse/art-fashion"
    assert payload["principal"] == "visitor@example.com"
    assert payload["count"] == 3
    assert payload["timestamp"].endswith("Z")


def test_formatter_omits_empty_context_and_stringifies_unknown_values():
    when = datetime(2024, 1, 2, tzinfo=timezone.utc)
    payload = json.loads(JsonLogFormatter().format(_record(extra_data={"observed_at": when})))

    assert "request_id" not in payload
    assert "location" not in payload
    assert payload["observed_at"] == str(when)
