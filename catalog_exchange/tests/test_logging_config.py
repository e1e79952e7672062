"""Tests for structured JSONL logging."""

import json
import logging

from catalog_exchange.logging_config import get_logger, log_exchange_event, setup_logging


class TestJsonlLogging:
    """Tests for setup_logging and log_exchange_event."""

    def test_event_written_as_json_line(self, tmp_path):
        setup_logging(level=logging.DEBUG, log_to_console=False, log_dir=tmp_path)

        log_exchange_event("export_finished", {"message": "Exported 2 products", "products": 2})

        files = list(tmp_path.glob("exchange_*.jsonl"))
        assert len(files) == 1
        entry = json.loads(files[0].read_text(encoding="utf-8").splitlines()[-1])
        assert entry["event_type"] == "export_finished"
        assert entry["message"] == "Exported 2 products"
        assert entry["products"] == 2
        assert entry["logger"] == "catalog_exchange"

    def test_child_logger_names(self):
        assert get_logger("decoder").name == "catalog_exchange.decoder"
        assert get_logger().name == "catalog_exchange"

    def test_events_below_level_are_dropped(self, tmp_path):
        setup_logging(level=logging.WARNING, log_to_console=False, log_dir=tmp_path)

        log_exchange_event("decode_finished", {"message": "quiet"}, logger_name="decoder")

        assert not any(f.read_text() for f in tmp_path.glob("*.jsonl"))
