"""
Tests for logging configuration and emitted events.

Run with: pytest tests/test_log.py -v
"""

import pytest
import structlog
from structlog.testing import capture_logs

from pi_spigot.cache.block_store import PiBlockStore
from pi_spigot.digits import DigitChunk
from pi_spigot.log import configure_logging, get_logger
from pi_spigot.window import SubBlockWindow


def fake_compute(position: int) -> DigitChunk:
    return DigitChunk(position=position, hex_digits="00112233FF")


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:

    def test_console(self, reset_structlog, capsys):
        configure_logging("DEBUG", json_output=False)
        get_logger("test").info("hello", answer=42)

        assert "hello" in capsys.readouterr().out

    def test_json(self, reset_structlog, capsys):
        configure_logging("INFO", json_output=True)
        get_logger().info("hello_json", answer=42)

        out = capsys.readouterr().out
        assert '"event": "hello_json"' in out
        assert '"answer": 42' in out

    def test_filtered_level(self, reset_structlog, capsys):
        configure_logging("WARNING")
        get_logger().info("quiet")

        assert "quiet" not in capsys.readouterr().out

    def test_invalid_level_falls_back(self, reset_structlog, capsys):
        configure_logging("LOUD")
        get_logger().info("still_here")

        assert "still_here" in capsys.readouterr().out


class TestEvents:

    def test_gc_event(self):
        store = PiBlockStore(max_memory_bytes=5, compute=fake_compute)

        with capture_logs() as logs:
            store.get_block(0)
            store.get_block(5)

        gc = [entry for entry in logs if entry["event"] == "block_store_gc"]
        assert len(gc) == 1
        assert gc[0]["freed_bytes"] == 5
        assert gc[0]["log_level"] == "info"

    def test_block_computed_event(self):
        store = PiBlockStore(compute=fake_compute)

        with capture_logs() as logs:
            store.get_block(10)

        assert {"event": "block_computed", "offset": 10, "hex": "00112233FF", "log_level": "debug"} in logs

    def test_sub_block_event(self):
        window = SubBlockWindow([2])

        with capture_logs() as logs:
            window.push(0, 1)
            window.push(1, 2)

        assert logs == [{"event": "sub_block_completed", "length": 2, "offset": 0, "log_level": "debug"}]
