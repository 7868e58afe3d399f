"""Tests for logger configuration."""

from loguru import logger

from trainingcal.core.logger import SERVICE_NAME, setup_logger


class TestSetupLogger:
    """Tests for sinks and the default record context."""

    def test_file_sink_carries_service_and_zone(self, tmp_path):
        log_file = tmp_path / "logs" / "trainingcal.log"
        setup_logger(level="DEBUG", log_file=str(log_file), zone="America/Toronto")
        logger.info("Proposal created")
        logger.remove()

        lines = log_file.read_text().splitlines()
        assert "Logger initialized" in lines[0]
        assert "Proposal created" in lines[-1]
        assert f"| {SERVICE_NAME} | America/Toronto |" in lines[-1]

    def test_records_default_to_configured_zone(self):
        records = []
        setup_logger(level="INFO", zone="Europe/Paris")
        sink_id = logger.add(records.append, format="{message}")
        logger.info("Slot found")
        logger.remove(sink_id)

        extra = records[0].record["extra"]
        assert extra["zone"] == "Europe/Paris"
        assert extra["service"] == SERVICE_NAME
