"""
Unit tests for application assembly.
"""

from unittest.mock import MagicMock, patch

from modules.backend.main import _start_purge_runner


def config_with_runner(runner: str, interval_minutes: int = 15) -> MagicMock:
    app_config = MagicMock()
    app_config.notes.purge.runner = runner
    app_config.notes.purge.interval_minutes = interval_minutes
    return app_config


class TestStartPurgeRunner:
    """Tests for choosing where expired notes are purged."""

    def test_starts_in_process_runner(self):
        with patch("modules.backend.main.PurgeRunner") as runner_cls:
            runner = _start_purge_runner(config_with_runner("in_process", 5))

        runner_cls.assert_called_once_with(interval_seconds=300)
        runner_cls.return_value.start.assert_called_once()
        assert runner is runner_cls.return_value

    def test_leaves_purging_to_taskiq(self):
        with patch("modules.backend.main.PurgeRunner") as runner_cls:
            runner = _start_purge_runner(config_with_runner("taskiq"))

        assert runner is None
        runner_cls.assert_not_called()
