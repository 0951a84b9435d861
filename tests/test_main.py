import unittest
from unittest.mock import patch

from container_monitor.config import ConfigError, load_config
from container_monitor.main import main


class TestLoadConfig(unittest.TestCase):
    def test_loads_required_and_optional_values(self):
        config = load_config(
            {"NOTION_TOKEN": "secret", "NOTION_PAGE_ID": "page-1", "LOG_LEVEL": "DEBUG"}
        )
        self.assertEqual(config.notion_token, "secret")
        self.assertEqual(config.notion_page_id, "page-1")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertIsNone(config.log_file)

    def test_missing_values_are_named(self):
        with self.assertRaises(ConfigError) as ctx:
            load_config({"NOTION_TOKEN": "  "})
        self.assertIn("NOTION_TOKEN", str(ctx.exception))
        self.assertIn("NOTION_PAGE_ID", str(ctx.exception))


@patch("container_monitor.main.load_dotenv")
class TestMain(unittest.TestCase):
    @patch("container_monitor.main.Scheduler")
    @patch("container_monitor.main.NotionChannel")
    @patch("container_monitor.main.docker")
    def test_missing_config_exits_before_any_request(
        self, mock_docker, mock_channel, mock_scheduler, mock_load_dotenv
    ):
        for environ in [{}, {"NOTION_TOKEN": "secret"}, {"NOTION_PAGE_ID": "page-1"}]:
            with self.assertRaises(SystemExit) as ctx:
                main(environ)
            self.assertNotEqual(ctx.exception.code, 0)

        mock_channel.assert_not_called()
        mock_docker.from_env.assert_not_called()
        mock_scheduler.assert_not_called()

    @patch("container_monitor.main.setup_logging")
    @patch("container_monitor.main.Scheduler")
    @patch("container_monitor.main.PageSynchronizer")
    @patch("container_monitor.main.NotionChannel")
    @patch("container_monitor.main.docker")
    def test_reconciles_then_runs_schedule(
        self,
        mock_docker,
        mock_channel,
        mock_synchronizer,
        mock_scheduler,
        mock_setup_logging,
        mock_load_dotenv,
    ):
        mock_synchronizer.return_value.reconcile.side_effect = RuntimeError("boom")

        main({"NOTION_TOKEN": "secret", "NOTION_PAGE_ID": "page-1"})

        mock_channel.assert_called_once()
        self.assertEqual(mock_channel.call_args.args[0], "secret")
        mock_synchronizer.return_value.reconcile.assert_called_once()
        scheduler = mock_scheduler.return_value
        scheduler.run_cycle.assert_called_once()
        scheduler.run.assert_called_once_with(wait_first=True)

    @patch("container_monitor.main.setup_logging")
    @patch("container_monitor.main.Scheduler")
    @patch("container_monitor.main.PageSynchronizer")
    @patch("container_monitor.main.NotionChannel")
    @patch("container_monitor.main.docker")
    def test_keyboard_interrupt_stops_scheduler(
        self,
        mock_docker,
        mock_channel,
        mock_synchronizer,
        mock_scheduler,
        mock_setup_logging,
        mock_load_dotenv,
    ):
        mock_synchronizer.return_value.reconcile.return_value = 0
        mock_scheduler.return_value.run.side_effect = KeyboardInterrupt

        main({"NOTION_TOKEN": "secret", "NOTION_PAGE_ID": "page-1"})

        mock_scheduler.return_value.stop.assert_called_once()


if __name__ == "__main__":
    unittest.main()
