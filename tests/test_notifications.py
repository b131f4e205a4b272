"""Tests for vcsflow.notifications module."""

import logging
from unittest.mock import patch

from vcsflow.lib.errors import GitCommandError
from vcsflow.notifications import Level, Notice, Notifier, desktop_sink, notify


class TestNotifier:
    """Fan-out and logging."""

    def test_sinks_and_last(self):
        notifier = Notifier()
        seen = []
        notifier.add_sink(seen.append)
        notice = notifier.log("Pushing...", Level.RUNNING)
        assert seen == [notice]
        assert notifier.last is notice

    def test_mirrored_to_logging(self, caplog):
        with caplog.at_level(logging.INFO):
            Notifier().log("Failed to push", Level.ERROR, details="x", error=GitCommandError("rejected"))
        assert "Failed to push (x): rejected" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR


class TestDesktopSink:
    """notify-send forwarding."""

    @patch("vcsflow.notifications.notify")
    def test_info_is_not_forwarded(self, mock_notify):
        desktop_sink(Notice("hello", Level.INFO))
        mock_notify.assert_not_called()

    @patch("vcsflow.notifications.notify")
    def test_error_is_critical_and_truncated(self, mock_notify):
        desktop_sink(Notice("Failed", Level.ERROR, error=GitCommandError("x" * 300)))
        title, body, urgency = mock_notify.call_args[0]
        assert title == "vcsflow: Failed"
        assert urgency == "critical"
        assert len(body) == 203

    @patch("vcsflow.notifications.shutil.which", return_value=None)
    @patch("vcsflow.notifications.subprocess.run")
    def test_notify_without_notify_send(self, mock_run, _which):
        notify("t", "m")
        mock_run.assert_not_called()

    @patch("vcsflow.notifications.shutil.which", return_value="/usr/bin/notify-send")
    @patch("vcsflow.notifications.subprocess.run")
    def test_invalid_urgency(self, mock_run, _which, caplog):
        mock_run.return_value.returncode = 0
        notify("t", "m", urgency="loud")
        assert "Invalid urgency" in caplog.text
        assert mock_run.call_args[0][0][2] == "normal"
