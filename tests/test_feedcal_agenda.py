"""Tests for the feedcal-agenda command line entry point."""
from datetime import date

import responses

import feedcal_agenda
from conftest import FEED_URL, make_calendar, timed_event


def write_config(tmp_path, url=FEED_URL):
    path = tmp_path / "feedcal.toml"
    path.write_text(
        '[General]\n'
        'refresh_interval = 0\n'
        'timezone = "Europe/Amsterdam"\n'
        '\n'
        '[Subscription]\n'
        f'url = "{url}"\n'
    )
    return path


class TestMain:
    """Test cases for main()."""

    def test_parse_args(self, tmp_path):
        args = feedcal_agenda.parse_args(["-c", str(tmp_path / "x.toml"), "-d", "2025-01-10", "--debug"])

        assert args.date == date(2025, 1, 10)
        assert args.debug is True
        assert args.watch is False

    def test_missing_config(self, tmp_path, capsys):
        assert feedcal_agenda.main(["-c", str(tmp_path / "missing.toml")]) == 1
        assert "Configuration file not found" in capsys.readouterr().out

    def test_missing_url(self, tmp_path, capsys):
        path = write_config(tmp_path, url="")

        assert feedcal_agenda.main(["-c", str(path)]) == 1
        assert "no calendar URL" in capsys.readouterr().out

    @responses.activate
    def test_prints_agenda(self, tmp_path, capsys):
        responses.add(
            responses.GET, FEED_URL,
            body=make_calendar(
                timed_event("one", "20250110T080000Z", "20250110T083000Z", "Standup"),
                timed_event("two", "20250111T080000Z", "20250111T083000Z", "Other day"),
            ),
            status=200,
        )
        path = write_config(tmp_path)

        assert feedcal_agenda.main(["-c", str(path), "-d", "2025-01-10"]) == 0

        out = capsys.readouterr().out
        assert "Agenda for 2025-01-10:" in out
        assert "09:00-09:30  Standup" in out
        assert "Other day" not in out

    @responses.activate
    def test_fetch_failure_prints_notice(self, tmp_path, capsys):
        responses.add(responses.GET, FEED_URL, status=404)
        path = write_config(tmp_path)

        assert feedcal_agenda.main(["-c", str(path), "-d", "2025-01-10"]) == 0

        captured = capsys.readouterr()
        assert "No events" in captured.out
        assert "Calendar not found" in captured.err
