"""Unit tests for the contribution parser and reports."""

import pytest
from whatsapify.contributions import (
    Contribution,
    ContributionParser,
    ContributionReport,
    CSV_FILENAME,
    DETAILED_FILENAME,
)
from whatsapify.sources import SourceUnavailableError


TRACK_LINK = "https://open.spotify.com/track/AAAAAAAAAAAAAAAAAAAAAA"
TRACK_LINK_2 = "https://open.spotify.com/intl-fr/track/BBBBBBBBBBBBBBBBBBBBBB"
YOUTUBE_LINK = "https://youtu.be/dQw4w9WgXcQ"


@pytest.fixture
def parser():
    """Create a ContributionParser instance."""
    return ContributionParser()


def _contribution(username, links):
    contribution = Contribution(username)
    contribution.add_links(links)
    return contribution


class TestParseMessage:
    """Test cases for parse_message."""

    def test_valid_line(self, parser):
        message = parser.parse_message(f"[12/03/2024, 10:00:00] Alice: check this {TRACK_LINK}")

        assert message is not None
        assert message.timestamp == "12/03/2024, 10:00:00"
        assert message.username == "Alice"
        assert message.content == f"check this {TRACK_LINK}"
        assert message.has_track_link
        assert [link.url for link in message.links] == [TRACK_LINK]

    def test_line_without_link(self, parser):
        message = parser.parse_message("[10:01] Bob: no link here")

        assert message is not None
        assert message.username == "Bob"
        assert not message.has_track_link

    @pytest.mark.parametrize("line", [
        "just some text",
        f"continuation of a message {TRACK_LINK}",
        "[10:00] no colon here",
        "10:00 Alice: missing brackets",
        "[10:00]Alice: missing space",
    ])
    def test_malformed_line_returns_none(self, parser, line):
        assert parser.parse_message(line) is None

    def test_leading_direction_mark_is_ignored(self, parser):
        message = parser.parse_message(f"\u200e[10:00] Alice: {TRACK_LINK}")

        assert message is not None
        assert message.username == "Alice"

    def test_username_is_trimmed(self, parser):
        message = parser.parse_message(f"[10:00] Alice  : {TRACK_LINK}")

        assert message.username == "Alice"


class TestParse:
    """Test cases for ContributionParser.parse."""

    def test_alice_counted_bob_absent(self, parser):
        report = parser.parse([
            f"[10:00] Alice: check this {TRACK_LINK}",
            "[10:01] Bob: no link here",
        ])

        assert report.get("Alice").track_count == 1
        assert report.get("Bob") is None
        assert len(report) == 1

    def test_malformed_lines_do_not_change_counts(self, parser):
        lines = [f"[10:00] Alice: {TRACK_LINK}"]
        noisy = lines + ["garbage line", f"orphan continuation {TRACK_LINK}", ""]

        assert parser.parse(noisy).get("Alice").track_count == parser.parse(lines).get("Alice").track_count

    def test_repeats_count(self, parser):
        report = parser.parse([
            f"[10:00] Alice: {TRACK_LINK}",
            f"[10:05] Alice: again {TRACK_LINK} and {YOUTUBE_LINK}",
        ])

        alice = report.get("Alice")
        assert alice.track_count == 3
        assert alice.tracks == [TRACK_LINK, TRACK_LINK, YOUTUBE_LINK]

    def test_count_matches_tracks(self, parser):
        report = parser.parse([
            f"[10:00] Alice: {TRACK_LINK} {TRACK_LINK_2}",
            f"[10:01] Bob: {YOUTUBE_LINK}",
        ])

        for contribution in report.contributions:
            assert contribution.track_count == len(contribution.tracks)

    def test_sorted_descending_stable_on_first_seen(self, parser):
        report = parser.parse([
            f"[10:00] Carol: {YOUTUBE_LINK}",
            f"[10:01] Alice: {TRACK_LINK}",
            f"[10:02] Bob: {TRACK_LINK} {TRACK_LINK_2}",
            f"[10:03] Dave: {TRACK_LINK_2}",
        ])

        assert [c.username for c in report.contributions] == ["Bob", "Carol", "Alice", "Dave"]

    def test_each_parse_starts_fresh(self, parser):
        parser.parse([f"[10:00] Alice: {TRACK_LINK}"])
        report = parser.parse([f"[10:00] Bob: {TRACK_LINK}"])

        assert report.get("Alice") is None
        assert report.total_tracks == 1

    def test_parse_file(self, parser, tmp_path):
        export = tmp_path / "chat.txt"
        export.write_text(
            f"[10:00] Alice: {TRACK_LINK}\r\n[10:01] Bob: hello\r\n",
            encoding='utf-8'
        )

        report = parser.parse_file(str(export))

        assert report.get("Alice").tracks == [TRACK_LINK]

    def test_parse_file_unreadable(self, parser, tmp_path):
        with pytest.raises(SourceUnavailableError):
            parser.parse_file(str(tmp_path / "missing.txt"))


class TestContributionReport:
    """Test cases for ContributionReport rendering."""

    @pytest.fixture
    def report(self):
        return ContributionReport([
            _contribution("Alice", [TRACK_LINK]),
            _contribution("Bob", [TRACK_LINK, YOUTUBE_LINK]),
        ])

    def test_to_csv(self, report):
        assert report.to_csv() == "Username,Track Count\nBob,2\nAlice,1\n"

    def test_to_csv_quotes_commas(self):
        report = ContributionReport([_contribution("Doe, John", [TRACK_LINK])])

        assert report.to_csv().splitlines()[1] == '"Doe, John",1'

    def test_to_detailed_text(self, report):
        text = report.to_detailed_text()

        assert text.startswith("DETAILED USER CONTRIBUTIONS REPORT\n")
        assert "USER: Bob\nTotal Tracks: 2\nTrack Links:\n" in text
        assert f"  1. {TRACK_LINK}\n  2. {YOUTUBE_LINK}\n" in text
        assert text.count("=" * 50 + "\n") == 2
        assert text.index("USER: Bob") < text.index("USER: Alice")

    def test_totals_and_top(self, report):
        assert report.total_tracks == 3
        assert [c.username for c in report.top(1)] == ["Bob"]

    def test_write(self, report, tmp_path):
        paths = report.write(str(tmp_path / "reports"))

        assert [p.name for p in paths] == [CSV_FILENAME, DETAILED_FILENAME]
        assert (tmp_path / "reports" / CSV_FILENAME).read_text(encoding='utf-8') == report.to_csv()
        assert "USER: Alice" in (tmp_path / "reports" / DETAILED_FILENAME).read_text(encoding='utf-8')

    def test_log_summary(self, report, caplog):
        with caplog.at_level("INFO"):
            report.log_summary()

        assert "Total users: 2" in caplog.text
        assert "1. Bob: 2 tracks" in caplog.text

    def test_contribution_to_dict(self):
        assert _contribution("Alice", [TRACK_LINK]).to_dict() == {
            'username': "Alice",
            'track_count': 1,
            'tracks': [TRACK_LINK]
        }
