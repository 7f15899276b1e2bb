"""Attribute shared links in chat exports to the people who posted them."""

import csv
import io
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from whatsapify.link_extractor import LinkMatch, find_links
from whatsapify.sources import read_export_lines
from whatsapify.utils.logger import get_logger


logger = get_logger()

MESSAGE_PATTERN = re.compile(r'^\[([^\]]+)\] ([^:]+): (.+)$')

CSV_FILENAME = 'user_contributions.csv'
DETAILED_FILENAME = 'detailed_contributions.txt'
RULE = '=' * 50

# Direction marks some exports put in front of every line
_LEADING_MARKS = '\u200e\u200f\ufeff'


class ParsedMessage:
    """A chat export line split into its parts."""

    def __init__(self, timestamp: str, username: str, content: str, links: List[LinkMatch]):
        self.timestamp = timestamp
        self.username = username
        self.content = content
        self.links = links

    @property
    def has_track_link(self) -> bool:
        return bool(self.links)

    def __repr__(self) -> str:
        return f"ParsedMessage(username={self.username!r}, links={len(self.links)})"


class Contribution:
    """Links shared by one person, in the order they were posted."""

    def __init__(self, username: str):
        self.username = username
        self.tracks: List[str] = []

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    def add_links(self, links: Iterable[str]) -> None:
        self.tracks.extend(links)

    def to_dict(self) -> Dict:
        return {
            'username': self.username,
            'track_count': self.track_count,
            'tracks': list(self.tracks)
        }

    def __repr__(self) -> str:
        return f"Contribution(username={self.username!r}, track_count={self.track_count})"


class ContributionReport:
    """
    Contributions ranked by number of shared links.

    Equal counts keep the order in which the authors were first seen.
    """

    def __init__(self, contributions: Iterable[Contribution]):
        self.contributions: List[Contribution] = sorted(
            contributions, key=lambda c: c.track_count, reverse=True
        )

    def __len__(self) -> int:
        return len(self.contributions)

    def get(self, username: str) -> Optional[Contribution]:
        """Return the contribution of ``username``, or None if they shared nothing."""
        for contribution in self.contributions:
            if contribution.username == username:
                return contribution
        return None

    @property
    def total_tracks(self) -> int:
        return sum(c.track_count for c in self.contributions)

    def top(self, limit: int = 10) -> List[Contribution]:
        return self.contributions[:limit]

    def to_csv(self) -> str:
        """Render the two-column ``Username,Track Count`` summary."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator='\n')
        writer.writerow(['Username', 'Track Count'])
        for contribution in self.contributions:
            writer.writerow([contribution.username, contribution.track_count])
        return output.getvalue()

    def to_detailed_text(self) -> str:
        """Render every link per author under a banner."""
        report = 'DETAILED USER CONTRIBUTIONS REPORT\n'
        report += '=====================================\n\n'

        for contribution in self.contributions:
            report += f"USER: {contribution.username}\n"
            report += f"Total Tracks: {contribution.track_count}\n"
            report += 'Track Links:\n'
            for index, track in enumerate(contribution.tracks, 1):
                report += f"  {index}. {track}\n"
            report += '\n' + RULE + '\n\n'

        return report

    def write(self, output_dir: str = '.') -> List[Path]:
        """
        Write the CSV summary and the detailed listing into ``output_dir``.

        Returns:
            Paths of the written files
        """
        directory = Path(output_dir)
        directory.mkdir(parents=True, exist_ok=True)

        csv_path = directory / CSV_FILENAME
        detailed_path = directory / DETAILED_FILENAME
        csv_path.write_text(self.to_csv(), encoding='utf-8')
        detailed_path.write_text(self.to_detailed_text(), encoding='utf-8')

        logger.info("Reports generated successfully!")
        logger.info(f"- {csv_path}: Summary of user contributions")
        logger.info(f"- {detailed_path}: Detailed breakdown with track links")
        return [csv_path, detailed_path]

    def log_summary(self, limit: int = 10) -> None:
        logger.info("\n=== SUMMARY ===")
        logger.info(f"Total users: {len(self.contributions)}")
        logger.info(f"Total tracks shared: {self.total_tracks}")
        logger.info("\nTop contributors:")
        for index, contribution in enumerate(self.top(limit), 1):
            logger.info(f"{index}. {contribution.username}: {contribution.track_count} tracks")


class ContributionParser:
    """Parser building a ContributionReport from chat export lines."""

    def parse_message(self, line: str) -> Optional[ParsedMessage]:
        """
        Split a ``[timestamp] author: content`` line.

        Args:
            line: One line of a chat export

        Returns:
            ParsedMessage, or None if the line is not a chat record
        """
        match = MESSAGE_PATTERN.match(line.lstrip(_LEADING_MARKS).rstrip('\r\n'))
        if not match:
            return None

        timestamp, username, content = match.groups()
        content = content.strip()
        return ParsedMessage(
            timestamp=timestamp,
            username=username.strip(),
            content=content,
            links=find_links(content)
        )

    def parse(self, lines: Iterable[str]) -> ContributionReport:
        """
        Aggregate links per author over a sequence of export lines.

        Lines that are not chat records are skipped. Authors who never
        posted a recognized link do not appear in the report.
        """
        contributions: Dict[str, Contribution] = {}
        skipped = 0

        for line in lines:
            if not line.strip():
                continue
            message = self.parse_message(line)
            if message is None:
                skipped += 1
                continue
            if not message.has_track_link:
                continue

            if message.username not in contributions:
                contributions[message.username] = Contribution(message.username)
            contributions[message.username].add_links(link.url for link in message.links)

        if skipped:
            logger.debug(f"Skipped {skipped} lines that are not chat records")

        return ContributionReport(contributions.values())

    def parse_file(self, file_path: str) -> ContributionReport:
        """
        Parse a whole chat export file.

        Raises:
            SourceUnavailableError: If the file cannot be read
        """
        logger.info(f"Parsing contributions from {file_path}")
        return self.parse(read_export_lines(file_path))
