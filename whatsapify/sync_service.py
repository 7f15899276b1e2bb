"""Service wiring sources, the extractor and the synchronizer together."""

import argparse
import sys
from datetime import datetime
from typing import Dict, Iterable

from whatsapify.contributions import ContributionParser, ContributionReport
from whatsapify.playlist_reader import PlaylistReader
from whatsapify.sources import (
    ChatMessage,
    extract_track_ids_from_file,
    extract_track_ids_from_messages,
)
from whatsapify.spotify_client import SpotifyClient, parse_playlist_id
from whatsapify.synchronizer import PlaylistSynchronizer, SyncResult
from whatsapify.utils.credentials import parse_credentials
from whatsapify.utils.logger import setup_logger


class SyncService:
    """Service for adding shared Spotify tracks to a playlist."""

    def __init__(self, credentials_path: str = ".env", log_file: str = None):
        """
        Initialize sync service.

        Args:
            credentials_path: Path to the .env file holding credentials
            log_file: Optional path to log file
        """
        self.credentials_path = credentials_path

        # Auto-generate log file name if not provided
        if log_file is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = f"sync_logs/sync_{timestamp}.log"

        self.logger = setup_logger(log_file=log_file)
        self.logger.info(f"📝 Sync log file: {log_file}")

        self.spotify_client: SpotifyClient = None
        self.synchronizer: PlaylistSynchronizer = None

    def load_credentials(self) -> Dict[str, str]:
        """
        Load credentials from file and environment.

        Raises:
            CredentialsError: If credentials cannot be loaded
        """
        try:
            self.logger.info(f"Loading credentials from {self.credentials_path}")
            return parse_credentials(self.credentials_path)
        except Exception as e:
            self.logger.error(f"Failed to load credentials: {e}")
            raise

    def authenticate_clients(self, credentials: Dict[str, str]):
        """
        Authenticate the Spotify client and build the synchronizer.

        Raises:
            Exception: If authentication fails
        """
        try:
            self.logger.info("Authenticating with Spotify...")
            self.spotify_client = SpotifyClient(access_token=credentials['SPOTIFY_ACCESS_TOKEN'])
            self.spotify_client.authenticate_user()

            self.synchronizer = PlaylistSynchronizer(
                self.spotify_client,
                reader=PlaylistReader(self.spotify_client)
            )
            self.logger.info("Authentication successful")

        except Exception as e:
            self.logger.error(f"Authentication failed: {e}")
            raise

    def _require_synchronizer(self) -> PlaylistSynchronizer:
        if not self.synchronizer:
            raise Exception("Not authenticated. Call authenticate_clients() first.")
        return self.synchronizer

    def sync_from_file(self, file_path: str, playlist_id: str, dry_run: bool = False) -> SyncResult:
        """
        Add every Spotify track linked in a text file to a playlist.

        Raises:
            SourceUnavailableError: If the file cannot be read
            MembershipReadError: If the playlist cannot be read
        """
        synchronizer = self._require_synchronizer()
        playlist_id = parse_playlist_id(playlist_id)

        self.logger.info(f"Scanning {file_path} for track ids")
        track_ids = extract_track_ids_from_file(file_path)
        if not track_ids:
            self.logger.info("No Spotify tracks found in file")

        self.logger.info(f"Adding {len(track_ids)} tracks to {playlist_id}")
        return synchronizer.sync(playlist_id, sorted(track_ids), dry_run=dry_run)

    def sync_from_messages(
        self,
        messages: Iterable[ChatMessage],
        playlist_id: str,
        dry_run: bool = False
    ) -> SyncResult:
        """
        Add every Spotify track linked in chat messages to a playlist.

        Raises:
            MembershipReadError: If the playlist cannot be read
        """
        synchronizer = self._require_synchronizer()
        playlist_id = parse_playlist_id(playlist_id)

        track_ids = extract_track_ids_from_messages(messages)
        if not track_ids:
            self.logger.info("No Spotify tracks found in messages")

        return synchronizer.sync(playlist_id, sorted(track_ids), dry_run=dry_run)

    def report_contributions(self, export_path: str, output_dir: str = '.') -> ContributionReport:
        """
        Rank who shared the most links in a chat export and write the reports.

        Raises:
            SourceUnavailableError: If the export cannot be read
        """
        report = ContributionParser().parse_file(export_path)
        report.write(output_dir)
        report.log_summary()
        return report

    def log_result(self, result: SyncResult):
        """Print a summary of a sync run."""
        self.logger.info("\n" + "=" * 60)
        self.logger.info("SYNC COMPLETE" if not result.dry_run else "DRY RUN COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(f"Candidate tracks: {result.candidates}")
        self.logger.info(f"Already in playlist: {result.already_present}")
        if result.dry_run:
            self.logger.info(f"Would add: {result.pending}")
        else:
            self.logger.info(f"Tracks sent: {result.added}")
            self.logger.info(f"Failed batches: {len(result.failed_batches)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='whatsapify',
        description="Add Spotify tracks shared in chats or text files to a playlist"
    )
    parser.add_argument(
        '--credentials',
        type=str,
        default='.env',
        help='Path to credentials file (default: .env)'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Path to log file (optional)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    sync_file = subparsers.add_parser('sync-file', help='Add tracks linked in a text file')
    sync_file.add_argument('--file', type=str, default=None, help='Text file to scan (default: DATA_FILE)')
    sync_file.add_argument('--playlist', type=str, default=None, help='Target playlist (default: SPOTIFY_PLAYLIST_ID)')
    sync_file.add_argument('--dry-run', action='store_true', help='Show what would be added without adding it')
    sync_file.add_argument('--report', type=str, default=None, help='Write a JSON summary to this path')

    contributions = subparsers.add_parser('contributions', help='Rank who shared the most links')
    contributions.add_argument('export', type=str, help='Chat export file')
    contributions.add_argument('--output-dir', type=str, default='.', help='Where to write the reports')

    return parser


def main(argv=None):
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    try:
        service = SyncService(
            credentials_path=args.credentials,
            log_file=args.log_file
        )

        if args.command == 'contributions':
            service.report_contributions(args.export, output_dir=args.output_dir)
            print("\nReport completed successfully!")
            sys.exit(0)

        credentials = service.load_credentials()
        file_path = args.file or credentials.get('DATA_FILE')
        playlist_id = args.playlist or credentials.get('SPOTIFY_PLAYLIST_ID')
        if not file_path or not playlist_id:
            print("\nBoth a file (--file or DATA_FILE) and a playlist (--playlist or SPOTIFY_PLAYLIST_ID) are required")
            sys.exit(1)

        service.authenticate_clients(credentials)
        result = service.sync_from_file(file_path, playlist_id, dry_run=args.dry_run)
        service.log_result(result)
        if args.report:
            result.save_to_file(args.report)
            service.logger.info(f"Report saved to: {args.report}")

        print("\nSync completed successfully!")
        sys.exit(0)

    except KeyboardInterrupt:
        print("\n\nSync interrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nSync failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
