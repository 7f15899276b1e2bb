"""Add missing tracks to a playlist, once per track."""

import json
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import requests
from spotipy.exceptions import SpotifyException

from whatsapify.link_extractor import is_track_id
from whatsapify.playlist_reader import PlaylistReader
from whatsapify.spotify_client import SpotifyClient
from whatsapify.utils.logger import get_logger


logger = get_logger()

BATCH_SIZE = 100


class SyncResult:
    """Result of one synchronization run."""

    def __init__(self, playlist_id: str):
        """Initialize empty sync result."""
        self.playlist_id = playlist_id
        self.start_time = datetime.now()
        self.end_time = None
        self.candidates = 0
        self.invalid: List[str] = []
        self.already_present = 0
        self.pending = 0
        self.added = 0
        self.batches_attempted = 0
        self.failed_batches: List[str] = []
        self.dry_run = False

    def add_failed_batch(self, error: str):
        """Record a batch that the remote service rejected."""
        self.failed_batches.append(error)

    def finalize(self):
        """Mark sync as complete."""
        self.end_time = datetime.now()

    def to_dict(self) -> Dict:
        """Convert result to dictionary."""
        duration = None
        if self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()

        return {
            'playlist_id': self.playlist_id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_seconds': duration,
            'dry_run': self.dry_run,
            'candidates': self.candidates,
            'invalid': self.invalid,
            'already_present': self.already_present,
            'pending': self.pending,
            'added': self.added,
            'batches_attempted': self.batches_attempted,
            'failed_batches': self.failed_batches
        }

    def save_to_file(self, filepath: str):
        """Save result to JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


def make_batches(track_ids: List[str], batch_size: int = BATCH_SIZE) -> List[List[str]]:
    """Split ``track_ids`` into consecutive chunks of at most ``batch_size``."""
    return [track_ids[i:i + batch_size] for i in range(0, len(track_ids), batch_size)]


class PlaylistSynchronizer:
    """
    Synchronizer bringing a set of candidate tracks into a playlist.

    The playlist is only ever appended to. Membership is read fresh on every
    run, so running the same sync twice adds nothing the second time.

    A membership read failure aborts the run. A rejected batch is logged and
    the remaining batches are still sent; ``SyncResult.added`` counts every
    track that was sent, whether or not its batch was accepted.
    """

    def __init__(
        self,
        client: SpotifyClient,
        reader: Optional[PlaylistReader] = None,
        batch_size: int = BATCH_SIZE
    ):
        """
        Initialize synchronizer.

        Args:
            client: Authenticated Spotify client
            reader: Membership reader, defaults to one built on ``client``
            batch_size: Tracks per add call (Spotify accepts at most 100)
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.reader = reader or PlaylistReader(client)
        self.batch_size = batch_size

    def compute_delta(self, candidates: Iterable[str], members: Iterable[str]) -> List[str]:
        """Candidates not already in the playlist, deduplicated, in first-seen order."""
        existing = set(members)
        return [track_id for track_id in dict.fromkeys(candidates) if track_id not in existing]

    def sync(self, playlist_id: str, candidates: Iterable[str], dry_run: bool = False) -> SyncResult:
        """
        Add every candidate missing from the playlist.

        Args:
            playlist_id: Spotify playlist ID
            candidates: Track ids that should end up in the playlist; values
                        that are not 22 character ids are skipped
            dry_run: If True, compute what would be added without adding it

        Returns:
            SyncResult

        Raises:
            MembershipReadError: If the current playlist content cannot be read
        """
        result = SyncResult(playlist_id)
        result.dry_run = dry_run
        candidates = list(dict.fromkeys(candidates))
        result.invalid = [c for c in candidates if not is_track_id(c)]
        if result.invalid:
            logger.warning(f"Skipping {len(result.invalid)} values that are not Spotify track ids")
            candidates = [c for c in candidates if is_track_id(c)]
        result.candidates = len(candidates)

        members = self.reader.fetch_all_members(playlist_id)
        delta = self.compute_delta(candidates, members)
        result.already_present = result.candidates - len(delta)
        result.pending = len(delta)
        logger.info(f"Found {len(delta)} new tracks to add")

        if dry_run:
            logger.info("DRY RUN MODE - No changes will be made")
            result.finalize()
            return result

        batches = make_batches(delta, self.batch_size)
        for index, batch in enumerate(batches, 1):
            if not batch:
                continue

            logger.info(f"Adding {len(batch)} tracks to playlist {playlist_id} (batch {index}/{len(batches)})")
            result.batches_attempted += 1
            try:
                self.client.add_tracks(playlist_id, batch)
                logger.info(f"Added {len(batch)} tracks to the playlist.")
            except (SpotifyException, requests.exceptions.RequestException) as e:
                logger.error(f"Error adding tracks in batch {index}/{len(batches)}: {e}")
                result.add_failed_batch(f"Batch {index} ({len(batch)} tracks): {e}")
            result.added += len(batch)

        if result.added > 0:
            logger.info(f"Successfully added {result.added} tracks to the playlist.")
        else:
            logger.info("No new tracks to add.")
        if result.failed_batches:
            logger.warning(
                f"{len(result.failed_batches)}/{result.batches_attempted} batches failed, "
                "run the sync again to retry them"
            )

        result.finalize()
        return result
