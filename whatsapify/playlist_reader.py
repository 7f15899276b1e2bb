"""Read the full membership of a remote playlist page by page."""

from typing import Set

import requests
from spotipy.exceptions import SpotifyException

from whatsapify.spotify_client import SpotifyClient
from whatsapify.utils.logger import get_logger


logger = get_logger()

PAGE_SIZE = 100


class MembershipReadError(Exception):
    """Exception raised when a playlist page cannot be fetched."""
    pass


class PlaylistReader:
    """Reader collecting every track id currently in a playlist."""

    def __init__(self, client: SpotifyClient, page_size: int = PAGE_SIZE):
        """
        Initialize playlist reader.

        Args:
            client: Authenticated Spotify client
            page_size: Items requested per page
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size

    def fetch_all_members(self, playlist_id: str) -> Set[str]:
        """
        Fetch the ids of all tracks in a playlist.

        Pages are requested sequentially from offset 0. The total reported
        by the most recent page decides when to stop, so an empty playlist
        costs exactly one request.

        Args:
            playlist_id: Spotify playlist ID

        Returns:
            Set of track ids present in the playlist

        Raises:
            MembershipReadError: If any page fails, no partial result is returned
        """
        logger.info(f"Getting track ids from playlist {playlist_id}")

        members: Set[str] = set()
        offset = 0
        total = None
        pages = 0

        while total is None or offset < total:
            try:
                page = self.client.get_playlist_page(playlist_id, offset=offset, limit=self.page_size)
            except (SpotifyException, requests.exceptions.RequestException) as e:
                logger.error(f"Failed to read playlist {playlist_id} at offset {offset}: {e}")
                raise MembershipReadError(
                    f"Failed to read playlist {playlist_id} at offset {offset}: {e}"
                ) from e

            total = page['total']
            members.update(page['track_ids'])
            offset += self.page_size
            pages += 1

        logger.info(f"Found {len(members)} tracks in the playlist ({pages} pages).")
        return members
