"""Spotify API client for reading and extending a playlist."""

import re
from typing import Dict, List, Optional
import spotipy
from whatsapify.utils.logger import get_logger


logger = get_logger()

_PLAYLIST_ID = r'([A-Za-z0-9]{22})'
_PLAYLIST_FORMS = [
    re.compile(r'^' + _PLAYLIST_ID + r'$'),
    re.compile(r'^https?://open\.spotify\.com/(?:intl-[a-z]{2}(?:-[A-Za-z]{2})?/)?playlist/' + _PLAYLIST_ID + r'(?:[/?].*)?$'),
    re.compile(r'^spotify:playlist:' + _PLAYLIST_ID + r'$'),
]


def parse_playlist_id(value: str) -> str:
    """
    Normalize a playlist reference to its bare id.

    Args:
        value: A 22 character playlist id, an open.spotify.com playlist URL
               or a spotify:playlist: URI

    Returns:
        The playlist id

    Raises:
        ValueError: If the value is none of the accepted forms
    """
    value = (value or '').strip()
    for form in _PLAYLIST_FORMS:
        match = form.match(value)
        if match:
            return match.group(1)
    raise ValueError(
        f"Invalid Spotify playlist ID: {value!r}. It should be 22 characters "
        "long and contain only letters and numbers."
    )


def track_uri(track_id: str) -> str:
    return f"spotify:track:{track_id}"


class SpotifyClient:
    """Client for interacting with Spotify Web API."""

    def __init__(self, access_token: str, requests_timeout: int = 10, retries: int = 3):
        """
        Initialize Spotify client.

        The access token is obtained elsewhere (authorization code flow)
        and used as an opaque bearer token.

        Args:
            access_token: OAuth access token with playlist read/modify scopes
            requests_timeout: Timeout in seconds for each API call
            retries: Retries spotipy performs on 429 and 5xx responses
        """
        self.access_token = access_token
        self.requests_timeout = requests_timeout
        self.retries = retries
        self.sp: Optional[spotipy.Spotify] = None
        self.user_name: Optional[str] = None

    def authenticate_user(self) -> None:
        """
        Build the API object and validate the access token.

        Raises:
            Exception: If the token is rejected
        """
        try:
            self.sp = spotipy.Spotify(
                auth=self.access_token,
                requests_timeout=self.requests_timeout,
                retries=self.retries
            )

            user = self.sp.current_user()
            self.user_name = user.get('display_name') or user.get('id')
            logger.info(f"Authenticated as Spotify user: {self.user_name}")

        except Exception as e:
            self.sp = None
            logger.error(f"Spotify authentication failed: {e}")
            raise

    def get_playlist_page(self, playlist_id: str, offset: int = 0, limit: int = 100) -> Dict:
        """
        Fetch one page of track ids from a playlist.

        Args:
            playlist_id: Spotify playlist ID
            offset: Index of the first item to return
            limit: Maximum number of items to return (Spotify allows up to 100)

        Returns:
            Dictionary with keys:
            - track_ids: Ids of the tracks on this page
            - total: Number of items in the whole playlist

        Raises:
            Exception: If not authenticated
            SpotifyException: If the API call fails
        """
        if not self.sp:
            raise Exception("Not authenticated. Call authenticate_user() first.")

        results = self.sp.playlist_items(
            playlist_id,
            fields='items(track(id)),total',
            limit=limit,
            offset=offset,
            additional_types=('track',)
        )

        track_ids = []
        for item in results.get('items') or []:
            track_data = item.get('track')
            # Local files and unavailable tracks have no id
            if not track_data or not track_data.get('id'):
                continue
            track_ids.append(track_data['id'])

        logger.debug(
            f"Playlist {playlist_id} page at offset {offset}: "
            f"{len(track_ids)} tracks, total {results.get('total')}"
        )
        return {
            'track_ids': track_ids,
            'total': results.get('total') or 0
        }

    def add_tracks(self, playlist_id: str, track_ids: List[str]) -> Optional[str]:
        """
        Append tracks to a playlist in a single call.

        Args:
            playlist_id: Spotify playlist ID
            track_ids: At most 100 track ids

        Returns:
            The playlist snapshot id reported by Spotify

        Raises:
            Exception: If not authenticated
            SpotifyException: If the API call fails
        """
        if not self.sp:
            raise Exception("Not authenticated. Call authenticate_user() first.")

        result = self.sp.playlist_add_items(playlist_id, [track_uri(t) for t in track_ids])
        logger.debug(f"Added {len(track_ids)} tracks to playlist {playlist_id}")
        return (result or {}).get('snapshot_id')
