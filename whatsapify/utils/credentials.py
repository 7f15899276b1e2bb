"""Credentials loader reading settings from a .env file and the environment."""

import os
from typing import Dict

from dotenv import dotenv_values


class CredentialsError(Exception):
    """Exception raised when credentials cannot be loaded."""
    pass


REQUIRED_KEYS = [
    'SPOTIFY_ACCESS_TOKEN',
]

OPTIONAL_KEYS = [
    'SPOTIFY_PLAYLIST_ID',
    'DATA_FILE',
    'WHATSAPP_CHAT_ID',
    'SPOTIFY_CLIENT_ID',
    'SPOTIFY_CLIENT_SECRET',
    'SPOTIFY_REDIRECT_URI',
]


def parse_credentials(credentials_path: str = ".env") -> Dict[str, str]:
    """
    Load credentials from a .env file, overlaid by the process environment.

    Variables already set in the environment take precedence over the file,
    the same way ``load_dotenv()`` behaves without ``override``. A missing
    file is not an error on its own as long as the environment provides
    every required key.

    Args:
        credentials_path: Path to the .env file (default: .env)

    Returns:
        Dictionary with every required key and any optional key found:
        - SPOTIFY_ACCESS_TOKEN
        - SPOTIFY_PLAYLIST_ID, DATA_FILE, WHATSAPP_CHAT_ID (optional)
        - SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REDIRECT_URI (optional)

    Raises:
        CredentialsError: If required credentials are missing
    """
    values: Dict[str, str] = {}

    if os.path.exists(credentials_path):
        for key, value in dotenv_values(credentials_path).items():
            if value is not None:
                values[key] = value

    for key in REQUIRED_KEYS + OPTIONAL_KEYS:
        if key in os.environ:
            values[key] = os.environ[key]

    credentials = {}
    for key in REQUIRED_KEYS + OPTIONAL_KEYS:
        value = values.get(key, '').strip()
        if value:
            credentials[key] = value

    missing_keys = [key for key in REQUIRED_KEYS if key not in credentials]
    if missing_keys:
        raise CredentialsError(
            f"Missing required credentials: {', '.join(missing_keys)} "
            f"(checked {credentials_path} and the environment)"
        )

    return credentials
