"""Collect shared music links from chats and files into a Spotify playlist."""

__version__ = "1.0.0"
