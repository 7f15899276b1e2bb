"""Source adapters turning files and chat history into text."""

from datetime import datetime
from typing import Iterable, List, Optional, Set, Union

from whatsapify.link_extractor import extract_track_ids
from whatsapify.utils.logger import get_logger


logger = get_logger()

EXPORT_TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


class SourceUnavailableError(Exception):
    """Exception raised when a text source cannot be read."""
    pass


class ChatMessage:
    """A single chat message as handed over by a chat client."""

    def __init__(
        self,
        body: str,
        author: Optional[str] = None,
        timestamp: Union[datetime, str, None] = None
    ):
        """
        Initialize chat message.

        Args:
            body: Message text
            author: Display name of the sender, if known
            timestamp: When the message was sent, as datetime or preformatted text
        """
        self.body = body
        self.author = author
        self.timestamp = timestamp

    def __repr__(self) -> str:
        return f"ChatMessage(author={self.author!r}, body={(self.body or '')[:30]!r})"


def read_text_file(file_path: str) -> str:
    """
    Read a whole UTF-8 text file.

    Raises:
        SourceUnavailableError: If the file cannot be opened or decoded
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read {file_path}: {e}")
        raise SourceUnavailableError(f"Could not read {file_path}: {e}") from e


def read_export_lines(file_path: str) -> List[str]:
    """Read a chat export as a list of lines."""
    return read_text_file(file_path).splitlines()


def extract_track_ids_from_file(file_path: str) -> Set[str]:
    """Extract every Spotify track id mentioned anywhere in a file."""
    logger.info(f"Start extracting track ids from {file_path}")

    track_ids = extract_track_ids(read_text_file(file_path))

    logger.info(f"Found {len(track_ids)} track ids")
    return track_ids


def extract_track_ids_from_messages(messages: Iterable[ChatMessage]) -> Set[str]:
    """Extract every Spotify track id mentioned in a sequence of chat messages."""
    track_ids: Set[str] = set()
    count = 0
    for message in messages:
        count += 1
        track_ids |= extract_track_ids(message.body or '')

    logger.info(f"Found {len(track_ids)} track ids in {count} messages")
    return track_ids


def _format_timestamp(timestamp: Union[datetime, str, None]) -> str:
    if timestamp is None:
        return ''
    if isinstance(timestamp, datetime):
        return timestamp.strftime(EXPORT_TIMESTAMP_FORMAT)
    return str(timestamp)


def messages_to_export_lines(messages: Iterable[ChatMessage]) -> List[str]:
    """
    Render chat history in the ``[timestamp] author: content`` export shape.

    This lets the contribution parser attribute links from live chat history
    exactly as it does for exported logs. Messages without an author or body
    are dropped and multi-line bodies are flattened onto one line.
    """
    lines = []
    for message in messages:
        if not message.author or not message.body:
            continue
        body = ' '.join(message.body.split())
        if not body:
            continue
        timestamp = _format_timestamp(message.timestamp) or '-'
        lines.append(f"[{timestamp}] {message.author.strip()}: {body}")
    return lines
