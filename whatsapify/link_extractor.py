"""Recognize music and event links in free-form text."""

import re
from typing import List, NamedTuple, Optional, Set


TRACK_ID_LENGTH = 22

# A Spotify track id, refusing longer alphanumeric runs
_TRACK_ID = r'(?P<track_id>[A-Za-z0-9]{22})(?![A-Za-z0-9])'
_QUERY = r'(?:\?[A-Za-z0-9=&%_-]*)?'
_URL_TAIL = r'[A-Za-z0-9?=&%_-]+'
_PATH_TAIL = r'[A-Za-z0-9/?=&%_-]+'


class LinkPattern(NamedTuple):
    """One supported link shape."""
    provider: str
    pattern: re.Pattern
    captures_track_id: bool


class LinkMatch(NamedTuple):
    """A recognized link found in some text."""
    provider: str
    url: str
    start: int
    track_id: Optional[str] = None


LINK_PATTERNS: List[LinkPattern] = [
    LinkPattern(
        'spotify',
        re.compile(r'(?:https?://)?open\.spotify\.com/(?:embed/)?track/' + _TRACK_ID + _QUERY),
        True,
    ),
    LinkPattern(
        'spotify-intl',
        re.compile(
            r'(?:https?://)?open\.spotify\.com/intl-[a-z]{2}(?:-[A-Za-z]{2})?/(?:embed/)?track/'
            + _TRACK_ID + _QUERY
        ),
        True,
    ),
    LinkPattern('spotify-uri', re.compile(r'spotify:track:' + _TRACK_ID), True),
    LinkPattern('youtube', re.compile(r'https://www\.youtube\.com/watch\?v=' + _URL_TAIL), False),
    LinkPattern('youtu.be', re.compile(r'https://youtu\.be/' + _URL_TAIL), False),
    LinkPattern('youtube-music', re.compile(r'https://music\.youtube\.com/watch\?v=' + _URL_TAIL), False),
    LinkPattern('soundcloud', re.compile(r'https://soundcloud\.com/' + _PATH_TAIL), False),
    LinkPattern('soundcloud-short', re.compile(r'https://on\.soundcloud\.com/' + _URL_TAIL), False),
    LinkPattern('bandcamp', re.compile(r'https://[A-Za-z0-9-]+\.bandcamp\.com/' + _PATH_TAIL), False),
    LinkPattern('resident-advisor', re.compile(r'https://(?:[a-z]{2}\.)?ra\.co/events/' + _URL_TAIL), False),
    LinkPattern('abconcerts', re.compile(r'https://www\.abconcerts\.be/' + _PATH_TAIL), False),
]


def find_links(text: str, patterns: List[LinkPattern] = None) -> List[LinkMatch]:
    """
    Find every recognized link in ``text``.

    Each pattern is applied to the whole text independently. Matches are
    returned in the order they appear in the text.

    Args:
        text: Free-form text (a message, a line, a whole file)
        patterns: Pattern table to use, defaults to LINK_PATTERNS

    Returns:
        List of LinkMatch, possibly empty
    """
    if not text:
        return []

    matches = []
    for link_pattern in LINK_PATTERNS if patterns is None else patterns:
        for match in link_pattern.pattern.finditer(text):
            track_id = match.group('track_id') if link_pattern.captures_track_id else None
            matches.append(LinkMatch(link_pattern.provider, match.group(0), match.start(), track_id))

    matches.sort(key=lambda m: m.start)
    return matches


def extract_track_ids(text: str) -> Set[str]:
    """
    Extract the set of Spotify track ids mentioned in ``text``.

    Plain, embed, scheme-less, locale-prefixed and URI forms of the same
    track collapse to a single id.
    """
    return {m.track_id for m in find_links(text) if m.track_id}


def is_track_id(value: str) -> bool:
    """Whether ``value`` has the shape of a Spotify track id."""
    return bool(value) and len(value) == TRACK_ID_LENGTH and value.isascii() and value.isalnum()
