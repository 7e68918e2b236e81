"""
m3u8 playlist parsing and rewriting

A playlist is read line by line into tagged entries (comment, blank or
segment). Uploading to VOD requires every segment reference to be a bare
relative file name so the playlist still resolves next to its segments.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

import requests

from voduploader.core.errors import FileReadError, InvalidM3u8Error, M3u8RewriteError
from voduploader.utils import get_file_name, is_url, md5_hex, replace_file_name

logger = logging.getLogger(__name__)


class EntryKind(enum.Enum):
    COMMENT = 'comment'
    BLANK = 'blank'
    SEGMENT = 'segment'


@dataclass(frozen=True)
class PlaylistEntry:
    kind: EntryKind
    text: str

    @property
    def relative_name(self) -> str:
        """Segment reference reduced to its base name, query string removed"""
        return get_file_name(self.text)[1]


def parse_playlist(text: str) -> List[PlaylistEntry]:
    entries = []
    for line in text.split('\n'):
        line = line.strip()
        if not line:
            entries.append(PlaylistEntry(EntryKind.BLANK, ''))
        elif line.startswith('#'):
            entries.append(PlaylistEntry(EntryKind.COMMENT, line))
        else:
            entries.append(PlaylistEntry(EntryKind.SEGMENT, line))
    return entries


def segments(entries: List[PlaylistEntry]) -> List[PlaylistEntry]:
    return [e for e in entries if e.kind is EntryKind.SEGMENT]


def render_playlist(entries: List[PlaylistEntry]) -> str:
    """Comments verbatim, segments as bare names, blank lines dropped"""
    lines = []
    for entry in entries:
        if entry.kind is EntryKind.COMMENT:
            lines.append(entry.text + '\n')
        elif entry.kind is EntryKind.SEGMENT:
            lines.append(entry.relative_name + '\n')
    return ''.join(lines)


def rewrite_playlist(text: str) -> str:
    return render_playlist(parse_playlist(text))


def read_playlist(path: str, timeout: int = 10) -> str:
    """Read a playlist from a local path or a URL"""
    if is_url(path):
        response = requests.get(path, timeout=timeout)
        response.raise_for_status()
        return response.text
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def rewrite_playlist_file(src_path: str, dst_path: Union[str, Path]) -> Path:
    """Write a copy of src_path whose segment references are relative names"""
    try:
        text = read_playlist(src_path)
    except (OSError, requests.RequestException) as e:
        raise M3u8RewriteError(f"m3u8 file access fail: {src_path}: {e}")

    dst_path = Path(dst_path)
    try:
        dst_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise M3u8RewriteError(f"m3u8 file mkdir fail: {dst_path}: {e}")

    try:
        dst_path.write_text(rewrite_playlist(text), encoding='utf-8')
    except OSError as e:
        raise M3u8RewriteError(f"m3u8 file rewrite fail: {dst_path}: {e}")

    logger.debug(f"Rewrote playlist {src_path} to {dst_path}")
    return dst_path


def resolve_segment_paths(playlist_path: str, text: str) -> List[str]:
    """
    Resolve each segment against the playlist's own directory.
    Segments are assumed to sit next to the playlist.
    """
    slice_paths = []
    for entry in segments(parse_playlist(text)):
        slice_path = replace_file_name(playlist_path, entry.text)
        if slice_path is None:
            raise InvalidM3u8Error(f"m3u8 file invalid: {playlist_path}")
        slice_paths.append(slice_path)
    return slice_paths


def parse_m3u8_file(m3u8_path: str) -> List[str]:
    """List the segment locations of a local or remote playlist, in playlist order"""
    try:
        text = read_playlist(m3u8_path)
    except (OSError, requests.RequestException) as e:
        raise FileReadError(f"m3u8 file access fail: {m3u8_path}: {e}")
    return resolve_segment_paths(m3u8_path, text)


def working_dir_for(download_dir: Union[str, Path], file_name: str) -> Path:
    """Per-upload directory holding the rewritten playlist and downloaded segments"""
    return Path(download_dir) / md5_hex(file_name)
