"""
Tests for m3u8 parsing, rewriting and segment resolution
"""

import pytest
import requests_mock

from voduploader.core.errors import FileReadError, InvalidM3u8Error, M3u8RewriteError
from voduploader.playlist import (
    EntryKind,
    parse_m3u8_file,
    parse_playlist,
    resolve_segment_paths,
    rewrite_playlist,
    rewrite_playlist_file,
    working_dir_for,
)

SAMPLE = """#EXTM3U
#EXT-X-TARGETDURATION:10

#EXTINF:10,
seg1.ts
#EXT-X-COMMENT
http://host/path/seg2.ts?x=1
  /abs/dir/seg3.ts
#EXT-X-ENDLIST
"""


class TestParsePlaylist:
    def test_tags_every_line(self):
        kinds = [e.kind for e in parse_playlist("#EXTM3U\n\nseg1.ts")]
        assert kinds == [EntryKind.COMMENT, EntryKind.BLANK, EntryKind.SEGMENT]

    def test_relative_name(self):
        entries = parse_playlist("http://host/a/b/seg%201.ts?sig=abc")
        assert entries[0].relative_name == 'seg 1.ts'


class TestRewritePlaylist:
    def test_segments_become_bare_names(self):
        result = rewrite_playlist(SAMPLE)
        assert result == (
            "#EXTM3U\n"
            "#EXT-X-TARGETDURATION:10\n"
            "#EXTINF:10,\n"
            "seg1.ts\n"
            "#EXT-X-COMMENT\n"
            "seg2.ts\n"
            "seg3.ts\n"
            "#EXT-X-ENDLIST\n"
        )

    def test_no_blank_lines(self):
        assert '\n\n' not in rewrite_playlist(SAMPLE)

    def test_already_relative_is_stable(self):
        once = rewrite_playlist(SAMPLE)
        assert rewrite_playlist(once) == once

    def test_rewrite_file(self, temp_dir):
        src = temp_dir / 'src' / 'index.m3u8'
        src.parent.mkdir()
        src.write_text(SAMPLE)
        dst = temp_dir / 'work' / 'nested' / 'index.m3u8'

        rewrite_playlist_file(str(src), dst)

        assert dst.read_text() == rewrite_playlist(SAMPLE)

    def test_rewrite_from_url(self, temp_dir):
        dst = temp_dir / 'index.m3u8'
        with requests_mock.Mocker() as m:
            m.get('http://cdn.example.com/hls/index.m3u8', text=SAMPLE)
            rewrite_playlist_file('http://cdn.example.com/hls/index.m3u8', dst)
        assert 'seg2.ts\n' in dst.read_text()

    def test_unreadable_source(self, temp_dir):
        with pytest.raises(M3u8RewriteError):
            rewrite_playlist_file(str(temp_dir / 'missing.m3u8'), temp_dir / 'out.m3u8')

    def test_uncreatable_destination(self, temp_dir):
        src = temp_dir / 'index.m3u8'
        src.write_text(SAMPLE)
        blocker = temp_dir / 'blocker'
        blocker.write_text('not a directory')
        with pytest.raises(M3u8RewriteError):
            rewrite_playlist_file(str(src), blocker / 'index.m3u8')


class TestResolveSegments:
    def test_resolved_next_to_playlist_in_order(self):
        text = "#EXTM3U\nseg1.ts\n\nseg2.ts\nseg3.ts\n"
        assert resolve_segment_paths('/data/hls/index.m3u8', text) == [
            '/data/hls/seg1.ts', '/data/hls/seg2.ts', '/data/hls/seg3.ts',
        ]

    def test_web_playlist(self):
        with requests_mock.Mocker() as m:
            m.get('http://cdn.example.com/hls/index.m3u8', text="#EXTM3U\na.ts\nb.ts\n")
            urls = parse_m3u8_file('http://cdn.example.com/hls/index.m3u8')
        assert urls == ['http://cdn.example.com/hls/a.ts', 'http://cdn.example.com/hls/b.ts']

    def test_playlist_without_directory_is_invalid(self):
        with pytest.raises(InvalidM3u8Error):
            resolve_segment_paths('index.m3u8', "#EXTM3U\nseg1.ts\n")

    def test_missing_playlist(self, temp_dir):
        with pytest.raises(FileReadError):
            parse_m3u8_file(str(temp_dir / 'nope.m3u8'))


def test_working_dir_named_by_hash(temp_dir):
    work_dir = working_dir_for(temp_dir, 'index.m3u8')
    assert work_dir.parent == temp_dir
    assert len(work_dir.name) == 32
