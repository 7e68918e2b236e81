import hashlib
import json
import os
from urllib.parse import parse_qs

import requests
import requests_mock

from voduploader.services.uploader.progress_reporter import (
    REPORT_FILE_HASH_READ_LEN,
    VOD_REPORT_KEY,
    ProgressReporter,
    ProgressSnapshot,
    generate_file_part_hash,
)

REPORT_URL = 'http://vod.cn-shanghai.aliyuncs.com/'


def make_snapshot(**kwargs):
    values = dict(
        method='multipart',
        file_name='/opt/video/sample.mp4',
        file_hash='f' * 32,
        file_size=300,
        threshold=100,
        part_size=100,
        total_part=3,
        done_parts_count=2,
        done_bytes=200,
        upload_id='up-1',
    )
    values.update(kwargs)
    return ProgressSnapshot(**values)


class TestFilePartHash:
    def test_hashes_first_mebibyte(self, temp_dir):
        path = temp_dir / 'big.bin'
        data = os.urandom(REPORT_FILE_HASH_READ_LEN + 100)
        path.write_bytes(data)

        digest = generate_file_part_hash('ak', str(path), len(data))
        assert digest == hashlib.md5(data[:REPORT_FILE_HASH_READ_LEN]).hexdigest()

    def test_small_file_hashed_whole(self, temp_dir):
        path = temp_dir / 'small.bin'
        path.write_bytes(b'abc')
        assert generate_file_part_hash('ak', str(path), 3) == hashlib.md5(b'abc').hexdigest()

    def test_unreadable_file_falls_back(self, temp_dir):
        path = str(temp_dir / 'missing.bin')
        assert generate_file_part_hash('ak', path, 10) == hashlib.md5(f'ak|{path}|'.encode()).hexdigest()


class TestProgressReporter:
    def test_posts_fixed_field_set(self):
        reporter = ProgressReporter('ak-1', asynchronous=False)
        with requests_mock.Mocker() as m:
            m.post(REPORT_URL, text='{}')
            reporter.report('vid-1', make_snapshot(), 'b3JpZ2luYWw=')

        fields = {k: v[0] for k, v in parse_qs(m.last_request.text).items()}
        assert fields['Action'] == 'ReportUploadProgress'
        assert fields['Version'] == '2017-03-21'
        assert fields['VideoId'] == 'vid-1'
        assert fields['ClientId'] == 'ak-1'
        assert fields['UploadId'] == 'up-1'
        assert fields['DonePartsCount'] == '2'
        assert fields['UploadAddress'] == 'b3JpZ2luYWw='
        expected_auth = hashlib.md5(f"ak-1|{VOD_REPORT_KEY}|{fields['AuthTimestamp']}".encode()).hexdigest()
        assert fields['AuthInfo'] == expected_auth
        assert json.loads(fields['UploadPoint']) == {
            'upMethod': 'multipart', 'threshold': 100, 'partSize': 100, 'doneBytes': 200,
        }

    def test_ssl_switches_scheme(self):
        assert ProgressReporter('ak', enable_ssl=True).url.startswith('https://')

    def test_network_failure_is_swallowed(self):
        reporter = ProgressReporter('ak', asynchronous=False)
        with requests_mock.Mocker() as m:
            m.post(REPORT_URL, exc=requests.exceptions.ConnectTimeout)
            reporter.report('vid-1', make_snapshot(), 'addr')
            m.post(REPORT_URL, status_code=500)
            reporter.report('vid-1', make_snapshot(), 'addr')
        assert m.call_count == 2

    def test_asynchronous_reports_flush(self):
        reporter = ProgressReporter('ak')
        with requests_mock.Mocker() as m:
            m.post(REPORT_URL, exc=requests.exceptions.ConnectionError)
            for done in range(3):
                reporter.report('vid-1', make_snapshot(done_parts_count=done), 'addr')
            reporter.flush(timeout=5)
        reporter.close()
        assert m.call_count == 3

    def test_disabled_reporter_posts_nothing(self):
        reporter = ProgressReporter('ak', asynchronous=False, enabled=False)
        with requests_mock.Mocker() as m:
            reporter.report('vid-1', make_snapshot(), 'addr')
        assert m.call_count == 0

    def test_upload_ratio(self):
        assert make_snapshot(done_bytes=150, file_size=300).upload_ratio == 0.5
        assert make_snapshot(file_size=0).upload_ratio == 0
