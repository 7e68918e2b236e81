"""
Pytest configuration for voduploader tests
"""

import base64
import json
import tempfile
from pathlib import Path

import pytest

from voduploader.config import Settings
from voduploader.models.upload_info import UploadInfo


def encode_blob(data: dict) -> str:
    return base64.b64encode(json.dumps(data).encode('utf-8')).decode('ascii')


@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        yield Path(tmpdirname)


@pytest.fixture
def upload_response():
    """Builds a raw CreateUpload*/RefreshUpload* response body"""
    def build(media_type='video', media_id='vid-0001', access_key_id='STS.key1',
              file_name='sv/5c1f/5c1f-1.mp4', object_prefix='sv/5c1f/',
              endpoint='https://oss-cn-shanghai.aliyuncs.com', bucket='outin-test'):
        response = {
            'RequestId': 'req-1',
            'UploadAddress': encode_blob({
                'Endpoint': endpoint,
                'Bucket': bucket,
                'FileName': file_name,
                'ObjectPrefix': object_prefix,
            }),
            'UploadAuth': encode_blob({
                'AccessKeyId': access_key_id,
                'AccessKeySecret': 'secret',
                'SecurityToken': 'token',
                'ExpireUTCTime': '2026-10-19T12:00:00Z',
            }),
        }
        if media_type == 'video':
            response['VideoId'] = media_id
        elif media_type == 'image':
            response['ImageId'] = media_id
            response['ImageURL'] = f'https://vod.example.com/image/{media_id}.png'
        else:
            response['MediaId'] = media_id
            response['MediaURL'] = f'https://vod.example.com/attached/{media_id}.srt'
            response['FileURL'] = f'https://outin-test.oss-cn-shanghai.aliyuncs.com/{file_name}'
        return response
    return build


@pytest.fixture
def upload_info(upload_response):
    """Builds a decoded UploadInfo"""
    def build(media_type='video', **kwargs):
        return UploadInfo.from_response(upload_response(media_type, **kwargs), media_type)
    return build


@pytest.fixture
def test_settings(temp_dir):
    """Small multipart sizes so tests work on tiny files"""
    return Settings(
        VOD_ACCESS_KEY_ID='ak',
        VOD_ACCESS_KEY_SECRET='sk',
        VOD_MULTIPART_THRESHOLD=10,
        VOD_MULTIPART_PART_SIZE=10,
        VOD_DOWNLOAD_DIR=temp_dir / 'tmp_dlfiles',
    )
