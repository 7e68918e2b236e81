"""
Upload progress telemetry

Reports are posted to the VOD endpoint after each multipart part and on
completion of a video upload. Reporting is best-effort: it runs off the
caller's thread by default, and any failure is logged and dropped so it can
never fail or slow down an upload.
"""

import json
import logging
import os
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import requests

from voduploader.utils import md5_hex

logger = logging.getLogger(__name__)

VOD_REPORT_URL = 'vod.cn-shanghai.aliyuncs.com'
VOD_REPORT_VERSION = '1.0.2'
VOD_REPORT_KEY = 'wXr&aLIJdfI7so'
REPORT_FILE_HASH_READ_LEN = 1024 * 1024

# (connect, read) in seconds
REPORT_TIMEOUT = (1, 2)


@dataclass
class ProgressSnapshot:
    """State of one upload at the time of a report"""
    method: str  # 'put' or 'multipart'
    file_name: str
    file_hash: str
    file_size: int
    threshold: int
    part_size: int
    total_part: int
    done_parts_count: int
    done_bytes: int
    upload_id: Optional[str] = None
    create_time: Optional[int] = None

    @property
    def upload_point(self) -> str:
        return json.dumps({
            'upMethod': self.method,
            'threshold': self.threshold,
            'partSize': self.part_size,
            'doneBytes': self.done_bytes,
        })

    @property
    def upload_ratio(self) -> float:
        if self.file_size <= 0:
            return 0
        return round(self.done_bytes / self.file_size, 4)


def generate_file_part_hash(client_id: str, file_path: str, file_size: int) -> str:
    """md5 of the first MiB of the file, or of client id, path and mtime if unreadable"""
    try:
        with open(file_path, 'rb') as f:
            data = f.read(min(file_size, REPORT_FILE_HASH_READ_LEN))
    except OSError:
        try:
            mtime = int(os.path.getmtime(file_path))
        except OSError:
            mtime = ''
        data = f"{client_id}|{file_path}|{mtime}"
    return md5_hex(data)


class ProgressReporter:
    def __init__(self, client_id: str, enable_ssl: bool = False, asynchronous: bool = True,
                 enabled: bool = True):
        self.client_id = client_id
        self.enable_ssl = enable_ssl
        self.enabled = enabled
        self.asynchronous = asynchronous
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='vod-report') if asynchronous else None
        self._pending: List[Future] = []

    @property
    def url(self) -> str:
        return ('https://' if self.enable_ssl else 'http://') + VOD_REPORT_URL

    def build_fields(self, video_id: str, snapshot: ProgressSnapshot, upload_address: str) -> dict:
        auth_timestamp = int(time.time())
        return {
            'Action': 'ReportUploadProgress',
            'Format': 'JSON',
            'Version': '2017-03-21',
            'Timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ'),
            'SignatureNonce': uuid.uuid4().hex,
            'VideoId': video_id,
            'Source': 'PythonSDK',
            'ClientId': self.client_id,
            'BusinessType': 'UploadVideo',
            'TerminalType': 'PC',
            'DeviceModel': 'Server',
            'AppVersion': VOD_REPORT_VERSION,
            'AuthTimestamp': auth_timestamp,
            'AuthInfo': md5_hex(f"{self.client_id}|{VOD_REPORT_KEY}|{auth_timestamp}"),
            'FileName': snapshot.file_name,
            'FileHash': snapshot.file_hash,
            'FileSize': snapshot.file_size or 0,
            'FileCreateTime': snapshot.create_time or auth_timestamp,
            'UploadRatio': snapshot.upload_ratio,
            'UploadId': snapshot.upload_id or 0,
            'DonePartsCount': snapshot.done_parts_count or 0,
            'PartSize': snapshot.part_size or 0,
            'UploadPoint': snapshot.upload_point,
            'UploadAddress': upload_address,
        }

    def report(self, video_id: str, snapshot: ProgressSnapshot, upload_address: str):
        """Queue a report; never raises"""
        if not self.enabled:
            return
        try:
            fields = self.build_fields(video_id, snapshot, upload_address)
            if self._executor is None:
                self._post(fields)
            else:
                self._pending = [f for f in self._pending if not f.done()]
                self._pending.append(self._executor.submit(self._post, fields))
        except Exception as e:
            logger.warning(f"reportUploadProgress failed, ErrorMessage: {e}")

    def _post(self, fields: dict):
        try:
            response = requests.post(self.url, data=fields, timeout=REPORT_TIMEOUT)
            response.raise_for_status()
            logger.debug(f"Reported progress of {fields['VideoId']}: {fields['UploadPoint']}")
        except Exception as e:
            logger.warning(f"reportUploadProgress failed, ErrorMessage: {e}")

    def flush(self, timeout: Optional[float] = None):
        """Wait for queued reports to finish"""
        pending, self._pending = self._pending, []
        for future in pending:
            future.exception(timeout=timeout)

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
