"""
Upload orchestration

VodUploader drives one upload at a time: it asks the control plane for an
upload address and credentials, stages remote sources locally, moves the
bytes to OSS with a single PUT or a sequential multipart upload, refreshes
video credentials when a transfer outlives them, and reports progress.

Failures are not retried here and nothing is rolled back: a failed part
leaves its multipart session initiated on the storage side.
"""

import base64
import logging
import os
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from voduploader.config import Settings, settings
from voduploader.core.errors import FileReadError, InvalidParameterError
from voduploader.models.upload_info import UploadInfo
from voduploader.models.upload_request import (
    UploadAttachedMediaRequest,
    UploadImageRequest,
    UploadVideoRequest,
)
from voduploader.playlist import parse_m3u8_file, rewrite_playlist_file, working_dir_for
from voduploader.services.uploader.downloader import Downloader
from voduploader.services.uploader.interfaces import ControlPlaneClient, FileUploader
from voduploader.services.uploader.oss_uploader import OssUploaderFactory
from voduploader.services.uploader.progress_reporter import (
    ProgressReporter,
    ProgressSnapshot,
    generate_file_part_hash,
)
from voduploader.services.uploader.vod_client import VodClient
from voduploader.utils import get_file_name, md5_hex

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def generate_parts(file_size: int, part_size: int) -> List[Tuple[int, int, int]]:
    """(part_number, offset, length) for each part, 1-based, last part shorter"""
    parts = []
    offset = 0
    part_number = 1
    while offset < file_size:
        length = min(part_size, file_size - offset)
        parts.append((part_number, offset, length))
        offset += length
        part_number += 1
    return parts


def watermark_headers(request) -> Optional[Dict[str, str]]:
    """OSS notification header carrying the watermark switch, if one was set"""
    switch = getattr(request, 'watermark_switch', None)
    if switch is None:
        return None
    user_data = '{"Vod":{"UserData":{"IsShowWaterMark": "%s"}}}' % str(switch).lower()
    return {'x-oss-notification': base64.b64encode(user_data.encode('utf-8')).decode('ascii')}


class VodUploader:
    """Uploads local or web media files into VOD"""

    def __init__(self,
                 access_key_id: str,
                 access_key_secret: str,
                 api_region_id: Optional[str] = None,
                 security_token: Optional[str] = None,
                 config: Optional[Settings] = None,
                 control_plane: Optional[ControlPlaneClient] = None,
                 uploader_factory: Optional[Callable[[UploadInfo], FileUploader]] = None,
                 reporter: Optional[ProgressReporter] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        self.config = config or settings
        self.access_key_id = access_key_id
        self.api_region_id = api_region_id or self.config.VOD_REGION_ID

        self.ecs_region_id = self.config.VOD_ECS_REGION_ID
        self.enable_ssl = self.config.VOD_ENABLE_SSL
        self.connect_timeout = self.config.VOD_CONNECT_TIMEOUT
        self.oss_timeout = self.config.VOD_OSS_TIMEOUT

        self.multipart_threshold = self.config.VOD_MULTIPART_THRESHOLD
        self.multipart_part_size = self.config.VOD_MULTIPART_PART_SIZE
        self.enable_part_md5 = self.config.VOD_ENABLE_PART_MD5
        self.credential_refresh_seconds = self.config.VOD_CREDENTIAL_REFRESH_SECONDS
        self.download_dir = Path(self.config.VOD_DOWNLOAD_DIR)

        self.control_plane = control_plane or VodClient(
            access_key_id,
            access_key_secret,
            region_id=self.api_region_id,
            security_token=security_token,
            max_retry_times=self.config.VOD_MAX_RETRY_TIMES,
            connect_timeout=self.connect_timeout,
            read_timeout=self.config.VOD_API_TIMEOUT,
        )
        self.uploader_factory = uploader_factory
        self.reporter = reporter or ProgressReporter(
            access_key_id, enable_ssl=self.enable_ssl, enabled=self.config.VOD_REPORT_ENABLED)
        self.progress_callback = progress_callback or self.upload_progress_callback

        # Wall clock used for the credential refresh window
        self.clock = time.time
        self._file_part_hash = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.reporter.close()

    def set_ecs_region_id(self, region_id: Optional[str]):
        """Region of the ECS host; same-region uploads switch to the internal OSS endpoint"""
        self.ecs_region_id = region_id

    def set_enable_ssl(self, is_enable: bool):
        self.enable_ssl = is_enable
        self.reporter.enable_ssl = is_enable

    # -- videos --------------------------------------------------------------

    def upload_local_video(self, request: UploadVideoRequest) -> str:
        """Upload a local video or audio file; request.file_path is an absolute path"""
        upload_info = self.control_plane.create_upload_video(request)
        headers = watermark_headers(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info, headers)
        return upload_info.media_id

    def upload_web_video(self, request: UploadVideoRequest) -> str:
        """Download a web video to the local temp dir, then upload it"""
        request = self._download_web_media(request)

        upload_info = self.control_plane.create_upload_video(request)
        headers = watermark_headers(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info, headers)

        os.remove(request.file_path)
        return upload_info.media_id

    # -- images --------------------------------------------------------------

    def upload_local_image(self, request: UploadImageRequest) -> Dict[str, str]:
        upload_info = self.control_plane.create_upload_image(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info)
        return {'ImageId': upload_info.media_id, 'ImageURL': upload_info.media_url}

    def upload_web_image(self, request: UploadImageRequest) -> Dict[str, str]:
        request = self._download_web_media(request)

        upload_info = self.control_plane.create_upload_image(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info)

        os.remove(request.file_path)
        return {'ImageId': upload_info.media_id, 'ImageURL': upload_info.media_url}

    # -- attached media ------------------------------------------------------

    def upload_local_attached_media(self, request: UploadAttachedMediaRequest) -> Dict[str, str]:
        upload_info = self.control_plane.create_upload_attached_media(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info)
        return {'MediaId': upload_info.media_id, 'MediaURL': upload_info.media_url,
                'FileURL': upload_info.file_url}

    def upload_web_attached_media(self, request: UploadAttachedMediaRequest) -> Dict[str, str]:
        request = self._download_web_media(request)

        upload_info = self.control_plane.create_upload_attached_media(request)
        self._upload_object(request.file_path, upload_info.upload_address.file_name, upload_info)

        os.remove(request.file_path)
        return {'MediaId': upload_info.media_id, 'MediaURL': upload_info.media_url,
                'FileURL': upload_info.file_url}

    # -- m3u8 ----------------------------------------------------------------

    def parse_m3u8_file(self, m3u8_file_path: str) -> List[str]:
        """
        List segment locations of a local or web playlist by joining each
        segment name onto the playlist's directory. Segments stored elsewhere
        must be listed by the caller instead.
        """
        return parse_m3u8_file(m3u8_file_path)

    def upload_local_m3u8(self, request: UploadVideoRequest, slice_files: Optional[Sequence[str]] = None) -> str:
        """
        Upload a local m3u8 playlist and its segments.

        Args:
            request: request.file_path is the local playlist path
            slice_files: Absolute segment paths; parsed from the playlist when None
        """
        if slice_files is None:
            slice_files = self.parse_m3u8_file(request.file_path)
        self._check_slices(slice_files)

        work_dir = working_dir_for(self.download_dir, request.file_name)
        m3u8_local_path = work_dir / os.path.basename(request.file_name)
        rewrite_playlist_file(request.file_path, m3u8_local_path)

        slice_list = [(path, get_file_name(path)[1]) for path in slice_files]
        media_id = self._upload_m3u8(request, str(m3u8_local_path), slice_list)

        os.remove(m3u8_local_path)
        return media_id

    def upload_web_m3u8(self, request: UploadVideoRequest, slice_file_urls: Optional[Sequence[str]] = None) -> str:
        """
        Download a web m3u8 playlist and its segments, then upload them.

        Args:
            request: request.file_path is the playlist URL
            slice_file_urls: Segment URLs; parsed from the playlist when None
        """
        if slice_file_urls is None:
            slice_file_urls = self.parse_m3u8_file(request.file_path)
        self._check_slices(slice_file_urls)

        work_dir = working_dir_for(self.download_dir, request.file_name)
        downloader = Downloader(save_local_dir=work_dir)
        m3u8_local_path = work_dir / os.path.basename(request.file_name)
        rewrite_playlist_file(request.file_path, m3u8_local_path)

        slice_list = []
        for slice_url in slice_file_urls:
            name = get_file_name(slice_url)[1]
            slice_list.append((downloader.download_file(slice_url, name), name))

        media_id = self._upload_m3u8(request, str(m3u8_local_path), slice_list)

        os.remove(m3u8_local_path)
        # segments sharing a base name were downloaded to the same file
        for local_path in dict.fromkeys(path for path, _ in slice_list):
            os.remove(local_path)
        os.rmdir(work_dir)
        return media_id

    @staticmethod
    def _check_slices(slices):
        if not slices:
            raise InvalidParameterError("m3u8 slice files invalid")

    def _upload_m3u8(self, request: UploadVideoRequest, m3u8_local_path: str, slice_list: List[Tuple[str, str]]) -> str:
        request.set_file_path(m3u8_local_path)
        upload_info = self.control_plane.create_upload_video(request)
        headers = watermark_headers(request)
        object_prefix = upload_info.upload_address.object_prefix
        playlist_key = upload_info.upload_address.file_name

        for local_path, name in slice_list:
            upload_info = self._upload_object(local_path, object_prefix + name, upload_info, headers)
        self._upload_object(request.file_path, playlist_key, upload_info, headers)
        return upload_info.media_id

    # -- internals -----------------------------------------------------------

    def _download_web_media(self, request):
        downloader = Downloader(save_local_dir=self.download_dir)
        local_file_name = f"{md5_hex(request.file_name)}.{request.media_ext}"
        local_path = downloader.download_file(request.file_path, local_file_name)
        request.set_file_path(local_path)
        return request

    def new_session(self, upload_info: UploadInfo) -> FileUploader:
        factory = self.uploader_factory or OssUploaderFactory(
            ecs_region_id=self.ecs_region_id,
            enable_ssl=self.enable_ssl,
            connect_timeout=self.connect_timeout,
            read_timeout=self.oss_timeout,
        )
        return factory(upload_info)

    def refresh_session(self, upload_info: UploadInfo) -> Tuple[UploadInfo, FileUploader]:
        """Re-mint video credentials and open a storage session on them"""
        refreshed = self.control_plane.refresh_upload_video(upload_info.media_id)
        return refreshed, self.new_session(refreshed)

    def _upload_object(self, file_path: str, object_key: str, upload_info: UploadInfo,
                       headers: Optional[Dict[str, str]] = None) -> UploadInfo:
        session = self.new_session(upload_info)
        upload_info = self.multipart_upload_media_file(session, file_path, object_key, upload_info, headers)

        logger.info(f"UploadFile {upload_info.media_type} Finish, MediaId: {upload_info.media_id}, "
                    f"FilePath: {file_path}, Destination: "
                    f"{upload_info.upload_address.bucket_host}/{object_key}")
        return upload_info

    def use_multipart(self, file_size: int) -> bool:
        """Multipart only when the file is over the threshold and holds at least one full part"""
        return not (file_size <= self.multipart_threshold or file_size < self.multipart_part_size)

    def multipart_upload_media_file(self, session: FileUploader, file_path: str, object_key: str,
                                    upload_info: UploadInfo, headers: Optional[Dict[str, str]] = None) -> UploadInfo:
        """
        Upload one file, whole or in parts.

        Returns:
            The UploadInfo in effect at the end, refreshed if the transfer
            outlived the credentials
        """
        if not os.path.exists(file_path):
            raise FileReadError(f"file not exists: {file_path}")
        try:
            file_size = os.path.getsize(file_path)
        except OSError as e:
            raise FileReadError(f"The size of file cannot be determined: {file_path}: {e}")

        self._file_part_hash = None

        if not self.use_multipart(file_size):
            session.put_file(file_path, object_key)
            self.progress_callback(upload_info.media_id, file_size, file_size)
            if upload_info.is_video:
                self._report_progress('put', upload_info, file_path, file_size, None, file_size,
                                      1, 1, file_size)
            return upload_info

        upload_id = session.initiate_multipart_upload(object_key)
        parts = generate_parts(file_size, self.multipart_part_size)
        total_part = len(parts)
        etags = []

        # Upload auth expires after 3000s; video credentials are refreshed ahead of that
        start_time = self.clock()

        for part_number, offset, length in parts:
            etag = session.upload_part(object_key, upload_id, part_number, file_path, offset, length,
                                       check_md5=self.enable_part_md5)
            etags.append((part_number, etag))
            done_bytes = offset + length
            logger.debug(f"UploadPart, FilePath: {file_path}, MediaId: {upload_info.media_id}, "
                         f"UploadId: {upload_id}, PartNumber: {part_number}, PartSize: {length}")

            self.progress_callback(upload_info.media_id, done_bytes, file_size)

            if upload_info.is_video:
                self._report_progress('multipart', upload_info, file_path, file_size, upload_id,
                                      self.multipart_part_size, total_part, part_number, done_bytes)

                now = self.clock()
                if now - start_time >= self.credential_refresh_seconds:
                    upload_info, session = self.refresh_session(upload_info)
                    start_time = now

        session.complete_multipart_upload(object_key, upload_id, etags, headers)
        if upload_info.is_video:
            self._report_progress('multipart', upload_info, file_path, file_size, upload_id,
                                  self.multipart_part_size, total_part, total_part, file_size)
        return upload_info

    def upload_progress_callback(self, media_id: str, consumed_bytes: int, total_bytes: int):
        """Default progress callback; pass progress_callback to replace it"""
        rate = 100 * consumed_bytes / total_bytes if total_bytes > 0 else 0
        logger.info(f"UploadProgress of Media {media_id}, uploaded {consumed_bytes} bytes, percent {rate:.1f}%")

    def _report_progress(self, method: str, upload_info: UploadInfo, file_path: str, file_size: int,
                         upload_id: Optional[str], part_size: int, total_part: int,
                         done_parts_count: int, done_bytes: int):
        if self._file_part_hash is None:
            self._file_part_hash = generate_file_part_hash(self.access_key_id, file_path, file_size)
        snapshot = ProgressSnapshot(
            method=method,
            file_name=file_path,
            file_hash=self._file_part_hash,
            file_size=file_size,
            threshold=self.multipart_threshold,
            part_size=part_size,
            total_part=total_part,
            done_parts_count=done_parts_count,
            done_bytes=done_bytes,
            upload_id=upload_id,
        )
        self.reporter.report(upload_info.media_id, snapshot, upload_info.ori_upload_address)


class UploadServiceBuilder:
    """Constructs an uploader from settings"""
    @staticmethod
    def build(config: Optional[Settings] = None, **kwargs) -> VodUploader:
        config = config or settings
        if not config.VOD_ACCESS_KEY_ID or not config.VOD_ACCESS_KEY_SECRET:
            raise InvalidParameterError("VOD_ACCESS_KEY_ID and VOD_ACCESS_KEY_SECRET must be set")
        return VodUploader(
            config.VOD_ACCESS_KEY_ID,
            config.VOD_ACCESS_KEY_SECRET,
            api_region_id=config.VOD_REGION_ID,
            security_token=config.VOD_SECURITY_TOKEN,
            config=config,
            **kwargs
        )
