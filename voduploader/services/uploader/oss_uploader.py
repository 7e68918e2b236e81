import base64
import hashlib
import logging
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

import boto3
from botocore.config import Config

from voduploader.models.upload_info import UploadInfo
from voduploader.services.uploader.interfaces import FileUploader
from voduploader.utils import convert_oss_internal

logger = logging.getLogger(__name__)

EXTRA_HEADERS_HANDLER_ID = 'voduploader-complete-headers'


def region_from_endpoint(endpoint: str) -> str:
    """oss-cn-shanghai.aliyuncs.com -> oss-cn-shanghai"""
    host = urlparse(endpoint).netloc or endpoint
    region = host.split('.', 1)[0]
    return region[:-len('-internal')] if region.endswith('-internal') else region


class OssUploader(FileUploader):
    """
    OSS upload session bound to one UploadInfo.

    Talks to OSS through its S3 compatible API. A session is never re-pointed
    at new credentials; refreshing produces a new session instead.
    """
    def __init__(self, upload_info: UploadInfo, ecs_region_id: Optional[str] = None,
                 enable_ssl: bool = False, connect_timeout: int = 1, read_timeout: int = 86400 * 7):
        self.upload_info = upload_info
        self.bucket_name = upload_info.upload_address.bucket
        self.endpoint_url = convert_oss_internal(upload_info.upload_address.endpoint, ecs_region_id, enable_ssl)
        auth = upload_info.upload_auth
        self.boto_client = boto3.client(
                's3',
                endpoint_url=self.endpoint_url,
                aws_access_key_id=auth.access_key_id,
                aws_secret_access_key=auth.access_key_secret,
                aws_session_token=auth.security_token,
                config=Config(
                    region_name=region_from_endpoint(self.endpoint_url),
                    signature_version='s3v4',
                    s3={'addressing_style': 'virtual'},
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    # Retries are left to the caller
                    retries={'max_attempts': 1, 'mode': 'standard'},
                    request_checksum_calculation='when_required',
                    response_checksum_validation='when_required',
                )
            )

    def put_file(self, local_path: str, object_key: str) -> Dict:
        with open(local_path, 'rb') as f:
            return self.boto_client.put_object(Bucket=self.bucket_name, Key=object_key, Body=f)

    def initiate_multipart_upload(self, object_key: str) -> str:
        response = self.boto_client.create_multipart_upload(Bucket=self.bucket_name, Key=object_key)
        return response['UploadId']

    def upload_part(self, object_key: str, upload_id: str, part_number: int,
                    local_path: str, offset: int, length: int, check_md5: bool = False) -> str:
        with open(local_path, 'rb') as f:
            f.seek(offset)
            body = f.read(length)

        params = dict(
            Bucket=self.bucket_name,
            Key=object_key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=body,
            ContentLength=len(body),
        )
        if check_md5:
            params['ContentMD5'] = base64.b64encode(hashlib.md5(body).digest()).decode('ascii')

        response = self.boto_client.upload_part(**params)
        return response['ETag']

    def complete_multipart_upload(self, object_key: str, upload_id: str, parts: Iterable[Tuple[int, str]],
                                  headers: Optional[Dict[str, str]] = None) -> Dict:
        multipart = {'Parts': [{'PartNumber': num, 'ETag': etag} for num, etag in sorted(parts)]}
        if not headers:
            return self.boto_client.complete_multipart_upload(
                Bucket=self.bucket_name, Key=object_key, UploadId=upload_id, MultipartUpload=multipart)

        events = self.boto_client.meta.events
        event_name = 'before-sign.s3.CompleteMultipartUpload'

        def add_headers(request, **kwargs):
            for name, value in headers.items():
                request.headers[name] = value

        events.register(event_name, add_headers, unique_id=EXTRA_HEADERS_HANDLER_ID)
        try:
            return self.boto_client.complete_multipart_upload(
                Bucket=self.bucket_name, Key=object_key, UploadId=upload_id, MultipartUpload=multipart)
        finally:
            events.unregister(event_name, unique_id=EXTRA_HEADERS_HANDLER_ID)


class OssUploaderFactory:
    """Builds sessions with the uploader's network settings"""
    def __init__(self, ecs_region_id: Optional[str] = None, enable_ssl: bool = False,
                 connect_timeout: int = 1, read_timeout: int = 86400 * 7):
        self.ecs_region_id = ecs_region_id
        self.enable_ssl = enable_ssl
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    def __call__(self, upload_info: UploadInfo) -> OssUploader:
        return OssUploader(
            upload_info,
            ecs_region_id=self.ecs_region_id,
            enable_ssl=self.enable_ssl,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )
