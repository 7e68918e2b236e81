import json
import logging
from typing import Optional

from aliyunsdkcore.auth.credentials import AccessKeyCredential, StsTokenCredential
from aliyunsdkcore.client import AcsClient
from aliyunsdkvod.request.v20170321.CreateUploadAttachedMediaRequest import CreateUploadAttachedMediaRequest
from aliyunsdkvod.request.v20170321.CreateUploadImageRequest import CreateUploadImageRequest
from aliyunsdkvod.request.v20170321.CreateUploadVideoRequest import CreateUploadVideoRequest
from aliyunsdkvod.request.v20170321.RefreshUploadVideoRequest import RefreshUploadVideoRequest

from voduploader.models.upload_info import (
    MEDIA_TYPE_ATTACHED,
    MEDIA_TYPE_IMAGE,
    MEDIA_TYPE_VIDEO,
    UploadInfo,
)
from voduploader.services.uploader.interfaces import ControlPlaneClient

logger = logging.getLogger(__name__)


class VodClient(ControlPlaneClient):
    """VOD control plane client; signing and retries are handled by AcsClient"""
    def __init__(self, access_key_id: str, access_key_secret: str, region_id: str = 'cn-shanghai',
                 security_token: Optional[str] = None, max_retry_times: int = 3,
                 connect_timeout: int = 1, read_timeout: int = 3):
        self.access_key_id = access_key_id
        self.region_id = region_id
        if security_token:
            credential = StsTokenCredential(access_key_id, access_key_secret, security_token)
        else:
            credential = AccessKeyCredential(access_key_id, access_key_secret)
        self.acs_client = AcsClient(
            region_id=region_id,
            credential=credential,
            auto_retry=True,
            max_retry_time=max_retry_times,
            connect_timeout=connect_timeout,
            timeout=read_timeout,
        )

    def create_upload_video(self, request) -> UploadInfo:
        api_request = self._build(CreateUploadVideoRequest(), request.to_api_params())
        info = self._request_upload_info(api_request, MEDIA_TYPE_VIDEO)
        logger.info(f"CreateUploadVideo, FilePath: {request.file_path}, VideoId: {info.media_id}")
        return info

    def create_upload_image(self, request) -> UploadInfo:
        api_request = self._build(CreateUploadImageRequest(), request.to_api_params())
        info = self._request_upload_info(api_request, MEDIA_TYPE_IMAGE)
        logger.info(f"CreateUploadImage, FilePath: {request.file_path}, "
                    f"ImageId: {info.media_id}, ImageURL: {info.media_url}")
        return info

    def create_upload_attached_media(self, request) -> UploadInfo:
        api_request = self._build(CreateUploadAttachedMediaRequest(), request.to_api_params())
        info = self._request_upload_info(api_request, MEDIA_TYPE_ATTACHED)
        logger.info(f"CreateUploadAttachedMedia, FilePath: {request.file_path}, "
                    f"MediaId: {info.media_id}, MediaURL: {info.media_url}")
        return info

    def refresh_upload_video(self, video_id: str) -> UploadInfo:
        api_request = self._build(RefreshUploadVideoRequest(), {'VideoId': video_id})
        info = self._request_upload_info(api_request, MEDIA_TYPE_VIDEO)
        logger.info(f"RefreshUploadVideo, VideoId: {info.media_id}")
        return info

    @staticmethod
    def _build(api_request, params: dict):
        for name, value in params.items():
            if isinstance(value, (list, tuple)):
                value = ','.join(str(v) for v in value)
            elif isinstance(value, dict):
                value = json.dumps(value)
            api_request.add_query_param(name, value)
        api_request.set_accept_format('JSON')
        return api_request

    def _request_upload_info(self, api_request, media_type: str) -> UploadInfo:
        body = self.acs_client.do_action_with_exception(api_request)
        return UploadInfo.from_response(json.loads(body), media_type)
