import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

MEDIA_TYPE_VIDEO = 'video'
MEDIA_TYPE_IMAGE = 'image'
MEDIA_TYPE_ATTACHED = 'attached'


def decode_blob(blob: str) -> Dict[str, Any]:
    """Decode a base64(JSON) blob returned by the control plane"""
    return json.loads(base64.b64decode(blob).decode('utf-8'))


@dataclass
class UploadAddress:
    """Where the bytes go: bucket, endpoint and object key"""
    endpoint: str
    bucket: str
    file_name: str
    object_prefix: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UploadAddress':
        return cls(
            endpoint=data['Endpoint'],
            bucket=data['Bucket'],
            file_name=data['FileName'],
            object_prefix=data.get('ObjectPrefix') or '',
        )

    @property
    def bucket_host(self) -> str:
        return self.endpoint.replace('://', f'://{self.bucket}.', 1)


@dataclass
class UploadAuth:
    """Temporary STS credentials for the upload address"""
    access_key_id: str
    access_key_secret: str
    security_token: Optional[str] = None
    expire_utc_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UploadAuth':
        return cls(
            access_key_id=data['AccessKeyId'],
            access_key_secret=data['AccessKeySecret'],
            security_token=data.get('SecurityToken'),
            expire_utc_time=data.get('ExpireUTCTime'),
        )

    def __repr__(self):
        return f"UploadAuth(access_key_id={self.access_key_id!r}, expire_utc_time={self.expire_utc_time!r})"


@dataclass
class UploadInfo:
    """Decoded CreateUpload*/RefreshUpload* response for one media file"""
    media_type: str
    media_id: str
    upload_address: UploadAddress
    upload_auth: UploadAuth
    ori_upload_address: str
    ori_upload_auth: str = field(repr=False)
    media_url: Optional[str] = None
    file_url: Optional[str] = None
    request_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any], media_type: str) -> 'UploadInfo':
        if media_type == MEDIA_TYPE_VIDEO:
            media_id, media_url = data['VideoId'], None
        elif media_type == MEDIA_TYPE_IMAGE:
            media_id, media_url = data['ImageId'], data.get('ImageURL')
        else:
            media_id, media_url = data['MediaId'], data.get('MediaURL')

        return cls(
            media_type=media_type,
            media_id=media_id,
            upload_address=UploadAddress.from_dict(decode_blob(data['UploadAddress'])),
            upload_auth=UploadAuth.from_dict(decode_blob(data['UploadAuth'])),
            ori_upload_address=data['UploadAddress'],
            ori_upload_auth=data['UploadAuth'],
            media_url=media_url,
            file_url=data.get('FileURL'),
            request_id=data.get('RequestId'),
            raw=data,
        )

    @property
    def is_video(self) -> bool:
        return self.media_type == MEDIA_TYPE_VIDEO
