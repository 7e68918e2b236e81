from abc import ABC, abstractmethod
from typing import Dict, Optional

from voduploader.models.upload_info import UploadInfo


class ControlPlaneClient(ABC):
    """Mints upload addresses and credentials"""
    @abstractmethod
    def create_upload_video(self, request) -> UploadInfo:
        pass

    @abstractmethod
    def create_upload_image(self, request) -> UploadInfo:
        pass

    @abstractmethod
    def create_upload_attached_media(self, request) -> UploadInfo:
        pass

    @abstractmethod
    def refresh_upload_video(self, video_id: str) -> UploadInfo:
        pass


class FileUploader(ABC):
    """Abstract object storage uploader bound to one set of credentials"""
    @abstractmethod
    def put_file(self, local_path: str, object_key: str) -> Dict:
        pass

    @abstractmethod
    def initiate_multipart_upload(self, object_key: str) -> str:
        pass

    @abstractmethod
    def upload_part(self, object_key: str, upload_id: str, part_number: int,
                    local_path: str, offset: int, length: int, check_md5: bool = False) -> str:
        pass

    @abstractmethod
    def complete_multipart_upload(self, object_key: str, upload_id: str, parts,
                                  headers: Optional[Dict[str, str]] = None) -> Dict:
        pass
