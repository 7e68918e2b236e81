from .core.errors import (
    VodUploadError,
    InvalidParameterError,
    FileReadError,
    FileDownloadError,
    M3u8RewriteError,
    InvalidM3u8Error,
)
from .models.upload_request import UploadVideoRequest, UploadImageRequest, UploadAttachedMediaRequest
from .services.uploader import VodUploader, UploadServiceBuilder

__all__ = [
    "VodUploader",
    "UploadServiceBuilder",
    "UploadVideoRequest",
    "UploadImageRequest",
    "UploadAttachedMediaRequest",
    "VodUploadError",
    "InvalidParameterError",
    "FileReadError",
    "FileDownloadError",
    "M3u8RewriteError",
    "InvalidM3u8Error",
]

__version__ = "1.0.0"
