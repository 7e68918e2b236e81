"""
Uploader Service Package

Moves media files into VOD: credentials from the control plane, bytes to
OSS object storage, progress to the telemetry endpoint.

Key Components:
- ControlPlaneClient / FileUploader: Abstract collaborator interfaces
- VodClient: VOD control plane implementation
- OssUploader: OSS upload session for one set of credentials
- Downloader: Stages web media locally
- ProgressReporter: Best-effort progress telemetry
- VodUploader: Main orchestration service
- UploadServiceBuilder: Builds a VodUploader from settings
"""

from .interfaces import ControlPlaneClient, FileUploader
from .downloader import Downloader
from .oss_uploader import OssUploader, OssUploaderFactory
from .progress_reporter import ProgressReporter, ProgressSnapshot
from .vod_client import VodClient
from .upload_service import VodUploader, UploadServiceBuilder

__all__ = [
    # Interfaces
    'ControlPlaneClient',
    'FileUploader',

    # Implementations
    'VodClient',
    'OssUploader',
    'OssUploaderFactory',
    'Downloader',
    'ProgressReporter',
    'ProgressSnapshot',

    # Services
    'VodUploader',
    'UploadServiceBuilder'
]
