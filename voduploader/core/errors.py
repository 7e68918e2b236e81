"""
Exceptions raised by the upload library.
Codes follow the numbering used by the VOD upload SDKs.
"""

VOD_ERR_FILE_READ = 10000
VOD_ERR_FILE_DOWNLOAD = 10001
VOD_ERR_M3U8_FILE_REWRITE = 10002
VOD_INVALID_M3U8_SLICE_FILE = 10003


class VodUploadError(Exception):
    """Base class for upload failures"""
    code = None

    def __init__(self, message: str, code=None):
        super().__init__(message)
        if code is not None:
            self.code = code

    def __str__(self):
        return f"[{self.code}] {self.args[0]}"


class InvalidParameterError(VodUploadError):
    code = "InvalidParameter"


class FileReadError(VodUploadError):
    code = VOD_ERR_FILE_READ


class FileDownloadError(VodUploadError):
    code = VOD_ERR_FILE_DOWNLOAD


class M3u8RewriteError(VodUploadError):
    code = VOD_ERR_M3U8_FILE_REWRITE


class InvalidM3u8Error(VodUploadError):
    code = VOD_INVALID_M3U8_SLICE_FILE
