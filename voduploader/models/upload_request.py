"""
Upload request value objects

Each request wraps the parameters needed to upload one media file into VOD:
the source path (an absolute local path or a URL), the file name and
extension derived from it, and optional metadata forwarded to the
control plane. Metadata left as None is never sent.
"""

from typing import Any, Dict, Optional

from voduploader.core.errors import InvalidParameterError
from voduploader.utils import (
    VOD_MAX_DESCRIPTION_LENGTH,
    VOD_MAX_TITLE_LENGTH,
    get_file_extension,
    get_file_name,
    sub_string,
)


class BaseUploadRequest:
    """Fields shared by video, image and attached media requests"""

    # attribute name -> control plane parameter name
    OPTIONAL_PARAMS = {
        'description': 'Description',
        'cate_id': 'CateId',
        'tags': 'Tags',
        'storage_location': 'StorageLocation',
        'user_data': 'UserData',
        'app_id': 'AppId',
        'workflow_id': 'WorkflowId',
    }

    def __init__(self, file_path: str, title: Optional[str] = None):
        self._file_path = None
        self.file_name = None
        self.media_ext = None
        self.title = None
        self.description = None
        self.cate_id = None
        self.tags = None
        self.storage_location = None
        self.user_data = None
        self.app_id = None
        self.workflow_id = None
        self.set_file_path(file_path, title)

    @property
    def file_path(self) -> str:
        return self._file_path

    @file_path.setter
    def file_path(self, value: str):
        self.set_file_path(value)

    def set_file_path(self, file_path: str, title: Optional[str] = None):
        """
        Point the request at a new source and re-derive name and extension.
        The title is only replaced when one is passed explicitly.
        """
        brief_path, base_name = get_file_name(file_path)
        ext = get_file_extension(base_name)
        if not ext:
            ext = self._missing_extension(file_path)

        self._file_path = file_path
        self.file_name = self._pick_file_name(brief_path, base_name)
        self.media_ext = ext

        if title is not None:
            self.title = title
        elif self.title is None:
            self.title = base_name

    def _pick_file_name(self, brief_path: str, base_name: str) -> str:
        return brief_path

    def _missing_extension(self, file_path: str) -> str:
        raise InvalidParameterError(f"filePath has no Extension: {file_path}")

    def to_api_params(self) -> Dict[str, Any]:
        """Control plane parameters for every field that is set"""
        params = {}
        if self.title is not None:
            params['Title'] = sub_string(self.title, VOD_MAX_TITLE_LENGTH)
        for attr, name in self.OPTIONAL_PARAMS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if attr == 'description':
                value = sub_string(value, VOD_MAX_DESCRIPTION_LENGTH)
            params[name] = value
        return params

    def __repr__(self):
        return f"{self.__class__.__name__}(file_path={self._file_path!r}, title={self.title!r})"


class UploadVideoRequest(BaseUploadRequest):
    """Video or audio upload; an undetectable extension falls back to mp4"""

    OPTIONAL_PARAMS = dict(
        BaseUploadRequest.OPTIONAL_PARAMS,
        cover_url='CoverURL',
        template_group_id='TemplateGroupId',
    )

    def __init__(self, file_path: str, title: Optional[str] = None):
        self.cover_url = None
        self.template_group_id = None
        self.is_show_watermark = None
        super().__init__(file_path, title)

    def _pick_file_name(self, brief_path: str, base_name: str) -> str:
        return base_name

    def _missing_extension(self, file_path: str) -> str:
        return 'mp4'

    def shutdown_watermark(self):
        # Only meaningful when a global watermark is configured in the transcode template
        self.is_show_watermark = False

    @property
    def watermark_switch(self) -> Optional[bool]:
        return self.is_show_watermark

    def to_api_params(self) -> Dict[str, Any]:
        params = super().to_api_params()
        params['FileName'] = self.file_name
        return params


class UploadImageRequest(BaseUploadRequest):
    """Image upload; the path must carry an extension"""

    def __init__(self, file_path: str, title: Optional[str] = None):
        super().__init__(file_path, title)
        self.image_type = 'default'

    @property
    def image_ext(self) -> str:
        return self.media_ext

    @image_ext.setter
    def image_ext(self, value: str):
        self.media_ext = value

    def to_api_params(self) -> Dict[str, Any]:
        params = super().to_api_params()
        params['ImageType'] = self.image_type
        params['ImageExt'] = self.image_ext
        return params


class UploadAttachedMediaRequest(BaseUploadRequest):
    """
    Attached media upload (watermark, subtitle, material...).
    The path must carry an extension.
    """

    OPTIONAL_PARAMS = dict(
        BaseUploadRequest.OPTIONAL_PARAMS,
        file_size='FileSize',
    )

    def __init__(self, file_path: str, business_type: str, title: Optional[str] = None):
        self.file_size = None
        super().__init__(file_path, title)
        self.business_type = business_type

    def to_api_params(self) -> Dict[str, Any]:
        params = super().to_api_params()
        params['BusinessType'] = self.business_type
        params['MediaExt'] = self.media_ext
        return params
