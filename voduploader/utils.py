"""
Path, name and string helpers shared by the request models and the uploader
"""

import hashlib
import logging
import os
from typing import Optional, Tuple
from urllib.parse import unquote_plus, urlparse

logger = logging.getLogger(__name__)

VOD_MAX_TITLE_LENGTH = 128
VOD_MAX_DESCRIPTION_LENGTH = 1024

# Regions whose OSS buckets can be reached over the internal network from ECS
OSS_INTERNAL_REGIONS = [
    'cn-qingdao', 'cn-beijing', 'cn-zhangjiakou', 'cn-huhehaote', 'cn-hangzhou',
    'cn-shanghai', 'cn-shenzhen', 'cn-hongkong', 'ap-southeast-1', 'ap-southeast-2',
    'ap-southeast-3', 'ap-northeast-1', 'us-west-1', 'us-east-1', 'eu-central-1',
    'me-east-1',
]


def is_url(path: str) -> bool:
    """Check if path is a URL"""
    return urlparse(path).scheme in ['http', 'https']


def md5_hex(data) -> str:
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.md5(data).hexdigest()


def get_file_name(file_url: str) -> Tuple[str, str]:
    """
    Split a local path or URL into its query-free path and base name

    Args:
        file_url: Local path or URL, possibly percent-encoded

    Returns:
        (brief_path, base_name)
    """
    file_url = unquote_plus(file_url)
    pos = file_url.rfind('?')
    brief_path = file_url[:pos] if pos != -1 else file_url
    return brief_path, os.path.basename(brief_path.rstrip('/\\'))


def get_file_extension(file_name: str) -> Optional[str]:
    pos = file_name.rfind('.')
    if pos == -1:
        return None
    return file_name[pos + 1:]


def replace_file_name(file_path: str, replace: str) -> Optional[str]:
    """
    Swap the last component of a path or URL, trying "/" then "\\".
    Returns None when the path has no separator at all.
    """
    if not file_path or not replace:
        return file_path
    file_path = unquote_plus(file_path)
    separator = '/'
    start = file_path.rfind(separator)
    if start == -1:
        separator = '\\'
        start = file_path.rfind(separator)
        if start == -1:
            return None
    return file_path[:start] + separator + replace


def sub_string(value: str, max_bytes: int) -> str:
    """
    Truncate value so its UTF-8 encoding fits in max_bytes without splitting
    a multi-byte character. Shrinks the character count one step at a time.
    """
    length = len(value)
    while len(value.encode('utf-8')) > max_bytes:
        length -= 1
        if length <= 0:
            return ''
        value = value[:length]
    return value


def convert_oss_internal(oss_url: str, ecs_region: Optional[str] = None, enable_ssl: bool = False) -> str:
    """Rewrite an OSS endpoint to plain http and, in known regions, to its internal host"""
    if not isinstance(oss_url, str):
        return oss_url
    if not enable_ssl:
        oss_url = oss_url.replace('https:', 'http:')

    if not isinstance(ecs_region, str) or ecs_region not in OSS_INTERNAL_REGIONS:
        return oss_url

    oss_url = oss_url.replace('https:', 'http:')
    internal = oss_url.replace(f'oss-{ecs_region}.aliyuncs.com', f'oss-{ecs_region}-internal.aliyuncs.com')
    if internal != oss_url:
        logger.debug(f"Using internal OSS endpoint {internal}")
    return internal
