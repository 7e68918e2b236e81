import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

import requests

from voduploader.config import settings
from voduploader.core.errors import FileDownloadError
from voduploader.utils import is_url

logger = logging.getLogger(__name__)


class Downloader:
    """Stages remote media in a local directory before upload"""

    def __init__(self,
                 save_local_dir: Optional[Union[str, Path]] = None,
                 chunk_size: int = 8 * 1024,
                 timeout: int = 30):
        """
        Args:
            save_local_dir: Directory for downloaded files (default: settings.VOD_DOWNLOAD_DIR)
            chunk_size: Size of chunks for streaming downloads
            timeout: Request timeout in seconds
        """
        self.save_local_dir = Path(save_local_dir) if save_local_dir else Path(settings.VOD_DOWNLOAD_DIR)
        self.chunk_size = chunk_size
        self.timeout = timeout

    def download_file(self, download_url: str, local_file_name: str, file_size: Optional[int] = None) -> str:
        """
        Download download_url to save_local_dir/local_file_name

        If file_size is given and a file of exactly that size is already in
        place, the download is skipped. Only the size is compared, not the
        content. The caller removes the file once done with it.

        Returns:
            Local path of the downloaded file
        """
        local_path = self.save_local_dir / local_file_name
        logger.info(f"Download {download_url} To {local_path}")

        if file_size is not None:
            try:
                local_size = local_path.stat().st_size
            except OSError:
                local_size = 0
            if local_size > 0 and local_size == file_size:
                logger.info(f"Skip download, {local_path} already has {file_size} bytes")
                return str(local_path)

        os.makedirs(self.save_local_dir, exist_ok=True)

        if is_url(download_url):
            self._stream_download(download_url, local_path)
        else:
            self._copy_local(download_url, local_path)
        return str(local_path)

    def _stream_download(self, url: str, local_path: Path):
        try:
            response = requests.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FileDownloadError(f"download file fail while reading {url}: {e}")

        with response:
            try:
                dst = open(local_path, 'wb')
            except OSError as e:
                raise FileDownloadError(f"download file fail while writing {local_path}: {e}")

            downloaded = 0
            try:
                with dst:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            dst.write(chunk)
                            downloaded += len(chunk)
            except requests.RequestException as e:
                raise FileDownloadError(f"download file fail while reading {url}: {e}")

        logger.debug(f"Downloaded {downloaded:,} bytes from {url}")

    def _copy_local(self, src_path: str, local_path: Path):
        try:
            src = open(src_path, 'rb')
        except OSError as e:
            raise FileDownloadError(f"download file fail while reading {src_path}: {e}")
        with src:
            try:
                dst = open(local_path, 'wb')
            except OSError as e:
                raise FileDownloadError(f"download file fail while writing {local_path}: {e}")
            with dst:
                shutil.copyfileobj(src, dst, self.chunk_size)
