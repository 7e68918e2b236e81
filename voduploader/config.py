# config.py
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=PROJECT_ROOT / ".env", extra="ignore")

    # Credentials are optional here so the package imports without an environment
    VOD_ACCESS_KEY_ID: Optional[str] = None
    VOD_ACCESS_KEY_SECRET: Optional[str] = None
    VOD_SECURITY_TOKEN: Optional[str] = None

    # VOD API region, cn-shanghai for mainland China
    VOD_REGION_ID: str = "cn-shanghai"
    # Region of the ECS host running the upload, enables internal OSS endpoints
    VOD_ECS_REGION_ID: Optional[str] = None
    VOD_ENABLE_SSL: bool = False

    # Timeouts in seconds
    VOD_CONNECT_TIMEOUT: int = 1
    VOD_API_TIMEOUT: int = 3
    VOD_OSS_TIMEOUT: int = 86400 * 7

    VOD_MAX_RETRY_TIMES: int = 3

    VOD_MULTIPART_THRESHOLD: int = Field(10 * 1024 * 1024, gt=0)
    VOD_MULTIPART_PART_SIZE: int = Field(10 * 1024 * 1024, gt=0)
    VOD_ENABLE_PART_MD5: bool = False

    # Upload auth is valid for 3000s, refresh ahead of that
    VOD_CREDENTIAL_REFRESH_SECONDS: int = 2500

    VOD_DOWNLOAD_DIR: Path = PROJECT_ROOT / "tmp_dlfiles"
    VOD_REPORT_ENABLED: bool = True
    VOD_LOG_LEVEL: str = "INFO"


settings = Settings()
