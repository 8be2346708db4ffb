from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Aggregation service (computes tallies/items for a range)
    report_service_url: str = "http://localhost:5000"
    report_service_token: str = ""  # Optional bearer token for the admin API
    report_service_timeout: float = 30.0

    # Image embedding
    image_base_url: str = "http://localhost:5000"  # Prefix for relative image paths
    image_download_timeout: int = 10  # seconds
    max_image_size: int = 5 * 1024 * 1024  # 5MB max
    image_fetch_concurrency: int = 4

    # Document branding
    report_brand_name: str = "VCBA E-Bulletin Board"
    report_confidentiality_notice: str = "CONFIDENTIAL - For Internal Use Only"
    report_timezone_label: str = "Philippines Time"

    # API
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"

    @field_validator("report_service_url", "image_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Base URLs are joined with '/<path>', so drop a trailing slash"""
        return v.rstrip("/")

    @field_validator("image_fetch_concurrency")
    @classmethod
    def at_least_one_worker(cls, v: int) -> int:
        return max(1, v)

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
