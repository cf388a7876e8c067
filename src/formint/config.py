"""Configuration management for formint."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Provider
    provider: str = "amazon-textract"
    page_timeout_seconds: float = 60.0
    default_confidence: float = 95.0

    # Spatial thresholds (pixels)
    row_tolerance: float = 10.0
    pairing_distance: float = 200.0
    section_gap: float = 100.0
    threshold_units: str = "pixels"  # "pixels" or "raw"

    # Reference page size: US Letter at the 1.5 preview scale
    reference_page_width: int = 918
    reference_page_height: int = 1188

    # Review
    low_confidence_threshold: float = 80.0
    source_language: str = "en"
    display_language: str = "en"
    preview_scale: float = 1.5
    fit_margin: float = 0.9

    # Logging
    log_level: str = "INFO"

    @property
    def reference_page_size(self) -> tuple[int, int]:
        """Page size used to scale thresholds when no image is known."""
        return (self.reference_page_width, self.reference_page_height)

    class Config:
        env_prefix = "FORMINT_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
