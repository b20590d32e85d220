from pathlib import Path
from typing import List, Optional

from pydantic import Field, AliasChoices, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoDBSettings(BaseSettings):
    """MongoDB connection and collection used as the listing record store."""
    uri: str = Field("mongodb://localhost:27017/", validation_alias=AliasChoices('MONGODB_URI', 'MONGO_URI'))
    database: str = Field("event_scrapers", validation_alias=AliasChoices('MONGODB_DATABASE', 'MONGO_DATABASE'))
    collection: str = Field("listings", validation_alias=AliasChoices('MONGODB_COLLECTION', 'MONGO_COLLECTION'))
    server_selection_timeout_ms: int = 10000

    model_config = SettingsConfigDict(
        env_prefix='MONGODB_',
        extra='ignore',
        populate_by_name=True
    )


class GlobalScraperSettings(BaseSettings):
    """Global settings applicable to every browser-driven scraper."""
    default_user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
        validation_alias=AliasChoices('SCRAPER_GLOBAL_DEFAULT_USER_AGENT', 'DEFAULT_USER_AGENT')
    )
    default_request_timeout_ms: int = Field(30000, validation_alias=AliasChoices('SCRAPER_GLOBAL_DEFAULT_REQUEST_TIMEOUT_MS', 'DEFAULT_REQUEST_TIMEOUT_MS'))
    default_headless_browser: bool = Field(True, validation_alias=AliasChoices('SCRAPER_GLOBAL_DEFAULT_HEADLESS_BROWSER', 'DEFAULT_HEADLESS_BROWSER'))
    viewport_width: int = 1280
    viewport_height: int = 720
    # Used for "current year" when normalizing dates that carry no year.
    timezone: str = Field("America/Bahia", validation_alias=AliasChoices('SCRAPER_GLOBAL_TIMEZONE', 'SCRAPER_TIMEZONE'))

    model_config = SettingsConfigDict(
        env_prefix='SCRAPER_GLOBAL_',
        extra='ignore',
        populate_by_name=True
    )


class FileOutputSettings(BaseSettings):
    """Settings for controlling file-based outputs."""
    base_output_directory: Path = Field(Path("output"), validation_alias=AliasChoices('FILE_OUTPUT_BASE_OUTPUT_DIRECTORY', 'BASE_OUTPUT_DIRECTORY'))
    enable_json_output: bool = Field(True, validation_alias=AliasChoices('FILE_OUTPUT_ENABLE_JSON_OUTPUT', 'ENABLE_JSON_OUTPUT'))
    log_output_directory: Path = Field(Path("scraper_logs"), validation_alias=AliasChoices('FILE_OUTPUT_LOG_OUTPUT_DIRECTORY', 'LOG_OUTPUT_DIRECTORY'))
    enable_error_screenshots: bool = Field(True, validation_alias=AliasChoices('FILE_OUTPUT_ENABLE_ERROR_SCREENSHOTS', 'ENABLE_ERROR_SCREENSHOTS'))
    screenshot_directory: Path = Field(Path("error_screenshots"), validation_alias=AliasChoices('FILE_OUTPUT_SCREENSHOT_DIRECTORY', 'SCREENSHOT_DIRECTORY'))

    model_config = SettingsConfigDict(
        env_prefix='FILE_OUTPUT_',
        extra='ignore',
        populate_by_name=True
    )


class SentrySettings(BaseSettings):
    """Configuration for Sentry error tracking."""
    dsn: Optional[HttpUrl] = Field(None, validation_alias=AliasChoices('SENTRY_DSN'))
    environment: Optional[str] = Field(None, description="Overrides main app environment for Sentry if needed.")
    traces_sample_rate: float = Field(0.2, ge=0.0, le=1.0, description="Sentry performance monitoring traces sample rate.")
    profiles_sample_rate: float = Field(0.2, ge=0.0, le=1.0, description="Sentry profiling sample rate.")
    enable_performance_monitoring: bool = Field(True, description="Enable Sentry performance monitoring.")

    model_config = SettingsConfigDict(
        env_prefix='SENTRY_',
        extra='ignore',
        populate_by_name=True
    )


# --- Scraper-Specific Settings Models ---

class SymplaSettings(BaseSettings):
    """Configuration specific to the Sympla catalog scraper."""
    target_url: HttpUrl = Field("https://www.sympla.com.br/eventos/salvador-ba/show-musica-festa/este-mes")
    source_type: str = "Sympla"
    listing_selector: str = ".sympla-card"
    title_selector: str = ".pn67h18"
    date_selector: str = ".qtfy414"
    location_selector: str = ".pn67h1a"
    image_selector: str = 'img[src*=".jpg"], img[src*=".png"]'
    event_link_selector: str = 'a[href*="/evento/"]'
    pagination_container_selector: str = "._1xzb3su0"
    pagination_link_selector: str = 'a[href*="page="]'
    page_param: str = "page"
    next_button_selectors: List[str] = Field(default_factory=lambda: [
        'button[data-testid="pagination-next-button"]',
        'button[aria-label="Próxima página"]',
        'button[aria-label="Next page"]',
        'button[title="Próxima página"]',
        'button[title="Next page"]',
        'a[aria-label="Próxima página"]',
        'a[aria-label="Next page"]',
    ])
    next_link_selector: Optional[str] = 'a[rel="next"]'
    settle_delay_ms: int = Field(2000, description="Pause after scrolling to the bottom so lazy pagination controls render.")
    navigation_timeout_ms: int = 30000
    content_timeout_ms: int = 30000
    max_pages: Optional[int] = Field(None, ge=1, description="Stop after this many pages. Unbounded when unset.")
    capture_pagination_screenshots: bool = False
    output_subfolder: str = "sympla"

    model_config = SettingsConfigDict(
        env_prefix='SYMPLA_',
        extra='ignore'
    )


class AllScraperSpecificSettings(BaseSettings):
    """Container for all scraper-specific configurations."""
    sympla: SymplaSettings = SymplaSettings()

    model_config = SettingsConfigDict(extra='ignore')


class ServerSettings(BaseSettings):
    """Run-trigger HTTP server."""
    host: str = Field("0.0.0.0", validation_alias=AliasChoices('SERVER_HOST'))
    port: int = Field(3000, validation_alias=AliasChoices('SERVER_PORT', 'PORT'))

    model_config = SettingsConfigDict(
        env_prefix='SERVER_',
        extra='ignore',
        populate_by_name=True
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field("development", validation_alias=AliasChoices('APP_ENV', 'ENVIRONMENT'))
    log_level: str = Field("INFO", validation_alias=AliasChoices('APP_LOG_LEVEL', 'LOG_LEVEL'))

    mongodb: MongoDBSettings = MongoDBSettings()
    scraper_globals: GlobalScraperSettings = GlobalScraperSettings()
    file_outputs: FileOutputSettings = FileOutputSettings()
    sentry: SentrySettings = SentrySettings()
    server: ServerSettings = ServerSettings()

    scrapers_specific: AllScraperSpecificSettings = AllScraperSpecificSettings()

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__',
        extra='ignore',
        populate_by_name=True
    )


settings = Settings()


def ensure_directories_exist():
    # Called once by the CLI and server entry points.
    for directory in (
        settings.file_outputs.base_output_directory,
        settings.file_outputs.log_output_directory,
        settings.file_outputs.screenshot_directory,
    ):
        if directory and not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
