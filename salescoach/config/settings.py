from typing import Literal, Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Remote authoritative store configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "salescoach"
    schema_name: Optional[str] = Field(
        default=None,
        description="Optional PostgreSQL schema holding the coach tables.",
    )
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class CoachApiConfig(BaseSettings):
    """Upload, transcription and analysis endpoints."""

    base_url: str = "http://localhost:8888/.netlify/functions"
    timeout_seconds: float = Field(default=60.0, gt=0)
    upload_path: str = "/upload-recording"
    start_transcription_path: str = "/start-transcription"
    check_transcription_path: str = "/check-transcription"
    analyze_path: str = "/analyze-recording"

    model_config = SettingsConfigDict(
        env_prefix="COACH_API_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Timing and retry limits for the recording pipeline."""

    poll_interval_seconds: float = Field(default=3.0, ge=0)
    max_poll_attempts: int = Field(default=120, ge=1)
    max_replay_attempts: int = Field(default=3, ge=1)
    default_process_type: str = "standard"
    debug_history_size: int = Field(default=200, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class LocalStorageConfig(BaseSettings):
    """On-device cache and offline queue locations."""

    cache_dir: str = "data/cache"
    queue_dir: str = "data/offline_queue"

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="anthropic.claude-3-haiku-20240307-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=4096,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=8192,
    )
    temperature: float = Field(
        default=0.2,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    access_key: Optional[str] = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    secret_key: Optional[str] = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class AnalysisConfig(BaseSettings):
    """Which analyzer scores transcripts."""

    backend: Literal["http", "bedrock"] = "http"

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class ConnectivityConfig(BaseSettings):
    """Reachability probe that drives the online/offline signal."""

    probe_enabled: bool = True
    probe_url: Optional[str] = None
    probe_interval_seconds: float = Field(default=15.0, gt=0)
    probe_timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="CONNECTIVITY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Sales Coach Recording Pipeline"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/recording_pipeline.log"
    create_tables_on_startup: bool = True

    # Leaderboard roster: user id -> display name; empty ranks every cached owner
    team_roster: dict[str, str] = Field(default_factory=dict)

    # Remote store
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Processing endpoints
    coach_api: CoachApiConfig = Field(default_factory=CoachApiConfig)

    # Pipeline limits
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # On-device stores
    local: LocalStorageConfig = Field(default_factory=LocalStorageConfig)

    # Analysis
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # Connectivity
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
