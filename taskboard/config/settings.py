# Settings 类与 get_settings 函数
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables (.env supported)."""

    # redis（实时更新后端），为空时实时功能整体禁用
    redis_dsn: str | None = Field(default=None, env="REDIS_DSN")
    redis_socket_timeout: float = Field(default=2.0, env="REDIS_SOCKET_TIMEOUT")
    redis_connect_timeout: float = Field(default=2.0, env="REDIS_CONNECT_TIMEOUT")

    # 实时事件日志：保留窗口（秒）、每个看板的最大事件数、客户端轮询间隔提示（毫秒）
    realtime_ttl_seconds: int = Field(default=43200, env="REALTIME_TTL_SECONDS")
    realtime_max_events: int = Field(default=200, env="REALTIME_MAX_EVENTS")
    realtime_retry_ms: int = Field(default=3000, env="REALTIME_RETRY_MS")

    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # 服务监听
    server_host: str = Field(default="127.0.0.1", env="SERVER_HOST")
    server_port: int = Field(default=8000, env="SERVER_PORT")

    # CORS
    cors_allow_origins: list[str] = Field(
        default=["*"], env="CORS_ALLOW_ORIGINS")
    cors_allow_credentials: bool = Field(
        default=True, env="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["*"], env="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(
        default=["*"], env="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> Settings:
    return Settings()
