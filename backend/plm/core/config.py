from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_NAME: str = "PLM Backend"
    version: str = "0.1.0"
    APP_DATABASE_DSN: str = "sqlite:////tmp/plm.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Deep links in notification cards point here
    FRONTEND_URL: str = "https://plm-system.vercel.app"

    # Hand status-change fan-out to the arq worker instead of in-process background tasks
    NOTIFICATIONS_VIA_WORKER: bool = False

    # WeChat Work messaging
    WECHAT_CORP_ID: str = ""
    WECHAT_AGENT_ID: int = 0
    WECHAT_SECRET: str = ""
    WECHAT_API_BASE_URL: str = "https://qyapi.weixin.qq.com/cgi-bin"
    WECHAT_REQUEST_TIMEOUT: float = 10.0
    WECHAT_TOKEN_REFRESH_MARGIN: int = 300  # seconds before provider expiry
    NOTIFICATION_BUTTON_TEXT: str = "查看详情"


settings = Settings()
