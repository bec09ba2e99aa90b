from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Redis — delivery-log health counter.
    # Set to empty string to disable Redis (the health signal becomes a no-op)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Used to namespace Redis keys when several deployments share a cluster.
    SERVER_DOMAIN: str = "localhost"

    # Web Push (VAPID) — generate with: npx web-push generate-vapid-keys
    VAPID_PRIVATE_KEY: str = ""
    VAPID_PUBLIC_KEY: str = ""
    VAPID_CLAIMS_EMAIL: str = "mailto:admin@localhost"

    # Payload defaults applied when a broadcast leaves them out
    PUSH_DEFAULT_ICON: str = "/icons/icon-192x192.png"
    PUSH_BADGE: str = "/icons/icon-72x72.png"
    PUSH_DEFAULT_TAG: str = "admin-notification"
    PUSH_DEFAULT_URL: str = "/"

    OPEN_RATE_WINDOW: int = 20  # most recent notifications covered by open-rate reports
    SUBSCRIPTION_MAX_AGE_DAYS: int = 30  # cutoff for the "clear-old" cleanup action

    # Swallowed delivery-log write failures within the window before /health
    # reports "degraded".
    DELIVERY_LOG_FAILURE_THRESHOLD: int = 10
    DELIVERY_LOG_FAILURE_WINDOW: int = 3600  # seconds

    # SMTP — optional, for a summary email after each broadcast.
    # If SMTP_HOST is empty, broadcasts are logged only.
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_TLS: bool = True
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_ADMIN_EMAIL: str = ""  # destination for broadcast summaries

    model_config = {"env_file": ".env"}


settings = Settings()
