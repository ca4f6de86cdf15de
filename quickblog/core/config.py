from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "QuickBlog API"
    ENVIRONMENT: str = "production"  # "development" exposes stack traces in error responses
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///./quickblog.db"
    CORS_ORIGINS: List[str] = ["*"]

    # Auth
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Bootstrap super admin, only used while the user table is empty
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # SMTP (Brevo relay by default)
    MAIL_SERVER: str = Field("smtp-relay.brevo.com", validation_alias="MAIL_SERVER")
    MAIL_PORT: int = Field(587, validation_alias="MAIL_PORT")
    MAIL_USERNAME: str = Field("", validation_alias="MAIL_USERNAME")
    MAIL_PASSWORD: str = Field("", validation_alias="MAIL_PASSWORD")
    MAIL_FROM: str = Field("noreply@quickblog.com", validation_alias="EMAIL_FROM")
    MAIL_FROM_NAME: str = Field("QuickBlog", validation_alias="EMAIL_FROM_NAME")
    MAIL_SSL: bool = Field(False, validation_alias="MAIL_SSL")

    # Links placed in outgoing emails
    CLIENT_URL: str = "http://localhost:5173"

    # Newsletter fanout
    NOTIFICATION_BATCH_SIZE: int = 50
    NOTIFICATION_BATCH_DELAY_SECONDS: float = 1.0

    # AWS S3 (cover images)
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET: str = "quickblog-images"

    # Google Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_TIMEOUT_SECONDS: float = 60.0

    @property
    def S3_BASE_URL(self) -> str:
        return f"https://{self.S3_BUCKET}.s3.{self.AWS_REGION}.amazonaws.com"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
