from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List
from pydantic import Field, validator


class Settings(BaseSettings):
    """
    Application settings using pure Pydantic approach.
    Environment variables are automatically loaded and validated.
    """

    # Application Configuration
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Application environment")
    HOST: str = Field(default="0.0.0.0", description="Interface the server listens on")
    PORT: int = Field(default=5000, description="Port the server listens on")
    LOG_FILE: str = Field(default="applymail.log", description="File the logs are appended to")

    # CORS Configuration
    CORS_ORIGINS: str = Field(default="*", description="Allowed CORS origins (comma-separated)")

    # Upload Configuration
    UPLOAD_DIR: str = Field(default="uploads", description="Temporary directory for received files")
    MAX_FILE_SIZE: int = Field(default=25 * 1024 * 1024, description="Per-file size ceiling in bytes")
    MAX_CERTIFICATES: int = Field(default=5, description="Maximum number of certificate files")
    MAX_FORM_OVERHEAD: int = Field(default=1024 * 1024, description="Allowance for text fields and multipart framing in bytes")
    STALE_UPLOAD_SECONDS: float = Field(default=3600, description="Age after which a leftover upload is swept at startup")

    # Mail Configuration
    MAIL_PROVIDER: str = Field(default="resend", description="Outbound mail provider: resend or smtp")
    MAIL_FROM: str = Field(
        default="Recrutement ICS-benin <onboarding@resend.dev>",
        description="Sender identity of notification emails"
    )
    MAIL_TO: str = Field(default="", description="Recipient address of notification emails")
    MAIL_SUBJECT_PREFIX: str = Field(default="Application", description="Subject prefix of notification emails")
    MAIL_TIMEOUT: float = Field(default=30.0, description="Mail provider timeout in seconds")

    # Resend Configuration
    RESEND_API_KEY: str = Field(default="", description="Resend API key")
    RESEND_API_URL: str = Field(default="https://api.resend.com/emails", description="Resend send endpoint")

    # SMTP Configuration
    SMTP_HOST: str = Field(default="smtp.gmail.com", description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port (STARTTLS)")
    SMTP_USER: str = Field(default="", description="SMTP username")
    SMTP_PASSWORD: str = Field(default="", description="SMTP password or app password")

    # Rendering Configuration
    TIMEZONE: str = Field(default="Africa/Porto-Novo", description="Timezone of the receipt timestamp")

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS_ORIGINS string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

    @property
    def upload_path(self) -> Path:
        """Upload directory as a resolved path"""
        return Path(self.UPLOAD_DIR).resolve()

    @property
    def max_request_size(self) -> int:
        """Largest submission body: every file slot full plus the form overhead"""
        return self.MAX_FILE_SIZE * (2 + self.MAX_CERTIFICATES) + self.MAX_FORM_OVERHEAD

    @validator('MAIL_PROVIDER', pre=True)
    def normalize_mail_provider(cls, v):
        """Accept the provider name in any case"""
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in ("resend", "smtp"):
            raise ValueError(f"Unsupported mail provider: {v}")
        return v

    class Config:
        # Pydantic will automatically load from .env file
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        # Allow extra fields for flexibility
        extra = "ignore"
        # Validate assignment to catch runtime changes
        validate_assignment = True


# Create global settings instance
settings = Settings()
