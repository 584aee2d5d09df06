from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gstfiling", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/gst_filing_db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )

    # GSTR-3B late fee: accrue on the first generation for a period too
    LATE_FEE_ON_FIRST_ATTEMPT: bool = Field(
        default=False,
        validation_alias=AliasChoices("LATE_FEE_ON_FIRST_ATTEMPT", "late_fee_on_first_attempt"),
    )


settings = Settings()
