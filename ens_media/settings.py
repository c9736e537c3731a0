from pydantic import field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: list[str] | str = ["*"]
    CORS_ALLOW_METHODS: list[str] = ["GET", "PUT", "POST", "OPTIONS", "DELETE"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(
        cls, v: str | list[str], info: ValidationInfo
    ) -> list[str] | str:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Networks
    DEFAULT_NETWORK: str = "mainnet"
    WEB3_ENDPOINT_MAP: dict[str, str] = {}  # network -> RPC URL
    LOCALHOST_ENS_REGISTRY: str | None = None
    LOCALHOST_ENS_NAME_WRAPPER: str | None = None
    LOCALHOST_ENS_BASE_REGISTRAR_IMPLEMENTATION: str | None = None

    # Object storage (S3 or any S3-compatible endpoint such as R2)
    S3_MEDIA_REGION: str | None = None
    S3_ENDPOINT_URL: str | None = None
    AVATAR_BUCKET: str | None = None
    HEADER_BUCKET: str | None = None
    MEDIA_LIST_PAGE_SIZE: int = 1000
    MEDIA_SPOOL_MAX_BYTES: int = 1024 * 1024

    # Upload policy
    MEDIA_MIME_TYPE: str = "image/jpeg"
    MEDIA_MAX_BYTES: int = 512 * 1024
    MEDIA_CACHE_CONTROL: str | None = "public, max-age=3600"

    # EIP-712 domain for upload signatures
    TYPED_DATA_DOMAIN_NAME: str = "Ethereum Name Service"
    TYPED_DATA_DOMAIN_VERSION: str = "1"


settings = Settings()
