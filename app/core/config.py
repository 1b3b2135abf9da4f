from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)

class Settings(BaseSettings):
    PROJECT_NAME: str = "SkillChain"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./skillchain.db"

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 3600 # 7 days
    NONCE_EXPIRY_SECONDS: int = 300 # 5 minutes

    # Administrative endpoints (credential burn)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str | None = None

    # Redis settings
    REDIS_HOST: str | None = None
    REDIS_PORT: int = 6379
    REDIS_MAX_CONNECTIONS: int = 10
    REDIS_SSL: bool = False
    REDIS_RECHECK_INTERVAL: int = 30 * 60  # 30 minutes in seconds

    # Debug settings
    DEBUG: bool = False

    # Metadata storage providers
    PINATA_API_KEY: str | None = None
    PINATA_SECRET_API_KEY: str | None = None
    PINATA_API_URL: str = "https://api.pinata.cloud"
    PINATA_GATEWAY_URL: str = "https://gateway.pinata.cloud"
    IPFS_API_URL: str | None = None
    IPFS_API_KEY: str | None = None
    IPFS_API_SECRET: str | None = None
    IPFS_GATEWAY_URL: str = "https://ipfs.io"
    METADATA_PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Credential ledger
    MINT_MAX_ATTEMPTS: int = 3

    # public base url used to build absolute links in credential metadata
    BASE_URL: str = "http://localhost:8000"

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
