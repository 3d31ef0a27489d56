from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    VANTERA_DB_URL: str = "sqlite+aiosqlite:///./vantera.db"

    # --- Minimal ops auth (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- ATTOM property API ---
    ATTOM_API_KEY: str | None = None
    ATTOM_BASE_URL: str = "https://api.gateway.attomdata.com/propertyapi/v1.0.0"
    ATTOM_HTTP_TIMEOUT_S: float = 30.0

    # --- Realtor.com via Apify actor ---
    APIFY_TOKEN: str | None = None
    APIFY_API_BASE: str = "https://api.apify.com/v2"
    APIFY_REALTOR_ACTOR_ID: str = "logical_vivacity~realtor-property-scraper"
    # run-sync waits for the whole dataset
    APIFY_HTTP_TIMEOUT_S: float = 300.0

    # --- Ingest gates ---
    DEFAULT_MIN_VALUE_USD: float = 2_000_000
    ERROR_SAMPLE_CAP_ATTOM: int = 5
    ERROR_SAMPLE_CAP_REALTOR: int = 8
    REALTOR_PHOTO_CAP: int = 40


settings = Settings()
