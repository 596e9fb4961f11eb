from pydantic_settings import BaseSettings, SettingsConfigDict

from numeris.constants import DiscountRounding


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="NUMERIS_", extra="ignore")

    db_url: str = "postgresql+psycopg://numeris:numeris@db:5432/numeris"
    db_pool_timeout: int = 30  # seconds to wait for a pooled connection

    billing_currency: str = "USD"
    discount_rounding: DiscountRounding = DiscountRounding.PROPORTIONAL

    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
