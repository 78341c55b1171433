from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class BillingProfile(BaseModel):
    """Company and billing defaults handed to the services that need them."""

    company_name: str
    currency_code: str
    currency_symbol: str
    default_tax_rate: Decimal
    default_due_days: int
    recurring_due_days: int
    vat_number: Optional[str] = None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    company_name: str = Field("", alias="COMPANY_NAME")
    vat_number: Optional[str] = Field(None, alias="VAT_NUMBER")
    currency_code: str = Field("ZAR", alias="CURRENCY_CODE")
    currency_symbol: str = Field("R", alias="CURRENCY_SYMBOL")
    default_tax_rate: Decimal = Field(Decimal("15"), alias="DEFAULT_TAX_RATE", ge=0)
    default_due_days: int = Field(14, alias="DEFAULT_DUE_DAYS", ge=0)
    recurring_due_days: int = Field(30, alias="RECURRING_DUE_DAYS", ge=0)
    subject_comment_fallback: str = Field("No comment available.", alias="SUBJECT_COMMENT_FALLBACK")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def billing_profile(self) -> BillingProfile:
        return BillingProfile(
            company_name=self.company_name,
            vat_number=self.vat_number,
            currency_code=self.currency_code.upper(),
            currency_symbol=self.currency_symbol,
            default_tax_rate=self.default_tax_rate,
            default_due_days=self.default_due_days,
            recurring_due_days=self.recurring_due_days,
        )


settings = Settings()


def get_billing_profile() -> BillingProfile:
    """Dependency: the company/billing profile for the current process."""
    return settings.billing_profile()
