import json
from decimal import Decimal
from typing import Any, Dict, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Настройки базы данных
    DATABASE_URL: str = "sqlite:///./shop.db"

    # Настройки JWT
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 7 дней
    ADMIN_ACCOUNT_IDS_STR: str = Field(default="", alias="ADMIN_ACCOUNT_IDS")

    @property
    def ADMIN_ACCOUNT_IDS(self) -> List[str]:
        return [account_id.strip() for account_id in self.ADMIN_ACCOUNT_IDS_STR.split(',') if account_id.strip()]

    # Акции
    VOUCHER_VALUE: Decimal = Decimal("30")
    REGISTRATION_DISCOUNT_PERCENT: Decimal = Decimal("10")
    NEW_ACCOUNT_REGISTRATION_VOUCHER: bool = True
    VOUCHER_ELIGIBLE_CATEGORIES_JSON: str = Field(
        default='["12inch", "12inch firework series"]'
    )
    # Парсится из VOUCHER_ELIGIBLE_CATEGORIES_JSON
    VOUCHER_ELIGIBLE_CATEGORIES: List[str] = []

    # Стоимость доставки по районам, ключ: id района
    DELIVERY_AREAS_JSON: str = Field(
        default=(
            '{"kuala-lumpur": {"name": "Kuala Lumpur (city center)", "fee": 100},'
            ' "petaling-jaya": {"name": "Petaling Jaya", "fee": 100},'
            ' "shah-alam": {"name": "Shah Alam", "fee": 150},'
            ' "subang-jaya": {"name": "Subang Jaya", "fee": 100},'
            ' "klang": {"name": "Klang", "fee": 150},'
            ' "ampang-jaya": {"name": "Ampang Jaya", "fee": 100},'
            ' "rawang": {"name": "Rawang", "fee": 150},'
            ' "selayang": {"name": "Selayang", "fee": 140},'
            ' "cheras": {"name": "Cheras", "fee": 100},'
            ' "kajang": {"name": "Kajang", "fee": 120},'
            ' "bangi": {"name": "Bangi", "fee": 120},'
            ' "bukit-jalil": {"name": "Bukit Jalil", "fee": 100},'
            ' "puchong": {"name": "Puchong", "fee": 120},'
            ' "kepong": {"name": "Kepong", "fee": 120},'
            ' "sg-buloh": {"name": "Sg Buloh", "fee": 150},'
            ' "serdang": {"name": "Serdang", "fee": 100}}'
        )
    )
    DELIVERY_AREAS: Dict[str, Any] = {}

    # Сколько раз повторять конфликтующую транзакцию, прежде чем сдаться
    TRANSACTION_MAX_ATTEMPTS: int = 5

    SITE_URL: str = "http://localhost:3000"

    @field_validator("VOUCHER_ELIGIBLE_CATEGORIES", mode="before")
    def parse_eligible_categories(cls, v, values):
        json_str = values.data.get("VOUCHER_ELIGIBLE_CATEGORIES_JSON")
        if json_str:
            return [tag.strip().lower() for tag in json.loads(json_str)]
        return v

    @field_validator("DELIVERY_AREAS", mode="before")
    def parse_delivery_areas(cls, v, values):
        json_str = values.data.get("DELIVERY_AREAS_JSON")
        if json_str:
            return json.loads(json_str)
        return v

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, validate_default=True)

settings = Settings()
