import logging

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gate_server.rules.models import IPType


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Visitor attribute extraction
    client_ip_headers: list[str] = Field(
        default=["x-forwarded-for", "x-real-ip", "cf-connecting-ip"],
        description="Headers holding the client address, in lookup order",
    )
    country_headers: list[str] = Field(
        default=["cf-ipcountry", "x-vercel-ip-country"],
        description="Geo headers holding the visitor country code",
    )
    bot_patterns: list[str] = Field(
        default=[
            "bot", "crawler", "spider", "scraper", "curl", "wget",
            "python", "postman", "insomnia", "httpie",
        ],
        description="User-agent patterns flagging automated clients",
    )
    mobile_patterns: list[str] = Field(
        default=[
            "mobile", "android", "iphone", "ipad", "ipod",
            "blackberry", "windows phone",
        ],
        description="User-agent patterns flagging mobile devices",
    )
    private_ip_type: str = Field(
        default=IPType.RESIDENTIAL.value,
        description="IP category assigned to private-range addresses",
    )

    # Admission gate
    log_decisions: bool = Field(
        default=False, description="Log one INFO line per admission decision"
    )

    model_config = SettingsConfigDict(env_prefix='gate_')


@lru_cache()
def get_settings():
    return Settings()
