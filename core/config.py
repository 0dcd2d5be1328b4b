from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings


load_dotenv()


class AppSettings(BaseSettings):
    # Pydantic v2 settings configuration

    mongo_uri: str = Field(default="mongodb://localhost:27017", alias="MONGO_URI")
    # Accept MONGO_DB_NAME (preferred) or DATABASE_NAME (legacy)
    database_name: str = Field(
        default="melvink-studio",
        validation_alias=AliasChoices("MONGO_DB_NAME", "DATABASE_NAME"),
    )
    # GridFS bucket holding reference images and design artwork
    uploads_bucket: str = Field(default="uploads", alias="UPLOADS_BUCKET")
    # Prefix used when building public file URLs (empty = relative URLs)
    public_base_url: str = Field(default="", alias="PUBLIC_BASE_URL")

    # Static JSON documents (designs, faq, booking info, schedule tables)
    content_dir: str = Field(default="data", alias="CONTENT_DIR")

    allowed_origins: str = Field(default="http://localhost:3000", alias="ALLOWED_ORIGINS")

    # Auth / sessions
    auth_backend: Literal["local", "hosted"] = Field(default="hosted", alias="AUTH_BACKEND")
    local_users_file: str = Field(default=".sessions/users.json", alias="LOCAL_USERS_FILE")
    jwt_secret_key: str = Field(default="dev-secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # Identity treated as the studio admin in addition to users flagged is_admin
    admin_email: Optional[str] = Field(default="admin@melvink.com", alias="ADMIN_EMAIL")
    admin_username: Optional[str] = Field(default="admin", alias="ADMIN_USERNAME")

    environment: Literal["development", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
