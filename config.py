"""
Application settings, read from the environment (and a local .env file).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    PROJECT_NAME: str = "HandyCurv Storefront API"
    ALGORITHM: str = "HS256"

    def __init__(self, **overrides):
        self.data_dir = Path(overrides.pop("data_dir", None) or os.getenv("DATA_DIR", "./data"))
        self.upload_dir = Path(overrides.pop("upload_dir", None) or os.getenv("UPLOAD_DIR", "./uploads/products"))
        self.secret_key: str = os.getenv("SECRET_KEY", "secret-key-change-me")
        self.access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 12))
        self.admin_email: str = os.getenv("ADMIN_EMAIL", "admin@handycurv.com")
        self.admin_password: str = os.getenv("ADMIN_PASSWORD", "admin123")
        self.admin_name: str = os.getenv("ADMIN_NAME", "Admin User")
        self.cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.port: int = int(os.getenv("PORT", 8000))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def catalog_file(self) -> Path:
        return self.data_dir / "products.json"

    @property
    def users_file(self) -> Path:
        return self.data_dir / "users.json"
