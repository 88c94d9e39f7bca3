from pathlib import Path
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root

ENV_FILE = os.getenv("ENV_FILE", str(BASE_DIR / ".env"))

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, env_prefix="OPENAPI_ENRICH_", extra="ignore")

    APPEND_RULES_TO_DESCRIPTION: bool = True  # global default, types and properties can override
    AUTO_DOCUMENT_FIELD_CONSTRAINTS: bool = True
    AUTO_DOCUMENT_VALIDATORS: bool = True
    PRUNE_UNUSED_COMPONENTS: bool = True

settings = Settings()
