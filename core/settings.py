from __future__ import annotations
import yaml
from pathlib import Path
from typing import List
from pydantic import BaseModel

class AppConfig(BaseModel):
    name: str
    environment: str
    debug: bool = False

class DBConfig(BaseModel):
    url: str

class ImportConfig(BaseModel):
    identifier_tokens: List[str] = ["code", "reg_no", "id", "email"]
    affirmative_tokens: List[str] = ["yes", "true", "y", "1"]
    accepted_extensions: List[str] = ["xlsx", "xlsm", "xls", "csv", "tsv", "txt"]
    preview_page_size: int = 500

class Settings(BaseModel):
    app: AppConfig
    db: DBConfig
    imports: ImportConfig = ImportConfig()

def load_settings(path: str | Path = Path(__file__).resolve().parents[1] / "config" / "settings.yaml") -> Settings:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return Settings(
        app=AppConfig(**data["app"]),
        db=DBConfig(**data["db"]),
        imports=ImportConfig(**(data.get("imports") or {})),
    )
