# core/db.py
from __future__ import annotations
import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from core.schema_registry import auto_discover, registered_names, run_all

log = logging.getLogger(__name__)

SCHEMAS_DIR = Path(__file__).resolve().parents[1] / "schemas"

def get_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite:///"):
        db_file = db_url.replace("sqlite:///", "")
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(db_url, future=True)
    return engine

def init_db(engine: Engine) -> None:
    # 1) import every module in schemas/ so their @register decorators fire
    auto_discover(SCHEMAS_DIR)

    # 2) run all registered table installers
    run_all(engine)
    log.info("Schema ready: %s", ", ".join(registered_names()))
