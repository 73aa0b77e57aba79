import io

import pandas as pd
import pytest
from sqlalchemy import text as sa_text

from core.db import get_engine, init_db
from screens.import_wizard.models import FieldSpec, FieldType


@pytest.fixture
def code_name_schema():
    return [
        FieldSpec("code", "Code", required=True),
        FieldSpec("name", "Name", required=True),
    ]


@pytest.fixture
def subject_schema():
    return [
        FieldSpec("name", "Subject Name", required=True),
        FieldSpec("code", "Subject Code", required=True),
        FieldSpec("papers", "Papers", type=FieldType.LIST),
        FieldSpec("is_compulsory", "Is Compulsory", type=FieldType.BOOLEAN),
    ]


def csv_bytes(rows, columns):
    return pd.DataFrame(rows, columns=columns).to_csv(index=False).encode("utf-8")


def xlsx_bytes(sheets):
    """sheets: {sheet_name: DataFrame}; the first entry is the first sheet."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()


@pytest.fixture
def engine(tmp_path):
    eng = get_engine(f"sqlite:///{tmp_path / 'registry.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def count_rows(engine):
    def _count(table):
        with engine.begin() as conn:
            return conn.execute(sa_text(f"SELECT COUNT(*) FROM {table}")).scalar()
    return _count
