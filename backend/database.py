import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mi_agenda.db")

engine = create_engine(DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_landing_page_schema_checked = False
_appointment_schema_checked = False


def ensure_landing_page_schema() -> None:
    global _landing_page_schema_checked

    if _landing_page_schema_checked:
        return

    with _schema_lock:
        if _landing_page_schema_checked:
            return

        inspector = inspect(engine)

        if 'landing_pages' not in inspector.get_table_names():
            _landing_page_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('landing_pages')}
        migration_steps = [
            ('buffer_time', 'ALTER TABLE landing_pages ADD COLUMN buffer_time INTEGER'),
            ('work_start_hour', 'ALTER TABLE landing_pages ADD COLUMN work_start_hour INTEGER'),
            ('work_end_hour', 'ALTER TABLE landing_pages ADD COLUMN work_end_hour INTEGER'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS idx_landing_pages_slug ON landing_pages(slug)')
            )

        _landing_page_schema_checked = True


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('internal_comment', 'ALTER TABLE appointments ADD COLUMN internal_comment VARCHAR'),
            ('public_price', 'ALTER TABLE appointments ADD COLUMN public_price INTEGER'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_user_range ON appointments(user_id, start_time, end_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_user_status ON appointments(user_id, status)')
            )

        _appointment_schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
