from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from . import config


class GenerationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Generation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    template: str
    output_path: Optional[str] = None
    status: GenerationStatus
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)


def list_generations(limit: int = 20) -> List[Generation]:
    try:
        with get_session() as session:
            statement = select(Generation).order_by(Generation.id.desc()).limit(limit)
            return list(session.exec(statement))
    except SQLAlchemyError:
        # no ledger yet in this output directory
        return []
