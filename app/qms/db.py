from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def _engine_options(db_url: str) -> dict[str, object]:
    options: dict[str, object] = {"future": True, "pool_pre_ping": True}
    if db_url.startswith("postgres"):
        options.update(pool_recycle=1800, pool_size=5, max_overflow=10, pool_timeout=30)
    elif db_url.startswith("sqlite"):
        # write-through runs on whichever request thread mutated the repository
        options["connect_args"] = {"check_same_thread": False}
    return options


def init_db(app: Flask) -> None:
    """Engine and sessionmaker for the SQL record store, kept in app.extensions."""
    engine = create_engine(app.config["DATABASE_URL"], **_engine_options(app.config["DATABASE_URL"]))
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )
    app.logger.debug("Record database bound to %s", engine.url.render_as_string(hide_password=True))


@contextmanager
def session_scope(sm: sessionmaker) -> Generator[Session, None, None]:
    """
    Yields a session and commits/rolls back. Used by the SQL record store and scripts.
    """
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
