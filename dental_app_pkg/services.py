# dental_app_pkg/services.py
# Internal helpers shared by the store adapters of the different blueprints.

from contextlib import contextmanager
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from . import db
from .errors import FetchError, TransitionError


@contextmanager
def store_read(what):
    """Wraps a read against the database; failures surface as FetchError."""
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"[Store] Read failed while loading {what}: {e}")
        raise FetchError(f"Failed to load {what}") from e


@contextmanager
def store_write(what):
    """Wraps a write; the session is rolled back and the failure surfaces as TransitionError."""
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[Store] Write failed while trying to {what}: {e}")
        raise TransitionError(f"Failed to {what}") from e
