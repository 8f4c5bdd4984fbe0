"""
==============================================================================
Database Initialization Module
==============================================================================

Database initialization and setup utilities.

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Verify the tables can be queried
3. Verify the connection

Usage:
------
    from barcode_scanner.db import init_db, DatabaseInitializer

    init_db()

    initializer = DatabaseInitializer()
    initializer.create_tables()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from barcode_scanner.config import get_settings
from barcode_scanner.db.database import DatabaseManager
from barcode_scanner.db.models import BarcodeEntry, SavedProduct


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Attributes:
        _db_manager: DatabaseManager instance
        _settings: Application settings
        _session: Optional externally owned session

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        self._db_manager = db_manager or DatabaseManager()
        self._settings = get_settings()
        self._session = session

    def _get_session(self) -> Session:
        """Get the external session or create a new one."""
        if self._session is not None:
            return self._session
        return self._db_manager.get_session()

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """Create all database tables from ORM models (idempotent)."""
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def verify_tables(self) -> bool:
        """
        Verify that all required tables exist.

        Returns:
            True if all tables exist, False otherwise
        """
        session = self._get_session()
        try:
            session.query(SavedProduct).first()
            session.query(BarcodeEntry).first()
            logger.debug("Database tables verified successfully")
            return True
        except Exception as e:
            logger.error(f"Table verification failed: {e}")
            return False
        finally:
            if self._session is None:
                session.close()

    # =========================================================================
    # INITIALIZATION METHODS
    # =========================================================================

    def initialize(self) -> None:
        """Create tables and verify the connection."""
        logger.info("Initializing database...")

        self.create_tables()

        if not self.verify_tables():
            logger.warning("⚠️ Database tables could not be queried")

        if self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")

    def reset(self) -> None:
        """
        Drop and recreate all tables.

        WARNING: This deletes all data. Refused in production.
        """
        if self._settings.is_production:
            logger.error("Cannot reset database in production!")
            raise RuntimeError("Database reset not allowed in production")

        logger.warning("RESETTING DATABASE - ALL DATA WILL BE LOST")
        self._db_manager.drop_tables()
        self._db_manager.create_tables()

    def get_stats(self) -> dict:
        """Row counts per table."""
        session = self._get_session()
        try:
            return {
                "products": session.query(SavedProduct).count(),
                "barcode_entries": session.query(BarcodeEntry).count(),
            }
        finally:
            if self._session is None:
                session.close()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> None:
    """Initialize the database at application startup."""
    DatabaseInitializer().initialize()


def reset_db() -> None:
    """Reset the database. Development only."""
    DatabaseInitializer().reset()
