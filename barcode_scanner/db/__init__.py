"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy infrastructure and ORM models for the product/history service.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SavedProduct, BarcodeEntry
└── init_db.py    - DatabaseInitializer for setup

Usage:
------
    from barcode_scanner.db import DatabaseManager, BarcodeEntry, init_db

    init_db()
    session = DatabaseManager().get_session()
    entries = session.query(BarcodeEntry).all()

==============================================================================
"""

from .database import DatabaseManager, Base, get_db, get_database_manager
from .models import SavedProduct, BarcodeEntry
from .init_db import DatabaseInitializer, init_db, reset_db

__all__ = [
    "DatabaseManager",
    "Base",
    "get_db",
    "get_database_manager",
    "SavedProduct",
    "BarcodeEntry",
    "DatabaseInitializer",
    "init_db",
    "reset_db",
]
