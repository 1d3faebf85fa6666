#!/usr/bin/env python3
"""
Script to create all database tables for the configured DATABASE_URL
"""
from app.database.session import Database
from app.core.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def create_tables(database: Database = None):
    """Initialize the database and create all tables."""
    owns_database = database is None
    database = database or Database()
    try:
        database.create_all()
        logger.info("Database initialization completed")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise
    finally:
        if owns_database:
            database.dispose()


if __name__ == "__main__":
    setup_logging()
    create_tables()
