#!/usr/bin/env python3
"""
Database connection helpers for the listing store
Provides decorators for automatic connection management
"""

import functools
import logging
import sqlite3
from contextlib import asynccontextmanager

import aiosqlite

from ..exceptions import StorageError


logger = logging.getLogger(__name__)


def _casefold(value):
    """SQL casefold(): Unicode-aware lowering for keyword matching."""
    return value.casefold() if isinstance(value, str) else value


@asynccontextmanager
async def aconnect(db_path: str, writer: bool = False):
    """
    Asynchronous database connection context manager.

    Args:
        db_path: Path to SQLite database
        writer: If True, commits changes on exit
    """
    conn = await aiosqlite.connect(db_path)
    try:
        # Enable WAL mode for better concurrency
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.create_function("casefold", 1, _casefold, deterministic=True)

        yield conn

        if writer:
            await conn.commit()
    except Exception:
        if writer:
            await conn.rollback()
        raise
    finally:
        await conn.close()


def with_connection(writer: bool = False):
    """
    Decorator that provides a database connection to the decorated method.

    SQLite failures are logged and re-raised as StorageError.

    Args:
        writer: If True, commits changes after successful execution
    """
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            try:
                async with aconnect(self.db_path, writer=writer) as conn:
                    return await fn(self, conn, *args, **kwargs)
            except sqlite3.Error as e:
                logger.error(f"{fn.__name__} failed: {e}")
                raise StorageError(f"{fn.__name__} failed: {e}") from e
        return wrapper
    return decorator
