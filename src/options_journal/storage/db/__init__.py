"""Relational persistence (SQLAlchemy async ORM, SQLite or PostgreSQL)."""
