"""SQLAlchemy-backed storage for Record tables."""
