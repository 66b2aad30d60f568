"""HTTP boundary (FastAPI) for the SQL Trainer."""

from sql_trainer.api.app import create_app

__all__ = ["create_app"]
