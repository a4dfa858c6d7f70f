"""
asgi.py -- ASGI entry point for DragonFruit.

Kept separate from api/main.py so process managers have one stable import
path regardless of how the api/ package is organised internally.

Run with:  uvicorn asgi:app --reload
           JWT_SECRET=... uvicorn asgi:app --host 0.0.0.0 --port 8000
"""

from api.main import app

__all__ = ["app"]
