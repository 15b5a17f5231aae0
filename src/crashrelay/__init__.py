"""
CrashRelay - Crashlytics webhook → Humio ingest relay

A FastAPI-based service that authenticates Crashlytics webhook callbacks,
keeps issue events and forwards each one as a structured Humio event.
"""

__version__ = "0.1.0"

from .main import create_app

__all__ = ["create_app"]
