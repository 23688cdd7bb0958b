"""Shared pytest configuration.

Settings are read from the environment at import time, so the environment is
pointed at a throwaway directory and a SQLite database before any
``autotrader`` module is imported by the test modules.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="autotrader-tests-")

os.environ.setdefault("APP_DIR", _TMP_DIR)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'vehicles.db')}")
os.environ.setdefault("LOG_LEVEL", "WARNING")
