# tests/conftest.py
import os

# The app picks its store at import time; tests never touch the dev database.
os.environ.setdefault("ENTRY_STORE", "memory")
