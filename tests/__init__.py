#!/usr/bin/env python3
"""
Test suite for Campus Match.

    # Run all tests
    python -m pytest tests/ -v

    # Skip tests that need a database
    python -m pytest tests/ -v -m "not db"

Database tests create a throwaway SQLite file per test (see conftest.py),
so no external database is required. Redis and the AI provider are always
mocked.
"""
