"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It seeds the environment before any import that builds settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("MAIL_FROM_ADDRESS", "site@example.com")
os.environ.setdefault("MAIL_TO_ADDRESS", "owner@example.com")
os.environ.setdefault("MAIL_PASSWORD", "test-app-password")
os.environ.setdefault("SERVER_TRUSTED_PROXIES", "127.0.0.1")
