"""Pytest bootstrap configuration.

Ensure environment variables are set before test collection and module
imports that depend on application settings.
"""
import os

# In-memory database so importing the app never needs a running server
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRIPE__KEY_TEST_SECRET", "sk_test_123")
os.environ.setdefault("STRIPE__KEY_TEST_PUBLIC", "pk_test_123")
