"""Shared test setup: settings must be in test mode before app modules are imported."""
import os

os.environ.setdefault("APP_ENV", "test")
