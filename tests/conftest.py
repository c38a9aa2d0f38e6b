"""Pytest configuration and fixtures.

This module sets up test environment variables BEFORE any application
modules are imported, ensuring Settings picks them up.
"""

import os
import sys

# Set test environment variables before any imports that might trigger Settings
# This runs at pytest collection time, before test modules are imported
os.environ.setdefault("APP_NAME", "code-runner-test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("HOST", "127.0.0.1")
os.environ.setdefault("PORT", "8000")
os.environ.setdefault("CORS_ORIGINS", '["http://localhost:3000"]')
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("EXECUTION_TIMEOUT_SECONDS", "3")
os.environ.setdefault("MAX_CODE_BYTES", "10240")
os.environ.setdefault("MAX_OUTPUT_BYTES", "4096")
os.environ.setdefault("MAX_CONCURRENT_EXECUTIONS", "4")
os.environ.setdefault("MAX_PROCESSES", "100000")
os.environ.setdefault("INTERPRETER_PATH", sys.executable)

import pytest
from fastapi.testclient import TestClient

TEST_API_KEY = os.environ["API_KEY"]


@pytest.fixture(autouse=True)
def fresh_executor_service():
    """Give every test its own executor service (and concurrency limiter)."""
    from api.services.executor_service import reset_executor_service

    reset_executor_service()
    yield
    reset_executor_service()


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    # Import here to ensure env vars are set first
    from api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authenticated_client():
    """Create a test client that sends the shared bearer token."""
    from api.main import app

    with TestClient(app, headers={"Authorization": f"Bearer {TEST_API_KEY}"}) as test_client:
        yield test_client


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings with test-friendly limits, overridable per test."""
    from common.config import Settings

    def _make(**overrides):
        values = {
            "execution_timeout_seconds": 3,
            "max_output_bytes": 4096,
            "max_code_bytes": 10240,
            "max_concurrent_executions": 4,
            "max_processes": 100000,
            "interpreter_path": sys.executable,
            "workspace_root": str(tmp_path / "workspaces"),
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make

