"""
Pytest configuration and fixtures for backend tests.
"""

import os
import tempfile

# Keep tests off the file log sink and the rate limiter
os.environ["LOG_FILE"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from main import app
from betternotes.api.endpoints.latex import get_compiler_service
from betternotes.core.rate_limit import limiter
from betternotes.services.latex import InvocationPlan, LatexCompilerService

from .factories import FakeRunner


@pytest.fixture(autouse=True)
def disable_rate_limit():
    limiter.enabled = False
    yield


@pytest.fixture
def temp_root(tmp_path, monkeypatch):
    """Point tempfile at a private directory so workspace creation/removal is observable."""
    root = tmp_path / "tmp-root"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner(["pdf"])


def make_service(
    runner: FakeRunner,
    plan: InvocationPlan = InvocationPlan.TWO_PASS_FALLBACK,
    **kwargs,
) -> LatexCompilerService:
    kwargs.setdefault("timeout_seconds", 5.0)
    kwargs.setdefault("max_buffer_bytes", 1024 * 1024)
    kwargs.setdefault("max_log_chars", 60000)
    kwargs.setdefault("stop_after_first_failure", True)
    kwargs.setdefault("apply_fallbacks", True)
    kwargs.setdefault("exists", lambda name: name in {"latexmk", "pdflatex"})
    return LatexCompilerService(runner=runner, plan=plan, **kwargs)


@pytest.fixture
def compiler_service(fake_runner: FakeRunner) -> LatexCompilerService:
    return make_service(fake_runner)


@pytest.fixture(scope="function")
def client(compiler_service: LatexCompilerService, temp_root) -> TestClient:
    """Create a test client backed by the scripted compiler service."""
    app.dependency_overrides[get_compiler_service] = lambda: compiler_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
