"""Unit tests for the execution endpoint."""

from unittest.mock import AsyncMock

import pytest

from api.services.executor_service import get_executor_service, render_outcome
from sandbox.models import (
    Completed,
    ExecutionResult,
    InternalError,
    Overloaded,
    Rejected,
    TimedOut,
)


class TestExecuteEndpoint:
    """Tests for POST /execute endpoint."""

    def test_execute_hello_world(self, authenticated_client):
        """The canonical request returns output, empty stderr and exit code 0."""
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "print('Hello from the runner!')"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["stdout"] == "Hello from the runner!\n"
        assert data["stderr"] == ""
        assert data["exitCode"] == 0
        assert data["signal"] is None
        assert data["truncated"] is False
        assert data["timedOut"] is False
        assert data["durationMs"] > 0

    def test_execute_runtime_error(self, authenticated_client):
        """A crashing program is a completed execution with a non-zero exit code."""
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "x = 1 / 0"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["exitCode"] == 1
        assert "ZeroDivisionError" in data["stderr"]

    def test_execute_syntax_error(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "def foo(:"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["exitCode"] == 1
        assert "SyntaxError" in data["stderr"]

    def test_execute_timeout(self, authenticated_client):
        """The server deadline (3s in tests) applies."""
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "while True: pass"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["timedOut"] is True
        assert data["exitCode"] is None
        assert data["stdout"] == ""

    def test_caller_cannot_extend_timeout(self, authenticated_client):
        """Extra fields such as a timeout are ignored."""
        response = authenticated_client.post(
            "/execute",
            json={
                "language": "python",
                "code": "import time; time.sleep(30)",
                "timeout_seconds": 60,
                "timeout": 60,
            },
        )
        assert response.status_code == 200
        assert response.json()["timedOut"] is True

    def test_execute_truncates_large_output(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "print('z' * 100000)"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["truncated"] is True
        assert len(data["stdout"]) == 4096

    def test_function_definition_and_call(self, authenticated_client):
        code = """
def factorial(n):
    if n <= 1:
        return 1
    return n * factorial(n - 1)

print(factorial(5))
"""
        response = authenticated_client.post(
            "/execute", json={"language": "python", "code": code}
        )
        assert response.status_code == 200
        assert response.json()["stdout"] == "120\n"

    def test_execute_unauthenticated_returns_401(self, client):
        response = client.post(
            "/execute",
            json={"language": "python", "code": 'print("hello")'},
        )
        assert response.status_code == 401


class TestExecuteValidation:
    """Tests for request validation."""

    def test_empty_code_rejected(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": ""},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Code must not be empty"}

    def test_unsupported_language_rejected(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            json={"language": "cobol", "code": "DISPLAY 'HI'."},
        )
        assert response.status_code == 400
        assert "Unsupported language 'cobol'" in response.json()["error"]

    def test_oversized_code_rejected(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            json={"language": "python", "code": "#" * 10241},
        )
        assert response.status_code == 400
        assert "exceeds maximum size" in response.json()["error"]

    def test_lone_surrogate_rejected(self, authenticated_client):
        """A JSON string escape that is not valid Unicode text is a caller error."""
        response = authenticated_client.post(
            "/execute",
            content=b'{"language": "python", "code": "print(\'\\ud800\')"}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Code must be valid UTF-8 text"}

    def test_missing_code_rejected(self, authenticated_client):
        response = authenticated_client.post("/execute", json={"language": "python"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("code:")

    def test_missing_language_rejected(self, authenticated_client):
        response = authenticated_client.post("/execute", json={"code": "print(1)"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("language:")

    def test_non_string_code_rejected(self, authenticated_client):
        response = authenticated_client.post(
            "/execute", json={"language": "python", "code": 42}
        )
        assert response.status_code == 400

    def test_malformed_json_rejected(self, authenticated_client):
        response = authenticated_client.post(
            "/execute",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert "error" in response.json()


class TestOutcomeStatusCodes:
    """Each outcome maps to a fixed HTTP status."""

    @pytest.fixture
    def stub_executor(self):
        from api.main import app

        executor = AsyncMock()
        app.dependency_overrides[get_executor_service] = lambda: executor
        yield executor
        app.dependency_overrides.pop(get_executor_service, None)

    def test_overloaded_returns_429(self, authenticated_client, stub_executor):
        stub_executor.execute.return_value = Overloaded()
        response = authenticated_client.post(
            "/execute", json={"language": "python", "code": "print(1)"}
        )
        assert response.status_code == 429
        assert response.json() == {"error": "overloaded"}

    def test_internal_error_returns_500(self, authenticated_client, stub_executor):
        stub_executor.execute.return_value = InternalError(reason="Could not create workspace")
        response = authenticated_client.post(
            "/execute", json={"language": "python", "code": "print(1)"}
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Could not create workspace"}


class TestRenderOutcome:
    """Tests for outcome serialization."""

    def test_completed(self):
        status_code, body = render_outcome(
            Completed(result=ExecutionResult(stdout="a", stderr="b", exit_code=2, duration_ms=1.5))
        )
        assert status_code == 200
        assert body.model_dump(by_alias=True) == {
            "stdout": "a",
            "stderr": "b",
            "exitCode": 2,
            "signal": None,
            "timedOut": False,
            "truncated": False,
            "durationMs": 1.5,
        }

    def test_signal_is_reported_by_name(self):
        _, body = render_outcome(Completed(result=ExecutionResult(signal=9)))
        assert body.signal == "SIGKILL"
        assert body.exit_code is None

    def test_timed_out(self):
        status_code, body = render_outcome(
            TimedOut(result=ExecutionResult(stdout="partial", truncated=True))
        )
        assert status_code == 200
        assert body.timed_out is True
        assert body.truncated is True
        assert body.stdout == "partial"

    def test_rejected(self):
        status_code, body = render_outcome(Rejected(reason="bad"))
        assert status_code == 400
        assert body.model_dump() == {"error": "bad"}

    def test_unknown_outcome_raises(self):
        with pytest.raises(TypeError):
            render_outcome(object())


class TestLanguagesEndpoint:
    """Tests for GET /languages."""

    def test_lists_python(self, authenticated_client):
        response = authenticated_client.get("/languages")
        assert response.status_code == 200
        assert response.json() == {"languages": ["python"]}
