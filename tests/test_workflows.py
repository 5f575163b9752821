"""Tests for the fetch and pull workflows (workflows)."""

import logging
import threading
from unittest.mock import MagicMock, patch

import pytest

from client_state import ClientState, StatusMessage
from errors import HttpStatusError, NetworkError, ValidationError
from gateway import LocalModel, ModelRegistryGateway
from workflows import ModelManagerClient, validate_target

GEMMA = LocalModel("gemma:2b", "d1", 1000000000, "2024-01-01T00:00:00Z")
LLAMA = LocalModel("llama3:8b", "d2", 4700000000, "2024-02-01T00:00:00Z")


@pytest.fixture
def gateway():
    gw = MagicMock(spec=ModelRegistryGateway)
    gw.list_models.return_value = []
    return gw


@pytest.fixture
def client(gateway):
    return ModelManagerClient(gateway, ClientState())


def _record_busy(state):
    seen = []
    state.subscribe(lambda s: seen.append((s.busy, s.pulling_target, s.status)))
    return seen


# ---------------------------------------------------------------------------
# Fetch-Local-Models
# ---------------------------------------------------------------------------


class TestFetchLocalModels:

    def test_replaces_models_in_order_and_clears_status(self, client, gateway):
        gateway.list_models.return_value = [LLAMA, GEMMA]
        client.fetch_local_models()
        assert client.state.models == (LLAMA, GEMMA)
        assert not client.state.status
        assert client.state.busy is False

    def test_announces_fetch_while_busy(self, client, gateway):
        seen = _record_busy(client.state)
        client.fetch_local_models()
        assert seen[0] == (True, "", StatusMessage.info("Fetching local models..."))
        assert seen[-1][0] is False

    def test_failure_keeps_last_known_models(self, client, gateway):
        client.state.update(models=[GEMMA])
        gateway.list_models.side_effect = NetworkError("refused")
        client.fetch_local_models()
        assert client.state.models == (GEMMA,)
        assert client.state.status == StatusMessage.error("Could not connect to the backend.")
        assert client.state.busy is False

    def test_http_error_is_reported(self, client, gateway):
        gateway.list_models.side_effect = HttpStatusError(503)
        client.fetch_local_models()
        assert client.state.status.kind == "error"

    def test_unexpected_error_still_clears_busy(self, client, gateway):
        gateway.list_models.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            client.fetch_local_models()
        assert client.state.busy is False

    def test_idempotent(self, client, gateway):
        gateway.list_models.return_value = [GEMMA, LLAMA]
        client.fetch_local_models()
        first = client.state.models
        client.fetch_local_models()
        assert client.state.models == first

    def test_refresh_inside_pull_keeps_message(self, client, gateway):
        client.state.update(status=StatusMessage.success("done"))
        gateway.list_models.return_value = [GEMMA]
        client._refresh_models(clear_status=False)
        assert client.state.status == StatusMessage.success("done")
        assert client.state.models == (GEMMA,)


# ---------------------------------------------------------------------------
# Pull-Model
# ---------------------------------------------------------------------------


class TestPullModel:

    @pytest.mark.parametrize("target", ["", "   ", None])
    def test_blank_target_never_calls_gateway(self, client, gateway, target):
        client.pull_model(target)
        gateway.pull_model.assert_not_called()
        gateway.list_models.assert_not_called()
        assert client.state.status.kind == "error"
        assert "please enter or select" in client.state.status.text.lower()
        assert client.state.busy is False

    def test_success_refreshes_and_clears_pending(self, client, gateway):
        client.set_pending_name("gemma:2b")
        gateway.list_models.return_value = [GEMMA]
        client.pull_model("gemma:2b")

        gateway.pull_model.assert_called_once_with("gemma:2b")
        assert client.state.status == StatusMessage.success("Model 'gemma:2b' has been pulled.")
        assert client.state.models == (GEMMA,)
        assert client.state.pending_name == ""
        assert client.state.busy is False
        assert client.state.pulling_target == ""

    def test_success_keeps_unrelated_pending_name(self, client, gateway):
        client.set_pending_name("mistral:7b")
        client.pull_model("gemma:2b")
        assert client.state.pending_name == "mistral:7b"

    def test_pull_marks_target_while_running(self, client, gateway):
        seen = []
        gateway.pull_model.side_effect = lambda name: seen.append(
            (client.state.busy, client.state.pulling_target, client.state.status)
        )
        client.pull_model("gemma:2b")
        assert seen == [(
            True,
            "gemma:2b",
            StatusMessage.info("Pulling model: gemma:2b... (This can take a while)"),
        )]

    def test_http_500_reports_status_and_skips_refresh(self, client, gateway):
        client.state.update(models=[LLAMA])
        gateway.pull_model.side_effect = HttpStatusError(500)
        client.pull_model("gemma:2b")

        assert client.state.status.kind == "error"
        assert "500" in client.state.status.text
        assert client.state.models == (LLAMA,)
        gateway.list_models.assert_not_called()
        assert client.state.busy is False
        assert client.state.pulling_target == ""

    def test_network_error_reports_detail(self, client, gateway):
        gateway.pull_model.side_effect = NetworkError("Network error pulling gemma:2b: refused")
        client.pull_model("gemma:2b")
        assert client.state.status == StatusMessage.error("Network error pulling gemma:2b: refused")

    def test_refresh_failure_after_pull_reports_error(self, client, gateway):
        gateway.list_models.side_effect = NetworkError("refused")
        client.pull_model("gemma:2b")
        assert client.state.status == StatusMessage.error("Could not connect to the backend.")
        assert client.state.busy is False

    def test_target_is_trimmed(self, client, gateway):
        client.pull_model("  gemma:2b ")
        gateway.pull_model.assert_called_once_with("gemma:2b")

    def test_busy_whenever_target_set(self, client, gateway):
        seen = _record_busy(client.state)
        gateway.list_models.return_value = [GEMMA]
        client.pull_model("gemma:2b")
        assert all(busy for busy, target, _ in seen if target)


class TestValidateTarget:

    def test_strips(self):
        assert validate_target(" phi3:mini ") == "phi3:mini"

    def test_blank_raises(self):
        with pytest.raises(ValidationError):
            validate_target(" ")


# ---------------------------------------------------------------------------
# Background execution
# ---------------------------------------------------------------------------


class TestBackgroundExecution:

    def test_submit_before_start_raises(self, client):
        with pytest.raises(RuntimeError):
            client.submit_fetch()

    def test_start_runs_initial_fetch(self, client, gateway):
        gateway.list_models.return_value = [GEMMA]
        try:
            client.start().result(timeout=5)
        finally:
            client.shutdown()
        assert client.state.models == (GEMMA,)

    def test_submit_pull_returns_future(self, client, gateway):
        gateway.list_models.return_value = [GEMMA]
        client.start().result(timeout=5)
        try:
            future = client.submit_pull("gemma:2b")
            assert future.result(timeout=5) is None
        finally:
            client.shutdown()
        assert client.state.status.kind == "success"

    def test_shutdown_is_idempotent(self, client):
        client.start().result(timeout=5)
        client.shutdown()
        client.shutdown()


# ---------------------------------------------------------------------------
# Malformed backend responses
# ---------------------------------------------------------------------------


class TestMalformedModelList:

    @pytest.fixture
    def real_client(self):
        gw = ModelRegistryGateway("http://backend.test/modelmanager/api")
        return ModelManagerClient(gw, ClientState())

    @staticmethod
    def _list_response(payload):
        resp = MagicMock()
        resp.ok = True
        resp.json.return_value = payload
        return resp

    def test_fetch_reports_error(self, real_client):
        real_client.state.update(models=[GEMMA])
        resp = self._list_response({"models": [{"name": "x", "size": "unknown"}]})
        with patch("gateway.requests.get", return_value=resp):
            real_client.fetch_local_models()
        assert real_client.state.status.kind == "error"
        assert real_client.state.models == (GEMMA,)
        assert real_client.state.busy is False

    def test_pull_followed_by_malformed_list_reports_error(self, real_client):
        pull_resp = MagicMock()
        pull_resp.ok = True
        pull_resp.__enter__.return_value = pull_resp
        pull_resp.__exit__.return_value = False
        pull_resp.iter_content.return_value = iter([b'{"status":"success"}\n'])
        list_resp = self._list_response({"models": "gemma:2b"})
        with patch("gateway.requests.post", return_value=pull_resp), \
                patch("gateway.requests.get", return_value=list_resp):
            real_client.pull_model("gemma:2b")
        assert real_client.state.status == StatusMessage.error("Could not connect to the backend.")
        assert real_client.state.busy is False
        assert real_client.state.pulling_target == ""


# ---------------------------------------------------------------------------
# Busy reservation and unexpected failures on the worker
# ---------------------------------------------------------------------------


class TestWorkerGuards:

    def test_try_submit_claims_busy_before_running(self, client, gateway):
        started = threading.Event()
        release = threading.Event()

        def slow_pull(name):
            started.set()
            release.wait(timeout=5)

        gateway.pull_model.side_effect = slow_pull
        client.start().result(timeout=5)
        try:
            assert client.try_submit_pull("gemma:2b") is not None
            assert client.is_busy()
            assert client.try_submit_pull("phi3:mini") is None
            assert client.try_submit_fetch() is None
            assert started.wait(timeout=5)
        finally:
            release.set()
            client.shutdown()
        gateway.pull_model.assert_called_once_with("gemma:2b")
        assert client.is_busy() is False

    def test_try_submit_blank_pull_releases_busy(self, client, gateway):
        client.start().result(timeout=5)
        try:
            client.try_submit_pull("  ")
        finally:
            client.shutdown()
        assert client.is_busy() is False
        assert client.state.status.kind == "error"

    def test_try_submit_without_worker_releases_busy(self, client):
        with pytest.raises(RuntimeError):
            client.try_submit_fetch()
        assert client.is_busy() is False

    def test_unexpected_error_is_logged_and_reported(self, client, gateway, caplog):
        client.start().result(timeout=5)
        gateway.list_models.side_effect = RuntimeError("bug")
        try:
            with caplog.at_level(logging.ERROR, logger="workflows"):
                client.submit_pull("gemma:2b")
                client.shutdown()
        finally:
            client.shutdown()
        assert client.state.status == StatusMessage.error("Unexpected error: bug")
        assert client.state.busy is False
        assert client.state.pulling_target == ""
        assert any("Unexpected error in background task" in r.getMessage() for r in caplog.records)
