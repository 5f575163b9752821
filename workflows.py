"""
Fetch and pull workflows driving the client state
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from client_state import ClientState, StatusMessage, EMPTY_STATUS
from errors import GatewayError, ValidationError
from gateway import ModelRegistryGateway

logger = logging.getLogger(__name__)

FETCH_MESSAGE = "Fetching local models..."
FETCH_FAILED_MESSAGE = "Could not connect to the backend."
EMPTY_TARGET_MESSAGE = "Please enter or select a model name."


def validate_target(target: str) -> str:
    """Return the trimmed model name or raise ValidationError if blank"""
    target = (target or '').strip()
    if not target:
        raise ValidationError(EMPTY_TARGET_MESSAGE)
    return target


class ModelManagerClient:
    """
    Runs the two network workflows against a ClientState.

    Gateway and validation errors end up in state.status. The submit_*
    methods run a workflow on a single background worker and hand back its
    Future; anything a workflow fails to handle is logged and reported in
    state.status when that Future completes.
    """

    def __init__(self, gateway: ModelRegistryGateway, state: ClientState = None):
        self.gateway = gateway
        self.state = state or ClientState()
        self._executor = None

    # Workflows

    def fetch_local_models(self):
        """Replace state.models with the gateway's list"""
        self.state.update(status=StatusMessage.info(FETCH_MESSAGE), busy=True)
        try:
            self._refresh_models(clear_status=True)
        finally:
            self.state.update(busy=False)

    def _refresh_models(self, clear_status: bool):
        """
        Load the model list into the state; last-known-good on failure.

        Callers own the busy flag. A pull refreshes with clear_status off so
        its result message survives the follow-up refresh.
        """
        try:
            models = self.gateway.list_models()
        except GatewayError as e:
            logger.error(f"[FETCH] Failed to fetch local models: {e}")
            self.state.update(status=StatusMessage.error(FETCH_FAILED_MESSAGE))
        else:
            if clear_status:
                self.state.update(models=models, status=EMPTY_STATUS)
            else:
                self.state.update(models=models)

    def pull_model(self, target: str):
        """Pull a model by name, then resynchronise the local list"""
        try:
            target = validate_target(target)
        except ValidationError as e:
            logger.warning(f"[PULL] Rejected pull request: {e}")
            self.state.update(status=StatusMessage.error(str(e)), busy=False)
            return

        self.state.update(
            status=StatusMessage.info(f"Pulling model: {target}... (This can take a while)"),
            busy=True,
            pulling_target=target,
        )
        try:
            logger.info(f"[PULL] Starting pull for model: {target}")
            self.gateway.pull_model(target)
        except GatewayError as e:
            logger.error(f"[PULL] Failed to pull model {target}: {e}")
            self.state.update(status=StatusMessage.error(str(e)))
        else:
            logger.info(f"[PULL] Successfully pulled model: {target}")
            changes = {'status': StatusMessage.success(f"Model '{target}' has been pulled.")}
            if self.state.pending_name.strip() == target:
                changes['pending_name'] = ''
            self.state.update(**changes)
            self._refresh_models(clear_status=False)
        finally:
            self.state.update(busy=False, pulling_target='')

    def set_pending_name(self, text: str):
        self.state.update(pending_name=text or '')

    def is_busy(self) -> bool:
        return self.state.busy

    # Background execution

    def start(self) -> Future:
        """Create the worker and run the initial fetch"""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='model-manager')
        return self.submit_fetch()

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            logger.info("Shutting down model manager worker")
            self._executor.shutdown(wait=wait)
            self._executor = None

    def submit_fetch(self) -> Future:
        return self._submit(self.fetch_local_models)

    def submit_pull(self, target: str) -> Future:
        return self._submit(self.pull_model, target)

    def try_submit_fetch(self) -> Optional[Future]:
        """Queue a refresh unless an operation is in progress; None if busy"""
        return self._try_submit(self.fetch_local_models)

    def try_submit_pull(self, target: str) -> Optional[Future]:
        """Queue a pull unless an operation is in progress; None if busy"""
        return self._try_submit(self.pull_model, target)

    def _try_submit(self, fn, *args) -> Optional[Future]:
        # busy is claimed here, before the worker picks the job up
        if not self.state.acquire_busy():
            return None
        try:
            return self._submit(fn, *args)
        except Exception:
            self.state.update(busy=False)
            raise

    def _submit(self, fn, *args) -> Future:
        if self._executor is None:
            raise RuntimeError("ModelManagerClient.start() has not been called")
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._report_failure)
        return future

    def _report_failure(self, future: Future):
        """Last resort for errors the workflows did not handle"""
        if future.cancelled() or future.exception() is None:
            return
        e = future.exception()
        logger.error(f"[WORKER] Unexpected error in background task: {e!r}")
        self.state.update(
            status=StatusMessage.error(f"Unexpected error: {e}"),
            busy=False,
            pulling_target='',
        )
