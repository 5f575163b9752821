"""
HTTP client for the Model Registry Gateway
"""
import logging
from dataclasses import dataclass, asdict
from typing import List, Dict, Optional

import requests

from config import GATEWAY_BASE_URL, GATEWAY_TIMEOUT
from errors import NetworkError, HttpStatusError

logger = logging.getLogger(__name__)

# Pull responses are drained without being interpreted
PULL_CHUNK_SIZE = 8192


@dataclass(frozen=True)
class LocalModel:
    """A model already present in the backend's storage"""
    name: str
    digest: str
    size: int
    modified_at: str

    @classmethod
    def from_dict(cls, data: Dict) -> 'LocalModel':
        return cls(
            name=data.get('name', ''),
            digest=data.get('digest', ''),
            size=int(data.get('size') or 0),
            modified_at=data.get('modified_at', ''),
        )

    def to_dict(self) -> Dict:
        return asdict(self)


class ModelRegistryGateway:
    """Issues list and pull requests against the backend API"""

    def __init__(self, base_url: str = GATEWAY_BASE_URL, timeout: Optional[float] = GATEWAY_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint}"

    def list_models(self) -> List[LocalModel]:
        """
        Fetch the locally available models.

        Returns:
            Models in the order the backend returned them; empty when the
            response carries no 'models' field.

        Raises:
            NetworkError: transport failure, undecodable or malformed body
            HttpStatusError: non-2xx response
        """
        url = self._url('models')
        logger.debug(f"[GATEWAY] GET {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error contacting {url}: {e}") from e

        if not response.ok:
            raise HttpStatusError(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}") from e

        try:
            entries = (data or {}).get('models') or []
            if not isinstance(entries, list):
                raise TypeError(f"'models' is a {type(entries).__name__}, not a list")
            models = [LocalModel.from_dict(entry) for entry in entries]
        except (AttributeError, TypeError, ValueError) as e:
            raise NetworkError(f"Malformed model list from {url}: {e}") from e
        logger.info(f"[GATEWAY] Got {len(models)} models from {url}")
        return models

    def pull_model(self, name: str) -> None:
        """
        Ask the backend to download a model and wait for the stream to end.

        Progress records in the streamed body are read and discarded; the
        call returns only once the transport signals end-of-stream.

        Raises:
            NetworkError: transport failure, including mid-stream
            HttpStatusError: non-2xx response
        """
        url = self._url('models/pull')
        logger.info(f"[GATEWAY] POST {url} for model: {name}")
        try:
            with requests.post(url, json={'name': name}, stream=True, timeout=self.timeout) as response:
                if not response.ok:
                    raise HttpStatusError(response.status_code)
                for _ in response.iter_content(chunk_size=PULL_CHUNK_SIZE):
                    pass
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error pulling {name}: {e}") from e
        logger.info(f"[GATEWAY] Pull stream finished for model: {name}")
