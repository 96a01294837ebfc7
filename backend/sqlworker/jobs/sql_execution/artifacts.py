import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient

from .errors import ArtifactFetchError, ArtifactParseError
from .types import StatementSpec

logger = logging.getLogger(__name__)


class BaseObjectStore(ABC):
    @abstractmethod
    def get_bytes(self, key: str) -> bytes:
        """
        Return the raw object stored under key. Raise ArtifactFetchError for anything
        that stops the bytes coming back (missing key, access denied, transport).
        """
        raise NotImplementedError


class AzureBlobObjectStore(BaseObjectStore):
    def __init__(self, service_client: BlobServiceClient, container: str):
        self.service_client = service_client
        self.container = container

    @classmethod
    def from_connection_string(cls, connection_string: str, container: str) -> "AzureBlobObjectStore":
        return cls(BlobServiceClient.from_connection_string(connection_string), container)

    def get_bytes(self, key: str) -> bytes:
        try:
            blob_client = self.service_client.get_blob_client(container=self.container, blob=key)
            data = blob_client.download_blob().readall()
        except AzureError as e:
            raise ArtifactFetchError(
                f"Failed to download blob '{key}' from container '{self.container}': {e}"
            ) from e

        logger.info("Downloaded blob '%s' from container '%s' (%.1f KB)", key, self.container, len(data) / 1024)
        return data


def to_statement_spec(item: Any, position: int) -> StatementSpec:
    """
    Normalise one artifact element. position is 1-indexed and drives the
    statement_<k> / result_<k> fallbacks.
    """
    default_id = f"statement_{position}"
    default_result = f"result_{position}"

    if isinstance(item, str):
        if not item.strip():
            raise ArtifactParseError(f"Element {position} is an empty statement")
        return StatementSpec(id=default_id, text=item, result_name=default_result)

    if isinstance(item, dict):
        query = item.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ArtifactParseError(f"Element {position} is missing a 'query' string")
        item_id = item.get("id")
        result_name = item.get("variableName")
        return StatementSpec(
            id=str(item_id) if item_id not in (None, "") else default_id,
            text=query,
            result_name=str(result_name) if result_name not in (None, "") else default_result,
        )

    raise ArtifactParseError(
        f"Element {position} must be a string or an object, got {type(item).__name__}"
    )


def parse_artifact(raw: bytes) -> list[StatementSpec]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ArtifactParseError(f"Artifact is not valid UTF-8: {e}") from e

    try:
        items = json.loads(text)
    except ValueError as e:
        raise ArtifactParseError(f"Artifact is not valid JSON: {e}") from e

    if not isinstance(items, list):
        raise ArtifactParseError(f"Artifact must be a JSON list, got {type(items).__name__}")

    return [to_statement_spec(item, idx) for idx, item in enumerate(items, start=1)]


class ArtifactLoader:
    def __init__(self, store: BaseObjectStore):
        self.store = store

    def load(self, artifact_key: str) -> list[StatementSpec]:
        raw = self.store.get_bytes(artifact_key)
        specs = parse_artifact(raw)
        logger.info("Successfully loaded %d statements from %s", len(specs), artifact_key)
        return specs
