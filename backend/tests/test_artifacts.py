from __future__ import annotations

import json
from unittest.mock import Mock

import pytest
from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError

from sqlworker.jobs.sql_execution.artifacts import (
    ArtifactLoader,
    AzureBlobObjectStore,
    BaseObjectStore,
    parse_artifact,
)
from sqlworker.jobs.sql_execution.errors import ArtifactFetchError, ArtifactParseError


class DictStore(BaseObjectStore):
    def __init__(self, objects: dict[str, bytes]):
        self.objects = objects
        self.calls: list[str] = []

    def get_bytes(self, key: str) -> bytes:
        self.calls.append(key)
        if key not in self.objects:
            raise ArtifactFetchError(f"missing {key}")
        return self.objects[key]


def _encode(items) -> bytes:
    return json.dumps(items).encode("utf-8")


def test_bare_strings_and_query_objects_get_positional_fallbacks() -> None:
    specs = parse_artifact(_encode(["SELECT 1", {"query": "SELECT 2"}]))

    assert [(s.id, s.text, s.result_name) for s in specs] == [
        ("statement_1", "SELECT 1", "result_1"),
        ("statement_2", "SELECT 2", "result_2"),
    ]


def test_object_ids_and_variable_names_are_kept() -> None:
    specs = parse_artifact(
        _encode(
            [
                {"id": "q-orders", "query": "SELECT * FROM orders", "variableName": "orders"},
                "SELECT now()",
                {"id": 7, "query": "SELECT 7"},
            ]
        )
    )

    assert specs[0].id == "q-orders"
    assert specs[0].result_name == "orders"
    assert specs[1].id == "statement_2"
    assert specs[1].result_name == "result_2"
    assert specs[2].id == "7"
    assert specs[2].result_name == "result_3"


def test_order_is_preserved() -> None:
    queries = [f"SELECT {i}" for i in range(20)]
    specs = parse_artifact(_encode(queries))
    assert [s.text for s in specs] == queries


def test_empty_list_is_valid() -> None:
    assert parse_artifact(b"[]") == []


@pytest.mark.parametrize(
    "raw",
    [
        b"\xff\xfe\x00not utf8",
        b"{not json",
        b'{"query": "SELECT 1"}',
        b'"SELECT 1"',
        b'[42]',
        b'[{"id": "x"}]',
        b'[{"query": ""}]',
        b'[{"query": ["SELECT 1"]}]',
        b'["   "]',
    ],
)
def test_malformed_artifacts_raise_parse_error(raw: bytes) -> None:
    with pytest.raises(ArtifactParseError):
        parse_artifact(raw)


def test_loader_reads_from_store() -> None:
    store = DictStore({"batches/a.json": _encode(["SELECT 1", "SELECT 2"])})
    specs = ArtifactLoader(store).load("batches/a.json")

    assert store.calls == ["batches/a.json"]
    assert len(specs) == 2


def test_loader_propagates_fetch_error() -> None:
    with pytest.raises(ArtifactFetchError):
        ArtifactLoader(DictStore({})).load("missing.json")


def test_azure_store_downloads_blob() -> None:
    service = Mock()
    service.get_blob_client.return_value.download_blob.return_value.readall.return_value = b'["SELECT 1"]'

    store = AzureBlobObjectStore(service, "artifacts")
    assert store.get_bytes("batches/a.json") == b'["SELECT 1"]'
    service.get_blob_client.assert_called_once_with(container="artifacts", blob="batches/a.json")


@pytest.mark.parametrize(
    "exc",
    [ResourceNotFoundError("The specified blob does not exist."), ClientAuthenticationError("denied")],
)
def test_azure_store_wraps_sdk_errors(exc: Exception) -> None:
    service = Mock()
    service.get_blob_client.return_value.download_blob.side_effect = exc

    store = AzureBlobObjectStore(service, "artifacts")
    with pytest.raises(ArtifactFetchError) as e:
        store.get_bytes("batches/a.json")
    assert "batches/a.json" in str(e.value)
    assert e.value.__cause__ is exc
