"""Unit tests for the YAML blob store."""

import pytest
import yaml

from chatterbots.services.blob_store import YamlBlobStore


@pytest.fixture
def blob_store(temp_state_dir):
    return YamlBlobStore(temp_state_dir)


@pytest.mark.asyncio
async def test_load_missing_key_returns_empty_list(blob_store):
    assert await blob_store.load("nothing-here") == []


@pytest.mark.asyncio
async def test_save_then_load_returns_records(blob_store):
    records = [{"id": "a", "name": "Ångström"}, {"id": "b", "name": "Bee"}]
    await blob_store.save("personas", records)

    assert await blob_store.load("personas") == records
    assert blob_store.path_for("personas").exists()
    assert not blob_store.path_for("personas").with_suffix(".yaml.tmp").exists()


@pytest.mark.asyncio
async def test_save_replaces_previous_content(blob_store):
    await blob_store.save("personas", [{"id": "a"}])
    await blob_store.save("personas", [])

    assert await blob_store.load("personas") == []


def test_path_for_sanitizes_key(blob_store, temp_state_dir):
    assert blob_store.path_for("../evil/key") == temp_state_dir / ".._evil_key.yaml"


@pytest.mark.asyncio
async def test_load_invalid_yaml_returns_empty_list(blob_store):
    blob_store.path_for("broken").write_text("items: [unclosed", encoding="utf-8")

    assert await blob_store.load("broken") == []


@pytest.mark.asyncio
async def test_load_non_list_document_returns_empty_list(blob_store):
    blob_store.path_for("mapping").write_text(yaml.safe_dump({"id": "a"}), encoding="utf-8")
    blob_store.path_for("scalars").write_text(yaml.safe_dump(["a", "b"]), encoding="utf-8")

    assert await blob_store.load("mapping") == []
    assert await blob_store.load("scalars") == []


@pytest.mark.asyncio
async def test_load_empty_file_returns_empty_list(blob_store):
    blob_store.path_for("empty").write_text("", encoding="utf-8")

    assert await blob_store.load("empty") == []


@pytest.mark.asyncio
async def test_save_failure_is_logged_not_raised(temp_state_dir, caplog):
    blocker = temp_state_dir / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    store = YamlBlobStore(blocker / "nested")

    await store.save("personas", [{"id": "a"}])

    assert "Failed to save 'personas'" in caplog.text
    assert await store.load("personas") == []
