"""
Tests for the JSON backed prompt store.
"""

import json
from pathlib import Path

import pytest

from promptbank.core.errors import DuplicateNameError, NotFoundError, StorageError, ValidationError
from promptbank.core.models import PromptCategory
from promptbank.core.store import ConflictPolicy, ImportMode, PromptStore, read_bank, write_bank

SYSTEM = PromptCategory.parse("system")
TASK = PromptCategory.parse("task")


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "prompts.json"


@pytest.fixture
def store(data_file: Path) -> PromptStore:
    return PromptStore(data_file)


@pytest.fixture
def populated(store: PromptStore) -> PromptStore:
    store.add("alpha", SYSTEM, "First system prompt", "You are {{role}}.", ["core"])
    store.add("beta", TASK, "Review task", "Review {{file}} for {{focus}}", ["review", "code"])
    store.add("gamma", SYSTEM, "Second system prompt", "Be brief.", [])
    return store


class TestLoadSave:
    """Test loading and saving the data file."""

    def test_missing_file_is_empty(self, store, data_file):
        assert store.list() == []
        assert not data_file.exists()

    def test_add_creates_file(self, populated, data_file):
        data = json.loads(data_file.read_text(encoding="utf-8"))
        assert data["version"] == "1.0"
        assert [p["name"] for p in data["prompts"]] == ["alpha", "beta", "gamma"]

    def test_reload_sees_saved_prompts(self, populated, data_file):
        reloaded = PromptStore(data_file)
        assert [p.name for p in reloaded.list()] == ["alpha", "beta", "gamma"]
        assert reloaded.get("beta").variables == ["file", "focus"]

    def test_invalid_json(self, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            PromptStore(data_file)

    def test_invalid_utf8(self, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_bytes(b'{"prompts": [], "version": "1.\xff"}')
        with pytest.raises(StorageError) as exc_info:
            PromptStore(data_file)
        assert "UTF-8" in str(exc_info.value)

    def test_schema_mismatch(self, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps({"prompts": [{"name": "x"}]}), encoding="utf-8")
        with pytest.raises(StorageError) as exc_info:
            PromptStore(data_file)
        assert exc_info.value.details["path"] == str(data_file)

    def test_duplicate_names_in_file(self, data_file):
        data_file.parent.mkdir(parents=True)
        records = [{"name": "x", "category": "task"}, {"name": "x", "category": "task"}]
        data_file.write_text(json.dumps(records), encoding="utf-8")
        with pytest.raises(StorageError):
            PromptStore(data_file)

    def test_save_leaves_no_temp_files(self, populated, data_file):
        assert [p.name for p in data_file.parent.iterdir()] == ["prompts.json"]

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        store = PromptStore(blocker / "prompts.json")
        with pytest.raises(StorageError):
            store.add("x", TASK)

    def test_write_then_read(self, populated, tmp_path):
        target = tmp_path / "copy.json"
        write_bank(populated.bank, target)
        assert read_bank(target) == populated.bank


class TestAddGet:
    """Test adding and looking up prompts."""

    def test_add_then_get_by_id_and_name(self, store):
        prompt = store.add("greeter", TASK, "Says hi", "Hello {{name}}", ["demo"])
        by_id = store.get(prompt.id)
        by_name = store.get("greeter")
        assert by_id is by_name
        assert by_id.name == "greeter"
        assert by_id.category == TASK
        assert by_id.description == "Says hi"
        assert by_id.content == "Hello {{name}}"
        assert by_id.tags == ["demo"]
        assert by_id.variables == ["name"]
        assert by_id.created_at == by_id.updated_at

    def test_ids_are_unique(self, store):
        ids = {store.add(f"p{i}", TASK).id for i in range(20)}
        assert len(ids) == 20

    def test_name_is_trimmed(self, store):
        prompt = store.add("  spaced  ", TASK)
        assert prompt.name == "spaced"

    def test_empty_content_allowed(self, store):
        assert store.add("empty", TASK).content == ""

    def test_duplicate_name(self, populated, data_file):
        before = data_file.read_text(encoding="utf-8")
        with pytest.raises(DuplicateNameError):
            populated.add("alpha", TASK, "again")
        assert len(populated.list()) == 3
        assert data_file.read_text(encoding="utf-8") == before

    def test_empty_name(self, store):
        with pytest.raises(ValidationError):
            store.add("   ", TASK)

    def test_get_missing(self, populated):
        with pytest.raises(NotFoundError):
            populated.get("nope")

    def test_get_prefers_id(self, store):
        first = store.add("first", TASK)
        second = store.add(first.id, TASK)
        assert store.get(first.id) is first
        assert store.get(second.id) is second


class TestListSearch:
    """Test listing and searching."""

    def test_list_all_in_insertion_order(self, populated):
        assert [p.name for p in populated.list()] == ["alpha", "beta", "gamma"]

    def test_list_by_category(self, populated):
        assert [p.name for p in populated.list(SYSTEM)] == ["alpha", "gamma"]
        assert [p.name for p in populated.list(TASK)] == ["beta"]
        assert populated.list(PromptCategory.parse("custom:none")) == []

    def test_list_custom_category(self, store):
        store.add("a", PromptCategory.custom("ops"))
        store.add("b", PromptCategory.custom("dev"))
        assert [p.name for p in store.list(PromptCategory.parse("custom:OPS"))] == ["a"]

    def test_search_is_case_insensitive_on_tags(self, populated):
        assert [p.name for p in populated.search("REVIEW")] == ["beta"]

    def test_search_fields(self, populated):
        assert [p.name for p in populated.search("system prompt")] == ["alpha", "gamma"]
        assert [p.name for p in populated.search("{{role}}")] == ["alpha"]
        assert [p.name for p in populated.search("GAM")] == ["gamma"]
        assert populated.search("zzz") == []

    def test_empty_query_matches_all(self, populated):
        assert len(populated.search("")) == 3


class TestUpdateDelete:
    """Test updating and deleting prompts."""

    def test_update_content(self, populated, data_file):
        prompt = populated.get("gamma")
        created = prompt.created_at
        updated = populated.update("gamma", content="Use {{tone}} tone")
        assert updated.variables == ["tone"]
        assert updated.created_at == created
        assert updated.updated_at >= created
        assert PromptStore(data_file).get("gamma").content == "Use {{tone}} tone"

    def test_update_several_fields(self, populated):
        prompt = populated.update(
            "beta",
            category=SYSTEM,
            description="Changed",
            tags=["x", "x", "y"],
        )
        assert prompt.category == SYSTEM
        assert prompt.description == "Changed"
        assert prompt.tags == ["x", "y"]

    def test_rename(self, populated, data_file):
        prompt_id = populated.get("alpha").id
        populated.update("alpha", name="omega")
        with pytest.raises(NotFoundError):
            populated.get("alpha")
        assert PromptStore(data_file).get("omega").id == prompt_id

    def test_rename_to_taken_name(self, populated):
        with pytest.raises(DuplicateNameError):
            populated.update("alpha", name="beta")
        assert populated.get("alpha").name == "alpha"

    def test_rename_to_same_name_is_noop(self, populated):
        prompt = populated.get("alpha")
        before = prompt.updated_at
        populated.update("alpha", name="alpha")
        assert prompt.updated_at == before

    def test_no_changes_keeps_timestamp(self, populated):
        prompt = populated.get("beta")
        before = prompt.updated_at
        populated.update("beta", description=prompt.description, tags=["code", "review"][::-1])
        assert prompt.updated_at == before

    def test_update_missing(self, populated):
        with pytest.raises(NotFoundError):
            populated.update("nope", description="x")

    def test_delete_then_get(self, populated, data_file):
        removed = populated.delete("beta")
        assert removed.name == "beta"
        with pytest.raises(NotFoundError):
            populated.get("beta")
        with pytest.raises(NotFoundError):
            PromptStore(data_file).get(removed.id)
        assert [p.name for p in populated.list()] == ["alpha", "gamma"]

    def test_delete_missing(self, populated):
        with pytest.raises(NotFoundError):
            populated.delete("nope")


class TestImportExport:
    """Test export and import."""

    @pytest.fixture
    def other_file(self, tmp_path: Path) -> Path:
        return tmp_path / "other" / "prompts.json"

    def test_export_then_replace_round_trip(self, populated, tmp_path, data_file):
        export_path = tmp_path / "export.json"
        snapshot = [p.model_copy(deep=True) for p in populated.list()]
        assert populated.export(export_path) == 3

        populated.delete("alpha")
        populated.add("delta", TASK)
        summary = populated.import_(export_path, ImportMode.REPLACE)

        assert summary.total == 3
        assert summary.added == 3
        assert populated.list() == snapshot
        assert PromptStore(data_file).list() == snapshot

    def test_export_schema_matches_store_file(self, populated, tmp_path, data_file):
        export_path = tmp_path / "export.json"
        populated.export(export_path)
        assert json.loads(export_path.read_text(encoding="utf-8")) == json.loads(
            data_file.read_text(encoding="utf-8")
        )

    def test_import_missing_file(self, populated, tmp_path):
        with pytest.raises(StorageError):
            populated.import_(tmp_path / "missing.json")
        assert len(populated.list()) == 3

    def test_import_invalid_utf8(self, populated, tmp_path):
        source = tmp_path / "latin1.json"
        source.write_bytes("[{\"name\": \"caf\u00e9\", \"category\": \"task\"}]".encode("latin-1"))
        with pytest.raises(StorageError):
            populated.import_(source)
        assert len(populated.list()) == 3

    def test_merge_adds_new_prompts(self, populated, other_file, tmp_path):
        other = PromptStore(other_file)
        other.add("delta", TASK)
        other.export(tmp_path / "in.json")

        summary = populated.import_(tmp_path / "in.json", ImportMode.MERGE)
        assert summary.added == 1
        assert [p.name for p in populated.list()] == ["alpha", "beta", "gamma", "delta"]

    def test_merge_skip_keeps_existing(self, populated, other_file, tmp_path):
        other = PromptStore(other_file)
        other.add("beta", SYSTEM, "imported beta")
        other.export(tmp_path / "in.json")

        summary = populated.import_(tmp_path / "in.json", ImportMode.MERGE, ConflictPolicy.SKIP)
        assert summary.skipped == 1
        assert populated.get("beta").description == "Review task"

    def test_merge_skip_on_id_collision(self, populated, tmp_path):
        populated.export(tmp_path / "in.json")
        summary = populated.import_(tmp_path / "in.json", ImportMode.MERGE)
        assert summary.skipped == 3
        assert len(populated.list()) == 3

    def test_merge_overwrite_keeps_position(self, populated, other_file, tmp_path):
        other = PromptStore(other_file)
        imported = other.add("beta", SYSTEM, "imported beta")
        other.export(tmp_path / "in.json")

        summary = populated.import_(tmp_path / "in.json", ImportMode.MERGE, ConflictPolicy.OVERWRITE)
        assert summary.replaced == 1
        assert [p.name for p in populated.list()] == ["alpha", "beta", "gamma"]
        beta = populated.get("beta")
        assert beta.id == imported.id
        assert beta.description == "imported beta"

    def test_merge_rename_keeps_both(self, populated, tmp_path):
        populated.export(tmp_path / "in.json")
        summary = populated.import_(tmp_path / "in.json", ImportMode.MERGE, ConflictPolicy.RENAME)

        assert summary.renamed == 3
        names = [p.name for p in populated.list()]
        assert names == ["alpha", "beta", "gamma", "alpha-2", "beta-2", "gamma-2"]
        ids = [p.id for p in populated.list()]
        assert len(set(ids)) == 6
        assert populated.get("beta-2").content == populated.get("beta").content

    def test_merge_rename_picks_free_suffix(self, populated, tmp_path):
        populated.add("alpha-2", TASK)
        populated.export(tmp_path / "in.json")
        populated.import_(tmp_path / "in.json", ImportMode.MERGE, ConflictPolicy.RENAME)
        assert populated.get("alpha-3").content == "You are {{role}}."


class TestStats:
    """Test collection statistics."""

    def test_stats(self, populated, data_file):
        populated.add("ops", PromptCategory.custom("ops"))
        stats = populated.stats()
        assert stats["total"] == 4
        assert stats["categories"] == {"system": 2, "task": 1, "custom:ops": 1}
        assert stats["data_file"] == str(data_file)
