import json

from shelf_browse.core.services import TreeState, TreeStateStore


def test_load_without_file_is_empty(tmp_path):
    store = TreeStateStore(tmp_path / "state.json")
    assert store.load() == TreeState()


def test_save_then_load(tmp_path):
    store = TreeStateStore(tmp_path / "nested" / "state.json")
    store.save(TreeState(loaded=["CLASS_Q"], opened=["ROOT", "CLASS_Q"], selected="SUBCLASS_QA"))

    assert TreeStateStore(store.file_path).load() == TreeState(
        loaded=["CLASS_Q"], opened=["ROOT", "CLASS_Q"], selected="SUBCLASS_QA")
    data = json.loads(store.file_path.read_text(encoding="utf-8"))
    assert data["/"]["shelf_browse_opened"] == ["ROOT", "CLASS_Q"]


def test_values_are_scoped_by_path_and_keys(tmp_path):
    file_path = tmp_path / "state.json"
    site = TreeStateStore.from_config(file_path, {"path": "/catalog", "selected_key": "sel"})
    other = TreeStateStore(file_path)
    site.save(TreeState(selected="CLASS_R"))
    other.save(TreeState(selected="CLASS_Q"))

    assert site.load().selected == "CLASS_R"
    assert other.load().selected == "CLASS_Q"
    assert "sel" in json.loads(file_path.read_text(encoding="utf-8"))["/catalog"]

    site.clear()
    assert site.load() == TreeState()
    assert other.load().selected == "CLASS_Q"


def test_unreadable_file_is_ignored(tmp_path, caplog):
    file_path = tmp_path / "state.json"
    file_path.write_text("{not json", encoding="utf-8")
    assert TreeStateStore(file_path).load() == TreeState()
    assert "Could not read tree state" in caplog.text
