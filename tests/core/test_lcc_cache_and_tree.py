from shelf_browse.core.lcc_cache import ClassificationTreeCache, get_classification_tree_cache, tree_id_to_range
from shelf_browse.core.lcc_tree import ClassificationTree, parse_nodes

TREE = [{
    "data": {"title": "<div class=\"range\" data-path=\"/shelf_browse?start=A\">All</div>"},
    "attr": {"id": "ROOT"},
    "state": "closed",
    "children": [
        {
            "data": {"title": "<div class=\"range\" data-path=\"/shelf_browse?start=Q\">Q: Science</div>"},
            "attr": {"id": "CLASS_Q"},
            "children": [
                {"data": {"title": "QA: Mathematics"}, "attr": {"id": "SUBCLASS_QA"}},
                {"data": {"title": "QB: Astronomy"}, "attr": {"id": "SUBCLASS_QB"}, "children": []},
            ],
        },
        {"data": {"title": "R: Medicine"}, "attr": {"id": "CLASS_R", "class": "lcc-class"}},
    ],
}]


def test_cache_first_writer_wins():
    cache = ClassificationTreeCache()
    assert cache.get() is None
    assert cache.set_if_absent(None) is None
    assert cache.set_if_absent({"a": 1}) == {"a": 1}
    assert cache.set_if_absent({"b": 2}) == {"a": 1}
    assert cache.has_data


def test_waiters_get_the_cached_payload_once():
    cache = ClassificationTreeCache()
    first, second = [], []
    cache.add_waiter(first.append)
    cache.add_waiter(second.append)
    cache.set_if_absent(TREE)

    cache.deliver()
    cache.deliver()

    assert first == [TREE]
    assert second == [TREE]


def test_dropped_waiters_are_never_called():
    cache = ClassificationTreeCache()
    called = []
    cache.add_waiter(called.append)
    assert cache.drop_waiters() == 1
    cache.set_if_absent(TREE)
    cache.deliver()
    assert called == []


def test_process_cache_is_shared():
    assert get_classification_tree_cache() is get_classification_tree_cache()


def test_tree_id_to_range():
    assert tree_id_to_range("CLASS_Q") == "Q"
    assert tree_id_to_range("subclass_qa") == "QA"
    assert tree_id_to_range("QA76-QA76.95") == "QA76-QA76.95"
    assert tree_id_to_range("ROOT") == ""
    assert tree_id_to_range("TOP", root_id="top") == ""


def test_parse_marks_unloaded_branches():
    tree = ClassificationTree(TREE)
    science = tree.find("CLASS_Q")
    assert science.loaded and not science.is_leaf
    assert not tree.find("SUBCLASS_QA").loaded
    assert tree.find("SUBCLASS_QB").is_leaf
    assert tree.find("CLASS_R").css_class == "lcc-class"
    assert tree.root.is_open
    assert parse_nodes("garbage") == []


def test_visible_motion_follows_open_nodes():
    tree = ClassificationTree(TREE)
    assert [n.node_id for n in tree.visible_nodes()] == ["ROOT", "CLASS_Q", "CLASS_R"]

    tree.open_node(tree.find("CLASS_Q"))
    assert [n.node_id for n in tree.visible_nodes()] == [
        "ROOT", "CLASS_Q", "SUBCLASS_QA", "SUBCLASS_QB", "CLASS_R"]

    assert tree.move(1).node_id == "ROOT"
    assert tree.move(1).node_id == "CLASS_Q"
    assert tree.move(1).node_id == "SUBCLASS_QA"
    assert tree.move(-1).node_id == "CLASS_Q"


def test_move_stops_at_the_ends():
    tree = ClassificationTree(TREE)
    tree.hovered = tree.find("CLASS_R")
    assert tree.move(1) is None
    assert tree.hovered.node_id == "CLASS_R"


def test_closing_a_branch_pulls_the_cursor_up():
    tree = ClassificationTree(TREE)
    science = tree.find("CLASS_Q")
    tree.open_node(science)
    tree.hovered = tree.find("SUBCLASS_QB")
    assert tree.toggle_node(science) is False
    assert tree.hovered is science


def test_reset_root_closes_everything_but_the_root():
    tree = ClassificationTree(TREE)
    tree.open_node(tree.find("CLASS_Q"))
    tree.reset_root()
    assert tree.opened_ids() == ["ROOT"]


def test_set_children_accepts_wrapped_branch_payload():
    tree = ClassificationTree(TREE)
    mathematics = tree.find("SUBCLASS_QA")
    payload = {"attr": {"id": "SUBCLASS_QA"}, "children": [
        {"data": {"title": "QA76: Computers"}, "attr": {"id": "QA76-QA76.95"}, "children": []}]}
    children = tree.set_children(mathematics, payload)
    assert [c.node_id for c in children] == ["QA76-QA76.95"]
    assert children[0].parent is mathematics
    assert "SUBCLASS_QA" in tree.loaded_ids()


def test_restore_reopens_loaded_nodes_and_selection():
    tree = ClassificationTree(TREE)
    tree.restore(opened=["CLASS_Q", "SUBCLASS_QA"], selected="CLASS_R")
    assert tree.find("CLASS_Q").is_open
    # Unloaded nodes stay closed until their branch arrives.
    assert not tree.find("SUBCLASS_QA").is_open
    assert tree.selected.node_id == "CLASS_R"


def test_to_json_keeps_the_payload_shape():
    tree = ClassificationTree(TREE)
    data = tree.to_json()
    assert data[0]["attr"]["id"] == "ROOT"
    assert data[0]["state"] == "open"
    assert "children" not in data[0]["children"][0]["children"][0]
    assert data[0]["children"][1]["attr"]["class"] == "lcc-class"
