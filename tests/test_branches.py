from __future__ import annotations

from git_tracker.branches import parse_branch_preferences, resolve_requested_branch, select_branch


def test_select_branch_prefers_preference_order_over_listing_order() -> None:
    assert select_branch(["master", "develop", "main"], ["main", "master"]) == "main"
    assert select_branch(["master", "develop"], ["main", "master"]) == "master"
    assert select_branch(["develop", "trunk"], ["trunk", "develop"]) == "trunk"


def test_select_branch_returns_empty_when_nothing_matches() -> None:
    assert select_branch(["feature/x"], ["main", "master"]) == ""
    assert select_branch([], ["main", "master"]) == ""
    assert select_branch(["main"], []) == ""


def test_select_branch_returns_earliest_present_preference() -> None:
    available = {"a", "c", "e"}
    for prefs in (["b", "c", "a"], ["e"], ["x", "y", "a", "c"], ["x"]):
        expected = next((p for p in prefs if p in available), "")
        assert select_branch(available, prefs) == expected


def test_parse_branch_preferences() -> None:
    assert parse_branch_preferences("main, master") == ["main", "master"]
    assert parse_branch_preferences(" develop ,, main ,") == ["develop", "main"]
    assert parse_branch_preferences(["trunk", " main ", ""]) == ["trunk", "main"]
    assert parse_branch_preferences("main, main") == ["main"]
    assert parse_branch_preferences(None) == ["main", "master"]
    assert parse_branch_preferences("") == []


def test_resolve_requested_branch_falls_back_to_main_then_master() -> None:
    assert resolve_requested_branch(["dev", "main"], "dev") == "dev"
    assert resolve_requested_branch(["main", "master"], "gone") == "main"
    assert resolve_requested_branch(["master"], "gone") == "master"
    assert resolve_requested_branch(["dev"], "gone") == ""
    assert resolve_requested_branch(["dev"], None) == ""
