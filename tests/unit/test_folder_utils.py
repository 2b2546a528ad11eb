"""
Unit tests for folder tree construction.

Tests _build_tree from notetree.services.folder_service, which turns a flat
list of folders plus (parent, child) edges into nested FolderTreeOut nodes.
"""

import pytest
from unittest.mock import MagicMock
from notetree.services.folder_service import _build_tree


def create_mock_folder(id: str, title: str):
    """Helper to create a mock Folder object for testing."""
    folder = MagicMock()
    folder.id = id
    folder.title = title
    return folder


class TestBuildTree:
    """Tests for folder tree construction from flat list."""

    @pytest.mark.unit
    def test_single_root_folder(self):
        tree = _build_tree([create_mock_folder("1", "Root")], [])

        assert len(tree) == 1
        assert tree[0].id == "1"
        assert tree[0].title == "Root"
        assert tree[0].children == []

    @pytest.mark.unit
    def test_children_sorted_by_title_then_id(self):
        folders = [
            create_mock_folder("1", "Root"),
            create_mock_folder("3", "b"),
            create_mock_folder("2", "a"),
            create_mock_folder("4", "a"),
        ]
        edges = [("1", "3"), ("1", "4"), ("1", "2")]

        tree = _build_tree(folders, edges)

        assert [c.id for c in tree[0].children] == ["2", "4", "3"]

    @pytest.mark.unit
    def test_nested_levels(self):
        folders = [
            create_mock_folder("1", "Root"),
            create_mock_folder("2", "Child"),
            create_mock_folder("3", "Grandchild"),
        ]

        tree = _build_tree(folders, [("1", "2"), ("2", "3")])

        assert tree[0].children[0].children[0].id == "3"

    @pytest.mark.unit
    def test_items_attached(self):
        folders = [create_mock_folder("1", "Root")]

        tree = _build_tree(folders, [], {"1": ["note-1", "note-2"]})

        assert tree[0].items == ["note-1", "note-2"]

    @pytest.mark.unit
    def test_dangling_edge_is_skipped(self):
        folders = [create_mock_folder("1", "Root")]

        tree = _build_tree(folders, [("1", "ghost")])

        assert tree[0].children == []

    @pytest.mark.unit
    def test_folder_with_two_parents_appears_once(self):
        folders = [
            create_mock_folder("1", "Root"),
            create_mock_folder("2", "A"),
            create_mock_folder("3", "B"),
            create_mock_folder("4", "Shared"),
        ]
        edges = [("1", "2"), ("1", "3"), ("2", "4"), ("3", "4")]

        tree = _build_tree(folders, edges)

        a, b = tree[0].children
        assert [c.id for c in a.children] == ["4"]
        assert b.children == []

    @pytest.mark.unit
    def test_cycle_without_root_is_not_drawn(self, caplog):
        folders = [create_mock_folder("1", "A"), create_mock_folder("2", "B")]

        tree = _build_tree(folders, [("1", "2"), ("2", "1")])

        assert tree == []
        assert "not reachable from any root" in caplog.text
        assert "['1', '2']" in caplog.text

    @pytest.mark.unit
    def test_well_formed_tree_logs_nothing(self, caplog):
        folders = [create_mock_folder("1", "Root"), create_mock_folder("2", "Child")]

        _build_tree(folders, [("1", "2")])

        assert "not reachable" not in caplog.text

    @pytest.mark.unit
    def test_empty_input(self):
        assert _build_tree([], []) == []
