"""Tests for todo-list checklist parsing."""

from zzz_coordinator.domain.checklist import parse_todo_list


class TestParseTodoList:
    def test_counts_items_and_checked(self) -> None:
        content = "# Plan\n\n- [ ] write tests\n- [x] add login\n* [X] add logout\n"

        progress = parse_todo_list(content)

        assert progress.total == 3
        assert progress.completed == 2

    def test_numbered_and_indented_items(self) -> None:
        content = "1. [x] first\n  2) [ ] second\n    - [x] nested\n"

        progress = parse_todo_list(content)

        assert (progress.total, progress.completed) == (3, 2)

    def test_prose_and_headings_are_ignored(self) -> None:
        content = "# Heading\nSome prose mentioning [x] inline.\n- plain bullet\n"

        progress = parse_todo_list(content)

        assert progress.total == 0
        assert not progress.is_ready

    def test_empty_content(self) -> None:
        assert parse_todo_list("").total == 0

    def test_malformed_checkbox_is_not_an_item(self) -> None:
        progress = parse_todo_list("- [] missing space\n- [y] odd mark\n")

        assert progress.total == 0
