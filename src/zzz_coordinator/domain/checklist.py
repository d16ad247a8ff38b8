"""Checklist classification for todo-list artifacts."""

import re

from zzz_coordinator.domain.models import TodoProgress

# "- [ ] item", "* [x] item", "1. [X] item"
CHECKLIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+\[(?P<mark>[ xX])\]")


def parse_todo_list(content: str) -> TodoProgress:
    """
    Count checklist items and how many are checked.

    Lines that are not checkbox-style items (headings, prose, nested notes)
    are ignored. A list with zero items reports ``is_ready == False``.

    Args:
        content: Raw markdown of the todo list

    Returns:
        TodoProgress with total and completed counts
    """
    total = 0
    completed = 0
    for line in content.splitlines():
        match = CHECKLIST_ITEM.match(line)
        if match is None:
            continue
        total += 1
        if match.group("mark") in ("x", "X"):
            completed += 1
    return TodoProgress(total=total, completed=completed)
