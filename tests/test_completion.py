# tests/test_completion.py

import pytest

from conftest import put_sub_task
from core.models import NotFoundError
from services.completion import (
    CompletionStatus, complete_by_title, find_matching_sub_task,
    parse_done_command, resolve_sub_task
)

class TestLookup:

    def test_case_insensitive_exact(self, document):
        sub_task = put_sub_task(document, "Morning Run", section=4, cell=6)
        section, cell, found = find_matching_sub_task(document.mandala, "  morning run ")
        assert found is sub_task
        assert (section.id, cell.id) == ("section-4", "cell-4-6")

    def test_partial_title_does_not_match(self, document):
        put_sub_task(document, "Morning Run")
        assert find_matching_sub_task(document.mandala, "Morning") is None

    def test_first_match_in_tree_order(self, document):
        first = put_sub_task(document, "Dup", section=0, cell=3)
        put_sub_task(document, "Dup", section=2, cell=0)
        assert find_matching_sub_task(document.mandala, "dup")[2] is first

    def test_resolve_raises(self, document):
        with pytest.raises(NotFoundError):
            resolve_sub_task(document.mandala, "nothing")

class TestCompleteByTitle:

    def test_completes_existing(self, document, engine, fixed_now):
        document.mandala.surrounding_sections[3].center_cell.title = "Health"
        put_sub_task(document, "Run", section=3, cell=1)

        outcome = complete_by_title(document, "RUN", fixed_now, engine=engine)

        assert outcome.status is CompletionStatus.COMPLETED
        assert outcome.sub_task.completed is True
        assert outcome.document.progression.xp == 10
        assert outcome.document.progression.behavior_stats.category_completions == {"Health": 1}
        assert document.progression.xp == 0

    def test_already_completed_is_noop(self, document, engine, fixed_now):
        put_sub_task(document, "Run", completed=True)
        outcome = complete_by_title(document, "run", fixed_now, engine=engine)

        assert outcome.status is CompletionStatus.ALREADY_COMPLETED
        assert outcome.changed is False
        assert outcome.document.progression.xp == 0

    def test_fallback_creates_one_completed_sub_task(self, document, engine, fixed_now):
        outcome = complete_by_title(document, "Call mom", fixed_now, engine=engine)

        assert outcome.status is CompletionStatus.CREATED
        entries = list(outcome.document.mandala.iter_sub_tasks())
        assert len(entries) == 1
        section, cell, sub_task = entries[0]
        assert (section.id, cell.id) == ("section-0", "cell-0-0")
        assert sub_task.title == "Call mom"
        assert sub_task.completed is True
        assert sub_task.difficulty == "B"
        assert outcome.document.progression.xp == 10
        assert outcome.document.progression.behavior_stats.category_completions == {"Area 1": 1}

    def test_empty_title_rejected(self, document, engine, fixed_now):
        with pytest.raises(ValueError):
            complete_by_title(document, "   ", fixed_now, engine=engine)

class TestParseDoneCommand:

    @pytest.mark.parametrize("text, expected", [
        ("done Morning run", "Morning run"),
        ("DONE   Morning run  ", "Morning run"),
        ("/done Morning run", "Morning run"),
        ("/done@mandala_bot Morning run", "Morning run"),
        ("done", ""),
        ("/done", ""),
        ("doneish thing", None),
        ("I am done", None),
        ("", None),
        (None, None),
    ])
    def test_parse(self, text, expected):
        assert parse_done_command(text) == expected
