"""
Tests for the queue parser.
"""

from planwatch.core.queue_parser import UNSLICED, parse_queue


class TestParseQueue:
    """Tests for parse_queue."""

    def test_parses_tasks_in_file_order(self):
        """Tasks keep file order and carry every field."""
        text = """\
# Slice S1: Foundation

## S1-T1
Area: Core
Depends: -
Description: Create the data model
AC: Model has id
  and a name

## S1-T2: Expose it
Area: API
Depends: S1-T1
Description: Expose the model
over HTTP
"""
        result = parse_queue(text)

        assert result.errors == ()
        assert [t.id for t in result.tasks] == ["S1-T1", "S1-T2"]

        first, second = result.tasks
        assert first.slice == "S1"
        assert first.area == "Core"
        assert first.depends_on == ()
        assert first.description == "Create the data model"
        assert first.acceptance_criteria == "Model has id\nand a name"
        assert second.depends_on == ("S1-T1",)
        assert second.description == "Expose the model over HTTP"
        assert second.acceptance_criteria is None

    def test_depends_variants(self):
        """Comma lists are split and deduplicated; 'none' means no dependency."""
        text = """\
# Slice S1
## A
Depends: none
## B
Depends On: A, A ,
## C
Depends: A, B
"""
        result = parse_queue(text)

        deps = {t.id: t.depends_on for t in result.tasks}
        assert deps == {"A": (), "B": ("A",), "C": ("A", "B")}
        assert result.errors == ()

    def test_task_outside_slice_is_reported_but_kept(self):
        result = parse_queue("## LONE\nDescription: no slice\n")

        assert [t.id for t in result.tasks] == ["LONE"]
        assert result.tasks[0].slice == UNSLICED
        assert any("not inside a slice" in e for e in result.errors)

    def test_duplicate_id_keeps_first_definition(self):
        text = """\
# Slice S1
## A
Description: first
## A
Description: second
"""
        result = parse_queue(text)

        assert len(result.tasks) == 1
        assert result.tasks[0].description == "first"
        assert any("duplicate task id A" in e for e in result.errors)

    def test_unknown_and_self_dependencies_are_reported(self):
        text = """\
# Slice S1
## A
Depends: GHOST
## B
Depends: B
"""
        result = parse_queue(text)

        assert len(result.tasks) == 2
        assert "Task A depends on unknown task GHOST" in result.errors
        assert "Task B depends on itself" in result.errors

    def test_cycle_reported_once_with_members(self):
        text = """\
# Slice S1
## A
Depends: C
## B
Depends: A
## C
Depends: B
## D
Depends: A
"""
        result = parse_queue(text)

        cycle_errors = [e for e in result.errors if "cycle" in e]
        assert cycle_errors == ["Dependency cycle between tasks: A, B, C"]

    def test_empty_text(self):
        result = parse_queue("")

        assert result.tasks == ()
        assert result.errors == ()
