import os

import pytest

from outline_toolkit.core.classifiers import LineClassifier
from outline_toolkit.core.indentation import IndentationResolver, LineCountIndentationCache
from outline_toolkit.core.services.archive_service import (
    ArchiveResult,
    ArchiveService,
    ArchiveSettings,
    resolve_archive_path,
)


def _service(**overrides):
    config = {"type": "separate", "remove_empty_projects": True, "remove_empty_lines": 1}
    config.update(overrides)
    return ArchiveService(config, LineClassifier())


class TestSeparateArchive:
    def test_finished_entries_move_with_their_groups(self):
        todo = "A:\n  ✔ done1\n  ☐ pending\nB:\n  ✔ done2"

        result = _service().archive(todo, "")

        assert result.success
        assert result.document_text == "A:\n  ☐ pending"
        assert result.archive_text == "A:\n  ✔ done1\nB:\n  ✔ done2"
        assert result.archived == 2
        assert result.removed == (1, 3, 4)
        assert result.message == "Archived 2 entries."

    def test_merges_into_existing_archive(self):
        todo = "A:\n  ✔ new\n  ☐ pending"
        archive = "A:\n  ✔ old\n"

        result = _service().archive(todo, archive)

        assert result.archive_text == "A:\n  ✔ new\n  ✔ old"
        assert result.message == "Archived 1 entry."

    def test_comments_travel_with_their_todo(self):
        todo = "A:\n  ✔ task\n    note one\n    note two\n  ☐ p"

        result = _service().archive(todo)

        assert result.document_text == "A:\n  ☐ p"
        assert result.archive_text == "A:\n  ✔ task\n    note one\n    note two"
        assert result.removed == (1, 2, 3)

    def test_comments_under_deep_todo_keep_nesting(self):
        todo = "A:\n  B:\n    ✔ task\n      note\n          deeper\n    ☐ p"

        result = _service().archive(todo, "")

        assert result.document_text == "A:\n  B:\n    ☐ p"
        assert result.archive_text == "A:\n  B:\n    ✔ task\n      note\n          deeper"

    def test_nested_groups_and_root_todos(self):
        todo = "✔ root done\nA:\n  B:\n    ✘ cancelled\n    ☐ keep"

        result = _service().archive(todo, "Z:\n  ✔ z")

        assert result.document_text == "A:\n  B:\n    ☐ keep"
        assert result.archive_text == "✔ root done\nZ:\n  ✔ z\nA:\n  B:\n    ✘ cancelled"

    def test_archive_uses_document_indentation_when_empty(self):
        todo = "A:\n\t✔ x\n\t☐ y"

        result = _service().archive(todo, "")

        assert result.archive_text == "A:\n\t✔ x"

    def test_explicit_indent_unit(self):
        todo = "A:\n    ✔ x\n    ☐ y"

        result = _service(indentation="  ").archive(todo, "", indent_unit="    ")

        assert result.archive_text == "A:\n    ✔ x"

    def test_association_tags_are_removed(self):
        result = _service().archive("A:\n  ✔ x @project(A)\n  ☐ y")
        assert result.archive_text == "A:\n  ✔ x"

    def test_nothing_to_archive(self):
        result = _service().archive("A:\n  ☐ y", "Z:\n  ✔ z")

        assert result.success
        assert result.message == "Nothing to archive."
        assert result.archived == 0
        assert result.document_text == "A:\n  ☐ y"
        assert result.archive_text == "Z:\n  ✔ z"

    def test_non_text_document_fails_without_raising(self):
        result = _service().archive(None, "Z:")

        assert isinstance(result, ArchiveResult)
        assert not result.success
        assert result.archive_text == "Z:"

    def test_cache_is_consulted_for_identified_documents(self):
        cache = LineCountIndentationCache()
        service = ArchiveService({}, LineClassifier(), IndentationResolver(cache=cache))

        service.archive("A:\n  ✔ x\n  ☐ y", "", identity="todo.txt")

        assert len(cache) == 1


class TestEmptyGroups:
    def test_group_without_pending_todos_is_removed(self):
        result = _service().archive("A:\n  ✔ x\nB:\n  ☐ y")
        assert result.document_text == "B:\n  ☐ y"

    def test_group_body_is_archived_under_its_chain(self):
        todo = "A:\n  ☐ keep\n  B:\n    just a note"

        result = _service().archive(todo, "")

        assert result.document_text == "A:\n  ☐ keep"
        assert result.archive_text == "A:\n  B:\n    just a note"

    def test_deep_group_body_keeps_nesting(self):
        todo = "A:\n  ☐ keep\n  B:\n    C:\n      note\n        detail"

        result = _service().archive(todo, "")

        assert result.document_text == "A:\n  ☐ keep"
        assert result.archive_text == "A:\n  B:\n    C:\n      note\n        detail"

    def test_empty_header_only_group_is_removed_without_archive_entry(self):
        result = _service().archive("A:\nB:\n  ☐ y", "")

        assert result.document_text == "B:\n  ☐ y"
        assert result.archived == 0
        assert result.archive_text == ""

    def test_disabled(self):
        result = _service(remove_empty_projects=False).archive("A:\n  ✔ x\nB:\n  ☐ y", "")

        assert result.document_text == "A:\nB:\n  ☐ y"
        assert result.archive_text == "A:\n  ✔ x"


class TestBlankLines:
    def test_blank_runs_are_trimmed(self):
        result = _service().archive("☐ a\n\n\n\n☐ b")

        assert result.document_text == "☐ a\n\n☐ b"
        assert result.removed == (2, 3)

    def test_custom_maximum(self):
        result = _service(remove_empty_lines=0).archive("☐ a\n\n\n☐ b")
        assert result.document_text == "☐ a\n☐ b"

    def test_disabled(self):
        result = _service(remove_empty_lines=-1).archive("☐ a\n\n\n\n☐ b")
        assert result.document_text == "☐ a\n\n\n\n☐ b"

    def test_lines_around_removed_entries(self):
        result = _service().archive("☐ a\n\n✔ x\n\n☐ b")
        assert result.document_text == "☐ a\n\n☐ b"


class TestSortByDate:
    TODO = "A:\n  ✔ older @done(21-01-01 10:00)\n  ✔ newer @done(21-06-01 10:00)\n  ☐ keep"

    def test_document_order_by_default(self):
        result = _service().archive(self.TODO, "")
        lines = result.archive_text.split("\n")
        assert lines.index("  ✔ older @done(21-01-01 10:00)") < lines.index("  ✔ newer @done(21-06-01 10:00)")

    def test_newest_first(self):
        result = _service(sort_by_date=True).archive(self.TODO, "")
        assert result.archive_text == "A:\n  ✔ newer @done(21-06-01 10:00)\n  ✔ older @done(21-01-01 10:00)"

    def test_undated_entries_keep_their_relative_order(self):
        todo = "✔ first\n✔ second @done(21-06-01 10:00)\n✔ third"

        result = _service(sort_by_date=True).archive(todo, "")

        assert result.archive_text == "✔ second @done(21-06-01 10:00)\n✔ first\n✔ third"


class TestSameFileArchive:
    def test_merges_into_existing_archive_section(self):
        todo = "A:\n  ✔ done @done(21-01-01 10:00)\n  ☐ pending\n\nArchive:\n  A:\n    ✔ old"

        result = _service(type="same_file").archive(todo)

        assert result.archive_text is None
        assert result.document_text == (
            "A:\n  ☐ pending\n\nArchive:\n  A:\n    ✔ done @done(21-01-01 10:00)\n    ✔ old"
        )

    def test_creates_archive_section(self):
        result = _service(type="same_file").archive("A:\n  ✔ done\n  ☐ p")
        assert result.document_text == "A:\n  ☐ p\n\nArchive:\n  A:\n    ✔ done"

    def test_comments_under_deep_todo_keep_nesting(self):
        todo = "A:\n  B:\n    ✔ task\n      note\n    ☐ p"

        result = _service(type="same_file").archive(todo)

        assert result.document_text == (
            "A:\n  B:\n    ☐ p\n\nArchive:\n  A:\n    B:\n      ✔ task\n        note"
        )

    def test_archive_section_is_not_rearchived(self):
        todo = "☐ p\n\nArchive:\n  ✔ old"

        result = _service(type="same_file").archive(todo)

        assert result.message == "Nothing to archive."
        assert result.document_text == todo

    def test_custom_archive_name(self):
        result = _service(type="same_file", name="Done").archive("☐ p\n✔ x\n\nDone:\n  ✔ y")
        assert result.document_text == "☐ p\n\nDone:\n  ✔ x\n  ✔ y"


class TestSettings:
    def test_defaults_from_config_manager(self):
        service = ArchiveService()

        assert service.settings.type == "separate"
        assert service.settings.name == "Archive"
        assert service.settings.remove_empty_lines == 1
        assert service.settings.merge.indent_unit == "  "

    @pytest.mark.parametrize(
        "data,field,expected",
        [
            ({"type": "weird"}, "type", "separate"),
            ({"remove_empty_lines": "2"}, "remove_empty_lines", 1),
            ({"remove_empty_lines": True}, "remove_empty_lines", 1),
            ({"name": "  "}, "name", "Archive"),
            ({"name": " Done "}, "name", "Done"),
            (None, "sort_by_date", False),
        ],
    )
    def test_invalid_values(self, data, field, expected):
        assert getattr(ArchiveSettings.from_mapping(data), field) == expected

    def test_merge_options(self):
        settings = ArchiveSettings.from_mapping({"indentation": "\t", "project_separator": "/", "root_indent_level": 1})
        assert settings.merge.indent_unit == "\t"
        assert settings.merge.path_separator == "/"
        assert settings.merge.root_indent_level == 1


class TestResolveArchivePath:
    def test_separate(self):
        folder = os.path.join("work", "notes")
        assert resolve_archive_path(os.path.join(folder, "project.todo")) == os.path.join(folder, "ARCHIVE.project.todo")
        assert resolve_archive_path(os.path.join(folder, ".todo")) == os.path.join(folder, "ARCHIVE.todo")

    def test_separate_root(self):
        source = os.path.join("work", "notes", "project.todo")
        assert resolve_archive_path(source, "separate_root", "work") == os.path.join("work", "ARCHIVE.todo")
        assert resolve_archive_path(source, "separate_root", "work", "tasks.txt") == os.path.join(
            "work", "ARCHIVE.tasks.txt"
        )
        assert resolve_archive_path(source, "separate_root") == os.path.join("work", "notes", "ARCHIVE.todo")

    def test_same_file(self):
        assert resolve_archive_path("project.todo", "same_file") is None
