"""Tests for rename plan construction and validation."""

from pathlib import Path

import pytest

from mvedit.rename.errors import (
    BlankLineError,
    DuplicateDestinationError,
    LineCountMismatchError,
    MissingSourceError,
    OverwriteConflictError,
)
from mvedit.rename.models import NoOp, ValidatedPlan
from mvedit.rename.planner import RenamePlanner, build_plan


def _touch(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(name, encoding="utf-8")


def test_build_plan_keeps_changed_pairs_in_order(tmp_path: Path) -> None:
    _touch(tmp_path, "a.txt", "b.txt", "c.txt")

    plan = build_plan(
        ["a.txt", "b.txt", "c.txt"],
        ["docs/a.txt", "b.txt  ", "c2.txt"],
        root=tmp_path,
    )

    assert isinstance(plan, ValidatedPlan)
    assert [(pair.source, pair.destination, pair.index) for pair in plan.pairs] == [
        ("a.txt", "docs/a.txt", 0),
        ("c.txt", "c2.txt", 2),
    ]
    assert plan.sources == {"a.txt", "b.txt", "c.txt"}
    assert plan.destinations == {"docs/a.txt", "c2.txt"}
    assert plan.root == tmp_path
    assert plan.preview() == ["a.txt -> docs/a.txt", "c.txt -> c2.txt"]


def test_build_plan_unchanged_list_is_noop(tmp_path: Path) -> None:
    _touch(tmp_path, "a.txt", "b.txt")

    result = RenamePlanner().build_plan(["a.txt", "b.txt"], ["a.txt", "b.txt "], root=tmp_path)

    assert result == NoOp(count=2)
    assert sorted(path.name for path in tmp_path.iterdir()) == ["a.txt", "b.txt"]


def test_build_plan_blank_line_fails_with_line_number(tmp_path: Path) -> None:
    with pytest.raises(BlankLineError) as excinfo:
        build_plan(["a.txt", "b.txt"], ["a.txt", "  "], root=tmp_path)

    assert excinfo.value.line_number == 2


def test_build_plan_line_count_mismatch_touches_nothing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _no_fs(*_args, **_kwargs):
        raise AssertionError("filesystem accessed")

    monkeypatch.setattr(Path, "exists", _no_fs)
    monkeypatch.setattr(Path, "is_file", _no_fs)

    with pytest.raises(LineCountMismatchError) as excinfo:
        build_plan(["a.txt", "b.txt"], ["a.txt"], root=tmp_path)

    assert (excinfo.value.old_count, excinfo.value.new_count) == (2, 1)


def test_build_plan_reports_every_duplicate_destination(tmp_path: Path) -> None:
    _touch(tmp_path, "a", "b", "c", "d", "e")

    with pytest.raises(DuplicateDestinationError) as excinfo:
        build_plan(["a", "b", "c", "d", "e"], ["x", "x", "y", "y", "y"], root=tmp_path)

    assert excinfo.value.paths == ["x", "y"]


def test_build_plan_refuses_to_overwrite_existing_file(tmp_path: Path) -> None:
    _touch(tmp_path, "a.txt", "b.txt")

    with pytest.raises(OverwriteConflictError) as excinfo:
        build_plan(["a.txt"], ["b.txt"], root=tmp_path)

    assert excinfo.value.paths == ["b.txt"]
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "a.txt"
    assert (tmp_path / "b.txt").read_text(encoding="utf-8") == "b.txt"


def test_build_plan_collects_all_overwrite_conflicts(tmp_path: Path) -> None:
    _touch(tmp_path, "a", "b", "taken1", "taken2")

    with pytest.raises(OverwriteConflictError) as excinfo:
        build_plan(["a", "b"], ["taken1", "taken2"], root=tmp_path)

    assert excinfo.value.paths == ["taken1", "taken2"]


def test_build_plan_allows_destination_vacated_by_batch(tmp_path: Path) -> None:
    _touch(tmp_path, "x.txt", "y.txt", "z.txt")

    plan = build_plan(["x.txt", "y.txt", "z.txt"], ["y.txt", "z.txt", "x.txt"], root=tmp_path)

    assert isinstance(plan, ValidatedPlan)
    assert all(plan.needs_staging(pair) for pair in plan.pairs)


def test_build_plan_destination_kept_by_unchanged_line_is_duplicate(tmp_path: Path) -> None:
    _touch(tmp_path, "a", "b")

    with pytest.raises(DuplicateDestinationError) as excinfo:
        build_plan(["a", "b"], ["b", "b"], root=tmp_path)

    assert excinfo.value.paths == ["b"]
    assert (tmp_path / "a").exists()


def test_build_plan_missing_source_reports_first(tmp_path: Path) -> None:
    _touch(tmp_path, "present.txt")

    with pytest.raises(MissingSourceError) as excinfo:
        build_plan(
            ["present.txt", "gone1.txt", "gone2.txt"],
            ["p.txt", "g1.txt", "g2.txt"],
            root=tmp_path,
        )

    assert excinfo.value.path == "gone1.txt"


def test_build_plan_resolves_against_cwd_by_default(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _touch(tmp_path, "a.txt")
    monkeypatch.chdir(tmp_path)

    plan = build_plan(["a.txt"], ["b.txt"])

    assert isinstance(plan, ValidatedPlan)
    assert plan.root == tmp_path
