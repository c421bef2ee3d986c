"""Tests for the two-phase rename executor."""

from pathlib import Path

import pytest

from mvedit.fs.move import move_path
from mvedit.fs.paths import is_staging_artifact
from mvedit.rename.errors import MoveError, PhaseAFailure, PhaseBFailure, PlanAlreadyAppliedError
from mvedit.rename.executor import RenameExecutor
from mvedit.rename.models import ExecutionFailure, ExecutionSuccess, ValidatedPlan
from mvedit.rename.planner import build_plan


def _write(root: Path, files: dict[str, str]) -> None:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _snapshot(root: Path) -> dict[str, str]:
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def _plan(root: Path, original: list[str], edited: list[str]) -> ValidatedPlan:
    plan = build_plan(original, edited, root=root)
    assert isinstance(plan, ValidatedPlan)
    return plan


def _temp_files(root: Path) -> list[Path]:
    return [path for path in root.rglob("*") if is_staging_artifact(path)]


def test_apply_independent_renames(tmp_path: Path) -> None:
    _write(tmp_path, {"a.txt": "A", "b.txt": "B", "c.txt": "C"})
    plan = _plan(tmp_path, ["a.txt", "b.txt", "c.txt"], ["a1.txt", "b.txt", "sub/c.txt"])

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionSuccess)
    assert result.applied == plan.pairs
    assert _snapshot(tmp_path) == {"a1.txt": "A", "b.txt": "B", "sub/c.txt": "C"}
    assert _temp_files(tmp_path) == []


def test_apply_swaps_two_files(tmp_path: Path) -> None:
    _write(tmp_path, {"x.txt": "from x", "y.txt": "from y"})
    plan = _plan(tmp_path, ["x.txt", "y.txt"], ["y.txt", "x.txt"])

    assert len(plan) == 2
    assert all(plan.needs_staging(pair) for pair in plan.pairs)

    result = RenameExecutor().apply(plan)

    assert result.ok
    assert _snapshot(tmp_path) == {"x.txt": "from y", "y.txt": "from x"}
    assert _temp_files(tmp_path) == []


def test_apply_rotates_three_cycle_and_chain(tmp_path: Path) -> None:
    _write(tmp_path, {"a": "1", "b": "2", "c": "3", "d": "4"})
    plan = _plan(tmp_path, ["a", "b", "c", "d"], ["b", "c", "a", "e"])

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionSuccess)
    assert _snapshot(tmp_path) == {"a": "3", "b": "1", "c": "2", "e": "4"}
    assert _temp_files(tmp_path) == []


def test_apply_chain_into_vacated_path(tmp_path: Path) -> None:
    _write(tmp_path, {"a": "1", "b": "2"})
    plan = _plan(tmp_path, ["a", "b"], ["b", "c"])

    result = RenameExecutor().apply(plan)

    assert result.ok
    assert _snapshot(tmp_path) == {"b": "1", "c": "2"}


def test_dry_run_leaves_filesystem_untouched(tmp_path: Path) -> None:
    _write(tmp_path, {"x.txt": "X", "y.txt": "Y", "z.txt": "Z"})
    plan = _plan(tmp_path, ["x.txt", "y.txt", "z.txt"], ["y.txt", "x.txt", "new/z.txt"])
    before = _snapshot(tmp_path)

    result = RenameExecutor(prune_root=tmp_path).apply(plan, dry_run=True)

    assert isinstance(result, ExecutionSuccess)
    assert result.dry_run
    assert result.applied == ()
    assert result.preview == ("x.txt -> y.txt", "y.txt -> x.txt", "z.txt -> new/z.txt")
    assert _snapshot(tmp_path) == before
    assert not (tmp_path / "new").exists()


def test_phase_a_failure_restores_staged_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path, {"a.txt": "A", "b.txt": "B"})
    plan = _plan(tmp_path, ["a.txt", "b.txt"], ["b.txt", "a.txt"])

    def _fail_second_stage(src: Path, dst: Path) -> str:
        if Path(dst).name.startswith(".b.txt.mv."):
            raise MoveError("disk on fire", source=str(src), destination=str(dst))
        return move_path(src, dst)

    monkeypatch.setattr("mvedit.rename.executor.move_path", _fail_second_stage)

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionFailure)
    assert result.stage == "phase_a"
    assert result.failing_pair.source == "b.txt"
    assert result.reason == "disk on fire"
    assert result.rolled_back
    assert result.committed == ()
    assert _snapshot(tmp_path) == {"a.txt": "A", "b.txt": "B"}
    assert _temp_files(tmp_path) == []
    with pytest.raises(PhaseAFailure):
        result.raise_for_failure()


def test_phase_b_failure_keeps_committed_moves(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path, {"x": "X", "y": "Y", "c": "C"})
    plan = _plan(tmp_path, ["x", "y", "c"], ["y", "x", "d"])

    def _fail_on_d(src: Path, dst: Path) -> str:
        if Path(dst).name == "d":
            raise MoveError("read-only", source=str(src), destination=str(dst))
        return move_path(src, dst)

    monkeypatch.setattr("mvedit.rename.executor.move_path", _fail_on_d)

    result = RenameExecutor(prune_root=tmp_path).apply(plan)

    assert isinstance(result, ExecutionFailure)
    assert result.stage == "phase_b"
    assert str(result.failing_pair) == "c -> d"
    assert [str(pair) for pair in result.committed] == ["x -> y", "y -> x"]
    assert result.rolled_back
    assert "after 2 of 3 committed" in result.message
    assert "c -> d (read-only)" in result.message
    assert _snapshot(tmp_path) == {"c": "C", "x": "Y", "y": "X"}
    with pytest.raises(PhaseBFailure) as excinfo:
        result.raise_for_failure()
    assert excinfo.value.result is result


def test_phase_b_failure_restores_still_staged_sources(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path, {"c": "C", "x": "X", "y": "Y"})
    plan = _plan(tmp_path, ["c", "x", "y"], ["d", "y", "x"])

    def _fail_on_d(src: Path, dst: Path) -> str:
        if Path(dst).name == "d":
            raise MoveError("quota exceeded", source=str(src), destination=str(dst))
        return move_path(src, dst)

    monkeypatch.setattr("mvedit.rename.executor.move_path", _fail_on_d)

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionFailure)
    assert result.stage == "phase_b"
    assert result.committed == ()
    assert result.rolled_back
    assert _snapshot(tmp_path) == {"c": "C", "x": "X", "y": "Y"}
    assert _temp_files(tmp_path) == []


def test_phase_b_failure_leaves_staged_file_when_source_is_occupied(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write(tmp_path, {"x": "X", "y": "Y"})
    plan = _plan(tmp_path, ["x", "y"], ["y", "x"])

    def _fail_into_x(src: Path, dst: Path) -> str:
        if Path(dst).name == "x":
            raise MoveError("transient", source=str(src), destination=str(dst))
        return move_path(src, dst)

    monkeypatch.setattr("mvedit.rename.executor.move_path", _fail_into_x)

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionFailure)
    assert [str(pair) for pair in result.committed] == ["x -> y"]
    assert not result.rolled_back
    assert "could not be restored" in result.message
    leftovers = _temp_files(tmp_path)
    assert len(leftovers) == 1
    assert leftovers[0].read_text(encoding="utf-8") == "Y"
    assert (tmp_path / "y").read_text(encoding="utf-8") == "X"


def test_apply_prunes_emptied_source_directories(tmp_path: Path) -> None:
    _write(tmp_path, {"a/b/c/file.txt": "F", "keep/other.txt": "O"})
    plan = _plan(tmp_path, ["a/b/c/file.txt", "keep/other.txt"], ["file.txt", "keep/o.txt"])

    result = RenameExecutor(prune_root=tmp_path).apply(plan)

    assert isinstance(result, ExecutionSuccess)
    assert result.pruned == 3
    assert not (tmp_path / "a").exists()
    assert (tmp_path / "keep").is_dir()
    assert _snapshot(tmp_path) == {"file.txt": "F", "keep/o.txt": "O"}


def test_apply_without_prune_root_keeps_directories(tmp_path: Path) -> None:
    _write(tmp_path, {"a/file.txt": "F"})
    plan = _plan(tmp_path, ["a/file.txt"], ["file.txt"])

    result = RenameExecutor().apply(plan)

    assert isinstance(result, ExecutionSuccess)
    assert result.pruned == 0
    assert (tmp_path / "a").is_dir()


def test_apply_refuses_a_plan_applied_before(tmp_path: Path) -> None:
    _write(tmp_path, {"x.txt": "X", "y.txt": "Y"})
    plan = _plan(tmp_path, ["x.txt", "y.txt"], ["y.txt", "x.txt"])
    executor = RenameExecutor()

    assert executor.apply(plan, dry_run=True).ok
    assert executor.apply(plan).ok
    with pytest.raises(PlanAlreadyAppliedError):
        executor.apply(plan)
    with pytest.raises(PlanAlreadyAppliedError):
        RenameExecutor().apply(plan)

    assert _snapshot(tmp_path) == {"x.txt": "Y", "y.txt": "X"}


def test_equal_plans_built_separately_are_applied_independently(tmp_path: Path) -> None:
    _write(tmp_path, {"x.txt": "X", "y.txt": "Y"})
    executor = RenameExecutor()

    executor.apply(_plan(tmp_path, ["x.txt", "y.txt"], ["y.txt", "x.txt"]))
    executor.apply(_plan(tmp_path, ["x.txt", "y.txt"], ["y.txt", "x.txt"]))

    assert _snapshot(tmp_path) == {"x.txt": "X", "y.txt": "Y"}
