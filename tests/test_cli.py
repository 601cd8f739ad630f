import json
import subprocess
from pathlib import Path

import pytest

from rustdrill.cli import (
    ExerciseCheckList,
    ExerciseResult,
    ExerciseStatistics,
    WatchStatus,
    cicv_verify,
    find_exercise,
    list_exercises,
    main,
    rustc_exists,
    watch,
)
from rustdrill.exercise import Exercise, Mode

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"
PENDING_TEST = "// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n"


class FakeToolchain:
    """Stands in for rustc, cargo and compiled binaries."""

    def __init__(self):
        self.failing = set()
        self.binary_stdout = b""
        self.calls = []

    def __call__(self, args, *unused, **kwargs):
        args = [str(a) for a in args]
        self.calls.append(args)
        if args[0].startswith("./temp_"):
            return subprocess.CompletedProcess(args, 0, self.binary_stdout, b"")
        joined = " ".join(args)
        code = 1 if any(name in joined for name in self.failing) else 0
        return subprocess.CompletedProcess(args, code, b"", b"compile error" if code else b"")


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def write_project(root, entries):
    exercises_dir = root / "exercises"
    exercises_dir.mkdir(exist_ok=True)
    blocks = []
    for name, mode, hint, content in entries:
        (exercises_dir / f"{name}.rs").write_text(content, encoding="utf-8")
        blocks.append(
            f'[[exercises]]\nname = "{name}"\npath = "exercises/{name}.rs"\n'
            f'mode = "{mode}"\nhint = """{hint}"""\n'
        )
    (root / "info.toml").write_text("\n".join(blocks), encoding="utf-8")


@pytest.fixture
def success_dir(tmp_path, monkeypatch, toolchain):
    write_project(
        tmp_path,
        [("compSuccess", "compile", "", FINISHED), ("testSuccess", "test", "", FINISHED)],
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def failure_dir(tmp_path, monkeypatch, toolchain):
    write_project(
        tmp_path,
        [("compFailure", "compile", "", FINISHED), ("testFailure", "test", "Hello!", FINISHED)],
    )
    toolchain.failing.update({"compFailure", "testFailure"})
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def state_dir(tmp_path, monkeypatch, toolchain):
    write_project(
        tmp_path,
        [
            ("pending_exercise", "compile", "", PENDING),
            ("finished_exercise", "compile", "", FINISHED),
            ("pending_test_exercise", "test", "", PENDING_TEST),
        ],
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version_flag_prints_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, toolchain, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "must be run from" in capsys.readouterr().out


def test_runs_without_arguments(success_dir, capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "welcome to..." in out
    assert "Got all that? Great!" in out


def test_rustc_exists_when_toolchain_answers(toolchain):
    assert rustc_exists() is True
    assert toolchain.calls[-1] == ["rustc", "--version"]


def test_rustc_missing(tmp_path, monkeypatch, capsys):
    def missing(*args, **kwargs):
        raise FileNotFoundError("rustc")

    monkeypatch.setattr(subprocess, "run", missing)
    write_project(tmp_path, [("compSuccess", "compile", "", FINISHED)])
    monkeypatch.chdir(tmp_path)
    assert rustc_exists() is False
    assert main(["verify"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_verify_all_success(success_dir):
    assert main(["verify"]) == 0


def test_verify_fails_if_some_fails(failure_dir):
    assert main(["verify"]) == 1


def test_run_single_compile_success(success_dir, capsys):
    assert main(["run", "compSuccess"]) == 0
    assert "Successfully ran" in capsys.readouterr().out


def test_run_single_compile_failure(failure_dir):
    assert main(["run", "compFailure"]) == 1


def test_run_single_test_success(success_dir):
    assert main(["run", "testSuccess"]) == 0


def test_run_single_test_failure(failure_dir):
    assert main(["run", "testFailure"]) == 1


def test_run_single_test_no_filename(success_dir):
    with pytest.raises(SystemExit) as excinfo:
        main(["run"])
    assert excinfo.value.code == 1


def test_run_single_test_no_exercise(failure_dir, capsys):
    assert main(["run", "compNoExercise.rs"]) == 1
    assert "No exercise found for 'compNoExercise.rs'!" in capsys.readouterr().out


def test_reset_single_exercise(tmp_path, monkeypatch, toolchain):
    write_project(tmp_path, [("intro1", "compile", "", PENDING)])
    monkeypatch.chdir(tmp_path)
    launched = []
    monkeypatch.setattr(subprocess, "Popen", lambda args, *a, **kw: launched.append(args))
    assert main(["reset", "intro1"]) == 0
    assert launched == [["git", "stash", "--", str(Path("exercises/intro1.rs"))]]


def test_reset_no_exercise(success_dir):
    with pytest.raises(SystemExit) as excinfo:
        main(["reset"])
    assert excinfo.value.code == 1


def test_get_hint_for_single_test(failure_dir, capsys):
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


def test_run_compile_exercise_does_not_prompt(state_dir, capsys):
    assert main(["run", "pending_exercise"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(state_dir, capsys):
    assert main(["run", "pending_test_exercise"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_single_test_success_with_output(success_dir, toolchain, capsys):
    toolchain.binary_stdout = b"THIS TEST TOO SHALL PASS\n"
    assert main(["--nocapture", "run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_single_test_success_without_output(success_dir, toolchain, capsys):
    toolchain.binary_stdout = b"THIS TEST TOO SHALL PASS\n"
    assert main(["run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_list_no_pending(success_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "Done" in out


def test_list_both_done_and_pending(state_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out and "Pending" in out


def test_list_without_pending(state_dir, capsys):
    assert main(["list", "--solved"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "finished_exercise" in out


def test_list_without_done(state_dir, capsys):
    assert main(["list", "--unsolved"]) == 0
    out = capsys.readouterr().out
    assert "Done" not in out
    assert "pending_exercise" in out


def test_list_exercises_paths_names_and_progress(state_dir):
    exercises = [
        Exercise("pending_exercise", Path("exercises/pending_exercise.rs"), Mode.COMPILE),
        Exercise("finished_exercise", Path("exercises/finished_exercise.rs"), Mode.COMPILE),
    ]
    paths_text = list_exercises(exercises, paths=True)
    assert paths_text.splitlines() == [
        str(Path("exercises/pending_exercise.rs")),
        str(Path("exercises/finished_exercise.rs")),
        "Progress: You completed 1 / 2 exercises (50.0 %).",
    ]
    names_text = list_exercises(exercises, names=True, filter="FINISHED")
    assert names_text.splitlines() == [
        "finished_exercise",
        "Progress: You completed 1 / 2 exercises (50.0 %).",
    ]
    table = list_exercises(exercises).splitlines()
    assert table[0] == f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"
    assert table[2].startswith("finished_exercise")
    assert table[2].rstrip().endswith("Done")


def test_list_exercises_blank_filter_matches_nothing(state_dir):
    exercises = [Exercise("finished_exercise", Path("exercises/finished_exercise.rs"), Mode.COMPILE)]
    assert list_exercises(exercises, names=True, filter=" , ").splitlines() == [
        "Progress: You completed 1 / 1 exercises (100.0 %).",
    ]


def test_find_exercise_next_and_by_name(state_dir):
    exercises = [
        Exercise("finished_exercise", Path("exercises/finished_exercise.rs"), Mode.COMPILE),
        Exercise("pending_exercise", Path("exercises/pending_exercise.rs"), Mode.COMPILE),
    ]
    assert find_exercise("next", exercises).name == "pending_exercise"
    assert find_exercise("finished_exercise", exercises) is exercises[0]
    with pytest.raises(LookupError, match="No exercise found for 'missing'!"):
        find_exercise("missing", exercises)
    with pytest.raises(LookupError, match="Congratulations"):
        find_exercise("next", exercises[:1])


def test_check_list_to_json():
    check_list = ExerciseCheckList(
        exercises=[ExerciseResult(name="intro1", result=True)],
        statistics=ExerciseStatistics(total_exercations=1, total_succeeds=1),
    )
    text = check_list.to_json()
    assert json.loads(text) == {
        "exercises": [{"name": "intro1", "result": True}],
        "user_name": None,
        "statistics": {
            "total_exercations": 1,
            "total_succeeds": 1,
            "total_failures": 0,
            "total_time": 0,
        },
    }
    assert text.startswith('{\n  "exercises": [')


def test_cicv_verify_writes_report(tmp_path, monkeypatch, toolchain):
    write_project(tmp_path, [("good", "compile", "", FINISHED), ("bad", "compile", "", FINISHED)])
    monkeypatch.chdir(tmp_path)
    toolchain.failing.add("bad.rs")
    exercises = [
        Exercise("good", Path("exercises/good.rs"), Mode.COMPILE),
        Exercise("bad", Path("exercises/bad.rs"), Mode.COMPILE),
    ]
    report = tmp_path / "report.json"
    result = cicv_verify(exercises, True, report)
    assert sorted((r.name, r.result) for r in result.exercises) == [("bad", False), ("good", True)]
    assert result.statistics.total_exercations == 2
    assert result.statistics.total_succeeds == 1
    assert result.statistics.total_failures == 1
    assert result.statistics.total_time >= 0
    assert json.loads(report.read_text(encoding="utf-8")) == json.loads(result.to_json())


def test_cicvverify_command(success_dir):
    (success_dir / ".github" / "result").mkdir(parents=True)
    assert main(["--nocapture", "cicvverify"]) == 0
    data = json.loads((success_dir / ".github/result/check_result.json").read_text(encoding="utf-8"))
    assert data["statistics"]["total_exercations"] == 2
    assert data["statistics"]["total_succeeds"] == 2


def test_watch_finishes_when_everything_passes(success_dir):
    exercises = [
        Exercise("compSuccess", Path("exercises/compSuccess.rs"), Mode.COMPILE),
        Exercise("testSuccess", Path("exercises/testSuccess.rs"), Mode.TEST),
    ]
    assert watch(exercises, False, False) is WatchStatus.FINISHED


def test_watch_command_reports_completion(success_dir, capsys):
    assert main(["watch"]) == 0
    assert "All exercises completed!" in capsys.readouterr().out