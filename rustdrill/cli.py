"""Command line entry point: listing, running, verifying and watching exercises."""

from __future__ import annotations

import argparse
import enum
import itertools
import json
import os
import queue
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise, load_exercises
from .project import RustAnalyzerProject
from .run import RunFailed, reset, run
from .verify import VerificationFailed, verify

VERSION = "5.5.1"
INFO_FILE = "info.toml"
CHECK_RESULT_PATH = ".github/result/check_result.json"
EXERCISES_DIR = "./exercises"

WELCOME = """       welcome to...
 +-----------------------------+
 |          rustdrill          |
 +-----------------------------+"""

DEFAULT_OUT = """Thanks for installing rustdrill!

Is this your first time? Don't worry, rustdrill was made for beginners! We are
going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how rustdrill operates:

1. The central concept behind rustdrill is that you solve exercises. These
   exercises usually have some sort of syntax error in them, which will cause
   them to fail compilation or testing. Sometimes there's a logic error instead
   of a syntax error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   rustdrill will be able to move on to the next exercise.
2. If you run rustdrill in watch mode (which we recommend), it'll automatically
   start with the first exercise. Don't get confused by an error message popping
   up as soon as you run rustdrill! This is part of the exercise that you're
   supposed to solve, so open the exercise file in an editor and start your
   detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `rustdrill hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue on the
   project's issue tracker. We look at every issue, and sometimes, other
   learners do too so you can help each other out!
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `rustdrill lsp`.

Got all that? Great! To get started, run `rustdrill watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!

Before reporting an issue or contributing, please read the contributing guidelines."""

_WATCH_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


@dataclass
class ExerciseResult:
    """Outcome of checking one exercise."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals gathered while checking all exercises."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The report written by the batch check."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        """Return the report as indented JSON."""
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = enum.auto()
    UNFINISHED = enum.auto()


def rustc_exists() -> bool:
    """Whether `rustc --version` can be run successfully."""
    try:
        result = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return result.returncode == 0


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Return the named exercise, or the first pending one for "next"; raise LookupError."""
    if name == "next":
        for exercise in exercises:
            if not exercise.looks_done():
                return exercise
        raise LookupError(
            "🎉 Congratulations! You have done all the exercises!\n"
            "🔚 There are no more exercises to do next!"
        )
    for exercise in exercises:
        if exercise.name == name:
            return exercise
    raise LookupError(f"No exercise found for '{name}'!")


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> str:
    """Return the exercise listing followed by the progress line."""
    lines: list[str] = []
    if not paths and not names:
        lines.append(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}\n")

    patterns = [part for part in (filter or "").lower().split(",") if part.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches_filter = any(p in exercise.name or p in fname for p in patterns)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches_filter or filter is None):
            if paths:
                lines.append(f"{fname}\n")
            elif names:
                lines.append(f"{exercise.name}\n")
            else:
                lines.append(f"{exercise.name:<17}\t{fname:<46}\t{status:<7}\n")

    total = len(exercises)
    percentage = f"{done_count / total * 100.0:.1f}" if total else "NaN"
    lines.append(
        f"Progress: You completed {done_count} / {total} exercises ({percentage} %).\n"
    )
    return "".join(lines)


def cicv_verify(
    exercises: Sequence[Exercise],
    verbose: bool = True,
    output_path: str | os.PathLike = CHECK_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, write a JSON report and return it."""
    start = int(time.time())
    total = len(exercises)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    rights = 0

    def check(exercise: Exercise) -> None:
        nonlocal rights
        task_start = int(time.time())
        try:
            run(exercise, verbose)
            passed = True
        except RunFailed:
            passed = False
        with lock:
            if passed:
                rights += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {rights}")
            print(f"当前修改试卷耗时: {int(time.time()) - task_start} s")
            check_list.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if passed:
                check_list.statistics.total_succeeds += 1
            else:
                check_list.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        list(pool.map(check, exercises))

    total_time = int(time.time()) - start
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list


class _WatchState:
    def __init__(self, hint: str | None) -> None:
        self.hint = hint
        self.should_quit = threading.Event()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[Path]) -> None:
        super().__init__()
        self._events = events

    def _record(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(Path(os.fsdecode(event.src_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)


def _clear_screen() -> None:
    print("\x1bc")


def _shell_command(line: str, state: _WatchState) -> None:
    command = line.strip()
    if command == "hint":
        if state.hint is not None:
            print(state.hint)
    elif command == "clear":
        print("\x1b[2J\x1b[1;1H")
    elif command == "quit":
        state.should_quit.set()
        print("Bye!")
    elif command == "help":
        print(_WATCH_HELP)
    elif command.startswith("!"):
        cmd = command[1:]
        parts = cmd.split()
        if not parts:
            print("no command provided")
        else:
            try:
                subprocess.run(parts)
            except OSError as err:
                print(f"failed to execute command `{cmd}`: {err}")
    else:
        print(f"unknown command: {command}")


def _spawn_watch_shell(state: _WatchState) -> None:
    print(
        "Welcome to watch mode! You can type 'help' to get an overview "
        "of the commands you can use here."
    )

    def loop() -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except (OSError, ValueError) as err:
                print(f"error reading command: {err}")
                return
            if not line:
                return
            _shell_command(line, state)

    threading.Thread(target=loop, daemon=True).start()


def _ends_with(path: Path, suffix: Path) -> bool:
    parts = Path(suffix).parts
    return bool(parts) and path.parts[-len(parts):] == parts


def _debounced(events: queue.Queue[Path], first: Path) -> list[Path]:
    seen = {first: None}
    while True:
        try:
            seen[events.get(timeout=1.0)] = None
        except queue.Empty:
            return list(seen)


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify whenever a .rs file below ./exercises changes."""
    events: queue.Queue[Path] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), EXERCISES_DIR, recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as err:
            state = _WatchState(err.exercise.hint)
        _spawn_watch_shell(state)

        while True:
            try:
                first = events.get(timeout=1.0)
            except queue.Empty:
                pass
            else:
                for changed in _debounced(events, first):
                    if changed.suffix != ".rs" or not changed.exists():
                        continue
                    filepath = changed.resolve()
                    current = next((e for e in exercises if _ends_with(filepath, e.path)), None)
                    pending: Iterable[Exercise] = itertools.chain(
                        [current] if current is not None else [],
                        (
                            e
                            for e in exercises
                            if not e.looks_done() and not _ends_with(filepath, e.path)
                        ),
                    )
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    try:
                        verify(pending, (num_done, len(exercises)), verbose, success_hints)
                        return WatchStatus.FINISHED
                    except VerificationFailed as err:
                        state.hint = err.exercise.hint
            if state.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rustdrill",
        description="A collection of small exercises to get you used to writing and reading Rust code",
    )
    parser.add_argument("--nocapture", action="store_true", help="show outputs from the test exercises")
    parser.add_argument("-v", "--version", action="store_true", help="show the executable version")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("verify", help="Verifies all exercises according to the recommended order")
    watch_parser = sub.add_parser("watch", help="Reruns `verify` when files were edited")
    watch_parser.add_argument("--success-hints", action="store_true", help="show hints on success")
    for name, text in (
        ("run", "Runs/Tests a single exercise"),
        ("reset", 'Resets a single exercise using "git stash -- <filename>"'),
        ("hint", "Returns a hint for the given exercise"),
    ):
        sub.add_parser(name, help=text).add_argument("name", help="the name of the exercise")
    list_parser = sub.add_parser("list", help="Lists the exercises available")
    list_parser.add_argument("-p", "--paths", action="store_true", help="show only the paths of the exercises")
    list_parser.add_argument("-n", "--names", action="store_true", help="show only the names of the exercises")
    list_parser.add_argument(
        "-f", "--filter", help="provide a string to match exercise names; comma separated patterns are acceptable"
    )
    list_parser.add_argument("-u", "--unsolved", action="store_true", help="display only exercises not yet solved")
    list_parser.add_argument("-s", "--solved", action="store_true", help="display only exercises that have been solved")
    sub.add_parser("lsp", help="Enable rust-analyzer for exercises")
    sub.add_parser("cicvverify", help="cicvverify")
    return parser


def _lsp() -> int:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError:
        print("Couldn't find toolchain path, do you have `rustc` installed?", file=sys.stderr)
        return 1
    project.exercises_to_json(EXERCISES_DIR)
    if not project.crates:
        print("Failed find any exercises, make sure you're in the `rustdrill` folder")
        return 0
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return 0
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")
    return 0


def _watch(exercises: Sequence[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as err:
        print(f"Error: Could not watch your progress. Error message was {err!r}.")
        print(
            "Most likely you've run out of disk space or your 'inotify limit' has been reached."
        )
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if "NO_EMOJI" in os.environ else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print(
            "If you want to continue working on the exercises at a later point, "
            "you can simply run `rustdrill watch` again"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, run the chosen command and return the exit code."""
    args = _build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{os.path.abspath(sys.argv[0])} must be run from the rustdrill directory")
        print("Try `cd rustdrill/`!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    try:
        match args.command:
            case "list":
                text = list_exercises(
                    exercises, args.paths, args.names, args.filter, args.unsolved, args.solved
                )
                try:
                    sys.stdout.write(text)
                    sys.stdout.flush()
                except BrokenPipeError:
                    return 0
                return 0
            case "run":
                run(find_exercise(args.name, exercises), verbose)
            case "reset":
                reset(find_exercise(args.name, exercises))
            case "hint":
                print(find_exercise(args.name, exercises).hint)
            case "verify":
                verify(exercises, (0, len(exercises)), verbose, False)
            case "cicvverify":
                cicv_verify(exercises, True, CHECK_RESULT_PATH)
            case "lsp":
                return _lsp()
            case "watch":
                return _watch(exercises, verbose, args.success_hints)
    except LookupError as err:
        print(err)
        return 1
    except (RunFailed, VerificationFailed):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())