"""Exercises: loading, compiling, running and checking completion state."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"

_MANIFEST_TEMPLATE = """[package]
name = "{name}"
version = "0.0.1"
edition = "2021"
[[bin]]
name = "{name}"
path = "{name}.rs\""""


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def _clean() -> None:
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured standard output and error of a command."""

    stdout: str
    stderr: str


class ExerciseFailed(Exception):
    """Compiling or running an exercise did not succeed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


def _execute(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(args, capture_output=True)


def _output_of(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(result.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(result.stderr or b"").decode("utf-8", errors="replace"),
    )


def _lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


class CompiledExercise:
    """A successfully compiled exercise; closing it removes the binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise ExerciseFailed if it fails."""
        return self.exercise._run()

    def close(self) -> None:
        """Remove the compiled binary."""
        _clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _write_manifest(self, manifest: str) -> None:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if "NO_EMOJI" in os.environ
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            Path(manifest).write_text(_MANIFEST_TEMPLATE.format(name=self.name), encoding="utf-8")
        except OSError as err:
            raise OSError(message) from err

    def _rustc_args(self, *extra: str) -> list[str]:
        return ["rustc", *extra, str(self.path), "-o", temp_file(), *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]

    def compile(self) -> CompiledExercise:
        """Build the exercise according to its mode; raise ExerciseFailed on failure."""
        match self.mode:
            case Mode.COMPILE:
                result = _execute(self._rustc_args())
            case Mode.TEST:
                result = _execute(self._rustc_args("--test"))
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a binary too, so the exercise can be run afterwards.
                _execute(self._rustc_args())
                _execute(["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS])
                result = _execute(
                    [
                        "cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--", "-D", "warnings", "-D", "clippy::float_cmp",
                    ]
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                result = _execute(["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH])
        if result.returncode == 0:
            return CompiledExercise(self)
        _clean()
        raise ExerciseFailed(_output_of(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        result = _execute(args)
        output = _output_of(result)
        if result.returncode != 0:
            raise ExerciseFailed(output)
        return output

    def state(self) -> list[ContextLine]:
        """Return the lines around the pending marker; empty when done."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return []
        lines = _lines(source)
        matched = next((i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)), None)
        if matched is None:
            raise ValueError(f"pending marker in {self.path} does not sit on a single line")
        low = max(matched - CONTEXT, 0)
        high = matched + CONTEXT
        return [
            ContextLine(line=line, number=i + 1, important=i == matched)
            for i, line in enumerate(lines)
            if low <= i <= high
        ]

    def looks_done(self) -> bool:
        """Whether the pending marker has been removed from the source."""
        return not self.state()


def load_exercises(path: str | os.PathLike) -> list[Exercise]:
    """Read the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    exercises = []
    for entry in data.get("exercises", []):
        try:
            exercises.append(
                Exercise(
                    name=entry["name"],
                    path=Path(entry["path"]),
                    mode=Mode(entry["mode"]),
                    hint=entry["hint"],
                )
            )
        except KeyError as err:
            raise ValueError(f"exercise entry is missing field {err}") from None
    return exercises