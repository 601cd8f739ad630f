"""Checking that exercises compile, run and have been marked as finished."""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from .exercise import CompiledExercise, Exercise, ExerciseFailed, Mode
from .ui import success, warn

_BAR_WIDTH = 60


class VerificationFailed(Exception):
    """An exercise failed to compile, failed to run or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} did not pass verification")
        self.exercise = exercise


class _RunMode(enum.Enum):
    INTERACTIVE = enum.auto()
    NON_INTERACTIVE = enum.auto()


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


def _progress_line(position: int, total: int, percentage: float) -> Text:
    filled = _BAR_WIDTH if total == 0 else min(_BAR_WIDTH, _BAR_WIDTH * position // total)
    text = Text("Progress: [")
    if filled >= _BAR_WIDTH:
        text.append("#" * _BAR_WIDTH, style="green")
    else:
        text.append("#" * filled + ">", style="green")
        text.append("-" * (_BAR_WIDTH - filled - 1), style="red")
    text.append(f"] {position}/{total} ({percentage:.1f} %)")
    return text


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in order; raise VerificationFailed at the first that does not pass."""
    num_done, total = progress
    console = _console()
    percentage = num_done / total * 100.0 if total else 0.0
    position = num_done
    console.print(_progress_line(position, total, percentage))

    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                passed = _compile_and_test(exercise, _RunMode.INTERACTIVE, verbose, success_hints)
            case Mode.COMPILE:
                passed = _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                passed = _compile_only(exercise, success_hints)
        if not passed:
            raise VerificationFailed(exercise)
        if total:
            percentage += 100.0 / total
        position += 1
        console.print(_progress_line(position, total, percentage))


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's test harness; raise VerificationFailed on failure."""
    _compile_and_test(exercise, _RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise, status: Status) -> CompiledExercise:
    try:
        return exercise.compile()
    except ExerciseFailed as err:
        status.stop()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        raise VerificationFailed(exercise) from err


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _console().status(f"Compiling {exercise}...") as status:
        _compile(exercise, status).close()
    return _prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    failure: ExerciseFailed | None = None
    with _console().status(f"Compiling {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except ExerciseFailed as err:
                failure = err

    if failure is not None:
        warn(f"Ran {exercise} with errors")
        print(failure.output.stdout)
        print(failure.output.stderr)
        raise VerificationFailed(exercise) from failure

    return _prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: _RunMode, verbose: bool, success_hints: bool
) -> bool:
    failure: ExerciseFailed | None = None
    with _console().status(f"Testing {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            try:
                output = compiled.run()
            except ExerciseFailed as err:
                failure = err

    if failure is not None:
        warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(failure.output.stdout)
        raise VerificationFailed(exercise) from failure

    if verbose:
        print(output.stdout)
    if run_mode is _RunMode.INTERACTIVE:
        return _prompt_for_completion(exercise, None, success_hints)
    return True


def _separator() -> Text:
    return Text("====================", style="bold")


def _prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    context = exercise.state()
    if not context:
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    no_emoji = "NO_EMOJI" in os.environ
    match exercise.mode:
        case Mode.COMPILE:
            success_msg = "The code is compiling!"
        case Mode.TEST:
            success_msg = "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            success_msg = (
                "The code is compiling, and Clippy is happy!"
                if no_emoji
                else "The code is compiling, and 📎 Clippy 📎 is happy!"
            )
        case Mode.BUILD_SCRIPT:
            success_msg = "Build script works!"

    console = _console()
    console.print()
    if no_emoji:
        console.print(Text(f"~*~ {success_msg} ~*~"))
    else:
        console.print(Text(f"🎉 🎉  {success_msg} 🎉 🎉"))
    console.print()

    if prompt_output is not None:
        console.print(Text("Output:"))
        console.print(_separator())
        console.print(Text(prompt_output))
        console.print(_separator())
        console.print()
    if success_hints:
        console.print(Text("Hints:"))
        console.print(_separator())
        console.print(Text(exercise.hint))
        console.print(_separator())
        console.print()

    console.print(Text("You can keep working on this exercise,"))
    line = Text("or jump into the next one by removing the ")
    line.append("`I AM NOT DONE`", style="bold")
    line.append(" comment:")
    console.print(line)
    console.print()
    for context_line in context:
        row = Text(f"{context_line.number:>2}", style="bold blue")
        row.append(" ")
        row.append("|", style="blue")
        row.append("  ")
        row.append(context_line.line, style="bold" if context_line.important else "")
        console.print(row)

    return False