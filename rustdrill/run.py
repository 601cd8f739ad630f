"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from .exercise import Exercise, ExerciseFailed, ExerciseOutput, Mode
from .ui import success, warn
from .verify import VerificationFailed, test


class RunFailed(Exception):
    """An exercise could not be run or reset."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run, or test, one exercise; raise RunFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except VerificationFailed as err:
                raise RunFailed(exercise) from err
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> None:
    """Stash the changes made to the exercise file with git."""
    try:
        subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as err:
        raise RunFailed(exercise) from err


def _compile_and_run(exercise: Exercise) -> None:
    compile_error: ExerciseFailed | None = None
    run_error: ExerciseFailed | None = None
    output: ExerciseOutput | None = None

    with Console(highlight=False, soft_wrap=True).status(f"Compiling {exercise}...") as status:
        try:
            compiled = exercise.compile()
        except ExerciseFailed as err:
            compile_error = err
        else:
            with compiled:
                status.update(f"Running {exercise}...")
                try:
                    output = compiled.run()
                except ExerciseFailed as err:
                    run_error = err

    if compile_error is not None:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(compile_error.output.stderr)
        raise RunFailed(exercise) from compile_error

    if run_error is not None:
        print(run_error.output.stdout)
        print(run_error.output.stderr)
        warn(f"Ran {exercise} with errors")
        raise RunFailed(exercise) from run_error

    print(output.stdout)
    success(f"Successfully ran {exercise}")