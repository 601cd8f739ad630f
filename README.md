# rustdrill

`rustdrill` takes you through a directory of small Rust exercises. Each
exercise is a `.rs` file listed in an `info.toml` file at the root of the
exercise directory. `rustdrill` compiles, tests or lints each exercise with
the Rust toolchain and tells you which ones still need work.

An exercise counts as pending while its source still holds a line such as
`// I AM NOT DONE`. Delete that line once the exercise compiles and behaves
as it should, and `rustdrill` moves on to the next one.

## Requirements

- Python 3.11 or later
- `rustc` on your `PATH`
- `cargo` for clippy and build-script exercises
- `git` for `rustdrill reset`

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Usage

Run every command from the directory that holds `info.toml`. Without it,
or without a working `rustc`, `rustdrill` prints a message and exits with
status 1.

```
rustdrill                     # welcome text and a short guide
rustdrill --version           # print the version (also -v)
rustdrill watch               # verify in order, re-check whenever a file changes
rustdrill verify              # verify all exercises in order, stop at the first failure
rustdrill run <name>          # compile and run (or test) a single exercise
rustdrill run next            # run the first exercise that is not done yet
rustdrill hint <name>         # show the hint for an exercise
rustdrill reset <name>        # restore an exercise with "git stash -- <path>"
rustdrill list                # table of exercises with their status
rustdrill lsp                 # write rust-project.json for rust-analyzer
rustdrill cicvverify          # grade every exercise and write a JSON report
```

`run`, `hint` and `reset` also accept `next` in place of a name. An unknown
name, or a failing exercise, ends with exit status 1.

Pass `--nocapture` before the command to show the output of test exercises:

```
rustdrill --nocapture run testSuccess
```

### Exercise modes

The `mode` of each exercise decides how it is checked:

- `compile` – built with `rustc` and run
- `test` – built with `rustc --test` and its test harness run
- `clippy` – a `Cargo.toml` is written to `exercises/clippy/` and `cargo clippy`
  is run with warnings treated as errors
- `buildscript` – a `Cargo.toml` is written to `exercises/tests/` and
  `cargo test` is run

### Verifying

`rustdrill verify` checks the exercises in the order of `info.toml`, showing
a progress bar. It stops at the first exercise that fails to build, fails to
run, or still holds the pending marker; in that last case it shows the lines
around the marker.

### Listing exercises

`rustdrill list` accepts:

- `-p`, `--paths` – print only the paths
- `-n`, `--names` – print only the names
- `-f`, `--filter <patterns>` – comma-separated substrings (lower-cased)
  matched against names and paths
- `-u`, `--unsolved` – only exercises that are still pending
- `-s`, `--solved` – only exercises that are done

The last line reports how many exercises you have completed.

### Watch mode

`rustdrill watch` verifies the exercises, then re-evaluates them each time a
`.rs` file under `exercises/` is created or modified: the changed exercise
first, then every other pending one. While it runs you can type:

- `hint` – the hint for the current exercise
- `clear` – clear the screen
- `quit` – leave watch mode
- `!<cmd>` – run a command, such as `!rustc --explain E0381`
- `help` – list these commands

Use `rustdrill watch --success-hints` to show the hint each time an exercise
passes but is still marked as pending.

### rust-analyzer

`rustdrill lsp` writes `rust-project.json` with one crate for every `.rs` file
under `exercises/`. The standard library sources are taken from
`RUST_SRC_PATH` when it is set, otherwise from `rustc --print sysroot`.

### Grading report

`rustdrill cicvverify` runs every exercise concurrently, prints a line per
exercise, and writes a summary with per-exercise results, totals and elapsed
time to `.github/result/check_result.json`. The `.github/result/` directory
must already exist.

### info.toml

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

Every entry needs `name`, `path`, `mode` and `hint`.

Set `NO_EMOJI` in the environment to get plain-text status markers.

## Use from Python

The pieces behind the commands can be used directly:

```python
from rustdrill.exercise import load_exercises
from rustdrill.cli import find_exercise, list_exercises

exercises = load_exercises("info.toml")
print(list_exercises(exercises, unsolved=True))

exercise = find_exercise("next", exercises)
for line in exercise.state():          # empty list once the exercise is done
    print(line.number, line.line)
```

- `rustdrill.exercise` – `Exercise`, `Mode`, `load_exercises`; `Exercise.compile()`
  returns a `CompiledExercise` (a context manager that removes the built binary)
  or raises `ExerciseFailed`.
- `rustdrill.verify` – `verify()` and `test()`, raising `VerificationFailed`.
- `rustdrill.run` – `run()` and `reset()`, raising `RunFailed`.
- `rustdrill.project` – `RustAnalyzerProject` for building `rust-project.json`.
- `rustdrill.cli` – `main()`, `watch()`, `cicv_verify()` and the report classes.