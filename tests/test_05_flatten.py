"""Pytest-based flattening tests.

Test cases live in 05_flatten/*.tests files. Format:

    === test name
    options: exportOnly=true excludeIntermediate=false
    source code here
    ---
    contains: this._super_A_greet()
    not-contains: super.
    count: 1 greet() {
    order: constructor() { | greet() {
    diagnostics: 1
    diagnostic: unresolved-super-call has no ancestor
    error: already been declared
    ---

The options line is optional. Assertion directives:
    contains:      output must contain substring
    not-contains:  output must not contain substring
    count:         N followed by a substring occurring exactly N times
    order:         substrings separated by ' | ' occurring in that order
    diagnostics:   exact number of diagnostics
    diagnostic:    a diagnostic of kind exists, message containing the rest
    error:         compilation raises CompileError containing substring
"""

from pathlib import Path

import pytest

from flatclass import CompileError, CompileOptions, compile_classes

FLATTEN_DIR = Path(__file__).parent / "05_flatten"


def parse_flatten_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_flatten_tests() -> list[tuple[str, str, str]]:
    """Find all flatten tests, returns (test_id, input, expected)."""
    results = []
    for test_file in sorted(FLATTEN_DIR.glob("*.tests")):
        for name, input_code, expected in parse_flatten_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


def split_options(source: str) -> tuple[CompileOptions, str]:
    """Strip a leading options: line and turn it into CompileOptions."""
    if not source.startswith("options:"):
        return (CompileOptions(), source)
    first, _, rest = source.partition("\n")
    values: dict[str, object] = {}
    for item in first[len("options:") :].split():
        key, _, value = item.partition("=")
        values[key] = value == "true"
    return (CompileOptions.from_dict(values), rest)


def check_directive(directive: str, value: str, code: str, diagnostics: list) -> None:
    if directive == "contains":
        assert value in code, f"expected {value!r} in output:\n{code}"
    elif directive == "not-contains":
        assert value not in code, f"unexpected {value!r} in output:\n{code}"
    elif directive == "count":
        n, _, needle = value.partition(" ")
        actual = code.count(needle)
        assert actual == int(n), f"expected {needle!r} {n} times, got {actual}:\n{code}"
    elif directive == "order":
        pos = -1
        for needle in value.split(" | "):
            found = code.find(needle, pos + 1)
            assert found > pos, f"{needle!r} missing or out of order in:\n{code}"
            pos = found
    elif directive == "diagnostics":
        assert len(diagnostics) == int(value), (
            f"expected {value} diagnostics, got {diagnostics!r}"
        )
    elif directive == "diagnostic":
        kind, _, fragment = value.partition(" ")
        matches = [
            d for d in diagnostics if d.kind == kind and fragment.strip() in d.message
        ]
        assert matches, f"no {kind} diagnostic containing {fragment!r}: {diagnostics!r}"
    else:
        pytest.fail(f"Unknown directive: {directive}")


def pytest_generate_tests(metafunc):
    """Parametrize tests over flatten test files."""
    if "flatten_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_flatten_tests()
        ]
        metafunc.parametrize("flatten_input,flatten_expected", params)


def test_flatten(flatten_input: str, flatten_expected: str):
    """Verify flattened output against every directive."""
    options, source = split_options(flatten_input)
    if flatten_expected.startswith("error:"):
        expected_msg = flatten_expected[6:].strip()
        with pytest.raises(CompileError) as info:
            compile_classes(source, options)
        assert expected_msg.lower() in str(info.value).lower()
        return

    result = compile_classes(source, options)
    for line in flatten_expected.split("\n"):
        line = line.strip()
        if not line:
            continue
        if ":" not in line:
            pytest.fail(f"Bad assertion (no ':'): {line}")
        directive, value = line.split(":", 1)
        check_directive(directive.strip(), value.strip(), result.code, result.diagnostics)
