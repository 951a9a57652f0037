from __future__ import annotations

import io
import sys
import unittest
from datetime import datetime
from pathlib import Path

DEFAULT_PATTERN = "test_*.py"
LOG_DIR = Path("tests") / "testlogs"


def _timestamp(now: datetime | None = None) -> str:
    ts = now or datetime.now()
    return ts.strftime("%Y%m%d_%H%M%S")


def _failure_log_path(log_dir: Path, now: datetime | None = None) -> Path:
    return log_dir / f"test_failures_{_timestamp(now)}.txt"


def _pattern_from_argv(argv: list[str]) -> str:
    """First CLI argument narrows discovery, e.g. ``test_ddl*.py``."""

    if not argv:
        return DEFAULT_PATTERN
    pattern = argv[0].strip()
    if not pattern:
        return DEFAULT_PATTERN
    if not pattern.endswith(".py"):
        pattern = f"{pattern}.py"
    return pattern if pattern.startswith("test_") else f"test_{pattern}"


def _build_failure_report(
    result: unittest.result.TestResult,
    test_output: str,
    *,
    pattern: str = DEFAULT_PATTERN,
) -> str:
    lines: list[str] = []
    lines.append(f"Timestamp: {datetime.now().isoformat(timespec='seconds')}")
    lines.append(f"Pattern: {pattern}")
    lines.append(
        "Summary: "
        f"ran={result.testsRun}, failures={len(result.failures)}, errors={len(result.errors)}, "
        f"skipped={len(result.skipped)}"
    )
    if result.skipped:
        # Tk tests skip on headless machines
        lines.append("Skipped tests usually mean no display is available for Tk.")
    lines.append("Fix hint: inspect stack traces below, fix failing tests, then rerun this script.")
    lines.append("")
    lines.append(test_output.rstrip())
    lines.append("")
    return "\n".join(lines)


def _write_failure_report(log_dir: Path, content: str, now: datetime | None = None) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    path = _failure_log_path(log_dir, now)
    path.write_text(content, encoding="utf-8")
    return path


def main(argv: list[str] | None = None) -> int:
    pattern = _pattern_from_argv(sys.argv[1:] if argv is None else argv)
    loader = unittest.TestLoader()
    suite = loader.discover(start_dir="tests", pattern=pattern)

    output = io.StringIO()
    runner = unittest.TextTestRunner(stream=output, verbosity=2)
    result = runner.run(suite)

    test_output = output.getvalue()
    sys.stdout.write(test_output)

    if result.wasSuccessful():
        print("All tests passed. No failure log written.")
        return 0

    report = _build_failure_report(result, test_output, pattern=pattern)
    log_path = _write_failure_report(LOG_DIR, report)
    print(f"Test failures detected. Log written to: {log_path}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
