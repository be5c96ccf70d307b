#!/usr/bin/env python3
"""
Development helper for PromptBank.

Runs the linters, type checker and test suite, and builds the package.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parent.parent

ARTIFACTS = [
    "build",
    "dist",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "htmlcov",
]


def run_command(command: List[str], cwd: Optional[Path] = None) -> int:
    """Run a command and return its exit code."""
    print(f"Running: {' '.join(command)}")
    result = subprocess.run(command, cwd=cwd or ROOT)
    return result.returncode


def lint() -> int:
    """Run ruff with auto-fix, then the formatter."""
    result = run_command(["ruff", "check", "--fix", "src/", "tests/"])
    if result != 0:
        return result
    return run_command(["ruff", "format", "src/", "tests/"])


def test() -> int:
    """Run the test suite with coverage."""
    return run_command([
        "pytest",
        "tests/",
        "--cov=promptbank",
        "--cov-report=term-missing",
    ])


def build_package() -> int:
    """Check, test and build the distribution."""
    steps = [
        ("Linting", ["ruff", "check", "src/", "tests/"]),
        ("Type checking", ["mypy", "src/"]),
        ("Testing", ["pytest", "tests/"]),
        ("Packaging", [sys.executable, "-m", "build"]),
    ]
    for title, command in steps:
        print(f"\n{title}...")
        if run_command(command) != 0:
            print(f"{title} failed")
            return 1

    print("\nBuild completed successfully")
    return 0


def clean() -> int:
    """Remove build artifacts and caches."""
    for name in ARTIFACTS:
        shutil.rmtree(ROOT / name, ignore_errors=True)
    for path in ROOT.glob("src/*.egg-info"):
        shutil.rmtree(path, ignore_errors=True)
    for path in ROOT.rglob("__pycache__"):
        shutil.rmtree(path, ignore_errors=True)
    print("Clean completed")
    return 0


COMMANDS = {
    "build": build_package,
    "clean": clean,
    "test": test,
    "lint": lint,
}


def main() -> None:
    """Main entry point."""
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        print(f"Usage: python scripts/build.py [{'|'.join(COMMANDS)}]")
        sys.exit(1)
    sys.exit(COMMANDS[sys.argv[1]]())


if __name__ == "__main__":
    main()
