#!/usr/bin/env python3
"""
Test runner for the asset toolkit.

Groups the suite by subsystem so a change to the sprite decoders does not
need the download and CLI tests, and vice versa.
"""

import sys
import subprocess
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
TEST_DIR = PROJECT_ROOT / "scripts" / "ikemen_assets" / "tests"

SUITES = {
    "storage": ["test_storage.py", "test_scanner.py", "test_config.py"],
    "sprites": ["test_pcx.py", "test_sff.py", "test_portrait.py", "test_image_utils.py"],
    "install": ["test_installer.py", "test_engine_config.py"],
    "cli": ["test_cli_integration.py"],
}

# Unit runs skip everything that drives the installer or the CLI end to end
SUITES["unit"] = SUITES["storage"] + SUITES["sprites"]
SUITES["integration"] = SUITES["install"] + SUITES["cli"]


def build_command(suite="all", verbose=False, coverage=False, keyword=None, fail_fast=False):
    """Build the pytest command line for a suite."""
    cmd = [sys.executable, "-m", "pytest"]

    if verbose:
        cmd.append("-v")
    if fail_fast:
        cmd.append("-x")
    if keyword:
        cmd.extend(["-k", keyword])
    if coverage:
        cmd.extend(["--cov=ikemen_assets", "--cov-report=term-missing"])

    if suite == "all":
        cmd.append(str(TEST_DIR))
    else:
        cmd.extend(str(TEST_DIR / name) for name in SUITES[suite])
    return cmd


def run_tests(suite="all", verbose=False, coverage=False, keyword=None, fail_fast=False):
    """Run one suite of the asset toolkit tests."""
    cmd = build_command(suite, verbose, coverage, keyword, fail_fast)
    print(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode
    except FileNotFoundError:
        print("Error: pytest not found. Install it with: pip install -e .[test]")
        return 1


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run asset toolkit tests")
    parser.add_argument("--type", dest="suite", choices=["all"] + sorted(SUITES),
                        default="all", help="Suite to run")
    parser.add_argument("-k", dest="keyword", help="Only run tests matching this pytest expression")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--coverage", action="store_true", help="Run with coverage report")
    parser.add_argument("--fail-fast", "-x", action="store_true", help="Stop at the first failure")

    args = parser.parse_args()
    sys.exit(run_tests(args.suite, args.verbose, args.coverage, args.keyword, args.fail_fast))
