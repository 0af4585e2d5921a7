#!/usr/bin/env python3
"""
Test runner script for fsreclaim

Wraps pytest with the options used day to day.

Usage:
    python run_tests.py                    # Run all tests
    python run_tests.py --fast             # Skip slow threaded tests
    python run_tests.py --coverage         # Run with coverage report
    python run_tests.py --verbose          # Run with verbose output
    python run_tests.py tests/test_observer.py  # Run specific test file

Tests marked 'root' are skipped automatically unless run as root.
"""

import sys
import argparse
import subprocess


def main():
    parser = argparse.ArgumentParser(
        description='Run fsreclaim test suite',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--fast', '-f',
        action='store_true',
        help='Skip slow tests'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Quiet output (only show summary)'
    )
    parser.add_argument(
        '--coverage',
        action='store_true',
        help='Generate coverage report'
    )
    parser.add_argument(
        '--failfast', '-x',
        action='store_true',
        help='Stop on first failure'
    )
    parser.add_argument(
        'tests',
        nargs='*',
        help='Specific test files or directories to run'
    )

    args = parser.parse_args()

    cmd = [sys.executable, '-m', 'pytest']

    if args.fast:
        cmd.extend(['-m', 'not slow'])

    if args.verbose:
        cmd.append('-vv')
    elif args.quiet:
        cmd.append('-q')
    else:
        cmd.append('-v')

    if args.coverage:
        cmd.extend(['--cov=fsreclaim', '--cov-report=term-missing'])

    if args.failfast:
        cmd.append('-x')

    if args.tests:
        cmd.extend(args.tests)
    else:
        cmd.append('tests')

    print(f"Running: {' '.join(cmd)}")
    print("-" * 70)

    try:
        result = subprocess.run(cmd)
        return result.returncode
    except KeyboardInterrupt:
        print("\n\nTest run interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
