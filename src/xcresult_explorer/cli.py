from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from xcresult_explorer import __version__
from xcresult_explorer.config import get_config, load_config, set_config
from xcresult_explorer.diagnostics import DiagnosticsEngine
from xcresult_explorer.diagnostics.hints import load_suite_hints
from xcresult_explorer.errors import (
    error_code_for,
    handle_exception,
    set_verbose,
)
from xcresult_explorer.explorer import XCResultExplorer
from xcresult_explorer.finder import find_xcresult_files
from xcresult_explorer.report.console import render_find_results
from xcresult_explorer.tool import XCResultTool

FETCHING_LOGS_MESSAGE = "Fetching logs (this may take a moment)..."


def _build_engine() -> DiagnosticsEngine:
    engine = DiagnosticsEngine()
    hints_file = get_config().hints_file
    if hints_file is None:
        return engine
    return engine.with_rules(load_suite_hints(hints_file))


def _cmd_find(args: argparse.Namespace) -> int:
    files = find_xcresult_files(args.path)
    print(render_find_results(args.path, files))
    return 0


def _cmd_explore(args: argparse.Namespace) -> int:
    path = Path(args.path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    explorer = XCResultExplorer(
        path,
        tool=XCResultTool(path, get_config()),
        engine=_build_engine(),
    )
    if args.test_id is not None:
        if args.console and explorer.find_test(args.test_id) is not None:
            print(FETCHING_LOGS_MESSAGE, file=sys.stderr)
        print(explorer.show_test_details(args.test_id, verbose=args.console))
    else:
        print(explorer.list_tests())
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="xcresult-explorer",
        description="Explore XCResult bundles: list tests and view detailed failure information",
    )
    p.add_argument("path", help="Path to the .xcresult bundle or project directory")
    p.add_argument(
        "-t", "--test-id",
        dest="test_id",
        help="Show details for a specific test ID or index number",
    )
    p.add_argument(
        "-c", "--console",
        action="store_true",
        help="Show extreme details including activity, attachment and console logs",
    )
    p.add_argument(
        "-p", "--project",
        action="store_true",
        help="Find and list all XCResult bundles in the project directory",
    )
    p.add_argument(
        "--hints",
        dest="hints_file",
        help="YAML file with per-suite review suggestions (default: XCR_HINTS_FILE)",
    )
    p.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to .env file (default: nearest .env above the current directory)",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show full tracebacks and debug logging",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    # Force UTF-8 output on Windows to handle emoji in output
    import io
    if sys.platform == "win32":
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace")

    p = build_parser()
    args = p.parse_args(argv)
    args.func = _cmd_find if args.project else _cmd_explore

    set_verbose(args.verbose)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        set_config(load_config(
            env_file=args.env_file,
            cli_overrides={"hints_file": args.hints_file},
        ))
        rc = args.func(args)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except Exception as e:
        handle_exception(e, error_code_for(e))
        raise SystemExit(1)


if __name__ == "__main__":
    main()
