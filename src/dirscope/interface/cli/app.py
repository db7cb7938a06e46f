from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merging
(defaults, stored preferences, command-line overrides), root path
acquisition, the tree build and the final report. Maps each failure kind of
the explorer to its own process exit code.
"""

import json
import sys
from typing import Any, Dict, List, Optional

from dirscope.core.aggregation import compute_sizes
from dirscope.core.report import rank_directories, report_to_dict
from dirscope.core.tree_builder import TreeBuilder
from dirscope.core.validator import validate_config
from dirscope.domain.config import get_default_config, load_config, save_config
from dirscope.domain.errors import BuildCancelledError, InvalidRootError, ScanIOError
from dirscope.infra.fs import get_home_dir, normalize_path
from dirscope.infra.logging import (
    LoggingConfig,
    configure_logging,
    get_default_log_path,
    get_logger,
)
from dirscope.interface.cli import args as cli_args
from dirscope.interface.cli import render

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_ROOT = 2
EXIT_SCAN_FAILED = 3
EXIT_INTERRUPTED = 130

PROMPT = "Enter starting directory: "

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (see the EXIT_* constants).
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Configuration hierarchy (defaults < stored preferences < CLI)
    base_conf = get_default_config() if args.use_defaults else load_config()
    overrides = cli_args.args_to_overrides(args)
    raw_conf = _merge_config(base_conf, overrides)
    clean_conf, warnings = validate_config(raw_conf, strict=False)

    # 3. Logging bootstrap (console stays quiet below WARNING unless debugging)
    log_file = args.log_file or (get_default_log_path() if clean_conf["save_log"] else None)
    configure_logging(LoggingConfig(
        level="DEBUG" if args.debug else "INFO",
        console=True,
        console_level="DEBUG" if args.debug else "WARNING",
        log_file=log_file,
    ), force=True)

    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    if args.save_config:
        save_config(clean_conf)

    # 4. Root acquisition
    raw_path = overrides.get("input_path")
    if raw_path is None and not args.json_output and sys.stdin.isatty():
        raw_path = _prompt_for_root()
    input_path = normalize_path(raw_path, fallback=clean_conf["input_path"] or get_home_dir())

    # 5. Tree build phase
    color = clean_conf["color"]
    progress_console = render.make_console(color=color, stderr=True)
    try:
        with render.scan_progress(progress_console, input_path,
                                  enabled=color and not args.json_output) as on_progress:
            builder = TreeBuilder(
                max_workers=clean_conf["max_workers"] or None,
                follow_symlinks=clean_conf["follow_symlinks"],
                tolerate_vanished=clean_conf["tolerate_vanished"],
                progress_callback=on_progress,
            )
            root = builder.build(input_path)
    except InvalidRootError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID_ROOT
    except (KeyboardInterrupt, BuildCancelledError):
        logger.warning("Exploration interrupted.")
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except ScanIOError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_SCAN_FAILED
    except Exception as e:
        logger.critical(f"Unexpected failure while exploring '{input_path}': {e}", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # 6. Output rendering phase
    index = compute_sizes(root)
    return _emit_report(root, index, clean_conf, json_output=bool(args.json_output))

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Perform a shallow merge of override values into the base configuration.

    Only keys known to the base are merged, preventing schema pollution.
    """
    out = dict(base)
    for k, v in overrides.items():
        if k in out and v is not None:
            out[k] = v
    return out


def _prompt_for_root() -> Optional[str]:
    """Ask for the starting directory; None on empty input or closed stdin."""
    try:
        answer = input(PROMPT)
    except EOFError:
        return None
    return answer.strip() or None

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _emit_report(root, index, conf: Dict[str, Any], *, json_output: bool) -> int:
    """Hand the finished tree and its sizes to the selected renderer."""
    rows = None
    if conf["view"] == "flat":
        rows = rank_directories(root, index, sort_by=conf["sort_by"], limit=conf["top"])

    if json_output:
        document = report_to_dict(root, index, rows, max_depth=conf["max_depth"])
        try:
            text = json.dumps(document, ensure_ascii=False, indent=2)
        except RecursionError:
            logger.error("Tree too deep for nested JSON output.")
            print("ERROR: tree too deep for nested JSON output; "
                  "limit it with --max-depth or use the flat view.", file=sys.stderr)
            return EXIT_FAILURE
        print(text)
        return EXIT_OK

    console = render.make_console(color=conf["color"])
    if rows is not None:
        lines = render.flat_lines(rows, show_files=conf["show_files"])
    else:
        lines = render.tree_lines(
            root, index, max_depth=conf["max_depth"], show_files=conf["show_files"]
        )
    render.print_lines(console, lines)
    render.print_lines(console, render.summary_lines(index))
    return EXIT_OK

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
