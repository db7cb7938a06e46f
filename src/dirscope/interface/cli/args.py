from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line interface schema and translates the parsed
namespace into configuration overrides.
"""

import argparse
from typing import Any, Dict

from dirscope import __version__
from dirscope.domain.config import SORT_MODES, VIEW_MODES

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the DirScope CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="dirscope",
        description="Explore a directory tree concurrently and report where the space goes.",
    )

    # --- Target ---
    p.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Starting directory. Prompted for when omitted on an interactive terminal.",
    )
    p.add_argument(
        "-i", "--input",
        dest="input_path",
        default=None,
        help="Starting directory (alternative to the positional argument).",
    )

    # --- Exploration ---
    p.add_argument(
        "-w", "--workers",
        dest="max_workers",
        type=int,
        default=None,
        help="Maximum concurrent directory listings (0 = sized from CPU count).",
    )
    p.add_argument(
        "-L", "--follow-symlinks",
        action="store_true",
        help="Descend into symbolically linked directories (cycles are detected).",
    )
    p.add_argument(
        "--tolerate-vanished",
        action="store_true",
        help="Keep going when a directory disappears mid-scan instead of aborting.",
    )

    # --- Reporting ---
    p.add_argument(
        "-v", "--view",
        choices=VIEW_MODES,
        default=None,
        help="Flat listing sorted by size, or proportional tree.",
    )
    p.add_argument(
        "-s", "--sort",
        dest="sort_by",
        choices=SORT_MODES,
        default=None,
        help="Rank directories by their own files or by whole subtree (flat view).",
    )
    p.add_argument(
        "-n", "--top",
        type=int,
        default=None,
        help="Show only the N largest directories (flat view, 0 = all).",
    )
    p.add_argument(
        "-d", "--max-depth",
        type=int,
        default=None,
        help="Deepest level expanded in the tree view (0 = unlimited).",
    )
    p.add_argument(
        "--no-files",
        action="store_true",
        help="Hide individual files.",
    )
    p.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colors and the progress spinner.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit the report as JSON on stdout.",
    )

    # --- Configuration and Diagnostics ---
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the stored configuration file.",
    )
    p.add_argument(
        "--save-config",
        action="store_true",
        help="Store the effective options as the new defaults.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file (rotated).",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Only options actually given on the command line appear in the result,
    so stored preferences survive for everything else.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    path = args.input_path or args.path
    if path:
        overrides["input_path"] = path

    for key in ("max_workers", "view", "sort_by", "top", "max_depth"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value

    if args.follow_symlinks:
        overrides["follow_symlinks"] = True
    if args.tolerate_vanished:
        overrides["tolerate_vanished"] = True
    if args.no_files:
        overrides["show_files"] = False
    if args.no_color:
        overrides["color"] = False

    return overrides
