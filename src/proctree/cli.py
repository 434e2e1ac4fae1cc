"""Command line entry point for proctree."""

import argparse
import logging
import sys
from collections.abc import Sequence

from proctree import __version__
from proctree.config import LOG_LEVELS, SOURCES, Settings, configure_logging
from proctree.errors import EmptySnapshot, SourceUnavailable
from proctree.router import DEMO_REQUESTS, RouteTable, demo_table
from proctree.source import make_source, snapshot
from proctree.tree import ProcessTreeRenderer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_DATA = 1
EXIT_CYCLES = 3

COMMANDS = ("tree", "routes", "view")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the tree, routes and view commands."""
    parser = argparse.ArgumentParser(
        prog="proctree",
        description="Print the process hierarchy or exercise the demo router",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: PROCTREE_LOG_LEVEL or WARNING)",
    )

    source_opts = argparse.ArgumentParser(add_help=False)
    source_opts.add_argument("--root-pid", type=int, help="PID to start the tree from (default: 0)")
    source_opts.add_argument("--source", choices=SOURCES, help="Process table backend (default: psutil)")
    source_opts.add_argument("--proc-root", help="Location of the proc filesystem for --source procfs")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    tree = subparsers.add_parser("tree", parents=[source_opts], help="Print the process tree (default)")
    tree.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 3 if cyclic parent references are found",
    )

    routes = subparsers.add_parser("routes", help="Dispatch requests through the demo route table")
    routes.add_argument(
        "--request",
        nargs=2,
        action="append",
        metavar=("VERB", "PATH"),
        help="Request to dispatch; may be repeated (default: the built-in demo requests)",
    )
    routes.add_argument("--list", action="store_true", help="List registered routes and exit")

    subparsers.add_parser("view", parents=[source_opts], help="Browse the process tree interactively")

    return parser


def with_default_command(argv: Sequence[str]) -> list[str]:
    """
    Insert the tree command when ``argv`` names none.

    The command goes after any leading --log-level so tree options such as
    --root-pid work without spelling out "tree".
    """
    argv = list(argv)
    i = 0
    while i < len(argv):
        if argv[i] == "--log-level":
            i += 2
        elif argv[i].startswith("--log-level="):
            i += 1
        else:
            break

    if i > len(argv):
        return argv
    if i < len(argv) and argv[i] in (*COMMANDS, "-h", "--help", "--version"):
        return argv
    return [*argv[:i], "tree", *argv[i:]]


def run_tree(settings: Settings, strict: bool = False) -> int:
    """Print the process tree for ``settings`` and return the exit status."""
    print("Gathering process information...", file=sys.stderr)
    source = make_source(settings.source, settings.proc_root)

    try:
        records = snapshot(source)
    except SourceUnavailable as exc:
        logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_NO_DATA
    except EmptySnapshot:
        print(
            "No process information retrieved. This might happen on unsupported "
            "systems or due to permissions.",
            file=sys.stderr,
        )
        return EXIT_NO_DATA

    print("Building and printing process tree...", file=sys.stderr)
    rendered = ProcessTreeRenderer().write(records, sys.stdout, root_id=settings.root_pid)

    if rendered.cycles:
        pids = ", ".join(str(cycle.pid) for cycle in rendered.cycles)
        print(f"Warning: cyclic parent references truncated at PID {pids}", file=sys.stderr)
        if strict:
            return EXIT_CYCLES
    return EXIT_OK


def run_routes(table: RouteTable, requests: Sequence[Sequence[str]] | None = None, list_only: bool = False) -> int:
    """Dispatch ``requests`` through ``table``, printing each response."""
    if list_only:
        for route in table.routes():
            print(f"{route.verb.value:<7}{route.path}")
        return EXIT_OK

    for verb, path in requests or DEMO_REQUESTS:
        print(f"Dispatching {verb.upper()} {path}:")
        print(table.dispatch(verb, path))
    return EXIT_OK


def run_view(settings: Settings) -> int:
    """Run the interactive Textual viewer."""
    from proctree.app import ProcessTreeApp

    ProcessTreeApp(settings).run()
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the proctree command."""
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(with_default_command(argv))

    try:
        settings = Settings.from_env().override(
            log_level=args.log_level,
            root_pid=getattr(args, "root_pid", None),
            source=getattr(args, "source", None),
            proc_root=getattr(args, "proc_root", None),
        )
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(settings.log_level)

    if args.command == "routes":
        return run_routes(demo_table(), args.request, args.list)
    if args.command == "view":
        return run_view(settings)
    return run_tree(settings, strict=args.strict)


if __name__ == "__main__":
    sys.exit(main())
