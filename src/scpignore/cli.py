"""
CLI entrypoint for scpignore package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore

from .core import (
    DEFAULT_IGNORE_FILE,
    compile_patterns,
    filter_paths,
    load_patterns,
    scan_paths,
    status,
    ConfigFileError,
    InvalidRootError,
    TraversalError,
    TransferError,
)
from .transfer import copy_paths

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="scpignore",
        description="Copy a directory tree over scp, skipping paths listed in .scpignore.",
    )
    p.add_argument("source", type=Path, help="Directory to copy")
    p.add_argument("destination", help="scp destination, e.g. user@host:/path")
    p.add_argument(
        "--ignore-file",
        type=Path,
        help=f"Ignore pattern file (default: ./{DEFAULT_IGNORE_FILE} if present)",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be copied without running scp",
    )
    p.add_argument("--scp", default="scp", help="scp executable (default: scp)")
    p.add_argument("--ssh", default="ssh", help="ssh executable used to create remote dirs")
    p.add_argument(
        "--scp-option",
        action="append",
        default=[],
        dest="scp_options",
        metavar="OPT",
        help="Extra argument passed to scp (repeatable), e.g. --scp-option=-P2222",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)

def _error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)

def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        root = ns.source

        if ns.ignore_file:
            ignore_path, required = ns.ignore_file, True
        else:
            ignore_path, required = Path.cwd() / DEFAULT_IGNORE_FILE, False

        try:
            patterns = compile_patterns(load_patterns(ignore_path, required=required))
        except ConfigFileError as e:
            _error(str(e))
        if ns.verbose:
            broken = sum(1 for cp in patterns if not cp.valid)
            status(f"Loaded {len(patterns)} patterns from {ignore_path} ({broken} malformed)")
            status(f"Scanning {root} …")

        try:
            all_paths = scan_paths(root)
        except (InvalidRootError, TraversalError) as e:
            _error(str(e))

        kept = filter_paths(all_paths, patterns)
        if ns.verbose:
            status(f"{len(all_paths)} paths found, {len(kept)} kept after filtering.")

        if not kept:
            print(f"No files to copy based on the {ignore_path.name} patterns.")
            sys.exit(0)

        try:
            results = copy_paths(
                kept,
                root.resolve(),
                ns.destination,
                scp_cmd=ns.scp,
                ssh_cmd=ns.ssh,
                scp_options=ns.scp_options,
                dry_run=ns.dry_run,
            )
        except TransferError as e:
            _error(str(e))

        failed = 0
        for r in results:
            if ns.dry_run:
                print(f"would copy {r.path} -> {r.target}")
            elif r.ok:
                status(f"OK {r.path} -> {r.target}", Fore.GREEN)
            else:
                failed += 1
                status(f"FAILED {r.path} (exit code {r.returncode})", Fore.RED, err=True)
                if r.output:
                    print(r.output, file=sys.stderr)

        if ns.dry_run:
            status(f"Dry run: {len(results)} paths would be copied.")
            sys.exit(0)

        summary = f"{len(results) - failed} of {len(results)} paths copied, {failed} failed."
        if failed:
            status(summary, Fore.RED, err=True)
            sys.exit(1)
        status(summary, Fore.GREEN)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
