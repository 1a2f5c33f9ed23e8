#!/usr/bin/env python3
"""
ID Counter Administration

Inspect and reset sequential ID counters against the configured database.
Usage:
    python scripts/counter_admin.py list
    python scripts/counter_admin.py info PAT
    python scripts/counter_admin.py peek CASE
    python scripts/counter_admin.py reset USR 41

Resets obey the same guard as the API: refused in production unless
ALLOW_COUNTER_RESET=true.
"""

import argparse
import sys
from typing import List, Optional

from labloop.services.id_allocator import (
    IdAllocator,
    IdGenerationError,
    init_id_allocator,
)


def cmd_list(allocator: IdAllocator, args: argparse.Namespace) -> int:
    infos = allocator.list_info()
    if not infos:
        print("No counters.")
        return 0

    print(f"{'PREFIX':<8}{'SEQUENCE':>12}{'REMAINING':>12}  NEXT")
    for info in infos:
        print(
            f"{info.prefix:<8}{info.sequence:>12}{info.remaining:>12}  "
            f"{info.next_id or '-'}"
        )
    return 0


def cmd_info(allocator: IdAllocator, args: argparse.Namespace) -> int:
    info = allocator.get_info(args.prefix)
    if info is None:
        print(f"No counter for prefix {args.prefix}")
        return 1

    print(f"Prefix:    {info.prefix}")
    print(f"Sequence:  {info.sequence}")
    print(f"Next ID:   {info.next_id or '(exhausted)'}")
    print(f"Remaining: {info.remaining:,}")
    return 0


def cmd_peek(allocator: IdAllocator, args: argparse.Namespace) -> int:
    print(allocator.peek_next(args.prefix))
    return 0


def cmd_reset(allocator: IdAllocator, args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input(
            f"Reset {args.prefix} to {args.start_from}? Reissuing IDs at or below "
            "this value creates duplicates. [y/N] "
        )
        if answer.strip().lower() != "y":
            print("Aborted.")
            return 1

    allocator.reset(args.prefix, args.start_from)
    info = allocator.get_info(args.prefix)
    print(f"{args.prefix} reset to {args.start_from}; next ID is "
          f"{info.next_id or '(exhausted)'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage sequential ID counters")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all counters").set_defaults(func=cmd_list)

    info = sub.add_parser("info", help="Show one counter")
    info.add_argument("prefix")
    info.set_defaults(func=cmd_info)

    peek = sub.add_parser("peek", help="Preview the next ID (not reserved)")
    peek.add_argument("prefix")
    peek.set_defaults(func=cmd_peek)

    reset = sub.add_parser("reset", help="Set a counter to an explicit value")
    reset.add_argument("prefix")
    reset.add_argument("start_from", type=int)
    reset.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    reset.set_defaults(func=cmd_reset)

    return parser


def main(argv: Optional[List[str]] = None, allocator: Optional[IdAllocator] = None) -> int:
    args = build_parser().parse_args(argv)
    allocator = allocator or init_id_allocator()

    try:
        return args.func(allocator, args)
    except IdGenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
