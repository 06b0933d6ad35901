from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path

from .branches import parse_branch_preferences
from .config import load_settings
from .git import GitError
from .periods import parse_date_range
from .render import render_aggregate, render_repository_stats
from .run import (
    aggregate_repositories,
    facts_to_dict,
    filter_activity,
    format_startup_header,
    repository_authors,
    repository_stats,
    result_to_dict,
)


def _add_date_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--since", type=str, default="", help="Start date (YYYY-MM-DD, inclusive).")
    p.add_argument("--until", type=str, default="", help="End date (YYYY-MM-DD, inclusive through end of day).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="git-tracker", description="Track git activity across local repositories.")
    sub = parser.add_subparsers(dest="command")

    m = sub.add_parser("multi", help="Aggregate activity across several repositories.")
    m.add_argument("repos", type=Path, nargs="*", help="Repository paths.")
    m.add_argument("--author", type=str, default="", help="Only count commits by this author (git --author).")
    m.add_argument("--branches", type=str, default=None, help='Ordered branch preference, e.g. "main, master".')
    _add_date_args(m)
    m.add_argument("--search", type=str, default="", help="Case-insensitive author name search (ignores the date range).")
    m.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    m.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")
    m.add_argument("--top", type=int, default=25, help="Rows to show per table.")

    s = sub.add_parser("stats", help="Show statistics for one repository.")
    s.add_argument("--repo", type=Path, required=True, help="Path to the git repository.")
    s.add_argument("--author", type=str, default="", help="Filter by author name.")
    s.add_argument("--branch", type=str, default="", help="Branch to inspect (falls back to main, master, then current).")
    _add_date_args(s)
    s.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")

    a = sub.add_parser("authors", help="List the authors of one repository.")
    a.add_argument("--repo", type=Path, required=True, help="Path to the git repository.")
    a.add_argument("--branch", type=str, default="", help="Branch to inspect (falls back to main, master, then current).")
    return parser


def _run_multi(args: argparse.Namespace) -> int:
    # Validate everything before touching any repository.
    repos = list(args.repos)
    if not repos:
        print("Repository paths are required", file=sys.stderr)
        return 2
    parse_date_range(args.since, args.until)
    settings = load_settings(args.config)
    preferences = parse_branch_preferences(args.branches) if args.branches is not None else list(settings.branch_preferences)
    author = str(args.author or settings.author or "")

    if args.format == "text":
        print(
            format_startup_header(
                repos=repos,
                author=author,
                preferences=preferences,
                settings=settings,
                since=args.since,
                until=args.until,
                search=args.search,
            )
        )

    result = asyncio.run(aggregate_repositories(repos, author=author, preferences=preferences, settings=settings))

    for r in result.repositories:
        for w in r.warnings:
            print(f"Warning: {r.name}: {w}", file=sys.stderr)
    for f in result.failures:
        print(f"Error: {f.name} ({f.path}): {f.error}", file=sys.stderr)

    filtered = None
    if args.since or args.until or args.search:
        filtered = filter_activity(result.author_ledger, since=args.since, until=args.until, search=args.search)

    if args.format == "json":
        print(json.dumps(result_to_dict(result, filtered), indent=2))
    else:
        print(render_aggregate(result, filtered=filtered, top_n=int(args.top)))
    return 0 if result.repositories else 2


def _run_stats(args: argparse.Namespace) -> int:
    facts, commits = asyncio.run(
        repository_stats(
            args.repo.resolve(),
            author=args.author or None,
            since=args.since or None,
            until=args.until or None,
            branch=args.branch or None,
        )
    )
    if args.format == "json":
        print(json.dumps({"stats": facts_to_dict(facts), "commits": [dataclasses.asdict(c) for c in commits]}, indent=2))
    else:
        print(render_repository_stats(facts, commits))
    return 0


def _run_authors(args: argparse.Namespace) -> int:
    authors = asyncio.run(repository_authors(args.repo.resolve(), branch=args.branch or None))
    for name in authors:
        print(name)
    if not authors:
        print("(no authors found)")
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "multi":
            return _run_multi(args)
        if args.command == "stats":
            return _run_stats(args)
        return _run_authors(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except GitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
