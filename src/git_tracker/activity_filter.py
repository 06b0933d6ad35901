from __future__ import annotations

from collections.abc import Iterable

from .models import AuthorLedgerEntry, FilteredAuthor
from .periods import DateRange, parse_timestamp


def _in_range(date: str | None, date_range: DateRange) -> bool:
    when = parse_timestamp(date)
    return when is not None and date_range.contains(when)


def author_view(entry: AuthorLedgerEntry, date_range: DateRange | None) -> FilteredAuthor:
    if date_range is None:
        active = entry.commits > 0 or entry.branches > 0 or bool(entry.activities)
        return FilteredAuthor(entry=entry, commits_in_range=entry.commits, in_range=active)

    dated = [a for a in entry.activities if parse_timestamp(a.date) is not None]
    if dated:
        commits_in_range = sum(1 for a in dated if a.type == "commit" and _in_range(a.date, date_range))
        return FilteredAuthor(entry=entry, commits_in_range=commits_in_range, in_range=commits_in_range > 0)

    # Nothing dated to count: fall back to the last activity stamp.
    in_range = _in_range(entry.last_activity, date_range)
    return FilteredAuthor(entry=entry, commits_in_range=entry.commits if in_range else 0, in_range=in_range)


def filter_ledger(
    ledger: Iterable[AuthorLedgerEntry],
    date_range: DateRange | None = None,
    search: str = "",
) -> list[FilteredAuthor]:
    """
    Derived view of the author ledger for a date range and/or name search.

    The ledger is only read. With a non-empty `search`, every author whose name
    contains it (case-insensitive) is returned whether or not they were active
    in the range; otherwise only in-range authors are returned. Ledger order is
    kept. An inverted range never gets here: `DateRange` rejects it on
    construction.
    """
    views = [author_view(e, date_range) for e in ledger]
    term = (search or "").strip().casefold()
    if term:
        return [v for v in views if term in v.author.casefold()]
    return [v for v in views if v.in_range]
