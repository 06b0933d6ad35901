from __future__ import annotations

from .models import AggregateResult, CommitRecord, FilteredAuthor, RepositoryFacts
from .periods import format_local

RULE = "-" * 72


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: int, max_value: int, width: int = 22) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "[" + ("#" * filled) + ("-" * (width - filled)) + "]"


def render_aggregate(result: AggregateResult, *, filtered: list[FilteredAuthor] | None = None, top_n: int = 25) -> str:
    lines: list[str] = []
    lines.append("Totals")
    lines.append(RULE)
    lines.append(f"Repositories:   {fmt_int(len(result.repositories)):>12}  (failed {fmt_int(len(result.failures))})")
    lines.append(f"Commits:        {fmt_int(result.total_commits):>12}")
    lines.append(f"Branches:       {fmt_int(result.total_branches):>12}")
    lines.append(f"Pull requests:  {fmt_int(result.total_prs):>12}  (not tracked)")
    lines.append(f"Authors:        {fmt_int(len(result.all_authors)):>12}")
    lines.append("")

    if result.failures:
        lines.append("Failed repositories")
        lines.append(RULE)
        for f in result.failures:
            lines.append(f"{trunc(f.name, 28):28} {f.error}")
        lines.append("")

    lines.append("Repositories")
    lines.append(RULE)
    for r in result.repositories:
        branch = r.effective_branch
        if branch != r.current_branch:
            branch = f"{branch} (current: {r.current_branch})"
        lines.append(f"{trunc(r.name, 28):28} commits {fmt_int(r.total_commits):>8}  branches {len(r.branches):>4}  {branch}")
    if not result.repositories:
        lines.append("(no repositories could be read)")
    lines.append("")

    lines.append("Authors (commits)")
    lines.append(RULE)
    if filtered is None:
        rows = [(e.author, e.commits, e.branches, e.last_activity) for e in result.author_ledger]
    else:
        rows = [(v.author, v.commits_in_range, v.entry.branches, v.entry.last_activity) for v in filtered]
    max_commits = max((r[1] for r in rows), default=0)
    for author, commits, branches, last in rows[:top_n]:
        lines.append(
            f"{trunc(author, 28):28} commits {fmt_int(commits):>6}  branches {fmt_int(branches):>4}  "
            f"last {format_local(last) or '-':19}  {bar(commits, max_commits, width=12)}"
        )
    if not rows:
        lines.append("(no authors in range)" if filtered is not None else "(no authors detected)")
    lines.append("")

    lines.append("Recent activity")
    lines.append(RULE)
    for ev in result.recent_activity[:top_n]:
        lines.append(f"{format_local(ev.date) or '-':19}  {trunc(ev.repository, 18):18} {trunc(ev.author, 18):18} {trunc(ev.detail, 40)}")
    if not result.recent_activity:
        lines.append("(no recent commits)")

    return "\n".join(lines) + "\n"


def render_commit(c: CommitRecord) -> str:
    return f"{c.hash[:8]}  {format_local(c.date) or '-':19}  {trunc(c.author, 20):20} {trunc(c.message, 50)}"


def render_repository_stats(facts: RepositoryFacts, commits: list[CommitRecord]) -> str:
    lines: list[str] = []
    lines.append(f"Repository: {facts.name}")
    lines.append(f"Path:       {facts.path}")
    lines.append(RULE)
    lines.append(f"Total commits:   {fmt_int(facts.total_commits)}")
    lines.append(f"Current branch:  {facts.current_branch}")
    lines.append(f"Branches:        {', '.join(b.name for b in facts.branches) or '-'}")
    if facts.last_commit is not None:
        lines.append(f"Last commit:     {render_commit(facts.last_commit)}")
    else:
        lines.append("Last commit:     (no commits)")
    lines.append(f"Unpushed:        {'yes' if facts.has_unpushed_commits else 'no'}")
    st = facts.changes_status
    lines.append(f"Staged:          +{st.staged.added} ~{st.staged.modified} -{st.staged.deleted}")
    lines.append(f"Unstaged:        +{st.unstaged.added} ~{st.unstaged.modified} -{st.unstaged.deleted}")
    lines.append("")
    lines.append("Commits")
    lines.append(RULE)
    for c in commits:
        lines.append(render_commit(c))
    if not commits:
        lines.append("(no commits match)")
    return "\n".join(lines) + "\n"
