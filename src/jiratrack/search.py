"""Fuzzy filtering of the issue list by summary."""

from __future__ import annotations

import typing as t

from rapidfuzz import fuzz
from rapidfuzz import process
from rapidfuzz import utils

from jiratrack.models import Issue

# partial_ratio score (0-100) an issue summary needs to stay in the list
SEARCH_CUTOFF = 75
MAX_SEARCH_LENGTH = 200


def filter_issues(issues: t.Sequence[Issue], query: str) -> tuple[Issue, ...]:
    """Return the issues whose summary fuzzily matches query, best first.

    Blank queries keep every issue in its original order. Equal scores
    keep the original order too.

    Example:
        filter_issues(issues, "exprot")  # matches "Add export button"
    """
    if not query.strip():
        return tuple(issues)

    matches = process.extract(
        query,
        [issue.summary for issue in issues],
        scorer=fuzz.partial_ratio,
        processor=utils.default_process,
        score_cutoff=SEARCH_CUTOFF,
        limit=None,
    )
    ranked = sorted(matches, key=lambda match: (-match[1], match[2]))
    return tuple(issues[index] for _, _, index in ranked)
