"""Team leaderboard and per-user statistics.

Read-only over the local recording cache and recomputed on every request;
per-user recording counts are small enough that an incremental structure
would not pay for itself.
"""

from __future__ import annotations

import calendar
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal, Mapping, Optional, Sequence

from salescoach.domain.models import LeaderboardEntry, Recording, RecordingStatus, UserStats
from salescoach.infrastructure.local import LocalRecordingCache

Timeframe = Literal["week", "month", "all"]

_STATS_WINDOW = 5


def round_half_up(value: float) -> int:
    """Round like ``Math.round``: halves go towards positive infinity."""

    return int(math.floor(value + 0.5))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def parse_duration_minutes(duration: str) -> float:
    """Convert an ``M:SS`` (or ``H:MM:SS``) string to minutes; junk counts as zero."""

    try:
        parts = [float(part) for part in duration.split(":")]
    except (AttributeError, ValueError):
        return 0.0
    if len(parts) == 2:
        minutes, seconds = parts
        return minutes + seconds / 60
    if len(parts) == 3:
        hours, minutes, seconds = parts
        return hours * 60 + minutes + seconds / 60
    if len(parts) == 1:
        return parts[0]
    return 0.0


def _subtract_month(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def timeframe_cutoff(timeframe: Timeframe, now: datetime) -> Optional[datetime]:
    if timeframe == "week":
        return now - timedelta(days=7)
    if timeframe == "month":
        return _subtract_month(now)
    return None


def _as_aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def completed_in_window(
    recordings: Iterable[Recording],
    timeframe: Timeframe,
    now: datetime,
) -> list[Recording]:
    """Completed recordings inside the window, newest first."""

    cutoff = timeframe_cutoff(timeframe, _as_aware(now))
    selected = [
        recording
        for recording in recordings
        if recording.status is RecordingStatus.COMPLETED
        and (cutoff is None or _as_aware(recording.uploaded_at) >= cutoff)
    ]
    selected.sort(key=lambda recording: _as_aware(recording.uploaded_at), reverse=True)
    return selected


def _completion_rate(recordings: Sequence[Recording]) -> int:
    completed_all = sum(
        1 for recording in recordings if recording.analysis and recording.analysis.all_steps_completed
    )
    return round_half_up(completed_all / len(recordings) * 100)


def _build_entry(user_id: str, user_name: str, recordings: Sequence[Recording]) -> LeaderboardEntry:
    if not recordings:
        return LeaderboardEntry(user_id=user_id, user_name=user_name)

    scores = [recording.score for recording in recordings]
    # Newest first: the first half is the recent period.
    midpoint = math.ceil(len(scores) / 2)
    recent, previous = scores[:midpoint], scores[midpoint:]
    recent_avg = _mean(recent)
    previous_avg = _mean(previous) if previous else recent_avg

    total_minutes = sum(parse_duration_minutes(recording.duration) for recording in recordings)

    return LeaderboardEntry(
        user_id=user_id,
        user_name=user_name,
        total_recordings=len(recordings),
        average_score=round_half_up(_mean(scores)),
        completion_rate=_completion_rate(recordings),
        improvement=round_half_up(recent_avg - previous_avg),
        total_call_time=round_half_up(total_minutes),
    )


def build_leaderboard(
    cache: LocalRecordingCache,
    *,
    roster: Optional[Mapping[str, str]] = None,
    timeframe: Timeframe = "all",
    now: Optional[datetime] = None,
) -> list[LeaderboardEntry]:
    """Rank users by average score, then by recording count.

    ``roster`` maps user ids to display names; when omitted every owner
    known to the cache is ranked under its id.
    """

    moment = now or datetime.now(timezone.utc)
    users = dict(roster) if roster is not None else {owner: owner for owner in cache.known_owners()}

    entries = [
        _build_entry(user_id, user_name, completed_in_window(cache.list(user_id), timeframe, moment))
        for user_id, user_name in users.items()
    ]
    entries.sort(key=lambda entry: (-entry.average_score, -entry.total_recordings))
    for index, entry in enumerate(entries, start=1):
        entry.rank = index
    return entries


def get_user_rank(
    cache: LocalRecordingCache,
    user_id: str,
    *,
    roster: Optional[Mapping[str, str]] = None,
    timeframe: Timeframe = "all",
    now: Optional[datetime] = None,
) -> int:
    """Return the user's 1-based rank, or 0 when the user is not on the board."""

    board = build_leaderboard(cache, roster=roster, timeframe=timeframe, now=now)
    return next((entry.rank for entry in board if entry.user_id == user_id), 0)


def compute_user_stats(recordings: Iterable[Recording]) -> UserStats:
    """Summary for one user: latest five completed vs the five before them."""

    completed = completed_in_window(recordings, "all", datetime.now(timezone.utc))
    if not completed:
        return UserStats()

    scores = [recording.score for recording in completed]
    recent = scores[:_STATS_WINDOW]
    previous = scores[_STATS_WINDOW : _STATS_WINDOW * 2]
    recent_avg = _mean(recent)
    previous_avg = _mean(previous) if previous else recent_avg

    return UserStats(
        total_recordings=len(completed),
        average_score=round_half_up(_mean(scores)),
        completion_rate=_completion_rate(completed),
        improvement=round_half_up(recent_avg - previous_avg),
    )


__all__ = [
    "Timeframe",
    "build_leaderboard",
    "compute_user_stats",
    "completed_in_window",
    "get_user_rank",
    "parse_duration_minutes",
    "round_half_up",
    "timeframe_cutoff",
]
