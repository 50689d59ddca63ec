"""
Map raw fixture records into the canonical Match shape.

Two competition flavors exist upstream:

- LeagueMatch: an imported fixture with its own stage/matchday pair.
- CustomMatch: an entry of a user-authored competition. It points at the
  imported fixture it mirrors (predictions are keyed by that fixture's id)
  and is numbered by the custom matchday, which is already globally
  unique, so the stage is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from .snapshot import SCHEDULED, CompetitionRef, Match, as_utc


@dataclass(frozen=True)
class LeagueMatch:
    id: int
    competition_id: int
    matchday: Optional[int]
    stage: Optional[str] = None
    utc_date: Optional[datetime] = None
    status: str = SCHEDULED
    home_score: Optional[int] = None
    away_score: Optional[int] = None


@dataclass(frozen=True)
class CustomMatch:
    id: int
    custom_competition_id: int
    matchday_number: int
    cached_utc_date: Optional[datetime] = None
    source: Optional[LeagueMatch] = None


MatchRecord = Union[LeagueMatch, CustomMatch]


def normalize_match(record: MatchRecord, is_bonus_match: bool = False) -> Match:
    if isinstance(record, LeagueMatch):
        return Match(
            id=record.id,
            competition_ref=CompetitionRef('imported', record.competition_id),
            stage=record.stage,
            # knockout rounds sometimes come without a matchday
            matchday=record.matchday or 1,
            kickoff_time=as_utc(record.utc_date),
            status=record.status or SCHEDULED,
            home_score=record.home_score,
            away_score=record.away_score,
            is_bonus_match=is_bonus_match,
        )

    if isinstance(record, CustomMatch):
        source = record.source
        kickoff = source.utc_date if source and source.utc_date else record.cached_utc_date
        return Match(
            id=source.id if source else record.id,
            competition_ref=CompetitionRef('custom', record.custom_competition_id),
            stage=None,
            matchday=record.matchday_number,
            kickoff_time=as_utc(kickoff),
            status=(source.status if source else None) or SCHEDULED,
            home_score=source.home_score if source else None,
            away_score=source.away_score if source else None,
            is_bonus_match=is_bonus_match,
        )

    raise TypeError(f"Unsupported match record: {type(record).__name__}")


def normalize_matches(records: Iterable[MatchRecord], bonus_match_ids=()) -> List[Match]:
    bonus_match_ids = set(bonus_match_ids)
    matches = []
    for record in records:
        match_id = record.source.id if isinstance(record, CustomMatch) and record.source else record.id
        matches.append(normalize_match(record, is_bonus_match=match_id in bonus_match_ids))
    return matches
