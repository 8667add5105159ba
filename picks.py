# picks.py – slate-level selection: analyse every fixture, rank, adaptive confidence threshold
from __future__ import annotations
import dataclasses
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from analyzer import analyse_match
from schema import AnalysedFixture, Fixture, H2HStats, TeamStanding

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 5
THRESHOLDS = (75, 68, 62)   # tried in order, highest bar first
MIN_SLATE = 4               # a tier is used only if it yields this many picks
FLOOR_THRESHOLD = 60        # last resort, no minimum count


def _find_standing(table: Sequence[TeamStanding], team_id: int) -> Optional[TeamStanding]:
    for s in table:
        if s.team_id == team_id:
            return s
    return None


def _with_form(s: TeamStanding, form_by_team: Mapping[int, str]) -> TeamStanding:
    if s.form:
        return s
    form = form_by_team.get(s.team_id)
    return dataclasses.replace(s, form=form) if form else s


def analyse_fixtures(
    fixtures: Sequence[Fixture],
    standings_by_competition: Mapping[str, Sequence[TeamStanding]],
    h2h_by_fixture: Optional[Mapping[int, H2HStats]] = None,
    form_by_team: Optional[Mapping[int, str]] = None,
) -> List[AnalysedFixture]:
    """Analyse every fixture that has both standings, in input order."""
    h2h_by_fixture = h2h_by_fixture or {}
    form_by_team = form_by_team or {}
    out: List[AnalysedFixture] = []
    for f in fixtures:
        table = standings_by_competition.get(f.competition.code) or []
        home = _find_standing(table, f.home.id)
        away = _find_standing(table, f.away.id)
        if home is None or away is None:
            logger.debug("skip %s vs %s (%s): no standings", f.home.name, f.away.name, f.competition.code)
            continue
        home, away = _with_form(home, form_by_team), _with_form(away, form_by_team)
        h2h = h2h_by_fixture.get(f.id)
        out.append(AnalysedFixture(f, home, away, h2h, analyse_match(f, home, away, h2h)))
    return out


def apply_threshold_cascade(analysed: Sequence[AnalysedFixture], count: int = DEFAULT_COUNT) -> List[AnalysedFixture]:
    """
    Highest bar from THRESHOLDS that still leaves MIN_SLATE picks wins;
    otherwise FLOOR_THRESHOLD with whatever qualifies (maybe nothing).
    """
    ranked = sorted(analysed, key=lambda a: -a.confidence)   # stable: ties keep fixture order
    for threshold in THRESHOLDS:
        pool = [a for a in ranked if a.confidence >= threshold]
        if len(pool) >= MIN_SLATE:
            logger.debug("threshold %d: %d qualifying picks", threshold, len(pool))
            return pool[:count]
    pool = [a for a in ranked if a.confidence >= FLOOR_THRESHOLD]
    logger.debug("floor threshold %d: %d qualifying picks", FLOOR_THRESHOLD, len(pool))
    return pool[:count]


def select_top_picks(
    fixtures: Sequence[Fixture],
    standings_by_competition: Mapping[str, Sequence[TeamStanding]],
    h2h_by_fixture: Optional[Mapping[int, H2HStats]] = None,
    form_by_team: Optional[Mapping[int, str]] = None,
    count: int = DEFAULT_COUNT,
) -> List[AnalysedFixture]:
    analysed = analyse_fixtures(fixtures, standings_by_competition, h2h_by_fixture, form_by_team)
    picks = apply_threshold_cascade(analysed, count)
    logger.info("Analysed %d/%d fixtures, selected %d picks", len(analysed), len(fixtures), len(picks))
    return picks
