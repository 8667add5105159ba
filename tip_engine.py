# tip_engine.py – daily pipeline: source data -> selector -> predictions / chat text
from __future__ import annotations
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from history import compute_form, compute_h2h_stats
from markets import get_market
from picks import DEFAULT_COUNT, select_top_picks
from results import (HISTORY_FILE, HistoryStats, apply_result, load_history, pending_dates,
                     record_stats, remember, save_history, settle_pending)
from schema import AnalysedFixture, H2HStats
from sources import FootballApiError, FootballDataClient
from sources_files import FileSource

logger = logging.getLogger(__name__)

# ------- Parameters -------
PICKS_COUNT = int(os.getenv("PICKS_COUNT", str(DEFAULT_COUNT)))
WITH_H2H = os.getenv("PICKS_WITH_H2H", "1") == "1"
SNAPSHOT = os.getenv("PICKS_SNAPSHOT", "")
SETTLE_WINDOW_DAYS = 10   # /matches accepts at most a 10-day range


def default_source():
    if SNAPSHOT:
        return FileSource(SNAPSHOT)
    return FootballDataClient()


def build_slate(source, count: int = PICKS_COUNT, with_h2h: bool = WITH_H2H) -> List[AnalysedFixture]:
    # 1) today's fixtures; a failure here is the caller's problem
    fixtures = source.get_today_fixtures()
    if not fixtures:
        logger.info("No fixtures today")
        return []

    # 2) standings per competition on the slate
    codes = sorted({f.competition.code for f in fixtures})
    standings = source.get_multiple_standings(codes)

    # 3) head-to-head per fixture (best effort)
    h2h: Dict[int, H2HStats] = {}
    if with_h2h:
        for f in fixtures:
            try:
                stats = compute_h2h_stats(source.get_head2head(f.id), f.home.id, f.away.id)
            except FootballApiError as e:
                logger.warning("H2H for %s vs %s unavailable: %s", f.home.name, f.away.name, e)
                continue
            if stats:
                h2h[f.id] = stats

    # 4) form for teams whose standing row has none
    form: Dict[int, str] = {}
    for table in standings.values():
        for s in table:
            if s.form or s.team_id in form:
                continue
            if not any(s.team_id in (f.home.id, f.away.id) for f in fixtures):
                continue
            try:
                computed = compute_form(source.get_team_matches(s.team_id), s.team_id)
            except FootballApiError as e:
                logger.warning("Form for %s unavailable: %s", s.team_name, e)
                continue
            if computed:
                form[s.team_id] = computed

    return select_top_picks(fixtures, standings, h2h, form, count)


def predictions_today(source=None, count: int = PICKS_COUNT) -> List[Dict]:
    source = source or default_source()
    return [apply_result(p.to_prediction()) for p in build_slate(source, count)]


def publish_today(source=None, count: int = PICKS_COUNT) -> List[Dict]:
    """Today's predictions, also stored in the history file so they can be settled later."""
    predictions = predictions_today(source, count=count)
    if HISTORY_FILE:
        remember(predictions, HISTORY_FILE)
    return predictions


def settle_history(source=None) -> HistoryStats:
    """Settle pending stored picks from finished fixtures and return the track record."""
    history = load_history(HISTORY_FILE)
    dates = pending_dates(history)
    if dates:
        date_to = dates[-1]
        window_start = datetime.strptime(date_to, "%Y-%m-%d") - timedelta(days=SETTLE_WINDOW_DAYS - 1)
        date_from = max(dates[0], window_start.strftime("%Y-%m-%d"))
        source = source or default_source()
        try:
            finished = source.get_fixtures(date_from, date_to)
        except FootballApiError as e:
            logger.warning("Settlement skipped, results unavailable: %s", e)
        else:
            n = settle_pending(history, finished)
            if n:
                save_history(history, HISTORY_FILE)
                logger.info("History: settled %d prediction(s)", n)
    return record_stats(history)


def _format_line(p: AnalysedFixture) -> str:
    f = p.fixture
    ko = f.kickoff
    when = ko.strftime("%H:%M") + " UTC" if ko else "TBC"
    lines = [
        f"🏟 {f.competition.name}: {f.home.name} – {f.away.name} • kickoff {when}",
        f"• Pick: {p.analysis.pick_label} ({get_market(p.analysis.pick).settles})",
        f"• Confidence: {p.confidence}%",
    ]
    lines += [f"ℹ️ {r}" for r in p.analysis.reasoning]
    return "\n".join(lines) + "\n"


def suggest_today(source=None, count: int = PICKS_COUNT, now: Optional[datetime] = None) -> str:
    source = source or default_source()
    picks = build_slate(source, count)
    day = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    if not picks:
        return f"No picks for {day}: no fixture cleared the confidence bar today."
    header = f"🔎 Top {len(picks)} picks for {day}\n\n"
    return header + "\n".join(_format_line(p) for p in picks)


def format_stats(stats: HistoryStats) -> str:
    if not stats.total:
        return "No stored picks yet."
    return (f"📊 Track record: {stats.total} picks\n"
            f"✅ {stats.wins} won • ❌ {stats.losses} lost • ↩️ {stats.voids} void • ⏳ {stats.pending} pending\n"
            f"Win rate {stats.win_rate:.1f}% • ROI {stats.roi:+.1f}%")
