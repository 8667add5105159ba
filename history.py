# history.py – head-to-head stats and form strings from raw finished matches
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple

from schema import H2HStats

H2H_LIMIT = 10
FORM_LIMIT = 5


def _score(m: Dict) -> Optional[Tuple[int, int]]:
    ft = (m.get("score") or {}).get("fullTime") or {}
    hg, ag = ft.get("home"), ft.get("away")
    if hg is None or ag is None:
        return None
    return int(hg), int(ag)


def _settled(matches: Iterable[Dict]) -> List[Tuple[Dict, int, int]]:
    """Matches with a full-time score, newest first."""
    out = []
    for m in matches:
        sc = _score(m)
        if sc is not None:
            out.append((m, sc[0], sc[1]))
    out.sort(key=lambda x: x[0].get("utcDate", ""), reverse=True)
    return out


def compute_h2h_stats(matches: Iterable[Dict], home_id: int, away_id: int,
                      limit: int = H2H_LIMIT) -> Optional[H2HStats]:
    """
    Aggregate past meetings, oriented to the upcoming fixture: a win for
    `home_id` counts as a home win even if it came on the road.
    """
    games = []
    for m, hg, ag in _settled(matches):
        ids = ((m.get("homeTeam") or {}).get("id"), (m.get("awayTeam") or {}).get("id"))
        if ids == (home_id, away_id):
            games.append((hg, ag))
        elif ids == (away_id, home_id):
            games.append((ag, hg))
        if len(games) >= limit:
            break
    if not games:
        return None

    n = len(games)
    totals = [h + a for h, a in games]
    return H2HStats(
        meetings=n,
        avg_goals=sum(totals) / n,
        over05_rate=sum(1 for t in totals if t >= 1) / n,
        over15_rate=sum(1 for t in totals if t >= 2) / n,
        over25_rate=sum(1 for t in totals if t >= 3) / n,
        btts_rate=sum(1 for h, a in games if h > 0 and a > 0) / n,
        home_win_rate=sum(1 for h, a in games if h > a) / n,
        away_win_rate=sum(1 for h, a in games if a > h) / n,
        draw_rate=sum(1 for h, a in games if h == a) / n,
    )


def compute_form(matches: Iterable[Dict], team_id: int, limit: int = FORM_LIMIT) -> Optional[str]:
    """Comma-separated W/D/L for the team's last `limit` results, most recent last."""
    results: List[str] = []
    for m, hg, ag in _settled(matches):
        if (m.get("homeTeam") or {}).get("id") == team_id:
            own, opp = hg, ag
        elif (m.get("awayTeam") or {}).get("id") == team_id:
            own, opp = ag, hg
        else:
            continue
        results.append("W" if own > opp else "D" if own == opp else "L")
        if len(results) >= limit:
            break
    if not results:
        return None
    return ",".join(reversed(results))
