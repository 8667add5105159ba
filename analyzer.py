# analyzer.py – single-fixture scoring: signals, expected goals, one pick per match
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from markets import pick_label
from schema import Analysis, Fixture, H2HStats, PickType, Side, TeamStanding

logger = logging.getLogger(__name__)

# ---------- weights (hand-tuned, keep as is) ----------
HOME_PRIOR = 5
POSITION_TIERS = ((14, 22), (8, 14), (4, 7))        # (min places gap, points)
POINTS_TIERS = ((22, 18), (12, 10), (5, 5))         # (min points gap, points)
FORM_BONUS_TIERS = ((13, 14), (10, 9), (7, 4))      # (min form score, points)
FORM_PENALTY_TIERS = ((2, -6), (4, -3))             # (max form score, points)
WIN_RATE_MIN = 0.65
WIN_RATE_BONUS = 8

H2H_MIN_MEETINGS = 3
H2H_STRONG = (0.65, 12)
H2H_LEAN = (0.50, 6)
H2H_DRAW_RATE = 0.5
H2H_DRAW_DAMPING = 3

FORM_POINTS = {"W": 3, "D": 1, "L": 0}
FORM_WINDOW = 5
FORM_BOOST = 4
FORM_BOOST_HIGH = 10
FORM_BOOST_LOW = 3

# diff = home signal - away signal
EXTREME_HOME, DOMINANT_HOME, STRONG_HOME, MODERATE_HOME = 32, 22, 12, 5
EXTREME_AWAY, DOMINANT_AWAY, STRONG_AWAY, MODERATE_AWAY = -30, -20, -10, -5

MAX_REASONS = 5
FALLBACK_CONFIDENCE = 52
NO_SIGNAL_CONFIDENCE = 58


def _round(x: float) -> int:
    # half up, not banker's rounding
    return int(math.floor(x + 0.5))


def _clamp(x: int, lo: int = 0, hi: int = 100) -> int:
    return max(lo, min(hi, x))


# ---------- form ----------
def form_results(form: Optional[str]) -> List[str]:
    """Last five W/D/L results, most recent last. Accepts "W,D,L" and "WDL"."""
    if not form:
        return []
    return [c for c in form.upper() if c in FORM_POINTS][-FORM_WINDOW:]


def parse_form(form: Optional[str]) -> int:
    """Form score 0..15 (W=3, D=1, L=0)."""
    return sum(FORM_POINTS[r] for r in form_results(form))


def form_string(form: Optional[str]) -> str:
    res = form_results(form)
    return " ".join(res) if res else "No data"


def form_boost(form: Optional[str]) -> int:
    if not form_results(form):
        return 0
    score = parse_form(form)
    if score >= FORM_BOOST_HIGH:
        return FORM_BOOST
    if score <= FORM_BOOST_LOW:
        return -FORM_BOOST
    return 0


# ---------- goals ----------
@dataclass(frozen=True)
class TeamAverages:
    avg_for: float
    avg_against: float


def team_averages(s: TeamStanding) -> TeamAverages:
    if s.played_games <= 0:
        return TeamAverages(0.0, 0.0)
    return TeamAverages(s.goals_for / s.played_games, s.goals_against / s.played_games)


def win_rate(s: TeamStanding) -> float:
    return s.won / s.played_games if s.played_games > 0 else 0.0


# ---------- signals ----------
def _tier(value: int, tiers) -> Tuple[int, int]:
    """First (threshold, points) whose threshold is met, else (0, 0)."""
    for threshold, pts in tiers:
        if value >= threshold:
            return threshold, pts
    return 0, 0


def _position_signal(fixture: Fixture, home: TeamStanding, away: TeamStanding, reasons: List[str]) -> Tuple[int, int]:
    gap = away.position - home.position
    fav, other = (fixture.home.name, fixture.away.name) if gap > 0 else (fixture.away.name, fixture.home.name)
    threshold, pts = _tier(abs(gap), POSITION_TIERS)
    if not pts:
        return 0, 0
    n = abs(gap)
    if threshold == POSITION_TIERS[0][0]:
        reasons.append(f"{fav} sit {n} places above {other} in the table")
    elif threshold == POSITION_TIERS[1][0]:
        reasons.append(f"{fav} hold a {n}-place table advantage")
    else:
        reasons.append(f"{fav} are {n} places higher in the table")
    return (pts, 0) if gap > 0 else (0, pts)


def _points_signal(fixture: Fixture, home: TeamStanding, away: TeamStanding, reasons: List[str]) -> Tuple[int, int]:
    gap = home.points - away.points
    fav = fixture.home.name if gap > 0 else fixture.away.name
    threshold, pts = _tier(abs(gap), POINTS_TIERS)
    if not pts:
        return 0, 0
    n = abs(gap)
    if threshold == POINTS_TIERS[0][0]:
        reasons.append(f"{fav} lead by {n} points – dominant season")
    elif threshold == POINTS_TIERS[1][0]:
        reasons.append(f"{fav} lead by {n} points")
    else:
        reasons.append(f"{fav} ahead on points (+{n})")
    return (pts, 0) if gap > 0 else (0, pts)


def _form_signal(team: str, form: Optional[str], reasons: List[str]) -> int:
    if not form_results(form):
        return 0
    score = parse_form(form)
    shown = form_string(form)
    threshold, pts = _tier(score, FORM_BONUS_TIERS)
    if pts:
        word = {13: "excellent", 10: "strong", 7: "decent"}[threshold]
        reasons.append(f"{team} in {word} form: {shown}")
        return pts
    for ceiling, penalty in FORM_PENALTY_TIERS:
        if score <= ceiling:
            word = "poor" if ceiling == FORM_PENALTY_TIERS[0][0] else "patchy"
            reasons.append(f"{team} in {word} form: {shown}")
            return penalty
    return 0


def _win_rate_signal(team: str, s: TeamStanding, reasons: List[str]) -> int:
    rate = win_rate(s)
    if rate >= WIN_RATE_MIN:
        reasons.append(f"{team} win {rate * 100:.0f}% of their games")
        return WIN_RATE_BONUS
    return 0


def _h2h_ok(h2h: Optional[H2HStats]) -> bool:
    return h2h is not None and h2h.meetings >= H2H_MIN_MEETINGS


def _h2h_signal(fixture: Fixture, h2h: Optional[H2HStats], reasons: List[str]) -> Tuple[int, int]:
    if not _h2h_ok(h2h):
        return 0, 0
    n = h2h.meetings
    for team, rate, side in ((fixture.home.name, h2h.home_win_rate, 0), (fixture.away.name, h2h.away_win_rate, 1)):
        for min_rate, pts in (H2H_STRONG, H2H_LEAN):
            if rate >= min_rate:
                verb = "won" if min_rate == H2H_STRONG[0] else "have the edge, winning"
                reasons.append(f"H2H: {team} {verb} {rate * 100:.0f}% of the last {n} meetings")
                return (pts, 0) if side == 0 else (0, pts)
    if h2h.draw_rate >= H2H_DRAW_RATE:
        reasons.append(f"H2H: {h2h.draw_rate * 100:.0f}% of the last {n} meetings ended level")
        return -H2H_DRAW_DAMPING, -H2H_DRAW_DAMPING
    return 0, 0


def _h2h_win_boost(h2h: Optional[H2HStats], side: Side) -> int:
    if not _h2h_ok(h2h):
        return 0
    rate = h2h.home_win_rate if side == Side.HOME else h2h.away_win_rate
    return _round(rate * 10) if rate >= H2H_LEAN[0] else 0


def _h2h_summary(fixture: Fixture, h2h: H2HStats) -> str:
    return (f"H2H last {h2h.meetings}: {fixture.home.name} {h2h.home_win_rate * 100:.0f}%, "
            f"{fixture.away.name} {h2h.away_win_rate * 100:.0f}%, draws {h2h.draw_rate * 100:.0f}%, "
            f"{h2h.avg_goals:.1f} goals/game")


def _form_summary(fixture: Fixture, home: TeamStanding, away: TeamStanding) -> Optional[str]:
    if not form_results(home.form) and not form_results(away.form):
        return None
    return f"Form: {fixture.home.name} {form_string(home.form)} | {fixture.away.name} {form_string(away.form)}"


# ---------- main ----------
def analyse_match(
    fixture: Fixture,
    home: Optional[TeamStanding] = None,
    away: Optional[TeamStanding] = None,
    h2h: Optional[H2HStats] = None,
) -> Analysis:
    """
    One pick per fixture.

    Home/away signals are additive points (home starts with HOME_PRIOR).
    Goals markets are checked before win markets; the 1UP rules run first
    because an extreme band is always also a dominant band.
    Never raises on missing data: no standings -> fixed low-confidence home pick.
    """
    if home is None or away is None:
        return Analysis(
            pick=PickType.HOME_WIN,
            pick_label=pick_label(PickType.HOME_WIN, fixture, Side.HOME),
            confidence=FALLBACK_CONFIDENCE,
            reasoning=["No standings data available"],
            selection=Side.HOME,
        )

    hn, an = fixture.home.name, fixture.away.name
    reasons: List[str] = []
    home_signal, away_signal = HOME_PRIOR, 0

    h, a = _position_signal(fixture, home, away, reasons)
    home_signal, away_signal = home_signal + h, away_signal + a
    h, a = _points_signal(fixture, home, away, reasons)
    home_signal, away_signal = home_signal + h, away_signal + a

    home_signal += _form_signal(hn, home.form, reasons)
    away_signal += _form_signal(an, away.form, reasons)
    home_signal += _win_rate_signal(hn, home, reasons)
    away_signal += _win_rate_signal(an, away, reasons)

    h, a = _h2h_signal(fixture, h2h, reasons)
    home_signal, away_signal = home_signal + h, away_signal + a

    diff = home_signal - away_signal

    # expected goals
    ha, aa = team_averages(home), team_averages(away)
    x_home = (ha.avg_for + aa.avg_against) / 2
    x_away = (aa.avg_for + ha.avg_against) / 2
    x_total = x_home + x_away

    home_is_scorer = ha.avg_for >= 1.8 and aa.avg_against >= 1.2
    away_is_scorer = aa.avg_for >= 1.8 and ha.avg_against >= 1.2
    home_scoring_team = ha.avg_for >= 1.4
    away_scoring_team = aa.avg_for >= 1.2
    scoring_team = home_scoring_team or away_scoring_team
    home_leaky, away_leaky = ha.avg_against >= 1.3, aa.avg_against >= 1.3
    home_clean, away_clean = ha.avg_against <= 0.9, aa.avg_against <= 0.9
    both_attacking = ha.avg_for >= 1.4 and aa.avg_for >= 1.3

    h2h_ok = _h2h_ok(h2h)
    h2h_over15 = h2h_ok and h2h.over15_rate >= 0.6
    h2h_btts = h2h_ok and h2h.btts_rate >= 0.6
    h2h_over25 = h2h_ok and h2h.over25_rate >= 0.6
    h2h_over05 = h2h_ok and h2h.over05_rate >= 0.8

    goals_probable = (h2h_over15
                      or (x_total >= 2.7 and scoring_team and (home_leaky or away_leaky))
                      or (x_total >= 2.6 and both_attacking))
    btts_probable = h2h_btts or (ha.avg_for >= 1.2 and aa.avg_for >= 1.1 and home_leaky and away_leaky)
    high_scoring = h2h_over25 or (x_total >= 3.1 and scoring_team)
    at_least_one = h2h_over05 or (x_total >= 1.6 and (ha.avg_for >= 0.9 or aa.avg_for >= 0.9)
                                  and not (home_clean and away_clean))

    fb_home, fb_away = form_boost(home.form), form_boost(away.form)
    boost_home = _h2h_win_boost(h2h, Side.HOME) + fb_home
    boost_away = _h2h_win_boost(h2h, Side.AWAY) + fb_away
    n = h2h.meetings if h2h else 0

    lead: List[str] = []
    selection: Optional[Side] = None

    if diff >= EXTREME_HOME and home_is_scorer:
        pick, selection = PickType.ONE_UP, Side.HOME
        confidence = min(84, 52 + diff // 3 + fb_home)
        lead.append(f"{hn} average {ha.avg_for:.1f} goals/game against a defence conceding {aa.avg_against:.1f}")
    elif diff <= EXTREME_AWAY and away_is_scorer:
        pick, selection = PickType.ONE_UP, Side.AWAY
        confidence = min(82, 50 + abs(diff) // 3 + fb_away)
        lead.append(f"{an} average {aa.avg_for:.1f} goals/game against a defence conceding {ha.avg_against:.1f}")
    elif goals_probable:
        pick = PickType.OVER_1_5
        confidence = min(84, 52 + _round((x_total - 2.7) * 10) + (5 if h2h_over15 else 0))
        lead.append(f"Projected {x_total:.1f} total goals ({hn} {x_home:.1f}, {an} {x_away:.1f})")
        if h2h_over15:
            lead.append(f"H2H: 2+ goals in {h2h.over15_rate * 100:.0f}% of the last {n} meetings")
    elif btts_probable:
        pick = PickType.BTTS
        confidence = min(83, 56 + _round((x_total - 2.3) * 10) + (6 if h2h_btts else 0))
        lead.append(f"{hn} score {ha.avg_for:.1f}/game, {an} score {aa.avg_for:.1f}/game")
        if h2h_btts:
            lead.append(f"H2H: both teams scored in {h2h.btts_rate * 100:.0f}% of the last {n} meetings")
        else:
            lead.append(f"Both defences leak: {hn} concede {ha.avg_against:.1f}, {an} concede {aa.avg_against:.1f}")
    elif high_scoring:
        pick = PickType.OVER_2_5
        confidence = min(83, 50 + _round((x_total - 3.1) * 14) + (6 if h2h_over25 else 0))
        lead.append(f"Projected {x_total:.1f} total goals ({hn} {x_home:.1f}, {an} {x_away:.1f})")
        if h2h_over25:
            lead.append(f"H2H: 3+ goals in {h2h.over25_rate * 100:.0f}% of the last {n} meetings")
    elif diff >= DOMINANT_HOME:
        pick, selection = PickType.HOME_WIN, Side.HOME
        confidence = min(84, 46 + diff // 2 + boost_home)
        lead.append(f"{hn} dominate the matchup (signal gap {diff})")
    elif diff >= STRONG_HOME:
        pick, selection = PickType.HOME_WIN, Side.HOME
        confidence = min(81, 44 + diff // 2 + boost_home)
        lead.append(f"{hn} clear favourites at home (signal gap {diff})")
    elif diff <= DOMINANT_AWAY:
        pick, selection = PickType.AWAY_WIN, Side.AWAY
        confidence = min(83, 44 + abs(diff) // 2 + boost_away)
        lead.append(f"{an} dominate the matchup despite travelling (signal gap {abs(diff)})")
    elif diff <= STRONG_AWAY:
        pick, selection = PickType.AWAY_WIN, Side.AWAY
        confidence = min(80, 42 + abs(diff) // 2 + boost_away)
        lead.append(f"{an} clear favourites away (signal gap {abs(diff)})")
    elif diff >= MODERATE_HOME:
        pick, selection = PickType.HANDICAP_PLUS_1, Side.AWAY
        confidence = min(78, 66 + diff // 4 + fb_home)
        lead.append(f"{hn} only slight favourites (signal gap {diff}); {an} +1 covers a draw")
    elif diff <= MODERATE_AWAY:
        pick, selection = PickType.HANDICAP_PLUS_1, Side.HOME
        confidence = min(78, 66 + abs(diff) // 4 + fb_away)
        lead.append(f"{an} only slight favourites (signal gap {abs(diff)}); {hn} +1 covers a draw")
    elif at_least_one:
        pick = PickType.OVER_0_5
        confidence = min(78, 64 + _round(x_total * 5))
        lead.append(f"Projected {x_total:.1f} total goals; a goalless draw is unlikely")
    else:
        pick, selection = PickType.HOME_WIN, Side.HOME
        confidence = NO_SIGNAL_CONFIDENCE
        lead.append(f"No strong signal; {hn} backed on home advantage")

    reasoning = lead + reasons
    if h2h is not None and h2h.meetings > 0 and not any(r.startswith("H2H") for r in reasoning):
        reasoning.append(_h2h_summary(fixture, h2h))
    form_line = _form_summary(fixture, home, away)
    if form_line and not any("form" in r.lower() for r in reasoning):
        reasoning.append(form_line)

    logger.debug("%s vs %s: home=%d away=%d diff=%d xTotal=%.2f -> %s (%d)",
                 hn, an, home_signal, away_signal, diff, x_total, pick.value, confidence)

    return Analysis(
        pick=pick,
        pick_label=pick_label(pick, fixture, selection),
        confidence=_clamp(confidence),
        reasoning=reasoning[:MAX_REASONS],
        selection=selection,
    )
