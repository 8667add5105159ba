# markets.py – market definitions per pick type, display labels and settlement
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from schema import Fixture, PickType, ResultType, Side

@dataclass(frozen=True)
class MarketDef:
    pick: PickType
    label: str                # short label; "{team}" is filled for side markets
    settles: str              # human rule for settlement
    side_market: bool = False


FOOTBALL_MARKETS: List[MarketDef] = [
    MarketDef(PickType.HOME_WIN, "{team} to Win", "Home team wins in regular time.", True),
    MarketDef(PickType.AWAY_WIN, "{team} to Win", "Away team wins in regular time.", True),
    MarketDef(PickType.DRAW, "Draw", "Match ends level."),
    MarketDef(PickType.OVER_0_5, "Over 0.5 Goals", "At least 1 goal in the match."),
    MarketDef(PickType.OVER_1_5, "Over 1.5 Goals", "At least 2 goals in the match."),
    MarketDef(PickType.OVER_2_5, "Over 2.5 Goals", "At least 3 goals in the match."),
    MarketDef(PickType.BTTS, "Both Teams to Score", "Both teams score at least once."),
    MarketDef(PickType.ONE_UP, "{team} 1UP", "Lead by 1+ goal at any point = WIN.", True),
    MarketDef(PickType.TWO_UP, "{team} 2UP", "Lead by 2+ goals at any point = WIN.", True),
    MarketDef(PickType.HANDICAP_PLUS_1, "{team} +1 Handicap",
              "Team gets +1 goal start. WIN on a win or draw, VOID on a one-goal defeat, LOSE by 2+.", True),
    MarketDef(PickType.HANDICAP_PLUS_2, "{team} +2 Handicap",
              "Team gets +2 goal start. WIN unless beaten by 2+, VOID on a two-goal defeat, LOSE by 3+.", True),
]

MARKETS: Dict[PickType, MarketDef] = {m.pick: m for m in FOOTBALL_MARKETS}


def get_market(pick: PickType) -> MarketDef:
    return MARKETS[PickType(pick)]


def pick_label(pick: PickType, fixture: Fixture, selection: Optional[Side] = None) -> str:
    m = get_market(pick)
    if not m.side_market:
        return m.label
    if selection is None:
        selection = Side.AWAY if pick == PickType.AWAY_WIN else Side.HOME
    team = fixture.home.name if selection == Side.HOME else fixture.away.name
    return m.label.format(team=team)


def settle(pick: PickType, selection: Optional[Side], home_goals: int, away_goals: int) -> Optional[ResultType]:
    """
    Result of a pick from the final score.
    None = the final score alone is not enough (1UP/2UP lead-at-any-point markets).
    """
    pick = PickType(pick)
    total = home_goals + away_goals
    if selection == Side.AWAY:
        backed, other = away_goals, home_goals
    else:
        backed, other = home_goals, away_goals
    margin = backed - other

    def wl(ok: bool) -> ResultType:
        return ResultType.WIN if ok else ResultType.LOSS

    if pick == PickType.HOME_WIN:
        return wl(home_goals > away_goals)
    if pick == PickType.AWAY_WIN:
        return wl(away_goals > home_goals)
    if pick == PickType.DRAW:
        return wl(home_goals == away_goals)
    if pick == PickType.OVER_0_5:
        return wl(total >= 1)
    if pick == PickType.OVER_1_5:
        return wl(total >= 2)
    if pick == PickType.OVER_2_5:
        return wl(total >= 3)
    if pick == PickType.BTTS:
        return wl(home_goals > 0 and away_goals > 0)
    if pick in (PickType.HANDICAP_PLUS_1, PickType.HANDICAP_PLUS_2):
        adjusted = margin + (1 if pick == PickType.HANDICAP_PLUS_1 else 2)
        if adjusted == 0:
            return ResultType.VOID
        return wl(adjusted > 0)
    if pick in (PickType.ONE_UP, PickType.TWO_UP):
        need = 1 if pick == PickType.ONE_UP else 2
        if margin >= need:
            return ResultType.WIN
        if backed < need:
            return ResultType.LOSS
        return None
    return None
