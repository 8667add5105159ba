# schema.py – records shared by the analyzer, the selector and the data sources
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class PickType(str, Enum):
    HOME_WIN = "HOME_WIN"
    AWAY_WIN = "AWAY_WIN"
    DRAW = "DRAW"                        # reserved, never emitted
    OVER_0_5 = "OVER_0_5"
    OVER_1_5 = "OVER_1_5"
    OVER_2_5 = "OVER_2_5"
    BTTS = "BTTS"
    ONE_UP = "ONE_UP"                    # backed team leads by 1+ at any point
    TWO_UP = "TWO_UP"                    # reserved, never emitted
    HANDICAP_PLUS_1 = "HANDICAP_PLUS_1"
    HANDICAP_PLUS_2 = "HANDICAP_PLUS_2"  # reserved, never emitted


class ResultType(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    VOID = "VOID"


class Side(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"


@dataclass(frozen=True)
class FixtureTeam:
    id: int
    name: str
    crest: str = ""


@dataclass(frozen=True)
class Competition:
    code: str
    name: str
    id: Optional[int] = None
    emblem: str = ""


@dataclass(frozen=True)
class Fixture:
    id: int
    home: FixtureTeam
    away: FixtureTeam
    competition: Competition
    utc_date: str               # ISO 8601, as delivered by the API
    status: str = "SCHEDULED"
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None

    @property
    def kickoff(self) -> Optional[datetime]:
        if not self.utc_date:
            return None
        return datetime.fromisoformat(self.utc_date.replace("Z", "+00:00"))

    @classmethod
    def from_api(cls, raw: Dict) -> "Fixture":
        """Build from a football-data.org v4 `match` object."""
        comp = raw.get("competition") or {}
        full_time = (raw.get("score") or {}).get("fullTime") or {}
        return cls(
            id=int(raw["id"]),
            home=_team_from_api(raw["homeTeam"]),
            away=_team_from_api(raw["awayTeam"]),
            competition=Competition(
                code=comp.get("code", ""),
                name=comp.get("name", ""),
                id=comp.get("id"),
                emblem=comp.get("emblem") or "",
            ),
            utc_date=raw.get("utcDate", ""),
            status=raw.get("status", "SCHEDULED"),
            home_goals=full_time.get("home"),
            away_goals=full_time.get("away"),
        )


def _team_from_api(raw: Dict) -> FixtureTeam:
    return FixtureTeam(id=int(raw["id"]), name=raw.get("name") or "", crest=raw.get("crest") or "")


@dataclass(frozen=True)
class TeamStanding:
    team_id: int
    team_name: str
    position: int
    points: int
    won: int
    draw: int
    lost: int
    goals_for: int
    goals_against: int
    played_games: int
    form: Optional[str] = None      # "W,D,L,W,W", most recent last
    goal_difference: int = 0

    @classmethod
    def from_api(cls, row: Dict) -> "TeamStanding":
        """Build from one row of a football-data.org v4 standings table."""
        team = row.get("team") or {}
        gf = int(row.get("goalsFor") or 0)
        ga = int(row.get("goalsAgainst") or 0)
        return cls(
            team_id=int(team["id"]),
            team_name=team.get("name") or "",
            position=int(row["position"]),
            points=int(row.get("points") or 0),
            won=int(row.get("won") or 0),
            draw=int(row.get("draw") or 0),
            lost=int(row.get("lost") or 0),
            goals_for=gf,
            goals_against=ga,
            played_games=int(row.get("playedGames") or 0),
            form=row.get("form") or None,
            goal_difference=int(row.get("goalDifference", gf - ga) or 0),
        )


@dataclass(frozen=True)
class H2HStats:
    meetings: int
    avg_goals: float
    over05_rate: float
    over15_rate: float
    over25_rate: float
    btts_rate: float
    home_win_rate: float
    away_win_rate: float
    draw_rate: float


@dataclass
class Analysis:
    pick: PickType
    pick_label: str
    confidence: int
    reasoning: List[str] = field(default_factory=list)
    selection: Optional[Side] = None


@dataclass
class AnalysedFixture:
    fixture: Fixture
    home_standing: Optional[TeamStanding]
    away_standing: Optional[TeamStanding]
    h2h: Optional[H2HStats]
    analysis: Analysis

    @property
    def confidence(self) -> int:
        return self.analysis.confidence

    def to_prediction(self, odds: Optional[float] = None) -> Dict:
        """Flat prediction record, the shape the web layer stores and serves."""
        f = self.fixture
        ko = f.kickoff
        match_date = ko.strftime("%Y-%m-%d") if ko else ""
        return {
            "id": f"{f.id}-{match_date}",
            "matchId": f.id,
            "homeTeam": f.home.name,
            "awayTeam": f.away.name,
            "homeCrest": f.home.crest,
            "awayCrest": f.away.crest,
            "competition": f.competition.name,
            "competitionCode": f.competition.code,
            "competitionEmblem": f.competition.emblem,
            "matchDate": match_date,
            "kickoff": ko.strftime("%H:%M") if ko else "",
            "pick": self.analysis.pick.value,
            "pickLabel": self.analysis.pick_label,
            "selection": self.analysis.selection.value if self.analysis.selection else None,
            "confidence": self.analysis.confidence,
            "reasoning": list(self.analysis.reasoning),
            "odds": odds,
            "result": None,
            "homeScore": f.home_goals,
            "awayScore": f.away_goals,
            "h2h": asdict(self.h2h) if self.h2h else None,
        }
