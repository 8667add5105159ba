# sources_files.py – file-based source, so the bot can run from a saved JSON snapshot
from __future__ import annotations
import json
import os
from typing import Dict, Iterable, List

from schema import Fixture, TeamStanding


def _read_json(path: str):
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class FileSource:
    """
    Snapshot in football-data.org v4 shapes.
    File: picks_snapshot.json
    {
      "fixtures": [<match>, ...],
      "standings": {"PL": [<table row>, ...]},
      "head2head": {"<fixture id>": [<match>, ...]},
      "team_matches": {"<team id>": [<match>, ...]}
    }
    """
    name = "FILE"

    def __init__(self, path: str = "picks_snapshot.json"):
        self.path = path
        self.data = _read_json(path)

    def get_today_fixtures(self) -> List[Fixture]:
        return [Fixture.from_api(r) for r in self.data.get("fixtures") or []]

    def get_fixtures(self, date_from: str, date_to: str) -> List[Fixture]:
        # ISO dates compare as strings
        return [f for f in self.get_today_fixtures() if date_from <= f.utc_date[:10] <= date_to]

    def get_standings(self, code: str) -> List[TeamStanding]:
        return [TeamStanding.from_api(r) for r in (self.data.get("standings") or {}).get(code) or []]

    def get_multiple_standings(self, codes: Iterable[str]) -> Dict[str, List[TeamStanding]]:
        out: Dict[str, List[TeamStanding]] = {}
        for code in codes:
            table = self.get_standings(code)
            if table:
                out[code] = table
        return out

    def get_head2head(self, match_id: int, limit: int = 10) -> List[Dict]:
        return ((self.data.get("head2head") or {}).get(str(match_id)) or [])[:limit]

    def get_team_matches(self, team_id: int, limit: int = 5) -> List[Dict]:
        matches = (self.data.get("team_matches") or {}).get(str(team_id)) or []
        matches = sorted(matches, key=lambda m: m.get("utcDate", ""), reverse=True)
        return matches[:limit]
