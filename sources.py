# sources.py – football-data.org v4 client (fixtures, standings, head-to-head, recent matches)
from __future__ import annotations
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from schema import Fixture, TeamStanding

logger = logging.getLogger(__name__)

# =============== CONFIG ===============
BASE_URL = os.getenv("FOOTBALL_API_URL", "https://api.football-data.org/v4").rstrip("/")
API_KEY = os.getenv("FOOTBALL_API_KEY", "")
TIMEOUT = (7, 20)
LEAGUES = [s.strip().upper() for s in os.getenv(
    "LEAGUES", "PL,BL1,PD,SA,FL1,CL,DED,PPL,ELC"
).split(",") if s.strip()]


class FootballApiError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None, path: str = ""):
        super().__init__(message)
        self.status = status
        self.path = path


def _session(api_key: str) -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "X-Auth-Token": api_key,
        "Accept": "application/json",
        "User-Agent": "picks-bot/1.0",
    })
    retry = Retry(total=3, backoff_factor=0.6, status_forcelist=[429, 500, 502, 503, 504],
                  allowed_methods=frozenset(["GET"]), respect_retry_after_header=True)
    s.mount("https://", HTTPAdapter(max_retries=retry))
    s.mount("http://", HTTPAdapter(max_retries=retry))
    return s


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class FootballDataClient:
    name = "FOOTBALL-DATA"

    def __init__(self, api_key: str = API_KEY, base_url: str = BASE_URL,
                 leagues: Optional[Iterable[str]] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.leagues = list(leagues) if leagues is not None else list(LEAGUES)
        self.session = session or _session(api_key)

    def _get(self, path: str, params: Optional[Dict] = None) -> Dict:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, params=params, timeout=TIMEOUT)
        except requests.RequestException as e:
            raise FootballApiError(f"Football API request failed: {e}", path=path) from e
        if r.status_code != 200:
            raise FootballApiError(f"Football API error: {r.status_code} {path}", status=r.status_code, path=path)
        try:
            return r.json()
        except ValueError as e:
            raise FootballApiError(f"Football API returned invalid JSON for {path}", status=r.status_code, path=path) from e

    # ---------- fixtures ----------
    def get_fixtures(self, date_from: str, date_to: str) -> List[Fixture]:
        data = self._get("/matches", {"dateFrom": date_from, "dateTo": date_to})
        out: List[Fixture] = []
        for raw in data.get("matches") or []:
            if (raw.get("competition") or {}).get("code") not in self.leagues:
                continue
            out.append(Fixture.from_api(raw))
        return out

    def get_today_fixtures(self) -> List[Fixture]:
        today = _today()
        return self.get_fixtures(today, today)

    # ---------- standings ----------
    def get_standings(self, code: str) -> List[TeamStanding]:
        data = self._get(f"/competitions/{code}/standings")
        for block in data.get("standings") or []:
            if block.get("type") == "TOTAL":
                return [TeamStanding.from_api(row) for row in block.get("table") or []]
        return []

    def get_multiple_standings(self, codes: Iterable[str]) -> Dict[str, List[TeamStanding]]:
        # sequential on purpose: the free tier allows 10 requests/minute
        out: Dict[str, List[TeamStanding]] = {}
        for code in codes:
            try:
                table = self.get_standings(code)
            except FootballApiError as e:
                logger.warning("Standings for %s unavailable: %s", code, e)
                continue
            if table:
                out[code] = table
        return out

    # ---------- history ----------
    def get_head2head(self, match_id: int, limit: int = 10) -> List[Dict]:
        data = self._get(f"/matches/{match_id}/head2head", {"limit": limit})
        return data.get("matches") or []

    def get_team_matches(self, team_id: int, limit: int = 5) -> List[Dict]:
        data = self._get(f"/teams/{team_id}/matches", {"status": "FINISHED", "limit": limit})
        return data.get("matches") or []
