import json

import pytest
import requests

from sources import FootballApiError, FootballDataClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body=None):
        self.status_code = status_code
        self._payload = payload or {}
        self._body = body

    def json(self):
        if self._body is not None:
            return json.loads(self._body)
        return self._payload


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        path = url.split("/v4", 1)[1]
        route = self.routes.get(path)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(404)
        return route


def _match(mid, code, home_id=1, away_id=2):
    return {
        "id": mid,
        "utcDate": "2026-10-19T19:00:00Z",
        "status": "TIMED",
        "homeTeam": {"id": home_id, "name": "Home FC", "crest": "h.png"},
        "awayTeam": {"id": away_id, "name": "Away FC", "crest": "a.png"},
        "competition": {"id": 2021, "code": code, "name": "Some League"},
        "score": {"fullTime": {"home": None, "away": None}},
    }


def _row(team_id, position, form=None):
    return {"position": position, "team": {"id": team_id, "name": f"Team {team_id}"},
            "playedGames": 10, "won": 5, "draw": 3, "lost": 2, "points": 18,
            "goalsFor": 15, "goalsAgainst": 9, "goalDifference": 6, "form": form}


def _client(routes):
    return FootballDataClient(api_key="k", base_url="https://api.example/v4", session=FakeSession(routes))


def test_fixtures_filtered_to_supported_leagues():
    c = _client({"/matches": FakeResponse(200, {"matches": [_match(1, "PL"), _match(2, "XYZ"), _match(3, "SA")]})})
    fixtures = c.get_fixtures("2026-10-19", "2026-10-19")

    assert [f.id for f in fixtures] == [1, 3]
    assert fixtures[0].home.name == "Home FC"
    assert fixtures[0].competition.code == "PL"
    assert c.session.calls[0][1] == {"dateFrom": "2026-10-19", "dateTo": "2026-10-19"}


def test_standings_total_table_only():
    payload = {"standings": [
        {"type": "HOME", "table": [_row(9, 1)]},
        {"type": "TOTAL", "table": [_row(1, 1, "W,W,D,L,W"), _row(2, 2)]},
    ]}
    table = _client({"/competitions/PL/standings": FakeResponse(200, payload)}).get_standings("PL")

    assert [s.team_id for s in table] == [1, 2]
    assert table[0].form == "W,W,D,L,W"
    assert table[1].form is None
    assert table[0].played_games == 10 and table[0].goals_for == 15


def test_http_errors_raise():
    c = _client({"/competitions/PL/standings": FakeResponse(429)})
    with pytest.raises(FootballApiError) as e:
        c.get_standings("PL")
    assert e.value.status == 429

    c = _client({"/matches": requests.ConnectionError("down")})
    with pytest.raises(FootballApiError):
        c.get_today_fixtures()


def test_multiple_standings_skips_failures():
    c = _client({
        "/competitions/PL/standings": FakeResponse(200, {"standings": [{"type": "TOTAL", "table": [_row(1, 1)]}]}),
        "/competitions/SA/standings": FakeResponse(500),
        "/competitions/BL1/standings": FakeResponse(200, {"standings": []}),
    })
    out = c.get_multiple_standings(["PL", "SA", "BL1"])
    assert list(out) == ["PL"]


def test_history_endpoints():
    c = _client({
        "/matches/5/head2head": FakeResponse(200, {"matches": [_match(11, "PL")]}),
        "/teams/1/matches": FakeResponse(200, {"matches": [_match(12, "PL"), _match(13, "PL")]}),
    })
    assert len(c.get_head2head(5)) == 1
    assert c.session.calls[-1][1] == {"limit": 10}
    assert len(c.get_team_matches(1)) == 2
    assert c.session.calls[-1][1] == {"status": "FINISHED", "limit": 5}


def test_non_json_body_raises_api_error():
    c = _client({"/matches/1/head2head": FakeResponse(200, body="<html>Service Unavailable</html>")})
    with pytest.raises(FootballApiError) as e:
        c.get_head2head(1)
    assert e.value.path == "/matches/1/head2head"
    assert e.value.status == 200
