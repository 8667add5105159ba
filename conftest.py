import pytest

from schema import Competition, Fixture, FixtureTeam, TeamStanding


def _fixture(fid=1, home_id=10, away_id=20, code="PL", home_name="Home FC", away_name="Away FC",
             utc_date="2026-10-19T19:00:00Z"):
    return Fixture(
        id=fid,
        home=FixtureTeam(home_id, home_name),
        away=FixtureTeam(away_id, away_name),
        competition=Competition(code=code, name="Premier League"),
        utc_date=utc_date,
    )


def _standing(team_id=10, position=10, points=30, won=8, draw=6, lost=6,
              goals_for=20, goals_against=20, played_games=20, form=None, name=None):
    return TeamStanding(
        team_id=team_id,
        team_name=name or f"Team {team_id}",
        position=position,
        points=points,
        won=won,
        draw=draw,
        lost=lost,
        goals_for=goals_for,
        goals_against=goals_against,
        played_games=played_games,
        form=form,
    )


@pytest.fixture
def make_fixture():
    return _fixture


@pytest.fixture
def make_standing():
    return _standing


@pytest.fixture
def leader_and_strugglers():
    """Top of the table at home to a side in the drop zone."""
    home = _standing(team_id=10, position=1, points=70, won=16, draw=2, lost=2,
                     goals_for=50, goals_against=10, played_games=20, form="W,W,W,W,W")
    away = _standing(team_id=20, position=18, points=15, won=3, draw=6, lost=11,
                     goals_for=12, goals_against=45, played_games=20, form="L,L,D,L,L")
    return home, away
