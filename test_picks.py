from picks import apply_threshold_cascade, select_top_picks
from schema import AnalysedFixture, Analysis, H2HStats, PickType


def _analysed(make_fixture, confidences):
    return [
        AnalysedFixture(make_fixture(fid=i), None, None, None,
                        Analysis(PickType.OVER_1_5, "Over 1.5 Goals", conf, []))
        for i, conf in enumerate(confidences)
    ]


def _confs(picks):
    return [p.confidence for p in picks]


def test_cascade_keeps_highest_bar(make_fixture):
    slate = _analysed(make_fixture, [74, 80, 61, 78, 70, 76, 69, 79, 65, 77])
    picks = apply_threshold_cascade(slate, count=5)
    assert _confs(picks) == [80, 79, 78, 77, 76]


def test_cascade_degrades_to_first_tier_with_four(make_fixture):
    # 2 at 75+, 3 at 68+, 6 at 62+
    slate = _analysed(make_fixture, [63, 80, 50, 70, 66, 76, 61, 64, 62])
    picks = apply_threshold_cascade(slate, count=5)
    assert _confs(picks) == [80, 76, 70, 66, 64]

    picks = apply_threshold_cascade(slate, count=10)
    assert _confs(picks) == [80, 76, 70, 66, 64, 63, 62]


def test_cascade_floor(make_fixture):
    assert _confs(apply_threshold_cascade(_analysed(make_fixture, [61, 59, 60]))) == [61, 60]
    assert apply_threshold_cascade(_analysed(make_fixture, [59, 40, 52])) == []
    assert apply_threshold_cascade([]) == []


def test_cascade_ties_keep_fixture_order(make_fixture):
    slate = _analysed(make_fixture, [70, 72, 70, 70, 70])
    picks = apply_threshold_cascade(slate, count=5)
    assert [p.fixture.id for p in picks] == [1, 0, 2, 3, 4]


def test_select_skips_fixtures_without_standings(make_fixture, leader_and_strugglers):
    home, away = leader_and_strugglers
    fixtures = [
        make_fixture(fid=1, home_id=10, away_id=20, code="PL"),
        make_fixture(fid=2, home_id=30, away_id=40, code="PL"),   # teams not in table
        make_fixture(fid=3, home_id=10, away_id=20, code="BL1"),  # no table at all
    ]
    picks = select_top_picks(fixtures, {"PL": [home, away]})

    assert [p.fixture.id for p in picks] == [1]
    assert picks[0].home_standing is home
    assert picks[0].analysis.pick == PickType.ONE_UP
    assert picks[0].confidence == 80


def test_select_fills_missing_form_and_attaches_h2h(make_fixture, make_standing):
    home = make_standing(team_id=10, position=1, points=70, won=16,
                         goals_for=50, goals_against=10, form=None)
    away = make_standing(team_id=20, position=18, points=15, won=3,
                         goals_for=12, goals_against=45, form="L,L,D,L,L")
    h2h = H2HStats(meetings=4, avg_goals=3.0, over05_rate=1.0, over15_rate=0.75, over25_rate=0.5,
                   btts_rate=0.25, home_win_rate=0.75, away_win_rate=0.0, draw_rate=0.25)
    fx = make_fixture(fid=7)

    picks = select_top_picks([fx], {"PL": [home, away]}, {7: h2h}, {10: "W,W,W,W,W", 20: "W,W,W,W,W"})

    assert len(picks) == 1
    p = picks[0]
    assert p.home_standing.form == "W,W,W,W,W"
    assert p.away_standing.form == "L,L,D,L,L"      # own form is kept
    assert home.form is None                        # input not mutated
    assert p.h2h is h2h


def test_select_is_deterministic_and_sorted(make_fixture, make_standing, leader_and_strugglers):
    home, away = leader_and_strugglers
    table = [home, away,
             make_standing(team_id=30, position=5, points=30),
             make_standing(team_id=40, position=6, points=29),
             make_standing(team_id=50, position=3, points=40, won=10, goals_for=24, goals_against=16,
                           form="W,W,D,W,L"),
             make_standing(team_id=60, position=12, points=25, won=6, goals_for=18, goals_against=20,
                           form="L,D,L,W,L")]
    fixtures = [make_fixture(fid=1, home_id=30, away_id=40),
                make_fixture(fid=2, home_id=10, away_id=20),
                make_fixture(fid=3, home_id=50, away_id=60)]

    first = select_top_picks(fixtures, {"PL": table}, count=5)
    second = select_top_picks(fixtures, {"PL": table}, count=5)

    assert [(p.fixture.id, p.confidence) for p in first] == [(p.fixture.id, p.confidence) for p in second]
    assert _confs(first) == sorted(_confs(first), reverse=True)
    assert all(p.home_standing and p.away_standing for p in first)
