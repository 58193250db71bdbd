from infinigomoku.game.types import DIRECTIONS, Mark, Point, ThreatLevel, Tier


def test_mark_other():
    assert Mark.X.other is Mark.O
    assert Mark.O.other is Mark.X


def test_mark_str():
    assert str(Mark.X) == "X"
    assert str(Mark.O) == "O"


def test_point_is_namedtuple():
    p = Point(3, -5)
    assert p.row == 3
    assert p.col == -5
    assert p == (3, -5)


def test_point_distances():
    assert Point(-2, 3).manhattan() == 5
    assert Point(0, 0).chebyshev(Point(2, -1)) == 2


def test_directions_cover_four_axes():
    assert set(DIRECTIONS) == {(0, 1), (1, 0), (1, 1), (1, -1)}


def test_threat_levels_are_ordered():
    assert ThreatLevel.NONE < ThreatLevel.WEAK < ThreatLevel.MODERATE
    assert ThreatLevel.MODERATE < ThreatLevel.STRONG < ThreatLevel.IMMEDIATE_WIN


def test_tier_str():
    assert str(Tier.MASTER) == "Master"
    assert Tier("adaptive") is Tier.ADAPTIVE
