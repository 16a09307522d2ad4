import pytest

from wikicarbone.core.transport import INITIAL_DISTANCES, TransportResolver, TransportSummary, sum_summaries
from wikicarbone.core.units import Mass


def test_routes_are_symmetric(db):
    ab = db.transport.distances_between("AA", "BB")
    ba = db.transport.distances_between("BB", "AA")
    assert ab == ba == {"road": 100.0, "sea": 1000.0, "air": 0.0}


def test_domestic_and_fallback_distances(db):
    assert db.transport.distances_between("AA", "AA")["road"] == 50.0
    assert db.transport.distances_between("AA", "ZZ")["road"] == 10.0


def test_summary_prices_each_mode_per_tonne_km(db):
    s = db.transport.summary_between(db.processes, "AA", "BB", Mass(1000.0))
    # 1 t * (100 km * 0.2 + 1000 km * 0.01)
    assert s.co2 == pytest.approx(30.0)
    assert (s.road, s.sea, s.air) == (100.0, 1000.0, 0.0)


def test_default_initial_carries_the_fibre_leg():
    initial = TransportSummary.default_initial()
    assert initial != TransportSummary.default()
    assert initial.road == INITIAL_DISTANCES["road"] > 0.0
    assert initial.co2 == 0.0


def test_initial_leg_is_priced(db):
    s = db.transport.initial_summary(db.processes, Mass(1000.0))
    # 1 t * 20 km * 0.2
    assert (s.road, s.sea, s.air) == (20.0, 0.0, 0.0)
    assert s.co2 == pytest.approx(4.0)


def test_initial_leg_defaults_when_not_configured():
    resolver = TransportResolver.from_routes([], {"road": "ROAD"})
    assert resolver.initial == INITIAL_DISTANCES


@pytest.mark.parametrize("payload", ["oops", 3, None])
def test_summary_from_non_mapping_is_a_type_error(payload):
    with pytest.raises(TypeError):
        TransportSummary.from_dict(payload)


def test_sum_summaries():
    total = sum_summaries([
        TransportSummary(road=1, sea=2, air=0, co2=0.5),
        TransportSummary(road=3, sea=0, air=4, co2=1.5),
    ])
    assert total == TransportSummary(road=4, sea=2, air=4, co2=2.0)
