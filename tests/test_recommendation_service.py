"""Unit tests for best-route scoring."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import AsyncMock
from app.exceptions import NoAvailability
from app.services.occupancy_service import VehicleType
from app.services.recommendation_service import (build_rationale, recommend, score_zones,
                                                 traffic_score)
from app.services.traffic_service import AccessTraffic
from app.utils.metrics import TrafficState, traffic_state


def access(point, road, current, free_flow):
    assessment = traffic_state(current, free_flow)
    return AccessTraffic(point=point, road=road, current_speed=current, free_flow_speed=free_flow,
                         congested=assessment.congested, ratio=assessment.ratio,
                         state=assessment.state, queried_ago="now", synthetic=False)


FLUID = access("vegas", "Av. Las Vegas", 45.0, 50.0)
CONGESTED = access("cra49", "Cra 49 / Regional", 18.0, 45.0)


def cache_with(*results):
    cache = AsyncMock()
    cache.get_all_traffic.return_value = list(results)
    return cache


class TestScoreZones:
    def test_traffic_outweighs_slightly_better_availability(self, make_zone):
        a = make_zone("A", car_capacity=100, car_occupancy=20, nearest_access="vegas")
        b = make_zone("B", car_capacity=100, car_occupancy=10, nearest_access="cra49")

        ranked = score_zones([a, b], {"vegas": FLUID, "cra49": CONGESTED}, VehicleType.CAR)

        assert [s.zone.name for s in ranked] == ["A", "B"]
        assert ranked[0].score == pytest.approx(0.88)
        assert ranked[1].score == pytest.approx(0.62)

    def test_full_and_zero_capacity_zones_are_excluded(self, make_zone):
        full = make_zone("Full", car_capacity=50, car_occupancy=50)
        none = make_zone("No cars", car_capacity=0, moto_capacity=20)
        open_ = make_zone("Open", car_capacity=50, car_occupancy=49)

        ranked = score_zones([full, none, open_], {"vegas": FLUID}, VehicleType.CAR)

        assert [s.zone.name for s in ranked] == ["Open"]
        assert ranked[0].available == 1

    def test_moto_uses_moto_counters(self, make_zone):
        cars_only = make_zone("Cars", car_capacity=100, car_occupancy=0)
        motos = make_zone("Motos", car_capacity=10, car_occupancy=10, moto_capacity=40, moto_occupancy=30)

        ranked = score_zones([cars_only, motos], {}, VehicleType.MOTO)

        assert [s.zone.name for s in ranked] == ["Motos"]
        assert ranked[0].available == 10

    def test_missing_traffic_scores_half(self, make_zone):
        zone = make_zone(car_capacity=100, car_occupancy=0, nearest_access="unknown")

        [scored] = score_zones([zone], {"vegas": FLUID}, VehicleType.CAR)

        assert scored.access is None
        assert scored.traffic_score == 0.5
        assert scored.score == pytest.approx(0.8)

    def test_equal_scores_break_by_name(self, make_zone):
        zeta = make_zone("Zeta", car_capacity=100, car_occupancy=50)
        alpha = make_zone("Alpha", car_capacity=100, car_occupancy=50)

        ranked = score_zones([zeta, alpha], {"vegas": FLUID}, VehicleType.CAR)

        assert [s.zone.name for s in ranked] == ["Alpha", "Zeta"]

    @pytest.mark.parametrize("state_access,expected", [
        (FLUID, 1.0),
        (access("x", "X", 30.0, 50.0), 0.5),
        (CONGESTED, 0.2),
        (None, 0.5),
    ])
    def test_traffic_score_table(self, state_access, expected):
        assert traffic_score(state_access) == expected


class TestRationale:
    def test_congested_access(self, make_zone):
        zone = make_zone("Guayabos", car_capacity=100, car_occupancy=10, nearest_access="cra49")
        [scored] = score_zones([zone], {"cra49": CONGESTED}, VehicleType.CAR)

        assert build_rationale(scored) == \
            "Guayabos has 90 spots available although the Cra 49 / Regional access has traffic."

    def test_flowing_access(self, make_zone):
        zone = make_zone("Sigma", car_capacity=10, car_occupancy=7)
        [scored] = score_zones([zone], {"vegas": FLUID}, VehicleType.CAR)

        assert build_rationale(scored) == "Sigma has 3 spots available and the Av. Las Vegas access is flowing."

    def test_no_data(self, make_zone):
        zone = make_zone("Sigma", car_capacity=10, nearest_access="nowhere")
        [scored] = score_zones([zone], {}, VehicleType.CAR)

        assert "no traffic data" in build_rationale(scored)


class TestRecommend:
    @pytest.mark.asyncio
    async def test_best_and_alternative(self, db, make_zone):
        make_zone("A", car_capacity=100, car_occupancy=20, nearest_access="vegas")
        make_zone("B", car_capacity=100, car_occupancy=10, nearest_access="cra49")
        cache = cache_with(FLUID, CONGESTED)

        result = await recommend(db, VehicleType.CAR, cache)

        assert result.best.zone.name == "A"
        assert result.alternative.zone.name == "B"
        assert result.score == 0.88
        assert result.rationale.startswith("A has 80 spots available")
        cache.get_all_traffic.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inactive_zones_are_ignored(self, db, make_zone):
        make_zone("Closed", car_capacity=100, car_occupancy=0, active=False)
        make_zone("Open", car_capacity=100, car_occupancy=90)

        result = await recommend(db, VehicleType.CAR, cache_with(FLUID))

        assert result.best.zone.name == "Open"
        assert result.alternative is None

    @pytest.mark.asyncio
    async def test_nothing_available_raises(self, db, make_zone):
        make_zone(car_capacity=10, car_occupancy=10, moto_capacity=0)

        with pytest.raises(NoAvailability):
            await recommend(db, VehicleType.CAR, cache_with(FLUID))
        with pytest.raises(NoAvailability):
            await recommend(db, VehicleType.MOTO, cache_with(FLUID))
