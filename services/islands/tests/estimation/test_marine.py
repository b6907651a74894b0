"""Tests for marine heuristics: status thresholds, narrative, climatology fallback."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from services.islands.estimation.marine import (
    SST_CLIMATOLOGY,
    SeaBasin,
    build_marine_estimate,
    calculate_beach_score,
    estimate_marine,
    ferry_status_for,
    generate_marine_narrative,
    is_coastal_city,
    swim_safety_for,
    wind_sea_height,
)
from services.islands.estimation.types import FerryStatus, SwimSafety


class TestStatus:

    @pytest.mark.parametrize(
        "wave, status",
        [(0.0, FerryStatus.NORMAL), (1.19, FerryStatus.NORMAL), (1.2, FerryStatus.DELAYED), (2.0, FerryStatus.CANCELLED)],
    )
    def test_ferry_thresholds(self, wave, status):
        assert ferry_status_for(wave) is status

    def test_swim_safety(self):
        assert swim_safety_for(0.2, 24) is SwimSafety.SAFE
        assert swim_safety_for(0.2, 14) is SwimSafety.CAUTION
        assert swim_safety_for(0.9, 24) is SwimSafety.CAUTION
        assert swim_safety_for(1.5, 24) is SwimSafety.DANGEROUS


class TestNarrative:

    def test_calm_warm_sea(self):
        text = generate_marine_narrative(26.3, 0.2, FerryStatus.NORMAL)
        assert text == "Deniz yüzmeye çok uygun! Su sıcaklığı 26.3°C. Dalgalar yok denecek kadar az."

    def test_cancelled_ferries(self):
        text = generate_marine_narrative(12.0, 2.4, FerryStatus.CANCELLED)
        assert text.startswith("Deniz yüzme için soğuk.")
        assert "Dalgalar yüksek" in text
        assert text.endswith("Vapur seferleri iptal edildi.")


class TestEstimateMarine:

    def test_wind_sea_height(self):
        assert wind_sea_height(0) == 0
        assert wind_sea_height(20) == pytest.approx(0.66, abs=0.01)
        assert wind_sea_height(-5) == 0

    def test_antalya_august(self):
        result = estimate_marine("Antalya", 20, month=8)

        assert result.sea_temp_c == SST_CLIMATOLOGY[SeaBasin.MEDITERRANEAN][7]
        assert result.wave_height_m == 0.7
        assert result.ferry_status is FerryStatus.NORMAL
        assert result.swim_safety is SwimSafety.SAFE
        assert result.source == "climatology"
        assert result.narrative == "Deniz yüzmeye çok uygun! Su sıcaklığı 28°C. Hafif dalgalar var."

    def test_month_from_clock(self):
        january = datetime(2025, 1, 15, 12, 0, tzinfo=ZoneInfo("Europe/Istanbul"))
        result = estimate_marine("Trabzon", now=january)
        assert result.sea_temp_c == SST_CLIMATOLOGY[SeaBasin.BLACK_SEA][0]
        assert result.wave_height_m == 0

    def test_gale_cancels_ferries(self):
        result = estimate_marine("istanbul", 70, month=1)
        assert result.ferry_status is FerryStatus.CANCELLED
        assert result.swim_safety is SwimSafety.DANGEROUS

    def test_inland_city_returns_none(self):
        assert estimate_marine("Siirt", 20, month=8) is None

    @pytest.mark.parametrize("period, expected", [(6.5, 7), (5.5, 6), (6.49, 6), (0, 0)])
    def test_wave_period_rounds_half_up(self, period, expected):
        result = build_marine_estimate("Antalya", sea_temp_c=24.0, wave_height_m=0.4, wave_period_s=period, source="test")
        assert result.wave_period_s == expected

    def test_is_coastal_city(self):
        assert is_coastal_city("İzmir")
        assert is_coastal_city("Muğla")
        assert not is_coastal_city("Erzurum")


class TestBeachScore:

    def _marine(self, sea_temp: float, wave: float):
        return build_marine_estimate("Antalya", sea_temp_c=sea_temp, wave_height_m=wave, source="test")

    def test_perfect_day(self):
        assert calculate_beach_score(self._marine(26, 0.2), uv_index=6, air_temp_c=30) == 10

    def test_penalties_stack(self):
        # waves -2, cold sea -2, cool air -1, extreme uv -2
        assert calculate_beach_score(self._marine(16, 1.0), uv_index=11, air_temp_c=18) == 3

    def test_floor_at_zero(self):
        assert calculate_beach_score(self._marine(10, 2.5), uv_index=12, air_temp_c=10) == 0
