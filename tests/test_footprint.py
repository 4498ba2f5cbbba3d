from datetime import timedelta

import pytest

from cloud_carbon.errors import UnknownInstanceType, UnknownRegion
from cloud_carbon.footprint import emissions, estimate
from cloud_carbon.models import InstanceSpec, RegionSpec
from cloud_carbon.reference import ReferenceData

EU_WEST_1 = RegionSpec(carbon_intensity=316, pue=1.2)
T2_MICRO = InstanceSpec(power_at_50_percent=4.9, manufacturing_emissions_hourly=0.9)


class TestEstimate:
    def test_one_hour(self) -> "None":
        grams = estimate(EU_WEST_1, T2_MICRO, timedelta(hours=1))
        assert grams == pytest.approx(2.75808)

    def test_fractional_hours(self) -> "None":
        grams = estimate(EU_WEST_1, T2_MICRO, timedelta(minutes=90))
        assert grams == pytest.approx(2.75808 * 1.5)

    def test_zero_duration(self) -> "None":
        assert estimate(EU_WEST_1, T2_MICRO, timedelta(0)) == 0

    @pytest.mark.parametrize("hours", [1, 3, 24, 1664])
    def test_linear_in_duration(self, hours: "int") -> "None":
        single = estimate(EU_WEST_1, T2_MICRO, timedelta(hours=hours))
        double = estimate(EU_WEST_1, T2_MICRO, timedelta(hours=2 * hours))
        assert double == pytest.approx(2 * single)

    def test_negative_duration_propagates(self) -> "None":
        grams = estimate(EU_WEST_1, T2_MICRO, timedelta(hours=-1))
        assert grams == pytest.approx(-2.75808)


class TestEmissions:
    @pytest.mark.parametrize(
        "region,instance_type,duration,want",
        [
            ("eu-west-1", "t2.micro", timedelta(0), 0.0),
            ("eu-west-1", "t2.micro", timedelta(hours=1), 2.75808),
            ("ap-southeast-2", "c4.large", timedelta(hours=1), 14.7824),
        ],
    )
    def test_known_lookups(
        self,
        reference: "ReferenceData",
        region: "str",
        instance_type: "str",
        duration: "timedelta",
        want: "float",
    ) -> "None":
        got = emissions(reference, region, instance_type, duration)
        assert got == pytest.approx(want)

    def test_unknown_region(self, reference: "ReferenceData") -> "None":
        with pytest.raises(UnknownRegion):
            emissions(reference, "unknown", "t2.micro", timedelta(hours=1))

    def test_unknown_instance_type(self, reference: "ReferenceData") -> "None":
        with pytest.raises(UnknownInstanceType):
            emissions(reference, "eu-west-1", "unknown", timedelta(hours=1))

    def test_unknown_region_is_reported_before_instance(
        self, reference: "ReferenceData"
    ) -> "None":
        with pytest.raises(UnknownRegion):
            emissions(reference, "unknown", "unknown", timedelta(hours=1))
