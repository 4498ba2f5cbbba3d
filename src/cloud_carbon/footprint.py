from datetime import timedelta

from cloud_carbon.models import InstanceSpec, RegionSpec
from cloud_carbon.reference import ReferenceData

_SECONDS_PER_HOUR = 3600


def estimate(
    region: "RegionSpec",
    instance: "InstanceSpec",
    duration: "timedelta",
) -> "float":
    """
    returns the footprint in grams CO2e of running an instance for the
    given duration: operational emissions (power draw at 50% load,
    scaled by PUE and grid carbon intensity) plus the hourly share of
    manufacturing emissions.

    Negative durations are not rejected and yield negative grams.
    """
    power_kilowatt = instance.power_at_50_percent / 1000.0
    hours = duration.total_seconds() / _SECONDS_PER_HOUR

    return (
        power_kilowatt * region.pue * region.carbon_intensity
        + instance.manufacturing_emissions_hourly
    ) * hours


def emissions(
    reference: "ReferenceData",
    region_code: "str",
    instance_type: "str",
    duration: "timedelta",
) -> "float":
    """
    looks up the region and instance type and estimates their footprint.
    Raises UnknownRegion or UnknownInstanceType if either is missing.
    """
    region = reference.get_region_spec(region_code)
    instance = reference.get_instance_spec(instance_type)
    return estimate(region, instance, duration)
