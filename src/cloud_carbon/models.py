from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class InstanceSpec:
    """
    InstanceSpec holds the reference data for one EC2 instance type.
    """

    # instance power consumption in watt at 50% load
    power_at_50_percent: "float"
    # hardware manufacturing emissions as an hourly contribution,
    # in metric grams CO2e
    manufacturing_emissions_hourly: "float"


@dataclass(frozen=True, slots=True)
class RegionSpec:
    """
    RegionSpec holds the reference data for one AWS region.
    """

    # grams CO2e emitted per kWh of electricity
    carbon_intensity: "float"
    # power usage effectiveness of the data center
    pue: "float"


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """
    UsageRecord represents a single qualifying row
    of a cost and usage report.
    """

    payer_account_id: "str"
    usage_account_id: "str"
    region: "str"
    instance_type: "str"
    # both derived from identity/TimeInterval, always UTC
    usage_start: "datetime"
    usage_end: "datetime"
    duration: "timedelta"


@dataclass(slots=True)
class AggregateRecord:
    """
    AggregateRecord accumulates usage for one
    (region, instance type) pair.
    """

    region: "str"
    instance_type: "str"
    duration: "timedelta" = field(default_factory=timedelta)
    # set once, after all report rows have been consumed
    emission_grams: "float | None" = None

    @property
    def key(self) -> "tuple[str, str]":
        return (self.region, self.instance_type)


@dataclass(frozen=True, slots=True)
class Analysis:
    """
    Analysis is the outcome of aggregating one usage report.
    """

    rows: "list[AggregateRecord]"
    # buckets whose region or instance type is not in the reference data
    skipped: "list[AggregateRecord]"
    total_grams: "float"
    earliest: "datetime"
    latest: "datetime"
    line_count: "int"

    @property
    def time_span(self) -> "timedelta":
        return self.latest - self.earliest
