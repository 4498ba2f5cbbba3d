"""
Reference data for estimating EC2 emissions.

Data and methodology provided by Teads engineering, under the
Creative Commons Attribution 4.0 International License.
https://medium.com/teads-engineering/building-an-aws-ec2-carbon-emissions-dataset-3f0fd76c98ac

The bundled tables are a small subset of that dataset: six instance
types and four regions. Anything else raises UnknownInstanceType or
UnknownRegion. Use from_files() with the full dataset, or the
CLOUD_CARBON_INSTANCES_CSV and CLOUD_CARBON_REGIONS_CSV environment
variables, for real reports.
"""

import csv
import io
import math
from pathlib import Path

import structlog

from cloud_carbon.errors import (
    MalformedReferenceData,
    UnknownInstanceType,
    UnknownRegion,
)
from cloud_carbon.models import InstanceSpec, RegionSpec

logger = structlog.get_logger()

DATA_DIR = Path(__file__).parent / "data"
INSTANCES_CSV = DATA_DIR / "aws-ec2-instances.csv"
REGIONS_CSV = DATA_DIR / "aws-regions.csv"

# column positions in the instances table
_INSTANCE_POWER_AT_50_COL = 29
_INSTANCE_MANUFACTURING_COL = 36

# column positions in the regions table
_REGION_CARBON_INTENSITY_COL = 4
_REGION_PUE_COL = 6


def _data_rows(text: "str") -> "list[tuple[int, list[str]]]":
    """
    returns (line number, row) pairs, without the header row
    and without blank lines.
    """
    reader = csv.reader(io.StringIO(text), strict=True)
    try:
        rows = [(reader.line_num, row) for row in reader]
    except csv.Error as e:
        raise MalformedReferenceData(f"line {reader.line_num}: {e}") from e
    return [(line, row) for line, row in rows[1:] if row]


def _parse_float(row: "list[str]", col: "int", what: "str", line: "int") -> "float":
    if col >= len(row):
        raise MalformedReferenceData(
            f"line {line}: expected {what} in column {col + 1}, row has {len(row)} columns"
        )
    try:
        value = float(row[col])
    except ValueError:
        raise MalformedReferenceData(
            f"line {line}: error parsing {what} {row[col]!r} as float"
        ) from None
    if not math.isfinite(value):
        raise MalformedReferenceData(f"line {line}: {what} {row[col]!r} is not finite")
    return value


class ReferenceData:
    """
    ReferenceData holds the instance type and region lookup tables.

    Build it once at startup and pass it to whatever needs lookups.
    Tables are not modified after loading.
    """

    def __init__(self) -> "None":
        self._instances: "dict[str, InstanceSpec]" = {}
        self._regions: "dict[str, RegionSpec]" = {}

    @classmethod
    def from_files(
        cls,
        instances_path: "str | Path | None" = None,
        regions_path: "str | Path | None" = None,
    ) -> "ReferenceData":
        """
        loads both tables, from the embedded CSV files unless
        override paths are given.
        """
        instances_path = Path(instances_path or INSTANCES_CSV)
        regions_path = Path(regions_path or REGIONS_CSV)

        data = cls()
        try:
            data.load_instances(instances_path.read_text(encoding="utf-8"))
            data.load_regions(regions_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedReferenceData(f"could not read reference data: {e}") from e

        logger.debug(
            "reference_data_loaded",
            instances=str(instances_path),
            regions=str(regions_path),
            instance_count=len(data._instances),
            region_count=len(data._regions),
        )
        return data

    def load_instances(self, text: "str") -> "None":
        """
        parses the instances table. Expects the instance type in the
        first column, power at 50% load in the 30th and hourly
        manufacturing emissions in the 37th.
        """
        instances: "dict[str, InstanceSpec]" = {}
        for line, row in _data_rows(text):
            power = _parse_float(
                row, _INSTANCE_POWER_AT_50_COL, "power at 50% load", line
            )
            manufacturing = _parse_float(
                row, _INSTANCE_MANUFACTURING_COL, "manufacturing emissions", line
            )
            instances[row[0]] = InstanceSpec(
                power_at_50_percent=power,
                manufacturing_emissions_hourly=manufacturing,
            )
        self._instances = instances

    def load_regions(self, text: "str") -> "None":
        """
        parses the regions table. Expects the region code in the
        first column, carbon intensity in the 5th and PUE in the 7th.
        """
        regions: "dict[str, RegionSpec]" = {}
        for line, row in _data_rows(text):
            carbon_intensity = _parse_float(
                row, _REGION_CARBON_INTENSITY_COL, "carbon intensity", line
            )
            pue = _parse_float(row, _REGION_PUE_COL, "PUE", line)
            regions[row[0]] = RegionSpec(carbon_intensity=carbon_intensity, pue=pue)
        self._regions = regions

    @property
    def instance_types(self) -> "tuple[str, ...]":
        return tuple(sorted(self._instances))

    @property
    def region_codes(self) -> "tuple[str, ...]":
        return tuple(sorted(self._regions))

    def get_instance_spec(self, instance_type: "str") -> "InstanceSpec":
        try:
            return self._instances[instance_type]
        except KeyError:
            raise UnknownInstanceType(instance_type) from None

    def get_region_spec(self, region_code: "str") -> "RegionSpec":
        try:
            return self._regions[region_code]
        except KeyError:
            raise UnknownRegion(region_code) from None

    def power_at_50_percent(self, instance_type: "str") -> "float":
        """
        returns the power consumption at 50% load for an instance type, in watt.
        """
        return self.get_instance_spec(instance_type).power_at_50_percent

    def manufacturing_emissions(self, instance_type: "str") -> "float":
        """
        returns manufacturing emissions for an instance type, as an hourly
        contribution to emissions in grams.
        """
        return self.get_instance_spec(instance_type).manufacturing_emissions_hourly

    def carbon_intensity(self, region_code: "str") -> "float":
        """
        returns the grams of CO2 emitted while producing one kilowatt
        hour of electricity for the region's data centers.
        """
        return self.get_region_spec(region_code).carbon_intensity

    def pue(self, region_code: "str") -> "float":
        return self.get_region_spec(region_code).pue
