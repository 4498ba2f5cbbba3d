import math
from datetime import datetime, timezone
from typing import Iterable

import structlog

from cloud_carbon.errors import MalformedReportRow, UnknownReference
from cloud_carbon.footprint import estimate
from cloud_carbon.models import AggregateRecord, Analysis
from cloud_carbon.reference import ReferenceData
from cloud_carbon.report import ZERO_TIME, HeaderIndex, extract, qualifies

logger = structlog.get_logger()

# initial bounds of the covered time range, replaced by the first
# qualifying row
_EARLIEST_SENTINEL = datetime(2100, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
_LATEST_SENTINEL = ZERO_TIME


class Aggregator:
    """
    Aggregator turns the rows of a usage report into emissions per
    region and instance type. It sums usage durations per
    (region, instance type) bucket while streaming the rows, then
    estimates the emissions of each bucket once the stream is
    exhausted.
    """

    def __init__(self, reference: "ReferenceData") -> "None":
        self._reference = reference

    def run(self, rows: "Iterable[list[str]]") -> "Analysis":
        """
        processes all rows, the first of which must be the header.
        An empty input yields an empty Analysis.
        """
        buckets: "dict[tuple[str, str], AggregateRecord]" = {}
        earliest = _EARLIEST_SENTINEL
        latest = _LATEST_SENTINEL
        line_count = 0
        index: "HeaderIndex | None" = None

        for record_num, row in enumerate(rows, start=1):
            # empty lines carry no fields and are skipped, like the
            # reference tables
            if not row:
                continue

            if index is None:
                index = HeaderIndex.from_row(row)
                continue

            if len(row) != index.width:
                raise MalformedReportRow(
                    f"wrong number of fields: expected {index.width}, got {len(row)}",
                    record=record_num,
                )

            # filter out everything that is not EC2 instance usage
            if not qualifies(row, index):
                continue

            line_count += 1
            try:
                record = extract(row, index)
            except MalformedReportRow as e:
                e.record = record_num
                raise

            key = (record.region, record.instance_type)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = AggregateRecord(
                    region=record.region, instance_type=record.instance_type
                )
                buckets[key] = bucket
            bucket.duration += record.duration

            if record.usage_start < earliest:
                earliest = record.usage_start
            if record.usage_end > latest:
                latest = record.usage_end

        if index is None:
            logger.warning("report_empty")

        rows_out, skipped, total = self._finalize(buckets.values())

        logger.info(
            "analysis_complete",
            lines=line_count,
            buckets=len(rows_out),
            skipped=len(skipped),
            total_grams=total,
        )
        return Analysis(
            rows=rows_out,
            skipped=skipped,
            total_grams=total,
            earliest=earliest,
            latest=latest,
            line_count=line_count,
        )

    def _finalize(
        self, buckets: "Iterable[AggregateRecord]"
    ) -> "tuple[list[AggregateRecord], list[AggregateRecord], float]":
        """
        computes emissions for every bucket. Buckets with an unknown
        region or instance type are logged and left out of the total.
        """
        rows: "list[AggregateRecord]" = []
        skipped: "list[AggregateRecord]" = []

        for bucket in buckets:
            try:
                region = self._reference.get_region_spec(bucket.region)
                instance = self._reference.get_instance_spec(bucket.instance_type)
            except UnknownReference as e:
                logger.warning(
                    "emissions_lookup_failed",
                    region=bucket.region,
                    instance_type=bucket.instance_type,
                    error=str(e),
                )
                skipped.append(bucket)
                continue

            bucket.emission_grams = estimate(region, instance, bucket.duration)
            rows.append(bucket)

        # region is the dominant sort key, instance type breaks ties
        rows.sort(key=lambda r: r.instance_type)
        rows.sort(key=lambda r: r.region)
        skipped.sort(key=lambda r: r.key)

        # fsum keeps the total independent of row order
        total = math.fsum(r.emission_grams for r in rows)
        return rows, skipped, total
