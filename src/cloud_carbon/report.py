"""
Reading AWS cost and usage reports.

Reports are gzipped CSV files in the "hourly usage without IDs"
format. Columns are located by header name, not by position.
"""

import csv
import gzip
import io
import zlib
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import structlog

from cloud_carbon.errors import (
    MalformedReportRow,
    UndecompressibleInput,
    UnreadableInput,
)
from cloud_carbon.models import UsageRecord

logger = structlog.get_logger()

HEADER_BILLING_PERIOD_END_DATE = "bill/BillingPeriodEndDate"
HEADER_BILLING_PERIOD_START_DATE = "bill/BillingPeriodStartDate"
HEADER_BILL_PAYER_ACCOUNT_ID = "bill/PayerAccountId"
HEADER_IDENTITY_TIME_INTERVAL = "identity/TimeInterval"
HEADER_LINE_ITEM_LINE_ITEM_TYPE = "lineItem/LineItemType"
HEADER_LINE_ITEM_OPERATION = "lineItem/Operation"
HEADER_LINE_ITEM_PRODUCT_CODE = "lineItem/ProductCode"
HEADER_LINE_ITEM_USAGE_ACCOUNT_ID = "lineItem/UsageAccountId"
HEADER_LINE_ITEM_USAGE_END_DATE = "lineItem/UsageEndDate"
HEADER_LINE_ITEM_USAGE_START_DATE = "lineItem/UsageStartDate"
HEADER_PRODUCT_INSTANCE_TYPE = "product/instanceType"
HEADER_PRODUCT_PRODUCT_FAMILY = "product/productFamily"
HEADER_PRODUCT_REGION_CODE = "product/regionCode"

# columns the filter and extraction cannot do without. The billing
# period and usage date columns are informational only.
REQUIRED_HEADERS: "tuple[str, ...]" = (
    HEADER_BILL_PAYER_ACCOUNT_ID,
    HEADER_IDENTITY_TIME_INTERVAL,
    HEADER_LINE_ITEM_LINE_ITEM_TYPE,
    HEADER_LINE_ITEM_OPERATION,
    HEADER_LINE_ITEM_PRODUCT_CODE,
    HEADER_LINE_ITEM_USAGE_ACCOUNT_ID,
    HEADER_PRODUCT_INSTANCE_TYPE,
    HEADER_PRODUCT_PRODUCT_FAMILY,
    HEADER_PRODUCT_REGION_CODE,
)

DATE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# value used for timestamps that fail to parse
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class HeaderIndex:
    """
    HeaderIndex maps report column names to their positions.
    """

    def __init__(self, positions: "dict[str, int]", width: "int") -> "None":
        self._positions = positions
        self.width = width

    @classmethod
    def from_row(cls, header: "list[str]") -> "HeaderIndex":
        """
        builds the index from the report's header row. If a name
        appears twice, the last occurrence wins.
        """
        positions = {name: index for index, name in enumerate(header)}
        missing = [name for name in REQUIRED_HEADERS if name not in positions]
        if missing:
            raise MalformedReportRow(
                f"header is missing required columns: {', '.join(missing)}",
                record=1,
            )
        return cls(positions, len(header))

    def __contains__(self, name: "str") -> "bool":
        return name in self._positions

    def position(self, name: "str") -> "int":
        return self._positions[name]

    def value(self, row: "list[str]", name: "str") -> "str":
        return row[self._positions[name]]


def parse_timestamp(value: "str") -> "datetime":
    """
    parses a UTC timestamp like 2022-08-01T00:00:00Z. Values that do
    not parse yield ZERO_TIME instead of failing the row.
    """
    try:
        return datetime.strptime(value, DATE_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        logger.warning("timestamp_parse_failed", value=value)
        return ZERO_TIME


def qualifies(row: "list[str]", index: "HeaderIndex") -> "bool":
    """
    reports whether a row describes EC2 compute instance runtime.
    Everything else (storage, data transfer, discounts, taxes...)
    is filtered out.
    """
    if index.value(row, HEADER_LINE_ITEM_LINE_ITEM_TYPE) != "Usage":
        return False
    if index.value(row, HEADER_LINE_ITEM_PRODUCT_CODE) != "AmazonEC2":
        return False
    if index.value(row, HEADER_PRODUCT_PRODUCT_FAMILY) != "Compute Instance":
        return False
    return index.value(row, HEADER_LINE_ITEM_OPERATION).startswith("RunInstances")


def extract(row: "list[str]", index: "HeaderIndex") -> "UsageRecord":
    """
    builds a UsageRecord from a report row. The time span comes from
    identity/TimeInterval, formatted as <start>/<end>.
    """
    interval = index.value(row, HEADER_IDENTITY_TIME_INTERVAL)
    start, sep, end = interval.partition("/")
    if not sep:
        raise MalformedReportRow(f"time interval {interval!r} has no '/' separator")

    usage_start = parse_timestamp(start)
    usage_end = parse_timestamp(end)

    return UsageRecord(
        payer_account_id=index.value(row, HEADER_BILL_PAYER_ACCOUNT_ID),
        usage_account_id=index.value(row, HEADER_LINE_ITEM_USAGE_ACCOUNT_ID),
        region=index.value(row, HEADER_PRODUCT_REGION_CODE),
        instance_type=index.value(row, HEADER_PRODUCT_INSTANCE_TYPE),
        usage_start=usage_start,
        usage_end=usage_end,
        duration=usage_end - usage_start,
    )


@contextmanager
def open_report(path: "str | Path") -> "Iterator[io.TextIOWrapper]":
    """
    opens a gzipped report for reading as text. The underlying file
    is closed when the block exits, however it exits.
    """
    try:
        raw = open(path, "rb")
    except OSError as e:
        raise UnreadableInput(f"could not open file: {e}") from e

    with raw:
        stream = gzip.GzipFile(fileobj=raw, mode="rb")
        try:
            # reads the gzip header so bad input fails here, not mid-report
            stream.peek(1)
        except (OSError, EOFError, zlib.error) as e:
            raise UndecompressibleInput(f"could not uncompress file: {e}") from e

        with io.TextIOWrapper(stream, encoding="utf-8", newline="") as text:
            logger.debug("report_opened", path=str(path))
            yield text


def read_rows(path: "str | Path") -> "Iterator[list[str]]":
    """
    yields the rows of a gzipped CSV report, header included.
    """
    with open_report(path) as stream:
        reader = csv.reader(stream, strict=True)
        try:
            for row in reader:
                yield row
        except csv.Error as e:
            raise MalformedReportRow(str(e), line=reader.line_num) from e
        except UnicodeDecodeError as e:
            raise MalformedReportRow(f"invalid UTF-8: {e}", line=reader.line_num) from e
        except (OSError, EOFError, zlib.error) as e:
            raise UndecompressibleInput(f"could not uncompress file: {e}") from e
