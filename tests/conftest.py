import csv
import gzip
import io
from pathlib import Path
from typing import Callable

import pytest
from prometheus_client import CollectorRegistry

from cloud_carbon.reference import ReferenceData

REPORT_HEADER: "list[str]" = [
    "identity/LineItemId",
    "identity/TimeInterval",
    "bill/BillingPeriodStartDate",
    "bill/BillingPeriodEndDate",
    "bill/PayerAccountId",
    "lineItem/UsageAccountId",
    "lineItem/LineItemType",
    "lineItem/UsageStartDate",
    "lineItem/UsageEndDate",
    "lineItem/ProductCode",
    "lineItem/Operation",
    "product/instanceType",
    "product/productFamily",
    "product/regionCode",
]


def make_row(
    region: "str" = "eu-west-1",
    instance_type: "str" = "t2.micro",
    interval: "str" = "2022-08-01T00:00:00Z/2022-08-01T01:00:00Z",
    line_item_type: "str" = "Usage",
    product_code: "str" = "AmazonEC2",
    product_family: "str" = "Compute Instance",
    operation: "str" = "RunInstances",
) -> "list[str]":
    """
    builds a report row matching REPORT_HEADER. Defaults describe one
    hour of t2.micro usage in eu-west-1.
    """
    start, _, end = interval.partition("/")
    return [
        "line-item-id",
        interval,
        "2022-08-01T00:00:00Z",
        "2022-09-01T00:00:00Z",
        "111111111111",
        "222222222222",
        line_item_type,
        start,
        end,
        product_code,
        operation,
        instance_type,
        product_family,
        region,
    ]


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture(scope="session")
def reference() -> "ReferenceData":
    """
    reference data loaded from the embedded tables.
    """
    return ReferenceData.from_files()


@pytest.fixture()
def write_report(tmp_path: "Path") -> "Callable[..., Path]":
    """
    writes rows as a gzipped CSV report and returns its path.
    """

    def _write(rows: "list[list[str]]", name: "str" = "report.csv.gz") -> "Path":
        buf = io.StringIO()
        csv.writer(buf).writerows(rows)
        path = tmp_path / name
        with gzip.open(path, "wt", encoding="utf-8", newline="") as fh:
            fh.write(buf.getvalue())
        return path

    return _write
