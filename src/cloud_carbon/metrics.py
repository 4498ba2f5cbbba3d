from pathlib import Path

from prometheus_client import REGISTRY, CollectorRegistry, Gauge, write_to_textfile

from cloud_carbon.models import Analysis


class EmissionsMetrics:
    """
    exposes the outcome of an analysis as Prometheus gauges, so a
    scheduled run can feed the node exporter textfile collector.
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self._registry: "CollectorRegistry" = registry
        self._emissions: "Gauge" = Gauge(
            "cloud_carbon_emissions_grams",
            "Estimated emissions in grams CO2e by region and instance type",
            ["region", "instance_type"],
            registry=registry,
        )
        self._usage: "Gauge" = Gauge(
            "cloud_carbon_usage_seconds",
            "Instance runtime in seconds by region and instance type",
            ["region", "instance_type"],
            registry=registry,
        )
        self._total: "Gauge" = Gauge(
            "cloud_carbon_emissions_total_grams",
            "Estimated emissions in grams CO2e across all regions and instance types",
            registry=registry,
        )
        self._lines: "Gauge" = Gauge(
            "cloud_carbon_report_lines",
            "Number of report lines about EC2 instance usage",
            registry=registry,
        )
        self._skipped: "Gauge" = Gauge(
            "cloud_carbon_skipped_buckets",
            "Region and instance type pairs missing from the reference data",
            registry=registry,
        )

    def observe(self, analysis: "Analysis") -> "None":
        """
        sets all gauges from the analysis, replacing any values from
        a previous one.
        """
        self._emissions.clear()
        self._usage.clear()

        for row in analysis.rows:
            labels = {"region": row.region, "instance_type": row.instance_type}
            self._emissions.labels(**labels).set(row.emission_grams or 0.0)
            self._usage.labels(**labels).set(row.duration.total_seconds())

        self._total.set(analysis.total_grams)
        self._lines.set(analysis.line_count)
        self._skipped.set(len(analysis.skipped))

    def write_textfile(self, path: "str | Path") -> "None":
        write_to_textfile(str(path), self._registry)
