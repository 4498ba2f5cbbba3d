from datetime import datetime, timedelta, timezone
from pathlib import Path

from prometheus_client import CollectorRegistry

from cloud_carbon.metrics import EmissionsMetrics
from cloud_carbon.models import AggregateRecord, Analysis


def _analysis(rows: "list[AggregateRecord]", skipped: "int" = 0) -> "Analysis":
    return Analysis(
        rows=rows,
        skipped=[AggregateRecord("xx-1", "unknown")] * skipped,
        total_grams=sum(r.emission_grams or 0.0 for r in rows),
        earliest=datetime(2022, 8, 1, tzinfo=timezone.utc),
        latest=datetime(2022, 8, 2, tzinfo=timezone.utc),
        line_count=len(rows),
    )


class TestEmissionsMetrics:
    def test_metrics_are_created(self, registry: "CollectorRegistry") -> "None":
        EmissionsMetrics(registry=registry)
        metric_names = [m.name for m in registry.collect()]
        assert "cloud_carbon_emissions_grams" in metric_names
        assert "cloud_carbon_usage_seconds" in metric_names
        assert "cloud_carbon_emissions_total_grams" in metric_names
        assert "cloud_carbon_report_lines" in metric_names
        assert "cloud_carbon_skipped_buckets" in metric_names

    def test_observe_sets_gauges(self, registry: "CollectorRegistry") -> "None":
        metrics = EmissionsMetrics(registry=registry)
        metrics.observe(
            _analysis(
                [
                    AggregateRecord("eu-west-1", "t2.micro", timedelta(hours=2), 5.5),
                    AggregateRecord("us-east-1", "c4.large", timedelta(hours=1), 10.0),
                ],
                skipped=1,
            )
        )

        labels = {"region": "eu-west-1", "instance_type": "t2.micro"}
        assert registry.get_sample_value("cloud_carbon_emissions_grams", labels) == 5.5
        assert registry.get_sample_value("cloud_carbon_usage_seconds", labels) == 7200.0
        assert registry.get_sample_value("cloud_carbon_emissions_total_grams") == 15.5
        assert registry.get_sample_value("cloud_carbon_report_lines") == 2.0
        assert registry.get_sample_value("cloud_carbon_skipped_buckets") == 1.0

    def test_observe_replaces_previous_labels(
        self, registry: "CollectorRegistry"
    ) -> "None":
        metrics = EmissionsMetrics(registry=registry)
        metrics.observe(
            _analysis([AggregateRecord("eu-west-1", "t2.micro", timedelta(hours=1), 3.0)])
        )
        metrics.observe(
            _analysis([AggregateRecord("us-east-1", "c4.large", timedelta(hours=1), 9.0)])
        )

        old = {"region": "eu-west-1", "instance_type": "t2.micro"}
        assert registry.get_sample_value("cloud_carbon_emissions_grams", old) is None

    def test_write_textfile(
        self, registry: "CollectorRegistry", tmp_path: "Path"
    ) -> "None":
        metrics = EmissionsMetrics(registry=registry)
        metrics.observe(
            _analysis([AggregateRecord("eu-west-1", "t2.micro", timedelta(hours=1), 3.0)])
        )
        path = tmp_path / "cloud_carbon.prom"
        metrics.write_textfile(path)

        content = path.read_text()
        assert "cloud_carbon_emissions_total_grams 3.0" in content
        assert 'instance_type="t2.micro"' in content
