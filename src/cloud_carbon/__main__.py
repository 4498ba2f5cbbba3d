import sys
from contextlib import closing

import structlog
from prometheus_client import CollectorRegistry

from cloud_carbon.aggregator import Aggregator
from cloud_carbon.cli import parse_args
from cloud_carbon.config import Config
from cloud_carbon.errors import CloudCarbonError
from cloud_carbon.logging import setup_logging
from cloud_carbon.metrics import EmissionsMetrics
from cloud_carbon.models import Analysis
from cloud_carbon.presenter import render_analysis
from cloud_carbon.reference import ReferenceData
from cloud_carbon.report import read_rows

logger = structlog.get_logger()


def analyse(config: "Config", reference: "ReferenceData") -> "Analysis":
    """
    runs the whole pipeline for the configured report and prints
    the result to stdout.
    """
    print(f"Analysing report from path {config.report_path}")

    # closing() releases the report file even if aggregation fails midway
    with closing(read_rows(config.report_path)) as rows:
        analysis = Aggregator(reference).run(rows)
    sys.stdout.write(render_analysis(analysis))

    if config.metrics_enabled:
        metrics = EmissionsMetrics(CollectorRegistry())
        metrics.observe(analysis)
        metrics.write_textfile(config.metrics_textfile)
        logger.info("metrics_written", path=config.metrics_textfile)

    return analysis


def main(argv: "list[str] | None" = None) -> "int":
    config = parse_args(argv)
    setup_logging(config.log_level, config.log_format)

    try:
        reference = ReferenceData.from_files(
            config.instances_csv or None,
            config.regions_csv or None,
        )
        analyse(config, reference)
    except CloudCarbonError as e:
        logger.error("analysis_failed", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
