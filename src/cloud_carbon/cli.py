import argparse

from cloud_carbon.config import Config
from cloud_carbon.logging import LOG_FORMATS, LOG_LEVELS

ANALYSE_DESCRIPTION = """\
Analyse an AWS usage report.

The input file, specified by PATH, must be a gzipped CSV file in the format
"hourly usage without IDs".

As a result, the EC2 usage and estimated emissions by region and instance
type will be printed.

The bundled reference data only covers a few instance types and regions.
Usage of any other type or region is logged and left out of the report.
Point CLOUD_CARBON_INSTANCES_CSV and CLOUD_CARBON_REGIONS_CSV at the full
Teads dataset to cover everything.
"""


def build_parser() -> "argparse.ArgumentParser":
    parser = argparse.ArgumentParser(
        prog="cloud-carbon",
        description="Calculate the carbon footprint of AWS EC2 usage reports",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="info",
        choices=LOG_LEVELS,
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--log.format",
        dest="log_format",
        default=None,
        choices=LOG_FORMATS,
        help="Log format (default: $CLOUD_CARBON_LOG_FORMAT or console)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    analyse = subparsers.add_parser(
        "analyse",
        help="Analyse an AWS usage report",
        description=ANALYSE_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    analyse.add_argument("path", metavar="PATH", help="gzipped CSV usage report")
    analyse.add_argument(
        "--metrics.textfile",
        dest="metrics_textfile",
        default="",
        help="Also write Prometheus metrics to this file (default: disabled)",
    )
    return parser


def parse_args(argv: "list[str] | None" = None) -> "Config":
    args = build_parser().parse_args(argv)
    config = Config.from_env()
    config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    config.report_path = args.path
    config.metrics_textfile = args.metrics_textfile
    return config
