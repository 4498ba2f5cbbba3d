import os
from dataclasses import dataclass


@dataclass
class Config:
    log_level: "str" = "info"
    # "console" or "json"
    log_format: "str" = "console"
    # gzipped cost and usage report to analyse
    report_path: "str" = ""
    # when set, metrics are written here in the node exporter
    # textfile format
    metrics_textfile: "str" = ""

    # override the embedded reference tables
    instances_csv: "str" = ""
    regions_csv: "str" = ""

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            log_format=os.environ.get("CLOUD_CARBON_LOG_FORMAT", "console"),
            instances_csv=os.environ.get("CLOUD_CARBON_INSTANCES_CSV", ""),
            regions_csv=os.environ.get("CLOUD_CARBON_REGIONS_CSV", ""),
        )

    @property
    def metrics_enabled(self) -> "bool":
        return bool(self.metrics_textfile)
