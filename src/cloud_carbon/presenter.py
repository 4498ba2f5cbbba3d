from datetime import datetime, timedelta, timezone
from typing import Sequence

from cloud_carbon.models import AggregateRecord, Analysis

TABLE_HEADER: "tuple[str, ...]" = ("Region", "Instance type", "Duration", "Emissions")
TABLE_PADDING = "   "


def format_grams(grams: "float") -> "str":
    """
    renders an amount of CO2e in g, kg or metric tons depending on
    its magnitude. Thresholds are exclusive: exactly 1000 g is
    still shown in grams.
    """
    if grams > 1000 * 1000:
        return f"{grams / 1000 / 1000:.1f} MTCO2e"
    if grams > 1000:
        return f"{grams / 1000:.1f} kgCO2e"
    return f"{grams:.0f} gCO2e"


def _with_fraction(whole: "int", frac: "int", digits: "int") -> "str":
    if not frac:
        return str(whole)
    return f"{whole}." + f"{frac:0{digits}d}".rstrip("0")


def format_duration(duration: "timedelta") -> "str":
    """
    renders a duration as hours, minutes and seconds, e.g. 1664h0m0s
    or 1h30m0s. Leading zero units are omitted and durations under a
    second use ms or µs.
    """
    micros = (duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        whole, frac = divmod(micros, 1000)
        return f"{sign}{_with_fraction(whole, frac, 3)}ms"

    seconds, frac = divmod(micros, 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    text = f"{_with_fraction(seconds, frac, 6)}s"
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


def format_timestamp(value: "datetime") -> "str":
    """
    renders a timestamp in UTC, e.g. 2022-08-01 00:00:00 +0000 UTC.
    """
    value = value.astimezone(timezone.utc)
    # formatted by hand since strftime does not zero-pad year 1
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d} +0000 UTC"
    )


def render_table(rows: "Sequence[AggregateRecord]", total: "float") -> "str":
    """
    renders finalized aggregate rows as a borderless, left-aligned
    table with a footer carrying the total.
    """
    body = [
        (
            row.region,
            row.instance_type,
            format_duration(row.duration),
            format_grams(row.emission_grams or 0.0),
        )
        for row in rows
    ]
    footer = ("", "", "Total", format_grams(total))
    lines = [TABLE_HEADER, *body, footer]

    widths = [max(len(line[col]) for line in lines) for col in range(len(TABLE_HEADER))]
    rendered = [
        TABLE_PADDING.join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip()
        for line in lines
    ]
    return "\n".join(rendered) + "\n"


def render_analysis(analysis: "Analysis") -> "str":
    """
    renders the full analysis output: line count, covered time range
    and the emissions table.
    """
    return (
        f"Processed {analysis.line_count} lines about EC2 usage.\n"
        f"Time range covered: {format_timestamp(analysis.earliest)} - "
        f"{format_timestamp(analysis.latest)} "
        f"({format_duration(analysis.time_span)}).\n"
        "\n"
        f"{render_table(analysis.rows, analysis.total_grams)}"
    )
