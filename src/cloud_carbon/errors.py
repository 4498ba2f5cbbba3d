class CloudCarbonError(Exception):
    """
    base class for every error raised by cloud_carbon.
    """


class MalformedReferenceData(CloudCarbonError, ValueError):
    """
    raised when an embedded reference table cannot be parsed.
    The tables ship with the package, so this means a broken build.
    """


class UnknownReference(CloudCarbonError, LookupError):
    """
    raised when a lookup key is not present in a reference table.
    """

    def __init__(self, key: "str") -> "None":
        super().__init__(key)
        self.key = key


class UnknownInstanceType(UnknownReference):
    def __str__(self) -> "str":
        return f"unknown instance type {self.key!r}"


class UnknownRegion(UnknownReference):
    def __str__(self) -> "str":
        return f"unknown AWS region code {self.key!r}"


class UnreadableInput(CloudCarbonError, OSError):
    pass


class UndecompressibleInput(CloudCarbonError):
    pass


class MalformedReportRow(CloudCarbonError, ValueError):
    """
    raised for structural problems in a usage report. Aborts the
    whole read since a malformed report cannot be partially trusted.
    """

    def __init__(
        self,
        message: "str",
        line: "int | None" = None,
        record: "int | None" = None,
    ) -> "None":
        super().__init__(message)
        self.message = message
        # physical line in the file, as reported by the csv reader
        self.line = line
        # position of the CSV record, header being record 1. Differs
        # from line when a quoted field spans lines
        self.record = record

    def __str__(self) -> "str":
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        if self.record is not None:
            return f"record {self.record}: {self.message}"
        return self.message
