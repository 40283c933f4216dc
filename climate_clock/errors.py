"""Error taxonomy for the external metric source."""


class DataSourceUnavailable(Exception):
    """The external metric provider failed: network error, malformed response or timeout.

    Never reaches callers of project_metrics; it is logged and replaced by fallback values.
    """
