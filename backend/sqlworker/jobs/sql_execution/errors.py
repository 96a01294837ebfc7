class SqlWorkerError(Exception):
    """Base class for everything the SQL execution job raises on purpose."""


class ValidationError(SqlWorkerError):
    """Job payload is malformed; nothing downstream was touched."""


class ConfigResolutionError(SqlWorkerError):
    """Tenant -> database -> data source chain is missing or unreadable."""


class ArtifactFetchError(SqlWorkerError):
    """The batch artifact could not be retrieved from the object store."""


class ArtifactParseError(SqlWorkerError):
    """The batch artifact was retrieved but is not a valid statement list."""


class StatementExecutionError(SqlWorkerError):
    """One statement failed or timed out. Never escapes the executor."""


class MonitoringUpdateError(SqlWorkerError):
    """Monitoring bookkeeping failed. Logged and dropped by the recorder."""
