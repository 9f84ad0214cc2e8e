"""Exception types raised by the scoring engine.

Business-data problems (bad roles, missing rooms, zero staff) never raise
out of the scorers; they degrade the affected sub-score instead. These
exceptions mark the places where a record cannot be used at all.
"""


class PraxisflowError(Exception):
    """Base class for engine errors."""


class InputDataError(PraxisflowError, ValueError):
    """A record carries unusable geometry or values.

    Raised by RoomSpec.validate(); scorers catch it, exclude the record
    and report an issue instead of failing the run.
    """


class KnowledgeStoreError(PraxisflowError):
    """The knowledge store could not answer a query.

    Raised by store implementations; the benchmark resolver absorbs it
    and falls back to cached or default values.
    """


class ConfigError(PraxisflowError, ValueError):
    """A tuning configuration file is malformed."""
