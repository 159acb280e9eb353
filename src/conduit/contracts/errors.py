"""Exception hierarchy shared across subsystem boundaries.

Configuration errors fail synchronously before any I/O. Conversion and
write errors are reported on the pipeline error channel; only write
errors are retried.
"""


class ConduitError(Exception):
    """Base class for all conduit errors."""


# =============================================================================
# Configuration
# =============================================================================


class PipelineConfigError(ConduitError):
    """Raised when pipeline configuration is missing or malformed."""


class ContractViolationError(PipelineConfigError):
    """Raised when a plugin does not satisfy its capability contract.

    Attributes:
        plugin: The offending class or instance
        expected: The base class the plugin was checked against
    """

    def __init__(self, message: str, *, plugin: object, expected: type) -> None:
        self.plugin = plugin
        self.expected = expected
        super().__init__(message)


class MissingFunctionsError(ContractViolationError):
    """Required operations are absent, not callable, or still abstract."""

    def __init__(self, plugin: object, expected: type, missing: list[str]) -> None:
        self.missing = missing
        name = plugin.__name__ if isinstance(plugin, type) else type(plugin).__name__
        super().__init__(
            f"{name} does not implement the required functions of {expected.__name__}: {', '.join(missing)}",
            plugin=plugin,
            expected=expected,
        )


class InheritanceError(ContractViolationError):
    """Operations are present but the plugin does not derive from the expected base."""

    def __init__(self, plugin: object, expected: type) -> None:
        name = plugin.__name__ if isinstance(plugin, type) else type(plugin).__name__
        super().__init__(
            f"{name} must inherit from {expected.__name__}",
            plugin=plugin,
            expected=expected,
        )


class PluginStartupError(ConduitError):
    """Raised when the connector or task fails to start.

    The original exception is chained as __cause__.
    """

    def __init__(self, stage: str, error: BaseException) -> None:
        self.stage = stage
        self.error = error
        super().__init__(f"Pipeline startup failed during {stage}: {error}")


# =============================================================================
# Conversion
# =============================================================================


class ConversionError(ConduitError):
    """A converter stage failed; remaining stages were not invoked.

    Attributes:
        stage: Zero-based index of the failing stage in the chain
        converter: Name of the failing converter
    """

    def __init__(self, stage: int, converter: str, error: BaseException) -> None:
        self.stage = stage
        self.converter = converter
        self.error = error
        super().__init__(f"Converter {converter!r} (stage {stage}) failed: {error}")


class RecordConversionError(ConduitError):
    """Raised when a queue message cannot be turned into a SinkRecord."""


# =============================================================================
# Writes and lifecycle
# =============================================================================


class MaxRetriesExceeded(ConduitError):
    """Raised when a write still fails after the retry budget is spent."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Max retries exceeded after {attempts} attempts: {last_error}")


class PipelineStateError(ConduitError):
    """Raised on an illegal lifecycle transition or a second concurrent run()."""


class PipelineStoppedError(ConduitError):
    """Raised when work is attempted against a run that has been stopped."""
