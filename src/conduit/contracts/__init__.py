"""Shared contracts: records, enums, events and errors.

Everything here is a leaf: contracts import nothing from engine, core or
plugins.
"""

from conduit.contracts.enums import (
    ALLOWED_TRANSITIONS,
    ErrorKind,
    PipelineKind,
    PipelineState,
    can_transition,
    is_startup_state,
)
from conduit.contracts.errors import (
    ConduitError,
    ContractViolationError,
    ConversionError,
    InheritanceError,
    MaxRetriesExceeded,
    MissingFunctionsError,
    PipelineConfigError,
    PipelineStateError,
    PipelineStoppedError,
    PluginStartupError,
    RecordConversionError,
)
from conduit.contracts.events import PipelineErrorEvent, PipelineStateChanged
from conduit.contracts.records import (
    PublishResult,
    QueueMessage,
    Record,
    SinkRecord,
    SourceRecord,
    decode_value,
    encode_value,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ConduitError",
    "ContractViolationError",
    "ConversionError",
    "ErrorKind",
    "InheritanceError",
    "MaxRetriesExceeded",
    "MissingFunctionsError",
    "PipelineConfigError",
    "PipelineErrorEvent",
    "PipelineKind",
    "PipelineState",
    "PipelineStateChanged",
    "PipelineStateError",
    "PipelineStoppedError",
    "PluginStartupError",
    "PublishResult",
    "QueueMessage",
    "Record",
    "RecordConversionError",
    "SinkRecord",
    "SourceRecord",
    "can_transition",
    "decode_value",
    "encode_value",
    "is_startup_state",
]
