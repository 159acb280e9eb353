"""Pipeline orchestration: converter chain, retry, source and sink runtimes.

Quick Start:
    from conduit.engine import SinkPipeline

    sink = SinkPipeline(settings, OrdersConnector, OrdersSinkTask, [JsonValueConverter], consumer=consumer)
    sink.on_error(handle_error)
    await sink.run()
    ...
    sink.stop()
"""

from conduit.engine.chain import ConverterChain
from conduit.engine.factory import build_sink_pipeline, build_source_pipeline
from conduit.engine.pipeline import PipelineConfig, RunHandle
from conduit.engine.retry import RetryManager, RetryPolicy
from conduit.engine.sink import SinkPipeline
from conduit.engine.source import SourcePipeline

__all__ = [
    "ConverterChain",
    "PipelineConfig",
    "RetryManager",
    "RetryPolicy",
    "RunHandle",
    "SinkPipeline",
    "SourcePipeline",
    "build_sink_pipeline",
    "build_source_pipeline",
]
