"""Translation pipeline package.

This package contains the orchestration facade, stage telemetry hooks, and the
per-run result bookkeeping used to assemble output in segment order.
"""

from .orchestrator import PipelineOptions, TranslationPipeline
from .run import PipelineRun

__all__ = ["PipelineOptions", "PipelineRun", "TranslationPipeline"]
