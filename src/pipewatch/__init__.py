"""
Pipewatch - Azure DevOps pipeline monitor

A CLI tool that inspects, waits on, queues and cancels pipeline runs, and
runs user-configured lifecycle hooks around those actions.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from pipewatch.core.config.models import PipewatchConfig
from pipewatch.core.timeline.models import RunTimeline, TimelineResult, TimelineState

__all__ = ["PipewatchConfig", "RunTimeline", "TimelineResult", "TimelineState", "__version__"]
