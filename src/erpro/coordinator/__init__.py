"""
Coordinator package.

Drives the three generation stages in sequence, verifies sourced links
and records completed runs.
"""

from erpro.coordinator.pipeline import PipelineOrchestrator

__all__ = ["PipelineOrchestrator"]
