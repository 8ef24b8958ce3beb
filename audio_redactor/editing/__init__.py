"""Redaction editing subpackage."""

from .intervals import EPSILON, TimeRange, merge_ranges, subtract_range, ranges_overlap
from .clips import Clip, ClipPartition, RedactionMode, BatchEdit
from .planner import plan_redactions, redact_ranges, auto_redact, toggle_detection, RedactionPlan
from .renderer import RenderEngine, RenderPlacement, RenderSettings, RenderState
from .timeline import MediaFile, TimelineItem
from .project import ProjectFile

__all__ = [
    'EPSILON', 'TimeRange', 'merge_ranges', 'subtract_range', 'ranges_overlap',
    'Clip', 'ClipPartition', 'RedactionMode', 'BatchEdit',
    'plan_redactions', 'redact_ranges', 'auto_redact', 'toggle_detection', 'RedactionPlan',
    'RenderEngine', 'RenderPlacement', 'RenderSettings', 'RenderState',
    'MediaFile', 'TimelineItem',
    'ProjectFile',
]
