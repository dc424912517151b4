from __future__ import annotations

from .build import UnmodelledObjectWarning, build_target_model, circle_radius, preempt_ms, slider_sub_event_times
from .types import Circle, Hold, SubEvent, SubEventKind, Target, TargetModel

__all__ = [
    "Circle",
    "Hold",
    "SubEvent",
    "SubEventKind",
    "Target",
    "TargetModel",
    "UnmodelledObjectWarning",
    "build_target_model",
    "circle_radius",
    "preempt_ms",
    "slider_sub_event_times",
]
