"""
Toolpath event module.

Defines every event the CAM host can deliver as an immutable dataclass,
plus the YAML job-file schema used to record and replay event streams.

All coordinates are absolute machine millimeters.
"""

from plasma_post.job_ir.events import (
    AxisRange,
    Bounds,
    Circular,
    Close,
    Dwell,
    Event,
    Linear,
    Open,
    Parameter,
    Plane,
    Point,
    Power,
    Rapid,
    SectionEnd,
    SectionStart,
    wrap_program,
)
from plasma_post.job_ir.schema import JobFileV1, load_job_file

__all__ = [
    "AxisRange",
    "Bounds",
    "Circular",
    "Close",
    "Dwell",
    "Event",
    "JobFileV1",
    "Linear",
    "Open",
    "Parameter",
    "Plane",
    "Point",
    "Power",
    "Rapid",
    "SectionEnd",
    "SectionStart",
    "load_job_file",
    "wrap_program",
]
