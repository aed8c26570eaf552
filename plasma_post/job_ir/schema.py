"""YAML job-file schema (job.v1) and loader.

A job file is a recorded event stream, used to replay a CAM session
outside the host application::

    schema: job.v1
    name: bracket
    events:
      - {type: parameter, name: document-path, value: /parts/bracket.f3d}
      - {type: section_start, name: Profile1,
         bounds: {min: [0, 0, 0], max: [120, 80, 25]}}
      - {type: rapid, x: 10, y: 0, z: 5}
      - {type: power, enabled: true}
      - {type: circular, clockwise: false, center: [0, 0, 0], end: [0, 10, 0]}
      - {type: power, enabled: false}
      - {type: section_end}

Validation uses pydantic for fail-fast errors with the offending index
and key.  ``Open``/``Close`` are implied and added by the loader.
"""

from pathlib import Path
from typing import Annotated, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from plasma_post.job_ir.events import (
    Bounds,
    Circular,
    Dwell,
    Event,
    Linear,
    Parameter,
    Plane,
    Point,
    Power,
    Rapid,
    SectionEnd,
    SectionStart,
    wrap_program,
)
from plasma_post.utils import fs


Vec3 = Tuple[float, float, float]


class BoundsV1(BaseModel):
    """Section extents (mm)."""
    min: Vec3 = Field(..., description="(xmin, ymin, zmin)")
    max: Vec3 = Field(..., description="(xmax, ymax, zmax)")

    @model_validator(mode='after')
    def validate_order(self) -> 'BoundsV1':
        for axis, lo, hi in zip("XYZ", self.min, self.max):
            if lo > hi:
                raise ValueError(f"Bounds {axis} min {lo} > max {hi}")
        return self


class SectionStartV1(BaseModel):
    type: Literal["section_start"]
    name: str = Field(..., min_length=1)
    bounds: Optional[BoundsV1] = None


class SectionEndV1(BaseModel):
    type: Literal["section_end"]


class RapidV1(BaseModel):
    type: Literal["rapid"]
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None


class LinearV1(BaseModel):
    type: Literal["linear"]
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    feed: Optional[float] = Field(None, gt=0.0, description="Requested feed (mm/s)")


class CircularV1(BaseModel):
    type: Literal["circular"]
    clockwise: bool
    center: Vec3
    end: Vec3
    feed: Optional[float] = Field(None, gt=0.0)
    plane: Literal["XY", "ZX", "YZ"] = "XY"


class PowerV1(BaseModel):
    """Torch power.  The key is ``enabled`` because YAML reads a bare
    ``on`` key as a boolean."""
    type: Literal["power"]
    enabled: bool


class DwellV1(BaseModel):
    type: Literal["dwell"]
    seconds: float = Field(..., ge=0.0)


class ParameterV1(BaseModel):
    type: Literal["parameter"]
    name: str = Field(..., min_length=1)
    value: str

    @field_validator('value', mode='before')
    @classmethod
    def stringify(cls, v: object) -> str:
        return v if isinstance(v, str) else str(v)


EventV1 = Annotated[
    Union[
        SectionStartV1,
        SectionEndV1,
        RapidV1,
        LinearV1,
        CircularV1,
        PowerV1,
        DwellV1,
        ParameterV1,
    ],
    Field(discriminator="type"),
]


class JobFileV1(BaseModel):
    """Job file schema v1 (recorded event stream)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("job.v1", alias="schema", description="Schema version")
    name: str = ""
    events: List[EventV1] = Field(..., min_length=1)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "job.v1":
            raise ValueError(f"Expected schema 'job.v1', got '{v}'")
        return v

    def to_events(self) -> List[Event]:
        """Convert to translator events wrapped in ``Open``/``Close``."""
        return wrap_program([_to_event(e) for e in self.events])


def _to_event(entry: BaseModel) -> Event:
    if isinstance(entry, SectionStartV1):
        bounds = None
        if entry.bounds is not None:
            bounds = Bounds.from_extents(entry.bounds.min, entry.bounds.max)
        return SectionStart(name=entry.name, bounds=bounds)
    if isinstance(entry, SectionEndV1):
        return SectionEnd()
    if isinstance(entry, RapidV1):
        return Rapid(x=entry.x, y=entry.y, z=entry.z)
    if isinstance(entry, LinearV1):
        return Linear(x=entry.x, y=entry.y, z=entry.z, feed=entry.feed)
    if isinstance(entry, CircularV1):
        return Circular(
            clockwise=entry.clockwise,
            center=Point(*entry.center),
            end=Point(*entry.end),
            feed=entry.feed,
            plane=Plane(entry.plane),
        )
    if isinstance(entry, PowerV1):
        return Power(on=entry.enabled)
    if isinstance(entry, DwellV1):
        return Dwell(seconds=entry.seconds)
    if isinstance(entry, ParameterV1):
        return Parameter(name=entry.name, value=entry.value)
    raise TypeError(f"Unhandled job entry: {type(entry).__name__}")


def load_job_file(path: Union[str, Path]) -> JobFileV1:
    """Load and validate a recorded job from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a job.v1 YAML file

    Returns
    -------
    JobFileV1
        Validated job; call ``to_events()`` for the event list.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(str(e)) from e
    if not isinstance(data, dict):
        raise ValueError(f"Job file {path} must contain a mapping")
    try:
        return JobFileV1(**data)
    except Exception as e:
        raise ValueError(f"Job file validation failed at {path}: {e}") from e
