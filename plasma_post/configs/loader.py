"""Configuration loader for the plasma post-processor.

Loads and validates ``machine.yaml`` into typed, frozen dataclasses.
All machine-specific values (command words, torch height control
parameters, feed rates, arc acceptance limits) come from the config --
nothing is hardcoded in the generator.

Feed rates are stored in **mm/s** throughout Python.  Conversion to the
G-code ``F`` parameter (mm/min) happens only in the G-code generator.

Usage::

    from plasma_post.configs.loader import load_config
    cfg = load_config()                               # default profile
    cfg = load_config("/custom/machine.yaml")         # explicit path
    cfg = parse_config(raw_dict)                      # in-memory mapping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from plasma_post.utils.fs import load_yaml

logger = logging.getLogger(__name__)

THC_FIELDS = ("voltage", "delay", "cut_height", "initial_height", "height_step")
"""Torch height control parameters, in activation-command order."""

RAPID_MODES = ("combined", "split")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProgramConfig:
    """Document-level settings.

    ``z_home_offset_mm`` is the Z value assigned with the origin
    redefinition command right after Z homing, i.e. the height of the
    torch tip above the slats when the Z endstop triggers.
    """

    name: str = ""
    comment_marker: str = ";"
    z_home_offset_mm: float = 0.0
    safe_z_mm: float = 25.0
    completion_message: str = "Job complete"
    comment_parameters: tuple[str, ...] = (
        "generated-at",
        "document-path",
        "operation-comment",
    )


@dataclass(frozen=True)
class CommandsConfig:
    """Controller command words."""

    torch_on: str = "M3"
    torch_off: str = "M5"
    wait: str = "M400"
    home: str = "G28"
    set_origin: str = "G92"
    status: str = "M117"


@dataclass(frozen=True)
class ThcConfig:
    """Torch height control profile combined into the activation command.

    Parameters
    ----------
    voltage_v : float
        Target arc voltage.
    delay_s : float
        Pierce delay before THC engages.
    cut_height_mm : float
        Standoff while cutting.
    initial_height_mm : float
        Pierce (initial) height.
    height_step_mm : float
        Correction increment applied per THC adjustment.
    fields : tuple[str, ...]
        Which of the above appear in the activation command.
    rehome_axis : str | None
        Axis re-homed right before every activation, ``None`` to skip.
    """

    voltage_v: float
    delay_s: float
    cut_height_mm: float
    initial_height_mm: float
    height_step_mm: float
    fields: tuple[str, ...] = THC_FIELDS
    rehome_axis: str | None = None


@dataclass(frozen=True)
class MotionConfig:
    """Feed rates (mm/s) and rapid/linear strategy."""

    cut_feed_mm_s: float
    xy_travel_mm_s: float
    z_travel_mm_s: float
    rapid_mode: str = "combined"
    subdivide_linear: bool = False
    subdivision_step_mm: float = 1.0

    @property
    def split_rapids(self) -> bool:
        """True when Z and XY rapids go on separate lines."""
        return self.rapid_mode == "split"


@dataclass(frozen=True)
class ArcConfig:
    """Limits for accepting a circular move as ``G2``/``G3``."""

    min_chord_mm: float = 0.1
    min_radius_mm: float = 0.1
    max_radius_mm: float = 1000.0
    min_sweep_deg: float = 0.5
    max_sweep_deg: float = 360.0


@dataclass(frozen=True)
class PostConfig:
    """Complete post-processor configuration loaded from ``machine.yaml``.

    All linear dimensions are in **millimeters**.
    All feed rates are in **mm/s**.
    """

    program: ProgramConfig
    commands: CommandsConfig
    thc: ThcConfig
    motion: MotionConfig
    arcs: ArcConfig


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _parse_program(data: dict[str, Any]) -> ProgramConfig:
    """Parse the optional ``program`` section."""
    defaults = ProgramConfig()
    params = data.get("comment_parameters", defaults.comment_parameters)
    if not isinstance(params, (list, tuple)):
        raise ConfigError(
            f"program.comment_parameters must be a list, got {params!r}"
        )
    return ProgramConfig(
        name=str(data.get("name", defaults.name) or ""),
        comment_marker=str(data.get("comment_marker", defaults.comment_marker)),
        z_home_offset_mm=float(
            data.get("z_home_offset_mm", defaults.z_home_offset_mm)
        ),
        safe_z_mm=float(data.get("safe_z_mm", defaults.safe_z_mm)),
        completion_message=str(
            data.get("completion_message", defaults.completion_message)
        ),
        comment_parameters=tuple(str(p) for p in params),
    )


def _parse_commands(data: dict[str, Any]) -> CommandsConfig:
    """Parse the optional ``commands`` section."""
    defaults = CommandsConfig()
    return CommandsConfig(
        **{
            name: str(data.get(name, getattr(defaults, name))).strip()
            for name in (
                "torch_on", "torch_off", "wait", "home", "set_origin", "status",
            )
        }
    )


def _parse_thc(data: dict[str, Any]) -> ThcConfig:
    """Parse the ``thc`` section."""
    fields = data.get("fields", list(THC_FIELDS))
    if not isinstance(fields, (list, tuple)):
        raise ConfigError(f"thc.fields must be a list, got {fields!r}")
    rehome = data.get("rehome_axis")
    return ThcConfig(
        voltage_v=float(data["voltage_v"]),
        delay_s=float(data["delay_s"]),
        cut_height_mm=float(data["cut_height_mm"]),
        initial_height_mm=float(data["initial_height_mm"]),
        height_step_mm=float(data["height_step_mm"]),
        fields=tuple(str(f) for f in fields),
        rehome_axis=str(rehome).upper() if rehome is not None else None,
    )


def _parse_motion(data: dict[str, Any]) -> MotionConfig:
    """Parse the ``motion`` section."""
    return MotionConfig(
        cut_feed_mm_s=float(data["cut_feed_mm_s"]),
        xy_travel_mm_s=float(data["xy_travel_mm_s"]),
        z_travel_mm_s=float(data.get("z_travel_mm_s", data["xy_travel_mm_s"])),
        rapid_mode=str(data.get("rapid_mode", "combined")),
        subdivide_linear=bool(data.get("subdivide_linear", False)),
        subdivision_step_mm=float(data.get("subdivision_step_mm", 1.0)),
    )


def _parse_arcs(data: dict[str, Any]) -> ArcConfig:
    """Parse the optional ``arcs`` section."""
    defaults = ArcConfig()
    return ArcConfig(
        **{
            name: float(data.get(name, getattr(defaults, name)))
            for name in (
                "min_chord_mm",
                "min_radius_mm",
                "max_radius_mm",
                "min_sweep_deg",
                "max_sweep_deg",
            )
        }
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: PostConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    # -- Comment marker -----------------------------------------------------
    marker = cfg.program.comment_marker
    if len(marker) != 1 or marker in "()":
        raise ConfigError(
            f"program.comment_marker must be one character other than "
            f"a parenthesis, got {marker!r}"
        )
    if cfg.program.safe_z_mm < 0:
        raise ConfigError(
            f"program.safe_z_mm must be >= 0, got {cfg.program.safe_z_mm}"
        )

    # -- Command words ------------------------------------------------------
    for name in ("torch_on", "torch_off", "wait", "home", "set_origin", "status"):
        if not getattr(cfg.commands, name):
            raise ConfigError(f"commands.{name} must not be empty")

    # -- THC ----------------------------------------------------------------
    unknown = [f for f in cfg.thc.fields if f not in THC_FIELDS]
    if unknown:
        raise ConfigError(
            f"Unknown thc.fields {unknown}. Known: {list(THC_FIELDS)}"
        )
    if len(set(cfg.thc.fields)) != len(cfg.thc.fields):
        raise ConfigError(f"Duplicate entries in thc.fields: {cfg.thc.fields}")
    axis = cfg.thc.rehome_axis
    if axis is not None and axis not in ("X", "Y", "Z"):
        raise ConfigError(
            f"thc.rehome_axis must be X, Y, Z or null, "
            f"got {cfg.thc.rehome_axis!r}"
        )
    for label, val in [
        ("voltage_v", cfg.thc.voltage_v),
        ("delay_s", cfg.thc.delay_s),
        ("cut_height_mm", cfg.thc.cut_height_mm),
        ("initial_height_mm", cfg.thc.initial_height_mm),
        ("height_step_mm", cfg.thc.height_step_mm),
    ]:
        if val < 0:
            raise ConfigError(f"thc.{label} must be >= 0, got {val}")

    # -- Feed rates ---------------------------------------------------------
    m = cfg.motion
    for label, val in [
        ("cut_feed_mm_s", m.cut_feed_mm_s),
        ("xy_travel_mm_s", m.xy_travel_mm_s),
        ("z_travel_mm_s", m.z_travel_mm_s),
        ("subdivision_step_mm", m.subdivision_step_mm),
    ]:
        if val <= 0:
            raise ConfigError(f"motion.{label} must be > 0, got {val}")
    if m.rapid_mode not in RAPID_MODES:
        raise ConfigError(
            f"motion.rapid_mode must be one of {list(RAPID_MODES)}, "
            f"got '{m.rapid_mode}'"
        )
    if m.cut_feed_mm_s > m.xy_travel_mm_s:
        logger.warning(
            "Cutting feed (%.1f mm/s) exceeds XY travel speed (%.1f mm/s)",
            m.cut_feed_mm_s,
            m.xy_travel_mm_s,
        )

    # -- Arc limits ---------------------------------------------------------
    a = cfg.arcs
    if a.min_chord_mm < 0 or a.min_radius_mm < 0:
        raise ConfigError(
            f"arcs.min_chord_mm and arcs.min_radius_mm must be >= 0, "
            f"got {a.min_chord_mm}, {a.min_radius_mm}"
        )
    if a.min_radius_mm > a.max_radius_mm:
        raise ConfigError(
            f"arcs.min_radius_mm ({a.min_radius_mm}) > "
            f"arcs.max_radius_mm ({a.max_radius_mm})"
        )
    if not (0.0 < a.min_sweep_deg <= a.max_sweep_deg <= 360.0):
        raise ConfigError(
            f"Arc sweep limits must satisfy 0 < min <= max <= 360: "
            f"{a.min_sweep_deg}, {a.max_sweep_deg}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_config(data: dict[str, Any]) -> PostConfig:
    """Build and validate a configuration from a raw mapping.

    Parameters
    ----------
    data : dict[str, Any]
        Mapping with the ``machine.yaml`` structure.

    Returns
    -------
    PostConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )

    try:
        config = PostConfig(
            program=_parse_program(data.get("program") or {}),
            commands=_parse_commands(data.get("commands") or {}),
            thc=_parse_thc(data["thc"]),
            motion=_parse_motion(data["motion"]),
            arcs=_parse_arcs(data.get("arcs") or {}),
        )
    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

    _validate_config(config)
    return config


def load_config(path: str | Path | None = None) -> PostConfig:
    """Load and validate post-processor configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``machine.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    PostConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "machine.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    config = parse_config(data)
    logger.info("Configuration loaded successfully")
    return config
