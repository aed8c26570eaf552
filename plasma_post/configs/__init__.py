"""Post-processor configuration loading and validation."""

from plasma_post.configs.loader import (
    ArcConfig,
    CommandsConfig,
    ConfigError,
    MotionConfig,
    PostConfig,
    ProgramConfig,
    ThcConfig,
    load_config,
    parse_config,
)

__all__ = [
    "ArcConfig",
    "CommandsConfig",
    "ConfigError",
    "MotionConfig",
    "PostConfig",
    "ProgramConfig",
    "ThcConfig",
    "load_config",
    "parse_config",
]
