"""
Plasma Post Package.

Toolpath-to-G-code translator for a plasma table with torch height control.
A CAM host delivers motion and tool-state events one at a time; the
translator keeps the controller's modal state and appends G-code lines.

Subpackages:
    gcode: Modal encoder, arc encoder, cutter state machine, translator
    job_ir: Event vocabulary and job-file schema
    configs: Machine configuration loading and validation
    host: Host-side replay driver (arc linearization)
    utils: File helpers and logging setup
"""

__version__ = "1.0.0"

__all__ = ["gcode", "job_ir", "configs", "host", "utils"]
