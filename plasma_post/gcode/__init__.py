"""
G-code generation module.

Translates toolpath events to G-code with modal word suppression,
centre-offset arcs and torch power sequencing.
"""

from plasma_post.gcode.arcs import ArcEncoder, EncodedArc
from plasma_post.gcode.cutter import CutterStateMachine
from plasma_post.gcode.formatting import FEED_FORMAT, XYZ_FORMAT, NumberFormat
from plasma_post.gcode.generator import ArcRejected, GCodeError, PlasmaPost
from plasma_post.gcode.modal import ModalAxis, ModalState

__all__ = [
    "ArcEncoder",
    "ArcRejected",
    "CutterStateMachine",
    "EncodedArc",
    "FEED_FORMAT",
    "GCodeError",
    "ModalAxis",
    "ModalState",
    "NumberFormat",
    "PlasmaPost",
    "XYZ_FORMAT",
]
