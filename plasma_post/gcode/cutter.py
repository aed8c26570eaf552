"""Cutter state machine -- torch power transitions.

States are ``off`` and ``on``.  A transition always starts with the
wait command (``M400``) so the controller finishes every queued move
before the torch fires or goes out.  Off -> On may re-home one axis and
then sends the activation command carrying the torch height control
profile::

    M400
    G28 Z
    M3 V118.0 D0.60 H1.500 I3.800 S0.050

Requesting the current state again produces no output.
"""

from __future__ import annotations

import logging
from io import StringIO

from plasma_post.configs.loader import CommandsConfig, ThcConfig
from plasma_post.gcode.formatting import (
    SECONDS_FORMAT,
    VOLTAGE_FORMAT,
    XYZ_FORMAT,
    NumberFormat,
)
from plasma_post.gcode.line import GCodeLine
from plasma_post.gcode.modal import ModalState

logger = logging.getLogger(__name__)

# field name -> (word letter, ThcConfig attribute, formatter)
_THC_WORDS: dict[str, tuple[str, str, NumberFormat]] = {
    "voltage": ("V", "voltage_v", VOLTAGE_FORMAT),
    "delay": ("D", "delay_s", SECONDS_FORMAT),
    "cut_height": ("H", "cut_height_mm", XYZ_FORMAT),
    "initial_height": ("I", "initial_height_mm", XYZ_FORMAT),
    "height_step": ("S", "height_step_mm", XYZ_FORMAT),
}


class CutterStateMachine:
    """Track torch power and emit activation/deactivation sequences.

    Parameters
    ----------
    commands : CommandsConfig
        Controller command words.
    thc : ThcConfig
        Torch height control profile and re-home axis.
    modal : ModalState
        Shared modal caches; the re-homed axis cache is cleared because
        the controller position on that axis changes.
    """

    def __init__(
        self,
        commands: CommandsConfig,
        thc: ThcConfig,
        modal: ModalState,
    ) -> None:
        self._cmd = commands
        self._thc = thc
        self._modal = modal
        self._on = False

    @property
    def is_on(self) -> bool:
        return self._on

    def activation_line(self) -> str:
        """Render the activation command with the configured THC fields."""
        line = GCodeLine(self._cmd.torch_on)
        for name in self._thc.fields:
            letter, attr, fmt = _THC_WORDS[name]
            line.add_word(letter, getattr(self._thc, attr), fmt)
        return line.render()

    def set_power(self, on: bool, buf: StringIO) -> bool:
        """Apply a power request.

        Returns
        -------
        bool
            ``True`` if the state changed and commands were written.
        """
        if on == self._on:
            return False
        if on:
            self._activate(buf)
        else:
            self._deactivate(buf)
        return True

    def force_off(self, buf: StringIO) -> None:
        """Deactivate regardless of the current state (program end)."""
        if not self._on:
            logger.debug("Torch already off; sending deactivation anyway")
        self._deactivate(buf)

    def _activate(self, buf: StringIO) -> None:
        buf.write(f"{self._cmd.wait}\n")
        axis = self._thc.rehome_axis
        if axis is not None:
            buf.write(GCodeLine(self._cmd.home).add_text(axis).render() + "\n")
            getattr(self._modal, axis.lower()).reset()
        buf.write(self.activation_line() + "\n")
        self._on = True

    def _deactivate(self, buf: StringIO) -> None:
        buf.write(f"{self._cmd.wait}\n")
        buf.write(f"{self._cmd.torch_off}\n")
        self._on = False
