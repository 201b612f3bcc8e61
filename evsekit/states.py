"""Charging states of the EVSE state machine."""

from __future__ import annotations

import enum


class EvseState(enum.IntEnum):
    """Pilot-signal states as exposed to scripts (STATE_A .. STATE_F)."""

    A = 0
    B1 = 1
    B2 = 2
    C1 = 3
    C2 = 4
    D1 = 5
    D2 = 6
    E = 7
    F = 8

    def label(self) -> str:
        """Short state name such as ``"B1"``."""
        return self.name