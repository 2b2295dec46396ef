"""
Output volume control for Zen Master.

The audio numbing policy decides when and to what level the output volume
changes; a VolumeControl carries the change out. Volumes are scalars in
[0.0, 1.0].
"""

import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Optional

from .base import BaseHardware

class VolumeControl(BaseHardware, ABC):
    """
    Base class for output volume controls.

    `show_system_ui` mirrors the platform flag that decides whether the native
    volume indicator appears when the volume is changed programmatically.
    """

    def __init__(self, name: Optional[str] = None):
        super().__init__(None, name)
        self.show_system_ui = True

    @abstractmethod
    def get_volume(self) -> float:
        """
        Get the current output volume.

        Returns:
            Current volume level (0.0 to 1.0)
        """
        pass

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """
        Set the output volume.

        Args:
            volume: Volume level (0.0 to 1.0)
        """
        pass

    @staticmethod
    def _check_volume(volume: float) -> None:
        if volume < 0.0 or volume > 1.0:
            raise ValueError("Volume must be between 0.0 and 1.0")

class SoftwareVolumeControl(VolumeControl):
    """In-memory volume level, for simulation and for hosts that mix in software."""

    def __init__(self, initial_volume: float = 1.0, name: Optional[str] = None):
        super().__init__(name)
        self._check_volume(initial_volume)
        self._volume = initial_volume

    def get_volume(self) -> float:
        return self._volume

    def set_volume(self, volume: float) -> None:
        self._check_volume(volume)
        self._volume = volume
        self.logger.debug("Volume set", volume=round(volume, 3))

class AmixerVolumeControl(VolumeControl):
    """
    ALSA mixer control driven through the `amixer` command line tool.

    Used on Linux hosts where the earbud is the default ALSA output.
    """

    _PERCENT_PATTERN = re.compile(r"\[(\d{1,3})%\]")

    def __init__(self, control: str = "Master", card: Optional[int] = None, name: Optional[str] = None):
        """
        Args:
            control: Mixer control to read and write
            card: ALSA card index, or None for the default card
            name: Optional name for this hardware instance
        """
        super().__init__(name)
        self.control = control
        self.card = card

    async def _open(self) -> None:
        if shutil.which("amixer") is None:
            raise RuntimeError("amixer not found; install alsa-utils")

    def _command(self, *args: str) -> list:
        command = ["amixer"]
        if self.card is not None:
            command += ["-c", str(self.card)]
        return command + list(args)

    def get_volume(self) -> float:
        result = subprocess.run(
            self._command("sget", self.control),
            capture_output=True,
            text=True,
            check=True
        )
        match = self._PERCENT_PATTERN.search(result.stdout)
        if match is None:
            raise RuntimeError(f"Could not parse amixer output for {self.control}")
        return int(match.group(1)) / 100.0

    def set_volume(self, volume: float) -> None:
        self._check_volume(volume)
        subprocess.run(
            self._command("-q", "sset", self.control, f"{round(volume * 100)}%"),
            check=True
        )
        self.logger.debug("Volume set", volume=round(volume, 3), control=self.control)
