"""Microphone availability check."""

import logging
from typing import Optional

import pyaudio

logger = logging.getLogger(__name__)


class MicrophoneProbe:
    """Checks whether a usable input device exists before recording starts."""

    def __init__(self, device_index: Optional[int] = None):
        """Initialize probe.

        Args:
            device_index: Specific PyAudio input device to require. If None,
                the default input device or any device with input channels is accepted.
        """
        self.device_index = device_index

    def has_microphone(self) -> bool:
        """Return True if an input device can be used. Never raises."""
        pyaudio_instance = None
        try:
            pyaudio_instance = pyaudio.PyAudio()
            return self._find_input_device(pyaudio_instance)
        except Exception as e:
            logger.debug(f"Microphone not available: {e}")
            return False
        finally:
            if pyaudio_instance is not None:
                try:
                    pyaudio_instance.terminate()
                except Exception as e:
                    logger.debug(f"Error terminating PyAudio after probe: {e}")

    def _find_input_device(self, pyaudio_instance: pyaudio.PyAudio) -> bool:
        if self.device_index is not None:
            info = pyaudio_instance.get_device_info_by_index(self.device_index)
            available = info.get('maxInputChannels', 0) > 0
            logger.debug(f"Configured input device {self.device_index} available={available}")
            return available

        try:
            default_device = pyaudio_instance.get_default_input_device_info()
            if default_device.get('maxInputChannels', 0) > 0:
                logger.debug(f"Default input device: {default_device.get('name')}")
                return True
        except (IOError, OSError) as e:
            logger.debug(f"No default input device: {e}")

        for index in range(pyaudio_instance.get_device_count()):
            info = pyaudio_instance.get_device_info_by_index(index)
            if info.get('maxInputChannels', 0) > 0:
                logger.debug(f"Found input device {index}: {info.get('name')}")
                return True

        return False
