"""WAV container helpers for captured PCM audio."""

import io
import logging
import wave

logger = logging.getLogger(__name__)


def encode_wav(audio_data: bytes, sample_rate: int = 16000, channels: int = 1,
               sample_width: int = 2) -> bytes:
    """Wrap raw PCM in a WAV container, e.g. for upload to a speech API."""
    output = io.BytesIO()
    with wave.open(output, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(audio_data)
    return output.getvalue()


def save_to_file(filepath: str, audio_data: bytes, sample_rate: int = 16000,
                 channels: int = 1, sample_width: int = 2) -> None:
    """Save captured audio to a WAV file.

    Args:
        filepath: Path to save the WAV file
        audio_data: Raw 16-bit PCM
    """
    if not audio_data:
        logger.warning("No audio data to save")
        return

    try:
        with wave.open(filepath, 'wb') as wf:
            wf.setnchannels(channels)
            wf.setsampwidth(sample_width)
            wf.setframerate(sample_rate)
            wf.writeframes(audio_data)

        logger.info(f"Audio saved to {filepath}")

    except Exception as e:
        logger.error(f"Error saving audio file: {e}")
        raise
