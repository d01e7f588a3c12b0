"""Audio container helpers for synthesized speech."""

import base64
import io
import wave

# Gemini speech output: mono, 16-bit signed PCM at 24 kHz
SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
    sample_width: int = SAMPLE_WIDTH,
) -> bytes:
    """Wrap raw PCM frames in a self-describing WAV container.

    Args:
        pcm: Raw little-endian PCM bytes.
        sample_rate: Frames per second.
        channels: Number of interleaved channels.
        sample_width: Bytes per sample.

    Returns:
        Complete WAV file bytes (44-byte RIFF header followed by the frames).
    """
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


def wav_to_base64(wav: bytes) -> str:
    """Encode WAV bytes for embedding in a JSON response."""
    return base64.b64encode(wav).decode('ascii')
