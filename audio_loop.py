"""
neonspin - Ambient Loop
Background music played on repeat through a sounddevice output stream.

The loop is either a WAV file (config.audio.loop_file) or a synthesized
drone pad. Any device or file problem leaves music off and is only logged.
"""

import wave
from pathlib import Path
from typing import Optional

import numpy as np

from config import AudioConfig
from errors import AudioUnavailable
from logging_utils import log_event


def _load_sounddevice():
    import sounddevice as sd
    return sd


def synthesize_pad(sample_rate: int, seconds: float) -> np.ndarray:
    """Seamless stereo drone: stacked low sines with slow tremolo, whole cycles only."""
    n = max(1, int(sample_rate * seconds))
    t = np.arange(n, dtype=np.float64) / sample_rate
    # Frequencies rounded to the loop length so the loop point is click-free
    partials = [(110.0, 0.5), (164.81, 0.3), (220.0, 0.2), (329.63, 0.1)]
    left = np.zeros(n)
    right = np.zeros(n)
    for i, (freq, amp) in enumerate(partials):
        f = round(freq * seconds) / seconds
        tremolo = 0.75 + 0.25 * np.sin(2 * np.pi * (i + 1) / seconds * t)
        left += amp * tremolo * np.sin(2 * np.pi * f * t)
        right += amp * tremolo * np.sin(2 * np.pi * f * t + 0.3 * (i + 1))
    pad = np.column_stack([left, right])
    peak = np.max(np.abs(pad))
    if peak > 0:
        pad /= peak
    return (0.5 * pad).astype(np.float32)


def load_wav(path: Path) -> tuple[np.ndarray, int]:
    """Read a 16-bit PCM WAV into float32 (frames, channels)."""
    with wave.open(str(path), 'rb') as wf:
        channels = wf.getnchannels()
        sample_rate = wf.getframerate()
        if wf.getsampwidth() != 2:
            raise ValueError(f"unsupported sample width {wf.getsampwidth()} in {path.name}")
        raw = wf.readframes(wf.getnframes())
    data = np.frombuffer(raw, dtype='<i2').astype(np.float32) / 32768.0
    return data.reshape(-1, channels), sample_rate


class AmbientLoop:
    """Looping player with the same play/pause surface as the mobile app's music toggle."""

    def __init__(self, config: AudioConfig):
        self.config = config
        self.volume = config.volume
        self.is_playing = False
        self._stream = None
        self._sd = None
        self._buffer: Optional[np.ndarray] = None
        self._sample_rate = config.sample_rate
        self._pos = 0

    def _prepare(self) -> None:
        if self._buffer is not None:
            return
        if self.config.loop_file:
            path = Path(self.config.loop_file)
            try:
                self._buffer, self._sample_rate = load_wav(path)
                log_event("INFO", "Audio", "Loop loaded", file=path.name,
                          seconds=f"{len(self._buffer) / self._sample_rate:.1f}")
                return
            except (OSError, ValueError, wave.Error) as e:
                log_event("WARNING", "Audio", "Could not load loop file, using pad", file=path, error=e)
        self._sample_rate = self.config.sample_rate
        self._buffer = synthesize_pad(self._sample_rate, self.config.pad_seconds)

    def _open_stream(self) -> None:
        self._prepare()
        try:
            sd = _load_sounddevice()
        except (ImportError, OSError) as e:
            raise AudioUnavailable(f"sounddevice not usable: {e}") from e
        self._sd = sd
        try:
            self._stream = sd.OutputStream(
                samplerate=self._sample_rate,
                channels=self._buffer.shape[1],
                dtype="float32",
                blocksize=self.config.block_size,
                callback=self._callback,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise AudioUnavailable(str(e)) from e

    def _callback(self, outdata, frames, time_info, status) -> None:
        buffer = self._buffer
        n = len(buffer)
        idx = (self._pos + np.arange(frames)) % n
        outdata[:] = buffer[idx] * self.volume
        self._pos = int((self._pos + frames) % n)

    def set_music_enabled(self, enabled: bool) -> None:
        if enabled and not self.is_playing:
            if self._stream is None:
                try:
                    self._open_stream()
                except AudioUnavailable as e:
                    log_event("WARNING", "Audio", "Music unavailable", error=e)
                    return
            try:
                self._stream.start()
            except self._sd.PortAudioError as e:
                log_event("WARNING", "Audio", "Could not start music", error=e)
                self._drop_stream()
                return
            self.is_playing = True
            log_event("INFO", "Audio", "Music on", volume=self.volume)
        elif not enabled and self.is_playing:
            self.is_playing = False
            try:
                self._stream.stop()
            except self._sd.PortAudioError as e:
                log_event("WARNING", "Audio", "Could not stop music", error=e)
                self._drop_stream()
                return
            log_event("INFO", "Audio", "Music off")

    def toggle(self) -> bool:
        self.set_music_enabled(not self.is_playing)
        return self.is_playing

    def _drop_stream(self) -> None:
        """Close and forget the stream; a later enable opens a fresh one."""
        stream, self._stream = self._stream, None
        self.is_playing = False
        if stream is None:
            return
        try:
            stream.close()
        except self._sd.PortAudioError as e:
            log_event("WARNING", "Audio", "Could not close audio stream", error=e)

    def close(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop()
            except self._sd.PortAudioError as e:
                log_event("WARNING", "Audio", "Could not stop music", error=e)
        self._drop_stream()
