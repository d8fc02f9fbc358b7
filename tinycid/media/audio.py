# audio.py
# Audio output for tone playback: PyAudio device (mono 16-bit) and WAV file sink

import asyncio
import logging
import threading
import wave
from typing import Protocol

from tinycid.media.dtmf import AudioBuffer, FrequencyPair, render_silence, render_tone

# Frames per write; stop() is honoured between chunks
CHUNK_FRAMES = 160


class AudioDeviceUnavailable(RuntimeError):
    """Dispositivo de áudio ausente, não ativado ou com falha"""

    pass


class AudioOutput(Protocol):
    """Interface mínima de saída de áudio usada pelo orquestrador"""

    sample_rate: int

    @property
    def is_active(self) -> bool: ...

    def create_buffer(self, samples: list[float]) -> AudioBuffer: ...
    async def play(self, buffer: AudioBuffer) -> None: ...
    async def play_realtime_tone(self, pair: FrequencyPair, duration_s: float) -> None: ...
    async def play_silence(self, duration_s: float) -> None: ...
    async def stop(self) -> None: ...
    def close(self) -> None: ...


class AudioDevice:
    """PyAudio output stream with an explicit acquire/resume lifecycle.

    ``acquire()`` loads PyAudio; ``resume()`` opens the output stream and must
    be triggered by the user (the equivalent of a browser user gesture).
    """

    def __init__(self, fs: int = 8000):
        self.sample_rate = fs
        self.p = None
        self.out_stream = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._logger = logging.getLogger("tinycid.media.audio")

    @property
    def is_active(self) -> bool:
        return self.out_stream is not None

    def acquire(self) -> None:
        if self.p is not None:
            return
        try:
            import pyaudio
        except ImportError as e:
            raise AudioDeviceUnavailable("PyAudio not installed") from e
        try:
            self.p = pyaudio.PyAudio()
        except OSError as e:
            raise AudioDeviceUnavailable(f"Cannot initialise PyAudio: {e}") from e
        self._logger.debug("PyAudio acquired")

    def resume(self) -> None:
        if self.out_stream is not None:
            return
        self.acquire()
        import pyaudio

        try:
            self.out_stream = self.p.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                output=True,
                frames_per_buffer=CHUNK_FRAMES,
            )
        except OSError as e:
            raise AudioDeviceUnavailable(f"Cannot open output stream: {e}") from e
        self._logger.info(f"Audio output resumed at {self.sample_rate} Hz")

    def create_buffer(self, samples: list[float]) -> AudioBuffer:
        return AudioBuffer(tuple(samples), self.sample_rate)

    def _write(self, pcm16: bytes) -> None:
        if not self.out_stream:
            raise AudioDeviceUnavailable("Output stream not open")
        step = CHUNK_FRAMES * 2
        with self._lock:
            for i in range(0, len(pcm16), step):
                if self._stopped.is_set():
                    self._logger.debug("Playback interrupted")
                    return
                self.out_stream.write(pcm16[i : i + step])

    async def play(self, buffer: AudioBuffer) -> None:
        if buffer.sample_rate != self.sample_rate:
            raise ValueError(
                f"Buffer rate {buffer.sample_rate} Hz does not match device {self.sample_rate} Hz"
            )
        self._stopped.clear()
        await asyncio.to_thread(self._write, buffer.to_pcm16())

    async def play_realtime_tone(self, pair: FrequencyPair, duration_s: float) -> None:
        await self.play(self.create_buffer(render_tone(pair, duration_s, self.sample_rate)))

    async def play_silence(self, duration_s: float) -> None:
        await asyncio.sleep(duration_s)

    async def stop(self) -> None:
        self._stopped.set()
        await asyncio.to_thread(self._drain)

    def _drain(self) -> None:
        # blocks until any writer thread has left the stream
        with self._lock:
            pass

    def close(self) -> None:
        self._stopped.set()
        if self.out_stream:
            self.out_stream.stop_stream()
            self.out_stream.close()
            self.out_stream = None
        if self.p:
            self.p.terminate()
            self.p = None


class WavFileOutput:
    """Render a whole transmission, gaps included, to a mono PCM16 WAV file.

    Nothing waits on the wall clock; silence is appended as samples.
    """

    def __init__(self, filename: str, fs: int = 8000):
        self.filename = filename
        self.sample_rate = fs
        self.samples: list[float] = []
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def resume(self) -> None:
        self._active = True

    def create_buffer(self, samples: list[float]) -> AudioBuffer:
        return AudioBuffer(tuple(samples), self.sample_rate)

    def _append(self, samples) -> None:
        if not self._active:
            raise AudioDeviceUnavailable(f"WAV output {self.filename} is not active")
        self.samples.extend(samples)

    async def play(self, buffer: AudioBuffer) -> None:
        if buffer.sample_rate != self.sample_rate:
            raise ValueError(
                f"Buffer rate {buffer.sample_rate} Hz does not match output {self.sample_rate} Hz"
            )
        self._append(buffer.samples)
        await asyncio.sleep(0)

    async def play_realtime_tone(self, pair: FrequencyPair, duration_s: float) -> None:
        self._append(render_tone(pair, duration_s, self.sample_rate))
        await asyncio.sleep(0)

    async def play_silence(self, duration_s: float) -> None:
        self._append(render_silence(duration_s, self.sample_rate))
        await asyncio.sleep(0)

    async def stop(self) -> None:
        pass

    def close(self) -> None:
        """Write the collected samples to disk."""
        if not self._active:
            return
        with wave.open(self.filename, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(self.sample_rate)
            wf.writeframes(AudioBuffer(tuple(self.samples), self.sample_rate).to_pcm16())
        self._active = False
