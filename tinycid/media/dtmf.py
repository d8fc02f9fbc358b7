# dtmf.py
# Contact-ID tone plan and dual-tone synthesis (float samples, mono)

import logging
import math
import struct
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import NamedTuple

logger = logging.getLogger("tinycid.media.dtmf")

# Attenuation applied to the dual-sine composite
TONE_GAIN = 0.1


class FrequencyPair(NamedTuple):
    low: float
    high: float


# 4x4 grid with the fourth column (1633 Hz) carrying D, E and F.
# "A" has no tone: a checksum of value 10 ("A") is rendered as a silent block.
CID_FREQS: dict[str, FrequencyPair] = {
    "1": FrequencyPair(697, 1209),
    "2": FrequencyPair(697, 1336),
    "3": FrequencyPair(697, 1477),
    "D": FrequencyPair(697, 1633),
    "4": FrequencyPair(770, 1209),
    "5": FrequencyPair(770, 1336),
    "6": FrequencyPair(770, 1477),
    "E": FrequencyPair(770, 1633),
    "7": FrequencyPair(852, 1209),
    "8": FrequencyPair(852, 1336),
    "9": FrequencyPair(852, 1477),
    "F": FrequencyPair(852, 1633),
    "B": FrequencyPair(941, 1209),
    "0": FrequencyPair(941, 1336),
    "C": FrequencyPair(941, 1477),
}


class ToneTable:
    """Read-only symbol -> frequency pair lookup, case-insensitive."""

    def __init__(self, freqs: dict[str, FrequencyPair]):
        self._freqs = MappingProxyType({k.upper(): FrequencyPair(*v) for k, v in freqs.items()})

    def lookup(self, symbol: str) -> FrequencyPair | None:
        """Return the frequency pair of ``symbol`` or None when it has no tone."""
        if not isinstance(symbol, str) or len(symbol) != 1:
            return None
        return self._freqs.get(symbol.upper())

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self.lookup(symbol) is not None

    def __len__(self) -> int:
        return len(self._freqs)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self._freqs)


TONE_TABLE = ToneTable(CID_FREQS)


@dataclass(frozen=True)
class AudioBuffer:
    """Owned block of mono float samples at a fixed sample rate."""

    samples: tuple[float, ...]
    sample_rate: int

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    def to_pcm16(self) -> bytes:
        """Convert to little-endian PCM 16-bit, clipping to [-1, 1]."""
        return b"".join(
            struct.pack("<h", int(max(-1.0, min(1.0, s)) * 32767)) for s in self.samples
        )

    def __add__(self, other: "AudioBuffer") -> "AudioBuffer":
        if not isinstance(other, AudioBuffer):
            return NotImplemented
        if other.sample_rate != self.sample_rate:
            raise ValueError(
                f"Sample rate mismatch: {self.sample_rate} != {other.sample_rate}"
            )
        return AudioBuffer(self.samples + other.samples, self.sample_rate)


def sample_count(duration_s: float, fs: int) -> int:
    # truncation, not rounding
    return math.floor(duration_s * fs)


def render_tone(pair: FrequencyPair, duration_s: float, fs: int) -> list[float]:
    """Dual-sine tone of ``duration_s`` seconds, attenuated by TONE_GAIN."""
    f_low, f_high = pair
    out = []
    for j in range(sample_count(duration_s, fs)):
        t = j / fs
        value = 0.5 * (math.sin(2 * math.pi * f_low * t) + math.sin(2 * math.pi * f_high * t))
        out.append(value * TONE_GAIN)
    return out


def render_silence(duration_s: float, fs: int) -> list[float]:
    return [0.0] * sample_count(duration_s, fs)


def render_symbol(
    symbol: str,
    tone_s: float,
    pause_s: float,
    fs: int,
    on_unknown: Callable[[str], None] | None = None,
) -> list[float]:
    """Render one tone block: the symbol's tone followed by silence.

    Unknown symbols yield an all-zero block of the same length; the
    ``on_unknown`` callback (if any) is told about them.
    """
    pair = TONE_TABLE.lookup(symbol)
    if pair is None:
        logger.warning(f"Unknown symbol {symbol!r}: rendering silence")
        if on_unknown:
            on_unknown(symbol)
        return render_silence(tone_s, fs) + render_silence(pause_s, fs)
    return render_tone(pair, tone_s, fs) + render_silence(pause_s, fs)


def render_sequence(
    symbols: Iterable[str],
    tone_s: float,
    pause_s: float,
    fs: int,
    on_unknown: Callable[[str], None] | None = None,
) -> AudioBuffer:
    """Concatenate the tone blocks of ``symbols`` into one AudioBuffer."""
    samples: list[float] = []
    for s in symbols:
        samples += render_symbol(s, tone_s, pause_s, fs, on_unknown)
    return AudioBuffer(tuple(samples), fs)


def save_wav(filename: str, buffer: AudioBuffer) -> None:
    """Save an AudioBuffer as a mono PCM16 WAV file."""
    import wave

    with wave.open(filename, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(buffer.sample_rate)
        wf.writeframes(buffer.to_pcm16())
