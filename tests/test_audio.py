"""Testes das saídas de áudio (PyAudio e arquivo WAV)."""

import asyncio
import sys
import time
import wave

import pytest

from tinycid.contactid import EventCategory, verify_checksum
from tinycid.fsm import SendRequest, TransmissionOrchestrator
from tinycid.media.audio import CHUNK_FRAMES, AudioDevice, AudioDeviceUnavailable, WavFileOutput
from tinycid.media.dtmf import TONE_TABLE, AudioBuffer, render_tone


class NullSink:
    def on_message_composed(self, message):
        pass

    def on_unknown_symbol(self, symbol, phase):
        pass

    def on_state_changed(self, old_state, new_state):
        pass

    def on_completed(self, message):
        pass

    def on_error(self, error):
        pass


def test_audio_device_without_pyaudio(monkeypatch):
    """Sem PyAudio o dispositivo é reportado como indisponível."""
    monkeypatch.setitem(sys.modules, "pyaudio", None)
    device = AudioDevice(8000)
    assert not device.is_active
    with pytest.raises(AudioDeviceUnavailable):
        device.acquire()
    with pytest.raises(AudioDeviceUnavailable):
        device.resume()
    assert not device.is_active


@pytest.mark.asyncio
async def test_audio_device_play_requires_stream():
    device = AudioDevice(8000)
    with pytest.raises(AudioDeviceUnavailable):
        await device.play(AudioBuffer((0.0,) * 10, 8000))


@pytest.mark.asyncio
async def test_audio_device_rejects_rate_mismatch():
    device = AudioDevice(8000)
    with pytest.raises(ValueError):
        await device.play(AudioBuffer((0.0,), 16000))


def test_audio_device_create_buffer():
    buf = AudioDevice(16000).create_buffer([0.0, 0.1])
    assert buf.sample_rate == 16000
    assert buf.samples == (0.0, 0.1)


@pytest.mark.asyncio
async def test_wav_output_requires_resume(tmp_path):
    out = WavFileOutput(str(tmp_path / "x.wav"))
    with pytest.raises(AudioDeviceUnavailable):
        await out.play_silence(0.1)


@pytest.mark.asyncio
async def test_wav_output_collects_samples(tmp_path):
    out = WavFileOutput(str(tmp_path / "x.wav"), 8000)
    out.resume()
    await out.play_realtime_tone(TONE_TABLE.lookup("1"), 0.15)
    await out.play_silence(0.10)
    await out.play(out.create_buffer([0.0] * 50))
    assert len(out.samples) == 1200 + 800 + 50
    assert all(s == 0.0 for s in out.samples[1200:])


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transmission_to_wav_file(tmp_path):
    """Transmissão completa gravada: discagem, intervalos, espera e mensagem."""
    path = tmp_path / "medical.wav"
    out = WavFileOutput(str(path), 8000)
    out.resume()
    orchestrator = TransmissionOrchestrator(out, NullSink())

    message = await orchestrator.send(
        SendRequest(
            account="1234", dialed_number="12", zone="5", category=EventCategory.MEDICAL
        )
    )
    out.close()

    assert verify_checksum(message.symbols)
    # 2 tons de 150 ms + 2 intervalos de 100 ms + 3.5 s + 16 blocos de 100 ms
    expected = 2 * 1200 + 2 * 800 + 28000 + 16 * 800
    with wave.open(str(path), "rb") as wf:
        assert wf.getnchannels() == 1
        assert wf.getsampwidth() == 2
        assert wf.getframerate() == 8000
        assert wf.getnframes() == expected
    assert not out.is_active


class FakeStream:
    """Stream PyAudio falso: cada write demora um pouco e é registrado"""

    def __init__(self, delay: float = 0.002):
        self.delay = delay
        self.writes: list[bytes] = []
        self.calls: list[str] = []

    def write(self, data):
        time.sleep(self.delay)
        self.writes.append(data)

    def stop_stream(self):
        self.calls.append("stop_stream")

    def close(self):
        self.calls.append("close")


class FakePyAudio:
    def __init__(self):
        self.terminated = False

    def terminate(self):
        self.terminated = True


def make_device(stream: FakeStream) -> AudioDevice:
    device = AudioDevice(8000)
    device.p = FakePyAudio()
    device.out_stream = stream
    return device


@pytest.mark.asyncio
async def test_audio_device_writes_in_chunks():
    stream = FakeStream(delay=0)
    device = make_device(stream)
    assert device.is_active

    await device.play_realtime_tone(TONE_TABLE.lookup("1"), 0.15)

    # 1200 amostras PCM16 em blocos de 160 quadros
    assert [len(w) for w in stream.writes] == [320] * 7 + [160]
    assert b"".join(stream.writes) == AudioBuffer(
        tuple(render_tone(TONE_TABLE.lookup("1"), 0.15, 8000)), 8000
    ).to_pcm16()


@pytest.mark.slow
@pytest.mark.asyncio
async def test_audio_device_stop_interrupts_playback():
    """stop() encerra a escrita em no máximo um bloco."""
    stream = FakeStream(delay=0.002)
    device = make_device(stream)
    playback = asyncio.create_task(device.play(AudioBuffer((0.1,) * 8000, 8000)))

    while not stream.writes:
        await asyncio.sleep(0.001)
    await device.stop()
    written_at_stop = len(stream.writes)
    await playback

    assert len(stream.writes) == written_at_stop
    assert written_at_stop < 8000 // CHUNK_FRAMES

    # nova reprodução volta a escrever depois de stop()
    await device.play(AudioBuffer((0.0,) * CHUNK_FRAMES, 8000))
    assert len(stream.writes) == written_at_stop + 1


@pytest.mark.asyncio
async def test_audio_device_stop_without_playback():
    device = make_device(FakeStream())
    await device.stop()
    assert device.is_active


def test_audio_device_close_releases_stream_and_pyaudio():
    stream = FakeStream()
    device = make_device(stream)
    pa = device.p

    device.close()

    assert stream.calls == ["stop_stream", "close"]
    assert pa.terminated
    assert device.out_stream is None
    assert device.p is None
    assert not device.is_active
