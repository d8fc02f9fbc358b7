"""Testes da linha do tempo e do transmissor."""

import io
import wave

import pytest
from rich.console import Console

from tinycid.client import ContactIDTransmitter, PanelConfig
from tinycid.contactid import EventCategory, encode
from tinycid.fsm import TransmissionConflictError, TxState
from tinycid.timeline import TransmissionTimeline, color_for


def test_timeline_records_events():
    timeline = TransmissionTimeline()
    message = encode("1234", EventCategory.MEDICAL, "5")

    timeline.on_state_changed(TxState.IDLE, TxState.DIALING)
    timeline.on_message_composed(message)
    timeline.on_unknown_symbol("*", "dialing")
    timeline.on_state_changed(TxState.DIALING, TxState.INTER_DIGIT_GAP)
    timeline.on_state_changed(TxState.INTER_DIGIT_GAP, TxState.DIALING)
    timeline.on_state_changed(TxState.INTER_DIGIT_GAP, TxState.WAITING_PRE_TRANSMIT)
    timeline.on_completed(message)

    assert timeline.kinds == [
        "DIALING",
        "MESSAGE",
        "UNKNOWN SYMBOL",
        "WAITING_PRE_TRANSMIT",
        "COMPLETED",
    ]
    assert timeline.message == message
    assert all(e.elapsed >= 0 for e in timeline.entries[1:])


def test_timeline_render():
    timeline = TransmissionTimeline()
    timeline.on_message_composed(encode("1234", EventCategory.POLICE, "5"))
    timeline.on_error(RuntimeError("boom"))

    buf = io.StringIO()
    timeline.render(Console(file=buf, width=120))
    output = buf.getvalue()
    assert "1234181120010056" in output
    assert "RuntimeError: boom" in output


def test_timeline_render_empty():
    buf = io.StringIO()
    TransmissionTimeline().render(Console(file=buf))
    assert "Nenhum evento" in buf.getvalue()


@pytest.mark.parametrize(
    "kind,style",
    [
        ("ERROR", "bold red"),
        ("ABORTED", "bold red"),
        ("UNKNOWN SYMBOL", "yellow"),
        ("COMPLETED", "bold green"),
        ("DIALING", "bold cyan"),
        ("MESSAGE", "green"),
        ("IDLE", "white"),
    ],
)
def test_color_for(kind, style):
    assert color_for(kind) == style


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transmitter_sends_police_to_wav(tmp_path):
    path = tmp_path / "police.wav"
    transmitter = ContactIDTransmitter(
        PanelConfig(account="1234", dialed_number="9#1", zone="5", wav_path=str(path))
    )
    transmitter.start()

    message = await transmitter.send_police()
    assert message.symbols == "1234181120010056"
    assert "UNKNOWN SYMBOL" in transmitter.timeline.kinds
    assert transmitter.timeline.kinds[-1] == "IDLE"
    assert transmitter.cancel() is False

    transmitter.close()
    with wave.open(str(path), "rb") as wf:
        # 2 tons + 3 intervalos + espera + mensagem
        assert wf.getnframes() == 2 * 1200 + 3 * 800 + 28000 + 16 * 800


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transmitter_rejects_overlapping_send(tmp_path):
    import asyncio

    transmitter = ContactIDTransmitter(
        PanelConfig(account="1234", dialed_number="1", wav_path=str(tmp_path / "a.wav"))
    )
    transmitter.start()
    first = asyncio.create_task(transmitter.send_medical())
    await asyncio.sleep(0)

    with pytest.raises(TransmissionConflictError):
        await transmitter.send_police()

    message = await first
    assert message.event_code == "100"
    assert transmitter.orchestrator.state == TxState.IDLE
    transmitter.close()
