import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rich.panel import Panel

from tinycid.contactid import ContactIDMessage, EventCategory, encode
from tinycid.logging_utils import RichDiagnostics, get_logger
from tinycid.media.audio import AudioDeviceUnavailable, AudioOutput
from tinycid.media.dtmf import TONE_TABLE, render_sequence

# Logger global para este módulo
logger = get_logger(__name__)

# ======================= FSM STATES E ENUMS =======================


class TxState(Enum):
    """Estados de uma transmissão Contact-ID"""

    IDLE = "IDLE"
    DIALING = "DIALING"
    INTER_DIGIT_GAP = "INTER_DIGIT_GAP"
    WAITING_PRE_TRANSMIT = "WAITING_PRE_TRANSMIT"
    TRANSMITTING = "TRANSMITTING"
    DONE = "DONE"
    ABORTED = "ABORTED"


class TransmissionConflictError(RuntimeError):
    """Pedido de envio recebido com outra transmissão em curso"""

    pass


# ======================= TIMER CONFIGURATION =======================


@dataclass(frozen=True)
class CIDTimers:
    """Temporização fixa da discagem e da mensagem Contact-ID (segundos)"""

    DIAL_TONE: float = 0.15
    INTER_DIGIT_GAP: float = 0.10
    PRE_TRANSMIT_DELAY: float = 3.5  # espera de atendimento do receptor
    CID_TONE: float = 0.05
    CID_PAUSE: float = 0.05

    def dial_duration(self, dialed_number: str) -> float:
        """Duração da fase de discagem; símbolos desconhecidos mantêm só o intervalo"""
        known = sum(1 for c in dialed_number if c in TONE_TABLE)
        return known * self.DIAL_TONE + len(dialed_number) * self.INTER_DIGIT_GAP


@dataclass(frozen=True)
class SendRequest:
    account: str
    dialed_number: str
    zone: str
    category: EventCategory


# ======================= CALLBACK PROTOCOLS =======================


class DiagnosticSink(Protocol):
    """Callbacks para eventos da transmissão"""

    def on_message_composed(self, message: ContactIDMessage) -> None: ...
    def on_unknown_symbol(self, symbol: str, phase: str) -> None: ...
    def on_state_changed(self, old_state: TxState, new_state: TxState) -> None: ...
    def on_completed(self, message: ContactIDMessage) -> None: ...
    def on_error(self, error: BaseException) -> None: ...


class CompositeDiagnostics:
    """Repassa cada evento para vários sinks"""

    def __init__(self, *sinks: DiagnosticSink):
        self.sinks = list(sinks)

    def on_message_composed(self, message: ContactIDMessage) -> None:
        for s in self.sinks:
            s.on_message_composed(message)

    def on_unknown_symbol(self, symbol: str, phase: str) -> None:
        for s in self.sinks:
            s.on_unknown_symbol(symbol, phase)

    def on_state_changed(self, old_state: TxState, new_state: TxState) -> None:
        for s in self.sinks:
            s.on_state_changed(old_state, new_state)

    def on_completed(self, message: ContactIDMessage) -> None:
        for s in self.sinks:
            s.on_completed(message)

    def on_error(self, error: BaseException) -> None:
        for s in self.sinks:
            s.on_error(error)


# ======================= ORCHESTRATOR =======================


class TransmissionOrchestrator:
    """Discagem ao vivo, espera fixa e reprodução do buffer Contact-ID.

    Só uma transmissão por vez: pedidos fora de IDLE são rejeitados com
    TransmissionConflictError. Cada chamada ao dispositivo é um ponto de
    suspensão onde o cancelamento é observado.
    """

    def __init__(self, device: AudioOutput, sink: DiagnosticSink | None = None):
        self.device = device
        self.sink = sink or RichDiagnostics()
        self.timers = CIDTimers()
        self.state = TxState.IDLE
        self._task: asyncio.Task | None = None
        self._logger = logging.getLogger("tinycid.fsm.orchestrator")

    @property
    def is_busy(self) -> bool:
        return self.state != TxState.IDLE

    def _transition_to(self, new_state: TxState) -> None:
        """Transição de estado com logging"""
        old_state = self.state
        if old_state == new_state:
            return
        self.state = new_state
        self._logger.debug(f"State transition: {old_state.value} -> {new_state.value}")
        self.sink.on_state_changed(old_state, new_state)

    async def send(self, request: SendRequest) -> ContactIDMessage:
        """Executa uma transmissão completa; retorna a mensagem enviada"""
        if self.state != TxState.IDLE:
            raise TransmissionConflictError(
                f"Transmission already in progress (state {self.state.value})"
            )
        # Ocupa o dispositivo antes do primeiro ponto de suspensão
        self._transition_to(TxState.DIALING)

        try:
            message = encode(request.account, request.category, request.zone)
        except Exception as e:
            self.sink.on_error(e)
            self._transition_to(TxState.IDLE)
            raise

        self.sink.on_message_composed(message)
        panel = Panel(
            f"📞 Dialing: {request.dialed_number}\n📟 Message: {message.symbols}",
            title="[bold green]Transmission Started",
            border_style="green",
        )
        logger.info(panel)

        # A transmissão roda numa task própria: cancel() não atinge o chamador
        task = asyncio.create_task(self._transmit(request.dialed_number, message))
        task.add_done_callback(self._on_task_done)
        self._task = task
        await task
        return message

    async def _transmit(self, dialed_number: str, message: ContactIDMessage) -> None:
        try:
            if not self.device.is_active:
                raise AudioDeviceUnavailable("Audio output not resumed")
            await self._dial(dialed_number)

            self._transition_to(TxState.WAITING_PRE_TRANSMIT)
            await self.device.play_silence(self.timers.PRE_TRANSMIT_DELAY)

            self._transition_to(TxState.TRANSMITTING)
            buffer = render_sequence(
                message.symbols,
                self.timers.CID_TONE,
                self.timers.CID_PAUSE,
                self.device.sample_rate,
                on_unknown=lambda s: self.sink.on_unknown_symbol(s, "rendering"),
            )
            await self.device.play(buffer)
        except BaseException as e:
            # CancelledError incluído: parar áudio antes de devolver o controle
            await self._abort(e)
            raise

        self._transition_to(TxState.DONE)
        self.sink.on_completed(message)
        self._transition_to(TxState.IDLE)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
        if self.state != TxState.IDLE:
            # Cancelada antes do primeiro passo: nenhum tom foi tocado
            self._transition_to(TxState.ABORTED)
            self.sink.on_error(asyncio.CancelledError())
            self._transition_to(TxState.IDLE)

    async def _dial(self, dialed_number: str) -> None:
        for symbol in dialed_number:
            self._transition_to(TxState.DIALING)
            pair = TONE_TABLE.lookup(symbol)
            if pair is None:
                self.sink.on_unknown_symbol(symbol, "dialing")
            else:
                await self.device.play_realtime_tone(pair, self.timers.DIAL_TONE)
            self._transition_to(TxState.INTER_DIGIT_GAP)
            await self.device.play_silence(self.timers.INTER_DIGIT_GAP)

    async def _abort(self, error: BaseException) -> None:
        self._transition_to(TxState.ABORTED)
        try:
            await asyncio.shield(self.device.stop())
        except Exception as stop_error:
            self._logger.error(f"Error stopping audio output: {stop_error}")
        finally:
            if isinstance(error, asyncio.CancelledError):
                self._logger.info("Transmission cancelled")
            self.sink.on_error(error)
            self._transition_to(TxState.IDLE)

    def cancel(self) -> bool:
        """Cancela a transmissão em curso; retorna False se não houver nenhuma"""
        task = self._task
        if task is None or task.done() or task.cancelling():
            return False
        if self.state == TxState.ABORTED:
            return False
        task.cancel()
        return True
