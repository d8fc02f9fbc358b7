import logging
from dataclasses import dataclass, field

from tinycid.contactid import ContactIDMessage, EventCategory
from tinycid.fsm import CompositeDiagnostics, SendRequest, TransmissionOrchestrator
from tinycid.logging_utils import RichCIDLogger, RichDiagnostics, console
from tinycid.media.audio import AudioDevice, AudioOutput, WavFileOutput
from tinycid.timeline import TransmissionTimeline


@dataclass
class PanelConfig:
    """Dados de entrada do painel de alarme"""

    account: str
    dialed_number: str
    zone: str = field(default="1")
    sample_rate: int = field(default=8000)
    wav_path: str | None = field(default=None)  # None = alto-falante (PyAudio)


class ContactIDTransmitter:
    """Painel de alarme emulado: ativação do áudio e envio de eventos"""

    def __init__(self, config: PanelConfig, device: AudioOutput | None = None):
        self.cfg = config
        if device is None:
            if config.wav_path:
                device = WavFileOutput(config.wav_path, config.sample_rate)
            else:
                device = AudioDevice(config.sample_rate)
        self.device = device
        self.timeline = TransmissionTimeline()
        self._orchestrator = TransmissionOrchestrator(
            self.device, CompositeDiagnostics(RichDiagnostics(), self.timeline)
        )
        self._logger = RichCIDLogger("ContactIDTransmitter")
        self._std_logger = logging.getLogger("ContactIDTransmitter")

    @property
    def orchestrator(self) -> TransmissionOrchestrator:
        return self._orchestrator

    def start(self):
        """Ativa a saída de áudio (equivale ao gesto do usuário)"""
        self.device.resume()
        self._logger.log_success("Audio output active")

    async def send(self, category: EventCategory) -> ContactIDMessage:
        """Envia um evento usando conta, número e zona da configuração"""
        self._logger.log_info(f"Sending {category.description.lower()} event...", style="bold")
        if not self._orchestrator.is_busy:
            # nova linha do tempo por transmissão
            self.timeline = TransmissionTimeline()
            self._orchestrator.sink = CompositeDiagnostics(RichDiagnostics(), self.timeline)
        request = SendRequest(
            account=self.cfg.account,
            dialed_number=self.cfg.dialed_number,
            zone=self.cfg.zone,
            category=category,
        )
        return await self._orchestrator.send(request)

    async def send_medical(self) -> ContactIDMessage:
        return await self.send(EventCategory.MEDICAL)

    async def send_police(self) -> ContactIDMessage:
        return await self.send(EventCategory.POLICE)

    def cancel(self) -> bool:
        """Cancela a transmissão em curso"""
        cancelled = self._orchestrator.cancel()
        if cancelled:
            self._std_logger.info("Cancellation requested")
        return cancelled

    def close(self):
        """Libera o dispositivo e mostra a linha do tempo"""
        self.device.close()
        if self.timeline.entries:
            console.print("\n📊 [bold cyan]Transmission Summary[/bold cyan]")
            self.timeline.render()
        self._logger.log_success("Transmitter closed")
