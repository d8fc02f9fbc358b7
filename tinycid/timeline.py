"""
Transmission timeline tracking and rendering
"""

import time
from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from tinycid.contactid import ContactIDMessage
from tinycid.fsm import TxState

console = Console()


def color_for(kind: str) -> str:
    k = kind.upper()
    if k.startswith("ERROR") or k == TxState.ABORTED.value:
        return "bold red"
    if k.startswith("UNKNOWN"):
        return "yellow"
    if k in {"COMPLETED", TxState.DONE.value}:
        return "bold green"
    if k in {TxState.DIALING.value, TxState.TRANSMITTING.value}:
        return "bold cyan"
    if k == "MESSAGE":
        return "green"
    return "white"


@dataclass
class TimelineEntry:
    """Entrada na linha do tempo de uma transmissão"""

    timestamp: str
    elapsed: float
    kind: str
    detail: str = ""


@dataclass
class TransmissionTimeline:
    """DiagnosticSink que registra cada evento com horário e tempo decorrido"""

    entries: list[TimelineEntry] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)
    message: ContactIDMessage | None = None

    def _add(self, kind: str, detail: str = "") -> None:
        timestamp = time.strftime("%H:%M:%S")
        self.entries.append(
            TimelineEntry(
                timestamp=timestamp,
                elapsed=time.monotonic() - self.start_time,
                kind=kind,
                detail=detail,
            )
        )

    def on_message_composed(self, message: ContactIDMessage) -> None:
        self.message = message
        self.start_time = time.monotonic()
        self._add("MESSAGE", message.symbols)

    def on_unknown_symbol(self, symbol: str, phase: str) -> None:
        self._add("UNKNOWN SYMBOL", f"{symbol!r} ({phase})")

    def on_state_changed(self, old_state: TxState, new_state: TxState) -> None:
        # o intervalo entre dígitos gera ruído demais na tabela
        if new_state == TxState.INTER_DIGIT_GAP:
            return
        if new_state == TxState.DIALING and old_state == TxState.INTER_DIGIT_GAP:
            return
        self._add(new_state.value)

    def on_completed(self, message: ContactIDMessage) -> None:
        self._add("COMPLETED", message.symbols)

    def on_error(self, error: BaseException) -> None:
        self._add("ERROR", f"{type(error).__name__}: {error}")

    @property
    def kinds(self) -> list[str]:
        return [e.kind for e in self.entries]

    def render(self, out: Console | None = None) -> None:
        """Renderiza a linha do tempo num painel"""
        out = out or console
        if not self.entries:
            out.print("📭 [yellow]Nenhum evento registrado[/yellow]")
            return

        lines = Text()
        for entry in self.entries:
            lines.append(f"{entry.timestamp}  +{entry.elapsed:7.3f}s  ", style="dim")
            lines.append(entry.kind.ljust(22), style=color_for(entry.kind))
            lines.append(f"{entry.detail}\n")

        title = "📟 Contact-ID Transmission"
        if self.message:
            title += f" - {self.message.symbols}"
        out.print(Panel(lines, title=title, border_style="cyan", expand=False))
