"""
Módulo centralizado de logging com Rich para TinyCID
"""

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from tinycid.contactid import ContactIDMessage
    from tinycid.fsm import TxState

# Console global compartilhado
console = Console()


class RichConsoleHandler(logging.Handler):
    """Handler personalizado que usa Rich console diretamente"""

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console()

    def emit(self, record):
        """Emitir log usando Rich console"""
        try:
            # Objetos Rich são renderizados diretamente
            if isinstance(record.msg, Panel | Text) or hasattr(record.msg, "__rich__"):
                self.console.print(record.msg)
            elif record.levelno >= logging.WARNING:
                self.console.print(
                    Text(f"{record.levelname}: {record.getMessage()}", style="yellow")
                )
            else:
                self.console.print(record.getMessage())
        except Exception:
            self.handleError(record)


class RichCIDLogger:
    """Logger personalizado com Rich para transmissões Contact-ID"""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(name)

    def log_message_composed(self, message: "ContactIDMessage"):
        """Panel com a mensagem Contact-ID montada"""
        content = (
            f"📟 Message: {message.symbols}\n"
            f"👤 Account: {message.account}\n"
            f"🚨 Event: {message.event_code} ({message.event_description})\n"
            f"📍 Group/Zone: {message.group}/{message.zone}\n"
            f"🔢 Checksum: {message.checksum}"
        )
        panel = Panel(
            content,
            title="[bold green]Contact-ID Message Composed",
            title_align="left",
            border_style="green",
            expand=False,
        )
        self.logger.info(panel)

    def log_transition(self, old_state: "TxState", new_state: "TxState"):
        """Log de transição de estado"""
        text = Text()
        text.append("🔄 ", style="bold cyan")
        text.append(f"{old_state.value}", style="dim")
        text.append(" → ")
        text.append(f"{new_state.value}", style="bold blue")
        self.logger.debug(text)

    def log_unknown_symbol(self, symbol: str, phase: str):
        """Aviso de símbolo sem tom"""
        text = Text()
        text.append("⚠️ ", style="bold yellow")
        text.append(f"Unknown symbol {symbol!r} while {phase}: skipped", style="yellow")
        self.logger.warning(text)

    def log_error(self, error: BaseException, context: str | None = None):
        """Log de erro com panel"""
        title = "❌ ERROR"
        if context:
            title += f" in {context}"

        error_text = f"{type(error).__name__}: {str(error)}"
        panel = Panel(error_text, title=title, title_align="left", border_style="red", expand=False)
        self.logger.error(panel)

    def log_info(self, message: str, style: str = ""):
        """Log de informação simples"""
        self.logger.info(Text(message, style=style))

    def log_success(self, message: str):
        """Log de sucesso"""
        text = Text()
        text.append("✅ ", style="bold green")
        text.append(message, style="green")
        self.logger.info(text)


class RichDiagnostics:
    """DiagnosticSink que encaminha eventos da transmissão para o RichCIDLogger"""

    def __init__(self, name: str = "tinycid.diagnostics"):
        self._log = RichCIDLogger(name)

    def on_message_composed(self, message: "ContactIDMessage") -> None:
        self._log.log_message_composed(message)

    def on_unknown_symbol(self, symbol: str, phase: str) -> None:
        self._log.log_unknown_symbol(symbol, phase)

    def on_state_changed(self, old_state: "TxState", new_state: "TxState") -> None:
        self._log.log_transition(old_state, new_state)

    def on_completed(self, message: "ContactIDMessage") -> None:
        self._log.log_success(f"Contact-ID transmission completed: {message.symbols}")

    def on_error(self, error: BaseException) -> None:
        self._log.log_error(error, context="transmission")


# Função para configurar logging global
def setup_logging(level: str = "INFO") -> None:
    """Configura o sistema de logging global para TinyCID"""
    FORMAT = "%(message)s"
    logging.basicConfig(
        level=level,
        format=FORMAT,
        datefmt="[%X]",
        handlers=[RichConsoleHandler(console)],
        force=True,  # Força reconfiguração
    )
    logging.getLogger("tinycid").setLevel(level)


# Função para obter logger configurado
def get_logger(name: str) -> logging.Logger:
    """Retorna um logger configurado para o módulo"""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(RichConsoleHandler(console))
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
    return logger
