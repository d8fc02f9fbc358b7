"""TinyCID - Emulador de painel de alarme que transmite eventos Contact-ID em tons DTMF."""

__version__ = "0.1.0"
__author__ = "TinyCID Contributors"
__email__ = ""
__description__ = "A tiny Contact-ID alarm transmitter"

from tinycid.contactid import ContactIDMessage, EventCategory, encode
from tinycid.fsm import SendRequest, TransmissionOrchestrator, TxState

__all__ = [
    "__version__",
    "__author__",
    "__email__",
    "__description__",
    "ContactIDMessage",
    "EventCategory",
    "encode",
    "SendRequest",
    "TransmissionOrchestrator",
    "TxState",
]
