"""
Contact-ID message encoding
Ademco Contact-ID: ACCT MT Q EEE GG ZZZ S
"""

import math
from dataclasses import dataclass, replace
from enum import Enum

MESSAGE_TYPE = "18"
QUALIFIER_NEW_EVENT = "1"
DEFAULT_GROUP = "01"
MESSAGE_LENGTH = 16

HEX_DIGITS = "0123456789ABCDEF"


class InvalidZoneFormatError(ValueError):
    """Zona não pode ser normalizada para 3 dígitos"""

    pass


class InvalidAccountError(ValueError):
    """Conta contém símbolos fora do alfabeto hexadecimal"""

    pass


class InvalidMessageError(ValueError):
    """Mensagem Contact-ID recebida com formato ou checksum inválido"""

    pass


class EventCategory(Enum):
    MEDICAL = "100"
    POLICE = "120"

    @property
    def code(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return _EVENT_DESCRIPTIONS[self.value]


_EVENT_DESCRIPTIONS = {
    "100": "Medical emergency",
    "120": "Police / panic",
}


def _symbol_value(symbol: str) -> int:
    # "0" is transmitted as value 10
    value = int(symbol, 16)
    return 10 if value == 0 else value


def calculate_checksum(body: str) -> str:
    """Return the checksum symbol that brings the body's digit sum to a multiple of 15.

    A checksum of value 10 yields "A", which has no entry in the tone table:
    it is transmitted as a silent block and reported as an unknown symbol.
    """
    total = sum(_symbol_value(c) for c in body)
    next_multiple = math.ceil(total / 15) * 15
    check = next_multiple - total
    return "F" if check == 0 else f"{check:X}"


def verify_checksum(message: str) -> bool:
    """True when the digit sum of a full message (checksum included) is a multiple of 15."""
    try:
        return sum(_symbol_value(c) for c in message) % 15 == 0
    except ValueError:
        return False


def format_zone(zone: str) -> str:
    """Left-pad a 1-3 digit zone to exactly 3 digits."""
    z = zone.strip()
    if not z or not z.isdecimal() or not z.isascii():
        raise InvalidZoneFormatError(f"Zone must be 1-3 decimal digits, got {zone!r}")
    if len(z) > 3:
        raise InvalidZoneFormatError(f"Zone must be at most 3 digits, got {zone!r}")
    return z.zfill(3)


def _check_account(account: str) -> None:
    if not account:
        raise InvalidAccountError("Account must not be empty")
    bad = [c for c in account if c.upper() not in HEX_DIGITS]
    if bad:
        raise InvalidAccountError(f"Account {account!r} has non-hex symbols: {''.join(bad)}")


@dataclass(frozen=True)
class ContactIDMessage:
    account: str
    event_code: str
    zone: str
    checksum: str
    group: str = DEFAULT_GROUP
    qualifier: str = QUALIFIER_NEW_EVENT
    message_type: str = MESSAGE_TYPE

    @property
    def body(self) -> str:
        return (
            f"{self.account}{self.message_type}{self.qualifier}"
            f"{self.event_code}{self.group}{self.zone}"
        )

    @property
    def symbols(self) -> str:
        return self.body + self.checksum

    @property
    def event_description(self) -> str:
        return _EVENT_DESCRIPTIONS.get(self.event_code, f"Event {self.event_code}")

    def __str__(self) -> str:
        return self.symbols

    def __len__(self) -> int:
        return len(self.symbols)

    @classmethod
    def parse(cls, text: str) -> "ContactIDMessage":
        """Parse a received 16-symbol message and validate its checksum"""
        raw = text.strip().upper()
        if len(raw) != MESSAGE_LENGTH:
            raise InvalidMessageError(f"Expected {MESSAGE_LENGTH} symbols, got {len(raw)}")
        if any(c not in HEX_DIGITS for c in raw):
            raise InvalidMessageError(f"Non-hex symbol in message {raw!r}")
        if not verify_checksum(raw):
            raise InvalidMessageError(f"Checksum mismatch in message {raw!r}")
        return cls(
            account=raw[0:4],
            message_type=raw[4:6],
            qualifier=raw[6],
            event_code=raw[7:10],
            group=raw[10:12],
            zone=raw[12:15],
            checksum=raw[15],
        )


def encode(account: str, category: EventCategory, zone: str) -> ContactIDMessage:
    """Build the Contact-ID message for an alarm event.

    The account is used verbatim (no padding or truncation); the zone is
    normalised with :func:`format_zone`.
    """
    _check_account(account)
    if not isinstance(category, EventCategory):
        raise TypeError(f"category must be an EventCategory, got {category!r}")
    zone_formatted = format_zone(zone)
    message = ContactIDMessage(
        account=account,
        event_code=category.code,
        zone=zone_formatted,
        checksum="",
    )
    return replace(message, checksum=calculate_checksum(message.body))
