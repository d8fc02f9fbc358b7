#!/usr/bin/env python3
"""
Exemplo de painel de alarme enviando um evento Contact-ID

Este exemplo demonstra:
- Ativação do áudio por gesto do usuário (Enter)
- Discagem DTMF ao vivo do número da central
- Espera de atendimento (3.5 s)
- Transmissão da mensagem Contact-ID pré-renderizada
- Cancelamento com Ctrl+C
- Saída opcional para arquivo WAV (--wav)
"""

import argparse
import asyncio
import signal

from rich.panel import Panel
from rich.traceback import install

from tinycid.client import ContactIDTransmitter, PanelConfig
from tinycid.contactid import EventCategory
from tinycid.logging_utils import console, setup_logging
from tinycid.media.audio import AudioDeviceUnavailable

# Instalar Rich traceback para exceções mais bonitas
install(show_locals=True)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a Contact-ID alarm event as DTMF tones")
    parser.add_argument("--account", default="1234", help="4-digit account number")
    parser.add_argument("--dial", default="5551234", help="monitoring station phone number")
    parser.add_argument("--zone", default="1", help="zone number (1-3 digits)")
    parser.add_argument(
        "--event", choices=["medical", "police"], default="medical", help="event category"
    )
    parser.add_argument("--rate", type=int, default=8000, help="sample rate in Hz")
    parser.add_argument("--wav", default=None, help="write audio to this WAV file instead")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


async def main():
    """Função principal"""
    args = parse_args()
    setup_logging(level=args.log_level)

    console.print("\n🚨 [bold red]TinyCID[/bold red] - [bold]Contact-ID Panel Demo[/bold]")

    config = PanelConfig(
        account=args.account,
        dialed_number=args.dial,
        zone=args.zone,
        sample_rate=args.rate,
        wav_path=args.wav,
    )
    transmitter = ContactIDTransmitter(config)
    category = EventCategory.MEDICAL if args.event == "medical" else EventCategory.POLICE

    try:
        if not args.wav:
            input("\nPressione Enter para ativar o áudio...")
        transmitter.start()

        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, transmitter.cancel)

        message = await transmitter.send(category)
        console.print(f"✨ [green]Mensagem enviada:[/green] {message.symbols}")
    except asyncio.CancelledError:
        console.print("\n🛑 [yellow]Transmissão cancelada[/yellow]")
    except (AudioDeviceUnavailable, ValueError) as e:
        console.print(Panel(f"{type(e).__name__}: {str(e)}", title="💥 Error", border_style="red"))
    finally:
        transmitter.close()
        console.print("👋 [green]Demo finalizado[/green]")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\n🛑 [yellow]Interrompido pelo usuário[/yellow]")
    except EOFError:
        console.print("\n🛑 [yellow]Entrada fechada[/yellow]")
