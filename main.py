import logging

from rich import print as rprint

from stakewallet.exceptions import StakeWalletError
from stakewallet.manager import StakeWalletApp

logger = logging.getLogger("stake_wallet.main")


def main():
    """Start the stake wallet and keep it running until the user exits"""
    try:
        app = StakeWalletApp()
        app.run()
    except (KeyboardInterrupt, EOFError):
        pass
    except StakeWalletError as e:
        rprint(f"\n[red]Error: {str(e)}[/red]")
    except Exception as e:
        logger.exception("Unhandled error in stake wallet")
        rprint(f"\n[red]Unexpected error: {str(e)}[/red]")
    finally:
        rprint("\n[green]Goodbye![/green]")

if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, EOFError):
        rprint("\n[yellow]Application terminated by user[/yellow]")
        rprint("\n[green]Goodbye![/green]")
    except Exception as e:
        rprint(f"\n[red]Fatal error: {str(e)}[/red]")
        rprint("\n[green]Goodbye![/green]")
