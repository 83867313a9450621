import asyncio
import logging

import inquirer
from rich.console import Console
from rich.panel import Panel

from .config import NETWORKS, DEFAULT_NETWORK, WalletConfig
from .context import WalletContext
from .transactions import TransactionManager
from .stakes import StakeManager
from .accounts import AccountManager
from .cluster import ClusterManager
from .menus import MenuManager

# Configure logger
logger = logging.getLogger("stake_wallet.manager")


class StakeWalletApp:
    def __init__(self):
        self.console = Console()
        self.loop = asyncio.new_event_loop()
        self.ctx = None
        try:
            self.network = self.select_network()
            if not self.network:  # Handle cancellation during network selection
                raise KeyboardInterrupt

            self.config = WalletConfig.load(self.network)
            self.ctx = WalletContext.from_config(self.config)

            # Initialize managers
            self.transaction_manager = TransactionManager(self.ctx)
            self.stake_manager = StakeManager(self.ctx, self.transaction_manager)
            self.account_manager = AccountManager(self.ctx, self.transaction_manager)
            self.cluster_manager = ClusterManager(self.ctx)

            self.menu_manager = MenuManager(
                self.ctx,
                self.stake_manager,
                self.account_manager,
                self.cluster_manager,
                self.run_async,
                self.console
            )
        except (KeyboardInterrupt, EOFError):
            self.close()
            raise
        except Exception as e:
            self.console.print(f"[red]Initialization error: {str(e)}[/red]")
            logger.error(f"Initialization failed: {str(e)}")
            self.close()
            raise

    def run_async(self, coro):
        """Drive a coroutine to completion on the application's event loop"""
        return self.loop.run_until_complete(coro)

    def select_network(self):
        """Select network to connect to"""
        try:
            questions = [
                inquirer.List('network',
                              message="Select network to connect to",
                              choices=list(NETWORKS),
                              default=DEFAULT_NETWORK if DEFAULT_NETWORK in NETWORKS else None)
            ]
            answer = inquirer.prompt(questions)
            if not answer:
                return None
            return answer['network']
        except (KeyboardInterrupt, EOFError):
            return None

    def close(self):
        """Close the node connection and the event loop"""
        if self.loop.is_closed():
            return
        try:
            if self.ctx is not None:
                self.loop.run_until_complete(self.ctx.rpc.close())
        finally:
            self.loop.close()

    def run(self):
        """Run the application"""
        try:
            self.console.print(Panel.fit(
                f"Stake Wallet\n[cyan]{NETWORKS[self.network]['name']}[/cyan] · {self.ctx.pubkey}",
                style="bold magenta"
            ))
            self.menu_manager.main_menu()
        except (KeyboardInterrupt, EOFError):
            raise
        except Exception as e:
            self.console.print(f"[red]Runtime error: {str(e)}[/red]")
            raise
        finally:
            self.close()
