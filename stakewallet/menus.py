import logging
import time

import inquirer
from rich import print as rprint
from rich.panel import Panel
from rich.table import Table
from solders.signature import Signature

from .accounts import AccountCommand
from .cluster import ClusterCommand, VoteCommand
from .config import AIRDROP_LAMPORTS
from .exceptions import StakeWalletError, ValidationDenied, SubmissionRejected, ConfirmationError
from .stake_state import Delegated, Initialized, ACTIVE_STAKE_EPOCH_BOUND
from .stakes import StakeCommand
from .utils import (
    SolAmount, OptionalSolAmount, parse_pubkey, validate_address, lamports_to_sol, format_sol,
    short_signature, format_timestamp
)

logger = logging.getLogger("stake_wallet.menus")


def _valid_amount(_, x):
    try:
        SolAmount.parse(x)
        return True
    except StakeWalletError:
        return False


class MenuManager:
    def __init__(self, ctx, stake_manager, account_manager, cluster_manager, run, console):
        self.ctx = ctx
        self.stake_manager = stake_manager
        self.account_manager = account_manager
        self.cluster_manager = cluster_manager
        self.run = run  # drives a coroutine to completion on the app's event loop
        self.console = console

    def _with_spinner(self, message, coro):
        """Run an async operation behind a status spinner"""
        with self.console.status(f"[cyan]{message}[/cyan]"):
            return self.run(coro)

    def _ask(self, message, validate=None, default=None):
        question = inquirer.Text('value', message=message, validate=validate or (lambda _, x: True), default=default)
        answer = inquirer.prompt([question])
        if not answer:
            return None
        return answer['value']

    def _ask_address(self, message):
        value = self._ask(message, validate=lambda _, x: validate_address(x))
        return parse_pubkey(value) if value is not None else None

    def _ask_amount(self, message):
        value = self._ask(message, validate=_valid_amount)
        return SolAmount.parse(value) if value is not None else None

    def _ask_seed(self, message):
        return self._ask(message, validate=lambda _, x: 0 < len(x.strip().encode()) <= 32,
                         default=f"stake-{int(time.time())}")

    def _report_error(self, e):
        if isinstance(e, ValidationDenied):
            rprint(f"\n[red]Operation denied ({e.reason.value}): {str(e)}[/red]")
        elif isinstance(e, SubmissionRejected):
            rprint(f"\n[red]{str(e)}[/red]")
        elif isinstance(e, ConfirmationError):
            rprint(f"\n[yellow]{str(e)}[/yellow]")
            rprint("[yellow]You can check the status later with 'Confirm Transaction'.[/yellow]")
        else:
            rprint(f"\n[red]Error: {str(e)}[/red]")
        logger.warning(f"{type(e).__name__}: {str(e)}")

    def _explorer_link(self, signature):
        base = self.ctx.config.explorer_url
        if '?' in base:
            path, query = base.split('?', 1)
            return f"{path.rstrip('/')}/tx/{signature}?{query}"
        return f"{base.rstrip('/')}/tx/{signature}"

    # Stake menu

    def stake_menu(self):
        """Menu for stake account operations"""
        try:
            questions = [
                inquirer.List('command',
                              message="Select stake command",
                              choices=list(StakeCommand))
            ]
            answer = inquirer.prompt(questions)
            if not answer or answer['command'] is StakeCommand.GO_BACK:
                return

            command = answer['command']
            if command is StakeCommand.CREATE:
                amount = self._ask_amount("Enter Amount to Deposit (SOL)")
                seed = self._ask_seed("Enter Seed for the new stake account")
                if amount is None or seed is None:
                    return
                outcome = self._with_spinner(command.spinner_msg,
                                             self.stake_manager.create_stake_account(amount.to_lamports(), seed))
                self._show_outcome("Stake Account Created Successfully!", outcome,
                                   [f"Seed: {seed}", f"Amount: {amount.value} SOL"])

            elif command is StakeCommand.DELEGATE:
                stake = self._ask_address("Enter Stake Account Pubkey to Delegate")
                vote = self._ask_address("Enter Validator Vote Account Pubkey")
                if stake is None or vote is None:
                    return
                outcome = self._with_spinner(command.spinner_msg, self.stake_manager.delegate_stake(stake, vote))
                self._show_outcome("Stake Delegated Successfully!", outcome,
                                   [f"Vote Account: {vote}", "(Warmup takes effect from the next epoch)"])

            elif command is StakeCommand.DEACTIVATE:
                stake = self._ask_address("Enter Stake Account Pubkey to Deactivate")
                if stake is None:
                    return
                outcome = self._with_spinner(command.spinner_msg, self.stake_manager.deactivate_stake(stake))
                self._show_outcome("Stake Deactivated Successfully!", outcome,
                                   ["(Cooldown will take 1-2 epochs ≈ 2-4 days)"])

            elif command is StakeCommand.WITHDRAW:
                stake = self._ask_address("Enter Stake Account Pubkey to Withdraw from")
                recipient = self._ask_address("Enter Recipient Address")
                amount = self._ask_amount("Enter Amount to Withdraw (SOL)")
                if stake is None or recipient is None or amount is None:
                    return
                outcome = self._with_spinner(
                    command.spinner_msg,
                    self.stake_manager.withdraw_stake(stake, recipient, amount.to_lamports())
                )
                self._show_outcome("Stake Withdrawn Successfully!", outcome,
                                   [f"To Recipient: {recipient}", f"Amount: {amount.value} SOL"])

            elif command is StakeCommand.MERGE:
                destination = self._ask_address("Enter Destination Stake Account Pubkey")
                source = self._ask_address("Enter Source Stake Account Pubkey (will be closed)")
                if destination is None or source is None:
                    return
                outcome = self._with_spinner(command.spinner_msg,
                                             self.stake_manager.merge_stakes(destination, source))
                self._show_outcome("Stake Accounts Merged Successfully!", outcome, [f"Merged Source: {source}"])

            elif command is StakeCommand.SPLIT:
                stake = self._ask_address("Enter Stake Account Pubkey to Split")
                amount = self._ask_amount("Enter Amount to Split Off (SOL)")
                seed = self._ask_seed("Enter Seed for the new split account")
                if stake is None or amount is None or seed is None:
                    return
                outcome = self._with_spinner(command.spinner_msg,
                                             self.stake_manager.split_stake(stake, amount.to_lamports(), seed))
                self._show_outcome("Stake Split Successfully!", outcome,
                                   [f"From Stake Account: {stake}", f"Amount: {amount.value} SOL"])

            elif command is StakeCommand.SHOW:
                stake = self._ask_address("Enter Stake Account Pubkey to inspect")
                if stake is None:
                    return
                view = self._with_spinner(command.spinner_msg, self.stake_manager.show_stake_account(stake))
                self.display_stake_account(view)

            elif command is StakeCommand.HISTORY:
                stake = self._ask_address("Enter Stake Account Pubkey to view history")
                if stake is None:
                    return
                entries = self._with_spinner(command.spinner_msg, self.stake_manager.stake_history(stake))
                self.display_history(stake, entries)

        except KeyboardInterrupt:
            rprint("\n[yellow]Operation cancelled by user[/yellow]")
        except StakeWalletError as e:
            self._report_error(e)

    def _show_outcome(self, title, outcome, lines):
        body = [f"[green bold]{title}[/green bold]", f"[yellow]Stake Account: {outcome.stake_account}[/yellow]"]
        body.extend(f"[yellow]{line}[/yellow]" for line in lines)
        body.append(f"[cyan]Signature: {outcome.signature}[/cyan]")
        body.append(f"[dim]{self._explorer_link(outcome.signature)}[/dim]")
        rprint(Panel.fit("\n".join(body)))

    def display_stake_account(self, view):
        account = view.account
        state = account.state
        table = Table(title="Stake Account")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="yellow")
        table.add_row("Address", str(account.address))
        table.add_row("Balance", format_sol(account.lamports))
        table.add_row("State", type(state).__name__)
        table.add_row("Status", f"{view.status} (epoch {view.current_epoch})")
        if isinstance(state, (Initialized, Delegated)):
            table.add_row("Rent-Exempt Reserve", format_sol(state.meta.rent_exempt_reserve))
            table.add_row("Authorized Staker", str(state.authorized_staker))
            table.add_row("Authorized Withdrawer", str(state.authorized_withdrawer))
            if state.meta.lockup.epoch or state.meta.lockup.unix_timestamp:
                table.add_row("Lockup", f"epoch {state.meta.lockup.epoch}, "
                                        f"until {format_timestamp(state.meta.lockup.unix_timestamp)}, "
                                        f"custodian {state.meta.lockup.custodian}")
        if isinstance(state, Delegated):
            delegation = state.delegation
            table.add_row("Delegated Stake", format_sol(delegation.stake))
            table.add_row("Vote Account", str(delegation.voter_pubkey))
            table.add_row("Activation Epoch", str(delegation.activation_epoch))
            deactivation = ("-" if delegation.deactivation_epoch == ACTIVE_STAKE_EPOCH_BOUND
                            else str(delegation.deactivation_epoch))
            table.add_row("Deactivation Epoch", deactivation)
        self.console.print(table)

    def display_history(self, address, entries):
        if not entries:
            rprint("\n[yellow]No transaction history found for this account[/yellow]")
            return

        table = Table(title="STAKE ACCOUNT TRANSACTION HISTORY")
        table.add_column("Slot", style="cyan")
        table.add_column("Signature", style="yellow")
        table.add_column("Status")
        table.add_column("Block Time")
        for entry in entries:
            status = "[green]Success[/green]" if entry.succeeded else "[red]Failed[/red]"
            table.add_row(str(entry.slot), short_signature(entry.signature), status,
                          format_timestamp(entry.block_time))

        rprint(f"[cyan]Account: {address}[/cyan]")
        self.console.print(table)
        rprint(f"[dim]Showing last {len(entries)} transactions[/dim]")

    # Account menu

    def account_menu(self):
        """Menu for wallet account commands"""
        try:
            questions = [
                inquirer.List('command',
                              message="Select account command",
                              choices=list(AccountCommand))
            ]
            answer = inquirer.prompt(questions)
            if not answer or answer['command'] is AccountCommand.GO_BACK:
                return

            command = answer['command']
            if command is AccountCommand.BALANCE:
                address = self._ask("Enter address (leave empty for your wallet)",
                                    validate=lambda _, x: not x.strip() or validate_address(x))
                if address is None:
                    return
                target = parse_pubkey(address) if address.strip() else self.ctx.pubkey
                balance = self._with_spinner(command.description, self.account_manager.get_balance(target))
                rprint(f"[green]Balance of {target}: {lamports_to_sol(balance)} SOL[/green]")

            elif command is AccountCommand.TRANSFER:
                recipient = self._ask_address("Enter Recipient Address")
                amount = self._ask_amount("Enter Amount to Send (SOL)")
                if recipient is None or amount is None:
                    return
                confirm = inquirer.prompt([
                    inquirer.Confirm('confirm', message=f"Send {amount.value} SOL to {recipient}?", default=True)
                ])
                if not confirm or not confirm['confirm']:
                    rprint("[yellow]Transfer cancelled by user.[/yellow]")
                    return
                signature = self._with_spinner(command.description,
                                               self.account_manager.transfer(recipient, amount.to_lamports()))
                rprint(f"[green]Transfer successful![/green]\n[cyan]Signature: {signature}[/cyan]")

            elif command is AccountCommand.AIRDROP:
                text = self._ask(f"Enter Amount to Request (SOL, leave empty for {lamports_to_sol(AIRDROP_LAMPORTS)})",
                                 validate=lambda _, x: not x.strip() or _valid_amount(_, x))
                if text is None:
                    return
                amount = OptionalSolAmount.parse(text)
                lamports = AIRDROP_LAMPORTS if amount.is_empty() else amount.to_lamports()
                signature = self._with_spinner(command.description, self.account_manager.request_airdrop(lamports))
                rprint(f"[green bold]Airdrop requested successfully![/green bold] [cyan]Signature: {signature}[/cyan]")

            elif command is AccountCommand.CONFIRM_TRANSACTION:
                text = self._ask("Enter Transaction Signature")
                if not text:
                    return
                try:
                    signature = Signature.from_string(text.strip())
                except ValueError:
                    rprint(f"[red]Invalid signature: {text.strip()}[/red]")
                    return
                status = self._with_spinner(command.description, self.account_manager.confirm_transaction(signature))
                rprint(f"[cyan]Transaction {short_signature(signature)}: {status}[/cyan]")

            elif command is AccountCommand.LARGEST_ACCOUNTS:
                accounts = self._with_spinner(command.description, self.account_manager.largest_accounts())
                table = Table(title="Largest Accounts")
                table.add_column("Address", style="cyan")
                table.add_column("Balance (SOL)", style="green", justify="right")
                for address, lamports in accounts:
                    table.add_row(str(address), f"{lamports_to_sol(lamports):,.2f}")
                self.console.print(table)

            elif command is AccountCommand.NONCE_ACCOUNT:
                address = self._ask_address("Enter Nonce Account Pubkey")
                if address is None:
                    return
                nonce = self._with_spinner(command.description, self.account_manager.inspect_nonce_account(address))
                lines = [f"Address: {nonce.address}", f"Balance: {format_sol(nonce.lamports)}",
                         f"Initialized: {nonce.initialized}"]
                if nonce.initialized:
                    lines += [f"Authority: {nonce.authority}", f"Nonce: {nonce.durable_nonce}",
                              f"Fee: {nonce.lamports_per_signature} lamports per signature"]
                rprint(Panel.fit("\n".join(lines), title="Nonce Account"))

        except KeyboardInterrupt:
            rprint("\n[yellow]Operation cancelled by user[/yellow]")
        except StakeWalletError as e:
            self._report_error(e)

    # Cluster and vote menus

    def cluster_menu(self):
        """Menu for cluster queries"""
        try:
            answer = inquirer.prompt([
                inquirer.List('command', message="Select cluster command", choices=list(ClusterCommand))
            ])
            if not answer or answer['command'] is ClusterCommand.GO_BACK:
                return

            command = answer['command']
            if command is ClusterCommand.EPOCH_INFO:
                info = self._with_spinner("Fetching epoch info…", self.cluster_manager.epoch_info())
                progress = (info.slot_index / info.slots_in_epoch * 100) if info.slots_in_epoch else 0
                rprint(Panel.fit(
                    f"Epoch: {info.epoch}\n"
                    f"Slot: {info.slot_index}/{info.slots_in_epoch} ({progress:.1f}%)\n"
                    f"Absolute Slot: {info.absolute_slot}\n"
                    f"Block Height: {info.block_height}",
                    title="Epoch Info"
                ))
            elif command is ClusterCommand.CURRENT_SLOT:
                slot = self._with_spinner("Fetching current slot…", self.cluster_manager.current_slot())
                rprint(f"[cyan]Current slot: {slot}[/cyan]")
            elif command is ClusterCommand.BLOCK_HEIGHT:
                height = self._with_spinner("Fetching block height…", self.cluster_manager.block_height())
                rprint(f"[cyan]Block height: {height}[/cyan]")
            elif command is ClusterCommand.CLUSTER_VERSION:
                version = self._with_spinner("Fetching cluster version…", self.cluster_manager.cluster_version())
                rprint(f"[cyan]Solana core version: {version}[/cyan]")
            elif command is ClusterCommand.VALIDATORS:
                validators = self._with_spinner("Fetching validators…", self.cluster_manager.validators())
                self.display_validators(validators)
        except KeyboardInterrupt:
            rprint("\n[yellow]Operation cancelled by user[/yellow]")
        except StakeWalletError as e:
            self._report_error(e)

    def display_validators(self, validators, limit=25):
        table = Table(title=f"Validators (top {min(limit, len(validators))} of {len(validators)})")
        table.add_column("Vote Account", style="cyan")
        table.add_column("Identity", style="yellow")
        table.add_column("Active Stake (SOL)", justify="right")
        table.add_column("Commission", justify="right")
        table.add_column("Status")
        for validator in validators[:limit]:
            status = "[red]Delinquent[/red]" if validator.delinquent else "[green]Current[/green]"
            table.add_row(str(validator.vote_pubkey), str(validator.node_pubkey),
                          f"{lamports_to_sol(validator.activated_stake):,.0f}", f"{validator.commission}%", status)
        self.console.print(table)

    def vote_menu(self):
        """Menu for vote account queries"""
        try:
            answer = inquirer.prompt([
                inquirer.List('command', message="Select vote command", choices=list(VoteCommand))
            ])
            if not answer or answer['command'] is VoteCommand.GO_BACK:
                return

            vote = self._ask_address("Enter Vote Account Pubkey")
            if vote is None:
                return
            validator = self._with_spinner("Fetching vote account…", self.cluster_manager.vote_account(vote))
            self.display_validators([validator])
        except KeyboardInterrupt:
            rprint("\n[yellow]Operation cancelled by user[/yellow]")
        except StakeWalletError as e:
            self._report_error(e)

    def show_config(self):
        config = self.ctx.config
        rprint(Panel.fit(
            f"Network: {config.network}\n"
            f"RPC URL: {config.rpc_url}\n"
            f"Commitment: {config.commitment}\n"
            f"Keypair: {config.keypair_path}\n"
            f"Wallet: {self.ctx.pubkey}",
            title="Configuration"
        ))

    def main_menu(self):
        """Main application menu"""
        while True:
            try:
                questions = [
                    inquirer.List('action',
                                  message="Select a command group",
                                  choices=['Stake', 'Account', 'Cluster', 'Vote', 'Show Config', 'Exit'])
                ]
                answer = inquirer.prompt(questions)
                if not answer:
                    break

                if answer['action'] == 'Stake':
                    self.stake_menu()
                elif answer['action'] == 'Account':
                    self.account_menu()
                elif answer['action'] == 'Cluster':
                    self.cluster_menu()
                elif answer['action'] == 'Vote':
                    self.vote_menu()
                elif answer['action'] == 'Show Config':
                    self.show_config()
                elif answer['action'] == 'Exit':
                    break
            except KeyboardInterrupt:
                rprint("\n[yellow]Operation cancelled by user[/yellow]")
                continue
            except Exception as e:
                logger.exception("Unexpected error in main menu")
                rprint(f"\n[red]Error: {str(e)}[/red]")
                continue
