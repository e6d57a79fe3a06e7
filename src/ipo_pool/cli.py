"""
Command-line interface for the IPO Pool Tracker.

Provides commands for:
- settle: One-off settlement of a pool without touching the workbook
- new-ipo / update-ipo / delete-ipo / overview: Manage IPOs
- add-account / remove-account / import-accounts: Manage demat accounts
- add-participant / remove-participant / import-participants: Manage pools
- record-result: Record an allotment outcome for a pool
- report / export: Final report and CSV export
"""

import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import NoReturn, Optional

import click

from ipo_pool.analytics import (
    account_summary,
    ipo_overview,
    participant_breakdown,
    summarize_ipo,
    workbook_totals,
)
from ipo_pool.config import ConfigurationError, load_ipo_config, load_settings
from ipo_pool.data import (
    DataLoadError,
    WorkbookStore,
    load_demat_accounts,
    load_participants,
    save_account_summary,
    save_participant_report,
)
from ipo_pool.logging import DecisionLogger, get_logger
from ipo_pool.models import AllotmentOutcome, IPOLotTerms, IPORecord, Workbook
from ipo_pool.pools import (
    ResultError,
    RosterError,
    WorkbookError,
    account_total,
    add_account,
    add_ipo,
    add_participant,
    delete_ipo,
    find_account,
    find_ipo_by_name,
    get_ipo,
    record_result,
    remove_account,
    remove_participant,
    replace_ipo,
    update_ipo_details,
)
from ipo_pool.settlement import InvalidInputError, settle, settlement_breakdown


class AppContext:
    """Workbook store and decision logger shared by all commands."""

    def __init__(self, store: WorkbookStore, logger: DecisionLogger,
                 default_commission_rate: Decimal = Decimal("0")):
        self.store = store
        self.logger = logger
        self.default_commission_rate = default_commission_rate

    def load(self) -> Workbook:
        try:
            return self.store.load()
        except DataLoadError as e:
            _fail(f"Error loading workbook: {e}")

    def save(self, workbook: Workbook) -> None:
        self.store.save(workbook)


pass_app = click.make_pass_decorator(AppContext)


def _fail(message: str) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(1)


def _money(amount: Decimal) -> str:
    return f"₹{amount:,.2f}"


def _signed(amount: Decimal) -> str:
    sign = "+" if amount >= 0 else "-"
    return f"{sign}₹{abs(amount):,.2f}"


def _resolve_ipo(workbook: Workbook, ref: str) -> IPORecord:
    """Find an IPO by id or by name."""
    try:
        return get_ipo(workbook, ref)
    except WorkbookError:
        ipo = find_ipo_by_name(workbook, ref)
        if ipo is None:
            _fail(f"Unknown IPO: {ref}")
        return ipo


def _resolve_account_id(workbook: Workbook, ref: str) -> str:
    """Find a demat account id by id or by account name."""
    account = find_account(workbook.demat_accounts, ref)
    if account is None:
        for candidate in workbook.demat_accounts:
            if candidate.account_name.lower() == ref.strip().lower():
                account = candidate
                break
    if account is None:
        _fail(f"Unknown demat account: {ref}")
    return account.account_id


@click.group()
@click.version_option(version="0.1.0", prog_name="ipo-pool")
@click.option(
    "--workbook", "-w",
    type=click.Path(dir_okay=False),
    default=None,
    help="Workbook JSON file. Defaults to <data_dir>/workbook.json.",
)
@click.option(
    "--settings", "-s",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML file. Defaults to config/settings.yaml.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, workbook: Optional[str], settings: Optional[str], verbose: bool):
    """
    IPO Pool Tracker.

    Track pooled IPO applications across demat accounts, record allotment
    results and split the returns among participants.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        app_settings = load_settings(settings_file=settings)
    except ConfigurationError as e:
        _fail(f"Error loading settings: {e}")

    workbook_path = Path(workbook) if workbook else app_settings.workbook_path
    log_path = workbook_path.parent / app_settings.decision_log_file

    ctx.obj = AppContext(
        store=WorkbookStore(workbook_path),
        logger=get_logger(log_path),
        default_commission_rate=app_settings.default_commission_rate,
    )


@main.command("settle")
@click.option("--total", "-t", required=True, type=str, help="Pool total contribution")
@click.option("--lot-price", "-l", required=True, type=str, help="Price of one lot")
@click.option("--shares-per-lot", "-n", required=True, type=int, help="Shares in one lot")
@click.option(
    "--allotted/--not-allotted",
    default=True,
    help="Whether the pool was allotted (default: allotted)",
)
@click.option("--selling-price", "-p", type=str, default=None, help="Per-share selling price")
@click.option("--commission-rate", "-c", type=str, default="0", help="Commission on profit, in percent")
def settle_command(
    total: str,
    lot_price: str,
    shares_per_lot: int,
    allotted: bool,
    selling_price: Optional[str],
    commission_rate: str,
):
    """
    Settle a single pool and print the breakdown.

    Does not read or write the workbook.
    """
    try:
        terms = IPOLotTerms.create(Decimal(lot_price), shares_per_lot)
        outcome = AllotmentOutcome(
            is_allotted=allotted,
            selling_price=Decimal(selling_price) if selling_price is not None else None,
            commission_rate_pct=Decimal(commission_rate),
        )
        result = settle(Decimal(total), terms, outcome)
    except InvalidInputError as e:
        _fail(f"Invalid input: {e}")
    except ArithmeticError:
        _fail("Invalid input: amounts must be numbers")

    click.echo("Settlement:")
    if result.is_allotted:
        breakdown = settlement_breakdown(
            Decimal(total), terms, outcome.selling_price, outcome.commission_rate_pct
        )
        click.echo(f"  Lots won:          {breakdown.lots_won}")
        click.echo(f"  Shares won:        {breakdown.shares_won}")
        click.echo(f"  Used investment:   {_money(breakdown.used_investment)}")
        click.echo(f"  Refunded:          {_money(breakdown.unused_remainder)}")
        click.echo(f"  Sale value:        {_money(breakdown.sale_value)}")
        click.echo(f"  Gross profit:      {_signed(breakdown.gross_profit)}")
    else:
        click.echo("  Not allotted: full refund")
    click.echo(f"  Commission:        {_money(result.commission_deducted)}")
    click.echo(f"  Final amount:      {_money(result.final_amount)}")


@main.command("new-ipo")
@click.option("--name", "-n", type=str, default=None, help="IPO name (default: IPO <n>)")
@click.option("--lot-price", "-l", type=str, default=None, help="Price of one lot")
@click.option("--shares-per-lot", "-s", type=int, default=None, help="Shares in one lot")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="IPO definition YAML file (overrides the other options)",
)
@pass_app
def new_ipo(app: AppContext, name: Optional[str], lot_price: Optional[str],
            shares_per_lot: Optional[int], config: Optional[str]):
    """Add a new IPO to the workbook."""
    workbook = app.load()

    if config:
        try:
            details = load_ipo_config(config)
        except ConfigurationError as e:
            _fail(f"Error loading config: {e}")
        app.logger.log_config_loaded(details, config)
        name, terms = details.name, details.lot_terms
    else:
        try:
            terms = IPOLotTerms.create(
                Decimal(lot_price) if lot_price else Decimal("0"),
                shares_per_lot or 0,
            )
        except ArithmeticError:
            _fail(f"Invalid lot price: {lot_price}")

    workbook, ipo = add_ipo(workbook, name=name, lot_terms=terms)
    app.save(workbook)
    app.logger.log_ipo_created(ipo)

    click.echo(f"Created {ipo.details.name} ({ipo.ipo_id})")
    click.echo(f"  Lot price:      {_money(terms.lot_price)}")
    click.echo(f"  Shares per lot: {terms.shares_per_lot}")
    click.echo(f"  Issue price:    {_money(terms.issue_price)}")


@main.command("update-ipo")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.option("--name", "-n", type=str, default=None, help="New name")
@click.option("--lot-price", "-l", type=str, default=None, help="New lot price")
@click.option("--shares-per-lot", "-s", type=int, default=None, help="New shares per lot")
@pass_app
def update_ipo(app: AppContext, ipo_ref: str, name: Optional[str],
               lot_price: Optional[str], shares_per_lot: Optional[int]):
    """Edit an IPO's name or lot terms. The issue price is recomputed."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    try:
        new_price = Decimal(lot_price) if lot_price is not None else None
    except ArithmeticError:
        _fail(f"Invalid lot price: {lot_price}")

    workbook = update_ipo_details(
        workbook, ipo.ipo_id, name=name, lot_price=new_price, shares_per_lot=shares_per_lot
    )
    app.save(workbook)

    details = get_ipo(workbook, ipo.ipo_id).details
    app.logger.log_ipo_updated(ipo.ipo_id, details)
    click.echo(
        f"Updated {details.name}: lot price {_money(details.lot_terms.lot_price)}, "
        f"{details.lot_terms.shares_per_lot} shares/lot, "
        f"issue price {_money(details.lot_terms.issue_price)}"
    )


@main.command("delete-ipo")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.confirmation_option(prompt="Delete this IPO with its participants and results?")
@pass_app
def delete_ipo_command(app: AppContext, ipo_ref: str):
    """Delete an IPO with its participants and results."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    app.save(delete_ipo(workbook, ipo.ipo_id))
    app.logger.log_ipo_deleted(ipo)
    click.echo(f"{ipo.details.name or 'IPO'} has been deleted.")


@main.command("overview")
@pass_app
def overview(app: AppContext):
    """List all IPOs with their status and totals."""
    workbook = app.load()

    if not workbook.ipos:
        click.echo('No IPOs added yet. Use "ipo-pool new-ipo" to get started.')
        return

    for row in ipo_overview(workbook.ipos):
        click.echo(
            f"{row['name']:<24} {row['status']:<16} "
            f"participants={row['participant_count']:<4} "
            f"investment={_money(row['total_investment'])} "
            f"shares={row['total_shares']:,.2f} "
            f"results={row['results_count']}"
        )

    totals = workbook_totals(workbook)
    click.echo()
    click.echo(f"IPOs: {totals['ipo_count']}  Accounts: {totals['account_count']}")
    click.echo(f"Participants: {totals['total_participants']}  Results: {totals['total_results']}")
    click.echo(f"Total investment: {_money(totals['total_investment'])}")


@main.command("add-account")
@click.option("--name", "-n", required=True, help="Account name")
@click.option("--owner", "-o", required=True, help="Account owner")
@click.option("--commission-rate", "-c", type=str, default=None,
              help="Commission on profit, in percent (default from settings)")
@pass_app
def add_account_command(app: AppContext, name: str, owner: str, commission_rate: Optional[str]):
    """Add a demat account."""
    workbook = app.load()

    try:
        rate = (
            Decimal(commission_rate)
            if commission_rate is not None
            else app.default_commission_rate
        )
    except ArithmeticError:
        _fail(f"Invalid commission rate: {commission_rate}")

    try:
        workbook, account = add_account(workbook, name, owner, rate)
    except RosterError as e:
        _fail(f"Error adding account: {e}")

    app.save(workbook)
    app.logger.log_account_added(account)
    click.echo(f"{account.account_name} has been added ({account.account_id}).")


@main.command("remove-account")
@click.option("--account", "-a", "account_ref", required=True, help="Account id or name")
@pass_app
def remove_account_command(app: AppContext, account_ref: str):
    """Remove a demat account that has no participants."""
    workbook = app.load()
    account_id = _resolve_account_id(workbook, account_ref)

    try:
        workbook = remove_account(workbook, account_id)
    except RosterError as e:
        _fail(f"Cannot delete: {e}")

    app.save(workbook)
    app.logger.log_account_removed(account_id)
    click.echo("Demat account has been removed.")


@main.command("import-accounts")
@click.argument("csv_file", type=click.Path(exists=True))
@pass_app
def import_accounts(app: AppContext, csv_file: str):
    """Import demat accounts from a CSV file."""
    workbook = app.load()

    try:
        imported = load_demat_accounts(csv_file)
        for account in imported:
            workbook, added = add_account(
                workbook, account.account_name, account.owner_name, account.commission_rate
            )
            app.logger.log_account_added(added)
    except (DataLoadError, RosterError) as e:
        _fail(f"Error importing accounts: {e}")

    app.save(workbook)
    click.echo(f"Imported {len(imported)} demat accounts.")


@main.command("add-participant")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.option("--name", "-n", required=True, help="Participant name")
@click.option("--amount", "-m", required=True, type=str, help="Investment amount")
@click.option("--account", "-a", "account_ref", required=True, help="Demat account id or name")
@pass_app
def add_participant_command(app: AppContext, ipo_ref: str, name: str, amount: str, account_ref: str):
    """Add a participant to an IPO's pool in a demat account."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)
    account_id = _resolve_account_id(workbook, account_ref)

    try:
        investment = Decimal(amount)
    except ArithmeticError:
        _fail(f"Invalid amount: {amount}")

    try:
        participants, participant = add_participant(
            list(ipo.participants), workbook.demat_accounts, name, investment, account_id
        )
    except RosterError as e:
        _fail(f"Error adding participant: {e}")

    app.save(replace_ipo(workbook, ipo.with_participants(participants)))
    app.logger.log_participant_added(ipo.ipo_id, participant)
    click.echo(f"{participant.name} has been added ({participant.participant_id}).")


@main.command("remove-participant")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.option("--participant", "-p", "participant_id", required=True, help="Participant id")
@pass_app
def remove_participant_command(app: AppContext, ipo_ref: str, participant_id: str):
    """Remove a participant. Recorded results keep their snapshot."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    try:
        participants = remove_participant(list(ipo.participants), participant_id)
    except RosterError as e:
        _fail(f"Error removing participant: {e}")

    app.save(replace_ipo(workbook, ipo.with_participants(participants)))
    app.logger.log_participant_removed(ipo.ipo_id, participant_id)
    click.echo("Participant has been removed.")


@main.command("import-participants")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.argument("csv_file", type=click.Path(exists=True))
@pass_app
def import_participants(app: AppContext, ipo_ref: str, csv_file: str):
    """Import participants into an IPO from a CSV file."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    try:
        imported = load_participants(csv_file, workbook.demat_accounts)
        participants = list(ipo.participants)
        for row in imported:
            participants, added = add_participant(
                participants,
                workbook.demat_accounts,
                row.name,
                row.investment_amount,
                row.demat_account_id,
            )
            app.logger.log_participant_added(ipo.ipo_id, added)
    except (DataLoadError, RosterError) as e:
        _fail(f"Error importing participants: {e}")

    app.save(replace_ipo(workbook, ipo.with_participants(participants)))
    click.echo(f"Imported {len(imported)} participants into {ipo.details.name}.")


@main.command("record-result")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.option("--account", "-a", "account_ref", required=True, help="Demat account id or name")
@click.option(
    "--status",
    type=click.Choice(["allotted", "not-allotted"], case_sensitive=False),
    required=True,
    help="Allotment status",
)
@click.option("--selling-price", "-p", type=str, default=None, help="Per-share selling price")
@pass_app
def record_result_command(app: AppContext, ipo_ref: str, account_ref: str,
                          status: str, selling_price: Optional[str]):
    """
    Record the allotment result of a pool.

    Recording again for the same account replaces the earlier result.
    """
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)
    account = find_account(workbook.demat_accounts, _resolve_account_id(workbook, account_ref))
    allotted = status.lower() == "allotted"

    if allotted and selling_price is None:
        _fail("Missing information: a selling price is required when allotted.")

    try:
        price = Decimal(selling_price) if selling_price is not None else None
    except ArithmeticError:
        _fail(f"Invalid selling price: {selling_price}")

    try:
        updated, result = record_result(ipo, account, allotted, price)
    except (ResultError, InvalidInputError) as e:
        _fail(f"Error recording result: {e}")

    pool_total = account_total(ipo.participants, account.account_id)
    app.save(replace_ipo(workbook, updated))
    app.logger.log_result_recorded(ipo.ipo_id, result, pool_total)

    click.echo(f"IPO result for {account.account_name} has been recorded.")
    click.echo(f"  Status:       {'Allotted' if result.is_allotted else 'Not Allotted'}")
    click.echo(f"  Investment:   {_money(pool_total)}")
    click.echo(f"  Commission:   {_money(result.commission_deducted)}")
    click.echo(f"  Final amount: {_money(result.final_amount)}")
    click.echo(f"  Profit/Loss:  {_signed(result.final_amount - pool_total)}")


@main.command("report")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@pass_app
def report(app: AppContext, ipo_ref: str):
    """Print the final report of an IPO."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    try:
        summary = summarize_ipo(ipo)
        rows = participant_breakdown(ipo, workbook.demat_accounts)
    except InvalidInputError as e:
        _fail(f"Error building report: {e}")

    terms = ipo.details.lot_terms
    click.echo(f"IPO Summary - {ipo.details.name}")
    click.echo(f"  Lot price: {_money(terms.lot_price)}  Shares/lot: {terms.shares_per_lot}  "
               f"Issue price: {_money(terms.issue_price)}  "
               f"Lots applied: {summary['total_lots_applied']}")
    click.echo(f"  Total investment: {_money(summary['total_investment'])}")
    click.echo(f"  Total returns:    {_money(summary['total_returns'])}")
    click.echo(f"  Net profit/loss:  {_signed(summary['net_profit'])}")
    click.echo(f"  Commission paid:  {_money(summary['total_commission'])}")
    click.echo(f"  Allotted accounts: {summary['allotted_count']}  "
               f"Non-allotted accounts: {summary['not_allotted_count']}")

    click.echo()
    if not rows:
        click.echo("No results available yet. Record IPO results to see individual breakdowns.")
        return

    click.echo("Individual Participant Returns:")
    for row in rows:
        click.echo(
            f"  {row.participant_name:<20} {_money(row.investment_amount):>16} "
            f"{row.account_name:<16} {row.status:<13} "
            f"{_money(row.individual_return):>16} {_signed(row.individual_profit):>16} "
            f"{row.return_pct:+.2f}%"
        )


@main.command("export")
@click.option("--ipo", "-i", "ipo_ref", required=True, help="IPO id or name")
@click.option(
    "--output-dir", "-o",
    type=click.Path(),
    default="output",
    help="Output directory",
)
@pass_app
def export(app: AppContext, ipo_ref: str, output_dir: str):
    """Export the participant returns and account summary as CSV."""
    workbook = app.load()
    ipo = _resolve_ipo(workbook, ipo_ref)

    try:
        rows = participant_breakdown(ipo, workbook.demat_accounts)
        summary_rows = account_summary(ipo, workbook.demat_accounts)
    except InvalidInputError as e:
        _fail(f"Error building report: {e}")

    out_dir = Path(output_dir)
    slug = (ipo.details.name or "report").strip().replace(" ", "-").lower()

    report_path = save_participant_report(rows, out_dir / f"ipo-final-report-{slug}.csv")
    summary_path = save_account_summary(summary_rows, out_dir / f"ipo-account-summary-{slug}.csv")
    app.logger.log_report_exported(ipo.ipo_id, report_path, len(rows))

    click.echo(f"  Participant report saved: {report_path}")
    click.echo(f"  Account summary saved:    {summary_path}")


if __name__ == "__main__":
    main()
