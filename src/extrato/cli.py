import os
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from extrato.db import get_connection, init_db
from extrato.errors import StatementError
from extrato.log import LEVEL_ENV_VAR, configure_logging
from extrato.models import (
    AccountType, CandidateTransaction, CategoryRule, Institution, MatchType, Source, TransactionType,
)
from extrato.parsing import parse_amount, parse_date, today_iso
from extrato.settings import DEFAULTS, get_db_path, load_settings, save_settings

app = typer.Typer(help="Extrato: import bank statements and categorize them with rules.", invoke_without_command=True)

console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
):
    """Extrato: import bank statements and categorize them with rules."""
    configure_logging(log_level or os.getenv(LEVEL_ENV_VAR) or load_settings()["log_level"])


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.command()
def init(
    data_dir: str = typer.Option(None, "--data-dir", help="Path for extrato data (default: ~/Documents/extrato)"),
):
    """Choose a data directory and initialize the database."""
    settings = load_settings()

    if data_dir:
        settings["data_dir"] = str(Path(data_dir).expanduser().resolve())
    elif settings == DEFAULTS:
        chosen = typer.prompt("Data directory", default=settings["data_dir"])
        settings["data_dir"] = str(Path(chosen).expanduser().resolve())

    save_settings(settings)

    resolved = Path(settings["data_dir"])
    resolved.mkdir(parents=True, exist_ok=True)
    (resolved / "imports").mkdir(exist_ok=True)

    conn = get_connection(get_db_path())
    init_db(conn)
    conn.close()

    typer.echo(f"Initialized extrato at {resolved}")


# --- Import ---

from extrato.importer import add_transaction, import_file


@app.command("import")
def import_cmd(
    file: Path = typer.Argument(exists=True, dir_okay=False, help="Path to a CSV or OFX statement"),
    institution: Institution = typer.Option(None, help="Bank that produced the file"),
    account_type: AccountType = typer.Option(None, help="checking or credit_card"),
):
    """Import a statement and auto-categorize its transactions."""
    import shutil

    settings = load_settings()
    institution = institution or Institution(settings["default_institution"])
    account_type = account_type or AccountType(settings["default_account_type"])

    conn = get_connection(get_db_path())
    try:
        result = import_file(conn, file, institution, account_type)
    except StatementError as exc:
        _fail(str(exc))
    finally:
        conn.close()

    typer.echo(
        f"{result['imported']} imported, {result['categorized']} categorized, "
        f"{result['pending']} pending review"
    )

    dest = get_db_path().parent / "imports" / file.name
    if dest.parent.is_dir() and not dest.exists():
        shutil.copy2(file, dest)


@app.command()
def add(
    description: str = typer.Argument(help="What the transaction was"),
    amount: str = typer.Argument(help="Amount, e.g. 23,50 or 1.234,56"),
    type: TransactionType = typer.Option(TransactionType.EXPENSE, help="income or expense"),
    date: str = typer.Option(None, help="Date, DD/MM/YYYY or YYYY-MM-DD (default: today)"),
    category: str = typer.Option("", help="Category to assign"),
    institution: str = typer.Option(None, help="Institution label"),
):
    """Add a transaction by hand. Rules still apply."""
    try:
        value = abs(parse_amount(amount))
    except ValueError:
        _fail(f"Invalid amount: {amount}")
    if value == 0:
        _fail("Amount must not be zero.")

    conn = get_connection(get_db_path())
    stored = add_transaction(conn, CandidateTransaction(
        date=parse_date(date) if date else today_iso(),
        description=description,
        amount=value,
        type=type,
        category=category,
        source=Source.MANUAL,
        institution=institution,
    ))
    conn.close()

    status = "pending review" if stored.is_pending else "confirmed"
    typer.echo(f"Added #{stored.id}: {stored.description} [{stored.category or 'uncategorized'}] {status}")


# --- Categorize ---

from extrato.categorizer import categorize_pending


@app.command()
def categorize():
    """Re-run categorization rules on pending transactions."""
    conn = get_connection(get_db_path())
    result = categorize_pending(conn)
    conn.close()
    typer.echo(f"{result['categorized']} categorized, {result['still_pending']} still pending")


# --- Pending / review ---

from extrato.reviewer import run_review
from extrato.store import (
    create_category, create_rule, delete_rule, get_categories, get_pending_transactions, get_rules,
)


@app.command()
def pending():
    """List transactions waiting for review."""
    conn = get_connection(get_db_path())
    rows = get_pending_transactions(conn)
    conn.close()

    if not rows:
        typer.echo("No pending transactions.")
        return

    table = Table(title=f"Pending Transactions ({len(rows)})")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Institution")
    table.add_column("Suggested")
    for t in rows:
        color = "red" if t.type == TransactionType.EXPENSE else "green"
        table.add_row(
            str(t.id), t.date, t.description, f"[{color}]R$ {t.amount:,.2f}[/{color}]",
            t.institution or "", t.category,
        )
    console.print(table)


@app.command()
def review():
    """Interactively review pending transactions."""
    conn = get_connection(get_db_path())
    run_review(conn)
    conn.close()


# --- Transactions ---

from extrato.store import delete_all_transactions, delete_transaction, get_transactions


@app.command("list")
def list_cmd():
    """List every transaction, newest first."""
    conn = get_connection(get_db_path())
    rows = get_transactions(conn)
    conn.close()

    if not rows:
        typer.echo("No transactions.")
        return

    table = Table(title=f"Transactions ({len(rows)})")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Category")
    table.add_column("Status")
    for t in rows:
        color = "red" if t.type == TransactionType.EXPENSE else "green"
        table.add_row(
            str(t.id), t.date, t.description, f"[{color}]R$ {t.amount:,.2f}[/{color}]",
            t.category, "pending" if t.is_pending else "confirmed",
        )
    console.print(table)


@app.command()
def delete(transaction_id: int = typer.Argument(help="Transaction ID")):
    """Delete a single transaction."""
    conn = get_connection(get_db_path())
    deleted = delete_transaction(conn, transaction_id)
    conn.close()
    if not deleted:
        _fail(f"Unknown transaction: {transaction_id}")
    typer.echo(f"Deleted transaction #{transaction_id}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
):
    """Delete every transaction. Rules and categories are kept."""
    if not yes:
        typer.confirm("Delete all transactions?", abort=True)
    conn = get_connection(get_db_path())
    count = delete_all_transactions(conn)
    conn.close()
    typer.echo(f"Deleted {count} transactions")


# --- Rules ---

rules_app = typer.Typer(help="Manage categorization rules.")
app.add_typer(rules_app, name="rules")


@rules_app.command("add")
def rules_add(
    term: str = typer.Argument(help="Text to match against transaction descriptions"),
    category: str = typer.Option(help="Category to assign"),
    match_type: MatchType = typer.Option(MatchType.CONTAINS, help="exact or contains"),
    institution: str = typer.Option(None, help="Only match transactions from this institution"),
    type: TransactionType = typer.Option(None, help="Only match income or expense"),
    auto_confirm: bool = typer.Option(True, "--auto-confirm/--needs-review", help="Skip review for matches"),
):
    """Add a categorization rule. New rules go last; earlier rules win."""
    conn = get_connection(get_db_path())
    rule = create_rule(conn, CategoryRule(
        term=term, category=category, match_type=match_type,
        auto_confirm=auto_confirm, institution=institution, type=type,
    ))
    create_category(conn, category)
    conn.close()
    typer.echo(f"Added rule #{rule.id}: '{term}' → {category}")


@rules_app.command("list")
def rules_list():
    """List categorization rules in match order."""
    conn = get_connection(get_db_path())
    rules = get_rules(conn)
    conn.close()

    table = Table(title="Rules")
    table.add_column("ID", style="dim")
    table.add_column("Term")
    table.add_column("Match")
    table.add_column("Category")
    table.add_column("Institution")
    table.add_column("Type")
    table.add_column("Auto")
    for r in rules:
        table.add_row(
            str(r.id), r.term, r.match_type.value, r.category,
            r.institution or "", r.type.value if r.type else "any",
            "yes" if r.auto_confirm else "no",
        )
    console.print(table)


@rules_app.command("delete")
def rules_delete(rule_id: int = typer.Argument(help="Rule ID")):
    """Delete a categorization rule."""
    conn = get_connection(get_db_path())
    deleted = delete_rule(conn, rule_id)
    conn.close()
    if not deleted:
        _fail(f"Unknown rule: {rule_id}")
    typer.echo(f"Deleted rule #{rule_id}")


# --- Categories ---

categories_app = typer.Typer(help="Manage the category list.")
app.add_typer(categories_app, name="categories")


@categories_app.command("add")
def categories_add(name: str = typer.Argument(help="Category name")):
    """Add a category."""
    conn = get_connection(get_db_path())
    create_category(conn, name)
    conn.close()
    typer.echo(f"Added category: {name}")


@categories_app.command("list")
def categories_list():
    """List categories."""
    conn = get_connection(get_db_path())
    names = get_categories(conn)
    conn.close()
    for name in names:
        typer.echo(name)


if __name__ == "__main__":
    app()
