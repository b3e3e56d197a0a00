import sqlite3

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.table import Table

from extrato.models import CategoryRule, MatchType, StoredTransaction, TransactionType
from extrato.store import (
    create_category, create_rule, get_categories, get_pending_transactions, get_transaction,
)

console = Console()


def confirm_transaction(
    conn: sqlite3.Connection,
    transaction_id: int,
    category: str,
    create_rule_from_it: bool = False,
) -> CategoryRule | None:
    """Set the category, clear the pending flag and optionally remember the choice as a rule.

    The rule is an exact, auto-confirming match on the description, scoped to
    the transaction's type. Returns the created rule, if any.
    """
    txn = get_transaction(conn, transaction_id)
    if txn is None:
        raise ValueError(f"Unknown transaction: {transaction_id}")

    conn.execute(
        "UPDATE transactions SET category = ?, is_pending = 0 WHERE id = ?",
        (category, transaction_id),
    )
    conn.commit()
    create_category(conn, category)

    if not create_rule_from_it:
        return None
    return create_rule(conn, CategoryRule(
        term=txn.description,
        category=category,
        match_type=MatchType.EXACT,
        auto_confirm=True,
        type=txn.type,
    ))


def _format_amount(txn: StoredTransaction) -> str:
    if txn.type == TransactionType.EXPENSE:
        return f"[red]-R$ {txn.amount:,.2f}[/red]"
    return f"[green]R$ {txn.amount:,.2f}[/green]"


def run_review(conn: sqlite3.Connection) -> None:
    """Interactive review loop for pending transactions."""
    pending = get_pending_transactions(conn)
    if not pending:
        console.print("[green]No pending transactions to review.[/green]")
        return

    categories = get_categories(conn)
    console.print(f"\n[bold]{len(pending)} transactions to review[/bold]\n")

    cat_table = Table(title="Categories", show_lines=False)
    cat_table.add_column("#", style="dim")
    cat_table.add_column("Name")
    for i, name in enumerate(categories, 1):
        cat_table.add_row(str(i), name)
    console.print(cat_table)
    console.print()

    for txn in pending:
        console.print(Rule())
        console.print(f"  [bold]Date:[/bold]        {txn.date}")
        console.print(f"  [bold]Description:[/bold] {txn.description}")
        console.print(f"  [bold]Amount:[/bold]      {_format_amount(txn)}")
        console.print(f"  [bold]Institution:[/bold] {txn.institution or txn.source.value}")
        if txn.category:
            console.print(f"  [bold]Suggested:[/bold]   {txn.category}")
        console.print()

        choice = Prompt.ask(
            "Category # or name (Enter keeps suggestion, [bold]s[/bold]kip, [bold]q[/bold]uit)",
            default=txn.category or "s",
            show_default=False,
        ).strip()

        if choice.lower() == "q":
            console.print("[yellow]Review paused.[/yellow]")
            return
        if choice.lower() == "s" or not choice:
            continue

        if choice.isdigit():
            idx = int(choice) - 1
            if not 0 <= idx < len(categories):
                console.print("[red]Invalid choice, skipping.[/red]")
                continue
            category = categories[idx]
        else:
            category = choice
            if category not in categories:
                categories.append(category)

        remember = Confirm.ask("Create rule for future matches?", default=False)
        confirm_transaction(conn, txn.id, category, create_rule_from_it=remember)
        console.print(f"[green]→ Categorized as {category}[/green]\n")

    console.print("[green]Review complete![/green]")
