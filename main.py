"""CLI entry point for the Boutique Inventory system."""

from __future__ import annotations

import logging

import click

from config import settings
from database import init_database


def _open_db():
    from database.connection import get_db

    return get_db(settings.database_path, timeout=settings.db_busy_timeout)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """Boutique Inventory: SKU allocation, lookup and POS sync."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@click.option("--no-seed", is_flag=True, help="Skip loading the default code library.")
def init_db(no_seed: bool) -> None:
    """Initialise the SQLite database (creates tables if missing)."""
    init_database(settings.database_path, seed=not no_seed)
    print(f"Database initialised at {settings.database_path}")


@cli.command()
def web() -> None:
    """Start the Flask API server."""
    from api.app import create_app

    app = create_app()
    app.run(
        host=settings.flask_host,
        port=settings.flask_port,
        debug=settings.flask_debug,
    )


@cli.command()
@click.option("--type", "type_code", required=True, help="Type code, e.g. DR.")
@click.option("--color", "color_code", required=True, help="Color code, e.g. BL.")
@click.option("--pattern", "pattern_code", required=True, help="Pattern code, e.g. FL.")
@click.option("--size", "size_code", required=True, help="Size code, e.g. MD.")
@click.option("--date", "purchase_date", required=True, help="Purchase date (YYYY-MM-DD).")
@click.option("--cost", required=True, help="Purchase cost.")
@click.option("--price", required=True, help="Selling price.")
def allocate(
    type_code: str,
    color_code: str,
    pattern_code: str,
    size_code: str,
    purchase_date: str,
    cost: str,
    price: str,
) -> None:
    """Allocate a SKU and add the item to inventory."""
    from api.exceptions import AppError
    from services.sku_allocator import allocate_sku

    conn = _open_db()
    try:
        item = allocate_sku(
            conn, type_code, color_code, pattern_code, size_code, purchase_date, cost, price,
        )
    except AppError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        conn.close()

    print(f"SKU:      {item['sku']}")
    print(f"Name:     {item['display_name']}")
    print(f"Cost:     ${item['purchase_cost']:.2f}")
    print(f"Price:    ${item['selling_price']:.2f}")


@cli.command()
@click.argument("sku")
def lookup(sku: str) -> None:
    """Look an item up by SKU (as scanned)."""
    import database.models as models

    conn = _open_db()
    try:
        item = models.get_inventory_item(conn, sku.strip().upper())
    finally:
        conn.close()

    if item is None:
        raise click.ClickException(f"no item found with SKU '{sku}'")

    synced = item["loyverse_synced_at"] if item["synced_to_loyverse"] else "no"
    print(f"SKU:        {item['sku']}")
    print(f"Name:       {item['display_name']}")
    print(f"Purchased:  {item['purchase_date']}")
    print(f"Cost:       ${item['purchase_cost']:.2f}")
    print(f"Price:      ${item['selling_price']:.2f}")
    print(f"Synced:     {synced}")


@cli.command()
@click.option("--search", default=None, help="Filter by SKU or name substring.")
@click.option("--synced/--unsynced", default=None, help="Filter by Loyverse sync state.")
def inventory(search: str | None, synced: bool | None) -> None:
    """View current inventory."""
    import database.models as models

    conn = _open_db()
    try:
        items = models.list_inventory(conn, search=search, synced=synced)
        summary = models.get_inventory_summary(conn)
    finally:
        conn.close()

    if not items:
        print("No items found.")
        return

    print(f"{'SKU':<18} {'Name':<34} {'Cost':>9} {'Price':>9} {'Synced':>7}")
    print("-" * 81)
    for item in items:
        print(
            f"{item['sku']:<18} "
            f"{item['display_name']:<34} "
            f"${item['purchase_cost']:>8.2f} "
            f"${item['selling_price']:>8.2f} "
            f"{'yes' if item['synced_to_loyverse'] else 'no':>7}"
        )
    print(
        f"\nShowing {len(items)} of {summary['total_items']} item(s), "
        f"{summary['synced']} synced"
    )


@cli.command()
@click.argument("category", required=False)
def codes(category: str | None) -> None:
    """List the code library, or one CATEGORY of it."""
    import database.models as models

    categories = [category] if category else list(models.CATEGORIES)
    for name in categories:
        if name not in models.CATEGORIES:
            raise click.ClickException(
                f"unknown category '{name}' (expected one of {', '.join(models.CATEGORIES)})"
            )

    conn = _open_db()
    try:
        for name in categories:
            rows = models.list_codes(conn, name)
            print(f"{name.capitalize()} ({len(rows)}):")
            for row in rows:
                extra = ""
                if name == "colors" and row["hex_value"]:
                    extra = f"  {row['hex_value']}"
                elif name == "sizes":
                    extra = f"  [{row['abbrev']}]"
                print(f"  {row['code']}  {row['name']}{extra}")
    finally:
        conn.close()


@cli.command()
@click.argument("category")
@click.argument("code")
@click.argument("name")
@click.option("--hex", "hex_value", default=None, help="Hex value (colors only).")
@click.option("--abbrev", default=None, help="Display abbreviation (sizes only).")
def add_code(category: str, code: str, name: str, hex_value: str | None, abbrev: str | None) -> None:
    """Add CODE with NAME to a code library CATEGORY."""
    from api.exceptions import AppError
    from services.code_library import add_code as _add_code

    conn = _open_db()
    try:
        row = _add_code(conn, category, code, name, hex_value=hex_value, abbrev=abbrev)
    except AppError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        conn.close()
    print(f"Added {category} code {row['code']} ({row['name']})")


@cli.command()
@click.argument("category")
@click.argument("code")
def delete_code(category: str, code: str) -> None:
    """Delete an unused CODE from a code library CATEGORY."""
    from api.exceptions import AppError
    from services.code_library import remove_code

    conn = _open_db()
    try:
        remove_code(conn, category, code)
    except AppError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        conn.close()
    print(f"Deleted {category} code {code.upper()}")


@cli.command()
@click.argument("sku")
@click.option("--output-dir", default=None, help="Directory for the PNG file.")
def barcode(sku: str, output_dir: str | None) -> None:
    """Save a Code128 barcode PNG for an inventory SKU."""
    import database.models as models
    from services.barcode_generator import save_barcode_image

    sku = sku.strip().upper()
    conn = _open_db()
    try:
        item = models.get_inventory_item(conn, sku)
    finally:
        conn.close()
    if item is None:
        raise click.ClickException(f"no item found with SKU '{sku}'")

    path = save_barcode_image(sku, output_dir or settings.barcode_output_dir)
    print(f"Barcode saved to {path}")


@cli.command()
@click.argument("skus", nargs=-1)
@click.option("--all-unsynced", is_flag=True, help="Push every item not yet synced.")
def sync(skus: tuple[str, ...], all_unsynced: bool) -> None:
    """Push inventory items to Loyverse."""
    import database.models as models
    from api.exceptions import AppError
    from services.loyverse_sync import sync_items

    conn = _open_db()
    try:
        targets = list(skus)
        if all_unsynced:
            targets += [i["sku"] for i in models.list_inventory(conn, synced=False, limit=None)]
        if not targets:
            print("Usage: sync SKU [SKU ...] or sync --all-unsynced")
            return
        try:
            results = sync_items(conn, targets)
        except AppError as exc:
            raise click.ClickException(str(exc)) from exc
    finally:
        conn.close()

    for sku in results["success"]:
        print(f"  synced  {sku}")
    for err in results["errors"]:
        print(f"  FAILED  {err['sku']}: {err['error']}")
    print(f"\n{len(results['success'])} synced, {len(results['errors'])} failed")


if __name__ == "__main__":
    cli()
