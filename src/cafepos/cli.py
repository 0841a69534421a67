"""Command-line interface for cafepos."""

import argparse
import json
import logging
import sys

from . import __version__, config
from .cart import Cart
from .catalog import CatalogStore
from .errors import CafePosError
from .history import HistoryStore
from .money import format_money
from .pending import PendingOrderStore
from .storage import JsonFileStorage
from .submission import submit_order
from .summary import summarize
from .utils import format_order, parse_item_spec, parse_window, truncate_id

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ABORTED = 2


def get_stores() -> tuple[CatalogStore, PendingOrderStore, HistoryStore]:
    """Get the menu, pending and history stores for the configured data dir."""
    storage = JsonFileStorage()
    return CatalogStore(storage), PendingOrderStore(storage), HistoryStore(storage)


def confirm(prompt: str, assume_yes: bool) -> bool:
    """Ask the user to confirm an irreversible action."""
    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes", "s", "si", "sí")


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else config.log_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# --- Menu ---


def cmd_menu_list(args: argparse.Namespace) -> int:
    """List menu products."""
    try:
        catalog, _, _ = get_stores()
        products = catalog.search(args.search) if args.search else catalog.list_products()

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2))
            return EXIT_OK

        if not products:
            print("No products found.")
            return EXIT_OK

        print(f"Menu ({len(products)}):")
        for p in products:
            print(f"  {p.id:<8} {p.name:<24} {format_money(p.price)}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_menu_add(args: argparse.Namespace) -> int:
    """Add a product to the menu."""
    try:
        catalog, _, _ = get_stores()
        product = catalog.add_product(args.name, args.price)
        print(f"Added product: {product.id}")
        print(f"  {product.name} {format_money(product.price)}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_menu_edit(args: argparse.Namespace) -> int:
    """Edit a product's name and price."""
    try:
        catalog, _, _ = get_stores()
        current = catalog.get_product(args.product_id)
        name = args.name if args.name is not None else current.name
        price = args.price if args.price is not None else current.price
        product = catalog.edit_product(args.product_id, name, price)
        print(f"Updated product: {product.id}")
        print(f"  {product.name} {format_money(product.price)}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_menu_remove(args: argparse.Namespace) -> int:
    """Remove a product from the menu."""
    try:
        catalog, _, _ = get_stores()
        removed = catalog.delete_product(args.product_id)
        if removed is None:
            print(f"Product {args.product_id} is not on the menu.")
        else:
            print(f"Removed product: {removed.id} ({removed.name})")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_menu_clear(args: argparse.Namespace) -> int:
    """Delete every product."""
    try:
        catalog, _, _ = get_stores()
        if not catalog.list_products():
            print("The menu is already empty.")
            return EXIT_OK
        if not confirm("Delete ALL products from the menu?", args.yes):
            print("Aborted.")
            return EXIT_ABORTED
        count = catalog.clear(confirm=True)
        print(f"Deleted {count} product(s).")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_menu_seed(args: argparse.Namespace) -> int:
    """Write the default menu if none exists."""
    try:
        catalog, _, _ = get_stores()
        products = catalog.seed_defaults()
        print(f"Menu has {len(products)} product(s).")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


# --- Orders ---


def cmd_order(args: argparse.Namespace) -> int:
    """Build a cart from --item specs and submit it as a pending order."""
    try:
        catalog, pending, _ = get_stores()

        cart = Cart()
        for spec in args.item or []:
            item = parse_item_spec(spec)
            product = catalog.get_product(item.product_id)
            for _ in range(item.quantity):
                cart.add_line(product)
            if item.notes:
                cart.set_note(product.id, item.notes)

        if not cart.is_empty:
            print("Order:")
            for line in cart.lines:
                note = f"  ({line.notes})" if line.notes.strip() else ""
                print(f"  {line.product.name} x{line.quantity}  {format_money(line.subtotal)}{note}")
            print(f"  Total: {cart.formatted_total()}")

            if not confirm(f"Submit order for {cart.formatted_total()}?", args.yes):
                print("Aborted.")
                return EXIT_ABORTED

        order = submit_order(cart, pending)

        if args.json:
            print(json.dumps(order.to_dict(), indent=2))
        else:
            print(f"Submitted order #{order.order_number}: {truncate_id(order.id)}")
            print(f"  Total: {order.total}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_pending(args: argparse.Namespace) -> int:
    """List pending orders."""
    try:
        _, pending, _ = get_stores()
        orders = pending.list_pending()

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2))
            return EXIT_OK

        if not orders:
            print("No pending orders.")
            return EXIT_OK

        print(f"Pending orders ({len(orders)}):")
        for order in orders:
            print(format_order(order, verbose=True))
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_ready(args: argparse.Namespace) -> int:
    """Mark a pending order as ready."""
    try:
        _, pending, history = get_stores()
        order_id = _resolve_pending_id(pending, args.order_id)
        order = pending.mark_ready(order_id, history)
        if order is None:
            print(f"Order {args.order_id} is not pending; nothing to do.")
        else:
            print(f"Order #{order.order_number} ({truncate_id(order.id)}) is ready.")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def _resolve_pending_id(pending: PendingOrderStore, prefix: str) -> str:
    """Expand a unique ID prefix to the full pending order ID."""
    matches = [o.id for o in pending.list_pending() if o.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return prefix


# --- History ---


def cmd_history_list(args: argparse.Namespace) -> int:
    """List finished orders."""
    try:
        _, _, history = get_stores()
        orders = history.list()

        if args.json:
            print(history.export_snapshot())
            return EXIT_OK

        if not orders:
            print("No orders in the history.")
            return EXIT_OK

        print(f"History ({len(orders)}):")
        for order in orders:
            print(format_order(order, verbose=args.verbose))
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_history_show(args: argparse.Namespace) -> int:
    """Show one finished order with its lines."""
    try:
        _, _, history = get_stores()
        order = history.get(args.order_id)
        if args.json:
            print(json.dumps(order.to_dict(), indent=2))
        else:
            print(format_order(order, verbose=True))
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_history_delete(args: argparse.Namespace) -> int:
    """Permanently delete one finished order."""
    try:
        _, _, history = get_stores()
        if not confirm(f"Permanently delete order {args.order_id}?", args.yes):
            print("Aborted.")
            return EXIT_ABORTED
        removed = history.delete_one(args.order_id, confirm=True)
        if removed is None:
            print(f"Order {args.order_id} is not in the history.")
        else:
            print(f"Deleted order #{removed.order_number} ({truncate_id(removed.id)}).")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_history_clear(args: argparse.Namespace) -> int:
    """Permanently delete the whole history."""
    try:
        _, _, history = get_stores()
        if not confirm("Permanently delete the WHOLE order history?", args.yes):
            print("Aborted.")
            return EXIT_ABORTED
        count = history.clear_all(confirm=True)
        print(f"Deleted {count} order(s) from the history.")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_history_export(args: argparse.Namespace) -> int:
    """Write a timestamped JSON backup of the history."""
    try:
        _, _, history = get_stores()
        path = history.export_to_file(args.output_dir)
        print(f"Exported history to {path}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


# --- Summary ---


def cmd_summary(args: argparse.Namespace) -> int:
    """Show sales figures for a window of the history."""
    try:
        window_days = parse_window(args.window)
        _, _, history = get_stores()
        result = summarize(history.list(), window_days)

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
            return EXIT_OK

        label = {0: "today", None: "all time"}.get(window_days, f"last {window_days} days")
        print(f"Summary ({label}):")

        if result.is_empty:
            print("  No orders in this period.")
            return EXIT_OK

        print(f"  Orders:        {result.order_count}")
        print(f"  Revenue:       {format_money(result.total_revenue)}")
        if result.best_seller:
            best = result.best_seller
            print(f"  Best seller:   {best.name} x {best.quantity}")
        if result.highest_value_order:
            top = result.highest_value_order
            print(f"  Top order:     #{top.order_number} {format_money(top.value)}")
        return EXIT_OK

    except CafePosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting cafepos API server...")
        print(f"Data directory: {config.data_dir()}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "cafepos.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # Single worker; writes are serialized through the storage lock
        )
        return EXIT_OK

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cafepos",
        description="Point of sale for a small café: take orders, mark them ready, review sales.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # menu (subcommand group)
    menu_parser = subparsers.add_parser("menu", help="Manage menu products")
    menu_subparsers = menu_parser.add_subparsers(dest="menu_command")

    menu_list_parser = menu_subparsers.add_parser("list", help="List products")
    menu_list_parser.add_argument("--search", "-s", help="Filter by name")
    menu_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    menu_add_parser = menu_subparsers.add_parser("add", help="Add a product")
    menu_add_parser.add_argument("name", help="Product name")
    menu_add_parser.add_argument("price", help="Price greater than 0")

    menu_edit_parser = menu_subparsers.add_parser("edit", help="Edit a product")
    menu_edit_parser.add_argument("product_id", help="Product ID")
    menu_edit_parser.add_argument("--name", "-n", help="New name")
    menu_edit_parser.add_argument("--price", "-p", help="New price")

    menu_remove_parser = menu_subparsers.add_parser("remove", help="Remove a product")
    menu_remove_parser.add_argument("product_id", help="Product ID")

    menu_clear_parser = menu_subparsers.add_parser("clear", help="Delete every product")
    menu_clear_parser.add_argument("--yes", "-y", action="store_true", help="Don't ask for confirmation")

    menu_subparsers.add_parser("seed", help="Write the default menu if none exists")

    # order
    order_parser = subparsers.add_parser("order", help="Submit a new order")
    order_parser.add_argument(
        "--item", "-i", action="append",
        help="Product to add as ID[:QTY[:NOTE]] (repeatable)",
    )
    order_parser.add_argument("--yes", "-y", action="store_true", help="Don't ask for confirmation")
    order_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # pending
    pending_parser = subparsers.add_parser("pending", help="List pending orders")
    pending_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # ready
    ready_parser = subparsers.add_parser("ready", help="Mark a pending order as ready")
    ready_parser.add_argument("order_id", help="Order ID (or unique prefix)")

    # history (subcommand group)
    history_parser = subparsers.add_parser("history", help="Manage finished orders")
    history_subparsers = history_parser.add_subparsers(dest="history_command")

    history_list_parser = history_subparsers.add_parser("list", help="List finished orders")
    history_list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    history_list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show order lines"
    )

    history_show_parser = history_subparsers.add_parser("show", help="Show one order")
    history_show_parser.add_argument("order_id", help="Order ID")
    history_show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    history_delete_parser = history_subparsers.add_parser("delete", help="Delete one order")
    history_delete_parser.add_argument("order_id", help="Order ID")
    history_delete_parser.add_argument("--yes", "-y", action="store_true", help="Don't ask for confirmation")

    history_clear_parser = history_subparsers.add_parser("clear", help="Delete the whole history")
    history_clear_parser.add_argument("--yes", "-y", action="store_true", help="Don't ask for confirmation")

    history_export_parser = history_subparsers.add_parser("export", help="Export history as JSON")
    history_export_parser.add_argument(
        "--output-dir", "-o", help="Directory for the export (default: data/exports)"
    )

    # summary
    summary_parser = subparsers.add_parser("summary", help="Show sales figures")
    summary_parser.add_argument(
        "--window", "-w", default="today",
        help="'today', a number of days (e.g. 7, 30), or 'all' (default: today)",
    )
    summary_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.debug)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    # Handle menu subcommands
    if args.command == "menu":
        menu_commands = {
            "list": cmd_menu_list,
            "add": cmd_menu_add,
            "edit": cmd_menu_edit,
            "remove": cmd_menu_remove,
            "clear": cmd_menu_clear,
            "seed": cmd_menu_seed,
        }
        cmd_func = menu_commands.get(args.menu_command)
        if cmd_func is None:
            parser.parse_args(["menu", "--help"])
            return EXIT_OK
        return cmd_func(args)

    # Handle history subcommands
    if args.command == "history":
        history_commands = {
            "list": cmd_history_list,
            "show": cmd_history_show,
            "delete": cmd_history_delete,
            "clear": cmd_history_clear,
            "export": cmd_history_export,
        }
        cmd_func = history_commands.get(args.history_command)
        if cmd_func is None:
            parser.parse_args(["history", "--help"])
            return EXIT_OK
        return cmd_func(args)

    commands = {
        "order": cmd_order,
        "pending": cmd_pending,
        "ready": cmd_ready,
        "summary": cmd_summary,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
