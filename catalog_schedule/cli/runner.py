# catalog_schedule/cli/runner.py

"""Headless CLI commands over the catalog, assets and merge engine."""

import json
import logging
import mimetypes
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from catalog_schedule.errors import CatalogError
from catalog_schedule.models.asset import Asset
from catalog_schedule.models.product import Product
from catalog_schedule.models.selection import ProductSelection, ScheduleHeader
from catalog_schedule.services.asset_service import AssetService, load_seed_file
from catalog_schedule.services.catalog_service import (
    CatalogService,
    ProductDraft,
    parse_price,
)
from catalog_schedule.services.schedule_builder import ScheduleBuilder
from catalog_schedule.services.session import (
    SessionPayload,
    check_credentials,
    create_session,
    verify_session,
)
from catalog_schedule.storage.blob_store import build_blob_store
from catalog_schedule.storage.file_manager import FileManager
from catalog_schedule.storage.product_store import ProductStore
from catalog_schedule.storage.template_factory import (
    load_template,
    write_default_template,
)

logger = logging.getLogger("catalog_schedule.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

SESSION_ENV_VAR = "CATALOG_SESSION_TOKEN"


def require_session(token: str | None) -> SessionPayload | None:
    """Verify the token from ``--token`` or the environment."""
    payload = verify_session(token or os.getenv(SESSION_ENV_VAR))
    if payload is None:
        _err.print(
            "[red]Not signed in.[/red] Run [bold]login[/bold] and pass the "
            f"token with --token or {SESSION_ENV_VAR}."
        )
    return payload


def _print_table(products: list[Product]) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(
        title="Products",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Code", style="bold")
    table.add_column("Name", max_width=40)
    table.add_column("Area", style="magenta")
    table.add_column("Description", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Created", style="dim")

    for p in products:
        table.add_row(
            p.code,
            p.name,
            p.area,
            p.description,
            f"${p.price:,.2f}" if p.price is not None else "—",
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    Console().print(table)


def run_login(username: str, password: str) -> int:
    """Check admin credentials and print a session token to stdout."""
    if not check_credentials(username, password):
        _err.print("[red]Invalid credentials.[/red]")
        return 1
    payload, token = create_session(username)
    _err.print(f"[green]✓ Signed in as {payload.username}[/green]")
    sys.stdout.write(token + "\n")
    return 0


def run_create_product(
    args: dict[str, Any],
    token: str | None,
    db_path: Path | None = None,
) -> int:
    """Create one product from CLI arguments."""
    if require_session(token) is None:
        return 1

    image_path = Path(args["image"])
    try:
        image = image_path.read_bytes()
    except OSError as exc:
        _err.print(f"[red]Cannot read image: {exc}[/red]")
        return 1
    content_type = (
        args.get("content_type")
        or mimetypes.guess_type(image_path.name)[0]
        or "application/octet-stream"
    )

    draft = ProductDraft(
        name=args["name"],
        area=args["area"],
        description=args["description"],
        manufacturer_description=args.get("manufacturer_description") or "",
        product_details=args.get("product_details") or "",
        price=parse_price(args.get("price")),
    )

    store = ProductStore(db_path)
    try:
        service = CatalogService(store, build_blob_store())
        product = service.create_product(
            draft, image, image_path.name, content_type,
        )
    except CatalogError as exc:
        logger.error("Product creation failed: %s", exc)
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()

    _err.print(f"[green]✓ Created {product.code}[/green]")
    json.dump(product.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def run_search(
    query: str,
    output_format: str,
    db_path: Path | None = None,
) -> int:
    """Search the catalog and print the matches."""
    store = ProductStore(db_path)
    try:
        products = store.search_products(query)
    finally:
        store.close()

    if not products:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    if output_format == "table":
        _print_table(products)
    else:
        json.dump(
            [p.to_dict() for p in products],
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


def load_selection_file(
    path: Path, store: ProductStore,
) -> tuple[ScheduleHeader, ProductSelection]:
    """Read a JSON selection file into a header and a selection.

    Expected shape::

        {"address": "...", "date": "2024-03-05", "contact_name": "...",
         "company": "...", "phone_number": "...", "email": "...",
         "rows": [{"code": "B001", "quantity": 2, "notes": "",
                   "area_description": "", "price": 199.99}]}
    """
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)

    raw_date = data.get("date")
    header = ScheduleHeader(
        address=str(data.get("address", "")),
        date=date.fromisoformat(raw_date) if raw_date else date.today(),
        contact_name=str(data.get("contact_name", "")),
        company=str(data.get("company", "")),
        phone_number=str(data.get("phone_number", "")),
        email=str(data.get("email", "")),
    )

    rows: list[dict[str, Any]] = list(data.get("rows", []))
    products = store.get_products_by_codes(
        [str(r.get("code", "")) for r in rows]
    )
    selection = ProductSelection()
    for raw in rows:
        code = str(raw.get("code", ""))
        product = products.get(code)
        if product is None:
            raise CatalogError(f"Unknown product code in selection: {code!r}")
        selection.add(product)
        price = raw.get("price")
        selection.update(
            code,
            quantity=int(raw.get("quantity", 1)),
            notes=str(raw.get("notes") or ""),
            area_description_override=str(
                raw.get("area_description") or product.area
            ),
            price_override=float(price) if price is not None else None,
        )
    return header, selection


async def run_generate(
    selection_path: Path,
    template_path: Path | None,
    output_dir: Path | None,
    token: str | None,
    db_path: Path | None = None,
) -> int:
    """Render a selection file into a schedule document on disk."""
    if require_session(token) is None:
        return 1

    store = ProductStore(db_path)
    try:
        header, selection = load_selection_file(selection_path, store)
        builder = ScheduleBuilder(template_bytes=load_template(template_path))
        _err.print(
            f"[bold]Generating schedule:[/bold] {len(selection)} products "
            f"for {header.address}"
        )
        result = await builder.generate(header, selection)
    except (CatalogError, OSError, ValueError) as exc:
        logger.error("Schedule generation failed: %s", exc, exc_info=True)
        _err.print(f"[red]Failed to generate document: {exc}[/red]")
        return 1
    finally:
        store.close()

    for code in result.missing_images:
        _err.print(f"[yellow]No image for {code}; left blank.[/yellow]")

    path = FileManager(output_dir).save_document(result.filename, result.content)
    _err.print(f"[green]✓ {result.row_count} products → {path}[/green]")
    sys.stdout.write(str(path) + "\n")
    return 0


def run_init_template(path: Path | None) -> int:
    """Write the built-in template so it can be restyled in Word."""
    target = write_default_template(path)
    _err.print(f"[green]✓ Template written to {target}[/green]")
    return 0


def run_asset_lookup(tag: str, db_path: Path | None = None) -> int:
    """Print the asset registered under *tag*."""
    store = ProductStore(db_path)
    try:
        asset = store.find_asset_by_tag(tag)
    finally:
        store.close()
    if asset is None:
        _err.print(f"[yellow]Asset not found: {tag}[/yellow]")
        return 1
    json.dump(asset.__dict__, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def _read_file(path: Path, content_type: str | None) -> tuple[bytes, str] | None:
    """Read *path* and guess its content type unless one was given."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        _err.print(f"[red]Cannot read file: {exc}[/red]")
        return None
    return data, (
        content_type
        or mimetypes.guess_type(path.name)[0]
        or "application/octet-stream"
    )


def run_upload(
    path: Path,
    content_type: str | None,
    token: str | None,
    db_path: Path | None = None,
) -> int:
    """Upload an image or video and print its public URL."""
    if require_session(token) is None:
        return 1
    read = _read_file(path, content_type)
    if read is None:
        return 1
    data, content_type = read

    store = ProductStore(db_path)
    try:
        url = AssetService(store, build_blob_store()).upload(
            data, path.name, content_type,
        )
    except CatalogError as exc:
        logger.error("Upload of %s failed: %s", path, exc)
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()

    _err.print(f"[green]✓ Uploaded {path.name}[/green]")
    sys.stdout.write(url + "\n")
    return 0


def run_asset_set(
    args: dict[str, Any],
    token: str | None,
    db_path: Path | None = None,
) -> int:
    """Register a tagged asset from a local file or an existing URL."""
    if require_session(token) is None:
        return 1

    store = ProductStore(db_path)
    try:
        service = AssetService(store, build_blob_store())
        if args.get("file"):
            path = Path(args["file"])
            read = _read_file(path, args.get("content_type"))
            if read is None:
                return 1
            data, content_type = read
            asset = service.register_file(
                args["tag"],
                data,
                args.get("filename") or path.name,
                content_type,
                args.get("alt") or "",
            )
        else:
            asset = service.register(Asset(
                tag=args["tag"],
                filename=args.get("filename") or "",
                public_url=args.get("url") or "",
                content_type=(
                    args.get("content_type") or "application/octet-stream"
                ),
                alt=args.get("alt") or "",
            ))
    except CatalogError as exc:
        logger.error("Asset %s not registered: %s", args.get("tag"), exc)
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()

    _err.print(f"[green]✓ Registered {asset.tag}[/green]")
    json.dump(asset.__dict__, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def run_asset_seed(
    path: Path,
    token: str | None,
    db_path: Path | None = None,
) -> int:
    """Upsert every asset listed in a JSON seed file."""
    if require_session(token) is None:
        return 1

    store = ProductStore(db_path)
    try:
        assets = load_seed_file(path)
        count = AssetService(store, build_blob_store()).seed(assets)
    except (CatalogError, OSError, ValueError) as exc:
        logger.error("Seeding assets from %s failed: %s", path, exc)
        _err.print(f"[red]Failed to seed assets: {exc}[/red]")
        return 1
    finally:
        store.close()

    _err.print(f"[green]✓ Seeded {count} assets[/green]")
    return 0
