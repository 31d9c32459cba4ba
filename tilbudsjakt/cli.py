"""CLI entry point for Tilbudsjakt."""

import json
from pathlib import Path

import click

from . import __version__
from .config import configure_logging
from .matcher import MatchResult
from .optimizer import MAX_OFFERS_PER_INGREDIENT, IngredientGroup
from .service import DealFinder
from .units import calculate_unit_price, format_unit_price


def get_finder(ctx: click.Context) -> DealFinder:
    """Get or create the DealFinder for this invocation."""
    obj = ctx.ensure_object(dict)
    if obj.get("finder") is None:
        obj["finder"] = DealFinder.from_config(
            offers_dir=obj.get("offers_dir"),
            synsets_file=obj.get("synsets_file"),
        )
    return obj["finder"]


def require_offers(finder: DealFinder) -> None:
    """Exit with an error if no offers are loaded."""
    if len(finder.offer_store) == 0:
        click.echo("✗ No offers loaded. Check --offers or TILBUDSJAKT_OFFERS_DIR.", err=True)
        raise SystemExit(1)


def format_price(price: float | None) -> str:
    return f"{price:.2f} kr" if price else "N/A"


def display_match(index: int, match: MatchResult, show_reasons: bool = True) -> None:
    """Display one matched offer."""
    offer = match.offer
    click.echo(f"{index}. {offer.title} ({offer.store})")

    details = [format_price(offer.price)]
    if offer.quantity:
        details.append(offer.quantity)
    unit_price = format_unit_price(calculate_unit_price(offer))
    if unit_price:
        details.append(unit_price)
    click.echo(f"   {' | '.join(details)}")

    if show_reasons:
        click.echo(f"   Score: {match.score:.2f} ({', '.join(match.reasons)})")


def show_groups(groups: list[IngredientGroup], as_json: bool) -> None:
    """Print ingredient groups as JSON or as a readable summary."""
    if as_json:
        data = [group.to_dict() for group in groups]
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    display_groups(groups)


def display_groups(groups: list[IngredientGroup]) -> None:
    """Display optimized ingredient groups."""
    click.echo()
    click.echo("=" * 60)
    click.echo("BEST OFFERS")
    click.echo("=" * 60)

    matched_count = 0
    unpriced_count = 0
    total = 0.0

    for group in groups:
        label = group.ingredient
        if group.canonical and group.canonical != group.ingredient.strip().lower():
            label = f"{group.ingredient} → {group.canonical}"
        click.echo(f"\n{label}")

        if not group.offers:
            click.echo("   ✗ No offers found")
            continue

        matched_count += 1
        cheapest = next((m.price for m in group.offers if m.price), None)
        if cheapest is None:
            unpriced_count += 1
        else:
            total += cheapest

        for i, match in enumerate(group.offers, 1):
            offer = match.offer
            click.echo(f"   {i}. {offer.title} - {format_price(offer.price)} ({offer.store})")

    recommended = next((g.recommended_store for g in groups if g.recommended_store), None)

    click.echo()
    click.echo("-" * 60)
    click.echo(f"Matched: {matched_count} | Unmatched: {len(groups) - matched_count}")
    if recommended:
        click.echo(f"Recommended store: {recommended}")
    click.echo(f"Cheapest total: {total:.2f} kr")
    if unpriced_count:
        click.echo(f"   ({unpriced_count} ingredient(s) without price not included)")
    click.echo("-" * 60)


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="tilbudsjakt")
@click.option(
    "--offers",
    "offers_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory with <store>_offers.json files",
)
@click.option(
    "--synsets",
    "synsets_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Synset JSON file",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, offers_dir: Path | None, synsets_file: Path | None, verbose: bool):
    """Tilbudsjakt - find grocery deals for your shopping list.

    Matches ingredient names against Norwegian grocery catalog offers and
    suggests where to shop.
    """
    configure_logging("DEBUG" if verbose else None)
    obj = ctx.ensure_object(dict)
    obj.setdefault("offers_dir", offers_dir)
    obj.setdefault("synsets_file", synsets_file)


# ============================================================================
# Matching Commands
# ============================================================================


@cli.command()
@click.argument("ingredient")
@click.option("--limit", "-l", default=8, help="Maximum results to show")
@click.pass_context
def match(ctx: click.Context, ingredient: str, limit: int):
    """Find offers matching one ingredient.

    Examples:

    \b
        tilbudsjakt match kjøttdeig
        tilbudsjakt --offers ./offers match "rømme" --limit 3
    """
    finder = get_finder(ctx)
    require_offers(finder)

    if finder.registry.lookup(ingredient) is None:
        suggestions = finder.registry.suggest(ingredient)
        if suggestions:
            click.echo(f"No synonyms for '{ingredient}'. Did you mean: {', '.join(suggestions)}?")

    matches = finder.find_matches(ingredient)
    if not matches:
        click.echo(f"No offers found for '{ingredient}'.")
        return

    click.echo(f"\nFound {len(matches)} offers for '{ingredient}':\n")
    for i, result in enumerate(matches[:limit], 1):
        display_match(i, result)
        click.echo()


@cli.command()
@click.argument("ingredients", nargs=-1, required=True)
@click.option(
    "--max-offers",
    "-n",
    default=MAX_OFFERS_PER_INGREDIENT,
    type=click.IntRange(min=1),
    help="Offers to keep per ingredient",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def best(ctx: click.Context, ingredients: tuple[str, ...], max_offers: int, as_json: bool):
    """Find the best offers for a shopping list, grouped by ingredient.

    Offers are biased towards the stores that cover most of the list.

    Examples:

    \b
        tilbudsjakt best kjøttdeig "tacoskjell" rømme
        tilbudsjakt best melk egg --json
        tilbudsjakt best kjøttdeig --max-offers 5
    """
    finder = get_finder(ctx)
    require_offers(finder)

    groups = finder.get_best_offers(list(ingredients), max_offers)
    show_groups(groups, as_json)


# ============================================================================
# Meal Commands
# ============================================================================


@cli.command()
@click.argument("name")
@click.option(
    "--max-offers",
    "-n",
    default=MAX_OFFERS_PER_INGREDIENT,
    type=click.IntRange(min=1),
    help="Offers to keep per ingredient",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def meal(ctx: click.Context, name: str, max_offers: int, as_json: bool):
    """Find the best offers for every ingredient of a meal.

    Examples:

    \b
        tilbudsjakt meal taco
        tilbudsjakt meal "Spaghetti Bolognese" --json
    """
    finder = get_finder(ctx)
    require_offers(finder)

    groups = finder.get_meal_offers(name, max_offers)
    if groups is None:
        click.echo(f"✗ Meal '{name}' not found. Run 'tilbudsjakt meals' to list meals.", err=True)
        raise SystemExit(1)

    show_groups(groups, as_json)


@cli.command()
@click.option("--search", "-s", "term", help="Only show meals whose name or ingredients match")
@click.option("--category", "-c", help="Only show meals in this category")
@click.pass_context
def meals(ctx: click.Context, term: str | None, category: str | None):
    """List meal suggestions."""
    catalog = get_finder(ctx).meals

    if term:
        items = catalog.search_meals(term)
    elif category:
        items = catalog.get_meals_by_category(category)
    else:
        items = list(catalog.meals)

    if not items:
        click.echo("No meals found.")
        return

    for item in items:
        click.echo(f"{item.name} ({item.category})")
        click.echo(f"   Ingredients: {', '.join(item.ingredients)}")

    click.echo(f"\n{len(items)} meal(s)")


# ============================================================================
# Catalog Commands
# ============================================================================


@cli.command()
@click.argument("title")
@click.pass_context
def tag(ctx: click.Context, title: str):
    """Show the category tags for a product title."""
    finder = get_finder(ctx)
    click.echo(", ".join(finder.tagger.tag_product(title)))


@cli.command()
@click.option("--search", "-s", "term", help="Only show synsets matching this term")
@click.pass_context
def synsets(ctx: click.Context, term: str | None):
    """List the loaded ingredient synsets."""
    finder = get_finder(ctx)
    registry = finder.registry

    items = registry.synsets
    if term:
        resolved = registry.lookup(term)
        if resolved is not None:
            items = (resolved,)
        else:
            names = set(registry.suggest(term, limit=5))
            items = tuple(s for s in items if s.canonical in names)

    if not items:
        click.echo("No synsets found.")
        return

    for synset in items:
        flags = " [strict]" if synset.strict_matching else ""
        click.echo(f"{synset.canonical}{flags}")
        click.echo(f"   Synonyms: {', '.join(synset.synonyms)}")
        if synset.exclude:
            click.echo(f"   Excludes: {', '.join(synset.exclude)}")
        if synset.brands:
            click.echo(f"   Brands: {', '.join(synset.brands)}")

    click.echo(f"\n{len(items)} synset(s)")


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
