"""Custom metrics for the party planner service."""

from opentelemetry import metrics

meter = metrics.get_meter("party-planner")

parties_created_counter = meter.create_counter(
    name="parties_created_total",
    description="Total number of parties created by mode",
    unit="1",
)

dishes_added_counter = meter.create_counter(
    name="party_dishes_added_total",
    description="Total number of dish additions to parties by mode",
    unit="1",
)

selections_changed_counter = meter.create_counter(
    name="guest_selections_changed_total",
    description="Total number of guest select/unselect actions",
    unit="1",
)

guests_joined_counter = meter.create_counter(
    name="party_guests_joined_total",
    description="Total number of guests who joined a party",
    unit="1",
)

# Rows per generated shopping list
shopping_list_size_histogram = meter.create_histogram(
    name="shopping_list_items",
    description="Number of ingredient rows in generated shopping lists",
    unit="1",
)


def record_party_created(mode: str) -> None:
    """Record a party creation.

    Args:
        mode: Party mode ("order" or "pool")
    """
    parties_created_counter.add(1, {"mode": mode})


def record_dish_added(mode: str, count: int = 1) -> None:
    """Record dishes added to a party.

    Args:
        mode: Party mode ("order" or "pool")
        count: Number of dishes added
    """
    dishes_added_counter.add(count, {"mode": mode})


def record_selection_changed(action: str) -> None:
    """Record a guest selection change.

    Args:
        action: "select" or "unselect"
    """
    selections_changed_counter.add(1, {"action": action})


def record_guest_joined() -> None:
    """Record a guest joining a party."""
    guests_joined_counter.add(1)


def record_shopping_list_generated(source: str, item_count: int) -> None:
    """Record a generated shopping list.

    Args:
        source: "snapshot" for party lists, "live" for menu lists
        item_count: Number of ingredient rows
    """
    shopping_list_size_histogram.record(item_count, {"source": source})
