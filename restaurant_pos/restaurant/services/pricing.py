from ..exceptions import ValidationFailed
from ..models import Price


def find_price(menu_item, table=None):
    prices = Price.objects.filter(menu_item=menu_item)
    if table is not None:
        return prices.filter(table_type_id=table.table_type_id).first()
    # no table: cheapest tier first, so the fallback does not depend on insert order
    return prices.order_by('table_type__order', 'table_type_id', 'id').first()


def resolve_unit_price(menu_item, table=None):
    """Unit price for ``menu_item`` at ``table``'s table type; zero counts as missing."""
    price = find_price(menu_item, table)
    if price is None or not price.amount:
        raise ValidationFailed("No price found for this menu item", [
            {"field": "menu_item_id", "message": "Price not available for this table type"},
        ])
    return price.amount
