from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from restaurant.models import Category, MenuItem, Price, Role, ShopInfo, Table, TableType, Unit, User

ROLES = [
    (Role.ADMIN, 'Administrator'),
    (Role.CHEF, 'Chef'),
    (Role.WAITER, 'Waiter'),
    (Role.ORDER, 'Order taker'),
]

CATEGORIES = [
    ('appetizer', 'Appetizer'),
    ('food', 'Main Course'),
    ('dessert', 'Dessert'),
    ('drink', 'Beverage'),
    ('alcohol', 'Alcoholic Beverage'),
]

TABLE_TYPES = [
    ('economy', 'Economy', 1),
    ('standard', 'Standard', 2),
    ('premium', 'Premium', 3),
    ('vip', 'VIP', 4),
    ('royal', 'Royal', 5),
]

UNITS = [
    ('kg', 'Kilogram', 'kg'),
    ('g', 'Gram', 'g'),
    ('l', 'Liter', 'L'),
    ('pcs', 'Piece', 'pcs'),
    ('box', 'Box', 'box'),
]

# name, category, is_cook, economy price; each higher tier adds 2.00
MENU = [
    ('Bruschetta', 'appetizer', True, '6.99', 'Toasted bread with tomatoes, garlic, and basil'),
    ('Spring Rolls', 'appetizer', True, '5.99', 'Crispy rolls with vegetables'),
    ('Caesar Salad', 'appetizer', True, '7.99', 'Romaine, parmesan and croutons'),
    ('Grilled Salmon', 'food', True, '18.99', 'Salmon fillet with lemon butter'),
    ('Ribeye Steak', 'food', True, '24.99', 'Ribeye with pepper sauce'),
    ('Pasta Carbonara', 'food', True, '13.99', 'Spaghetti, egg, pancetta and pecorino'),
    ('Chocolate Lava Cake', 'dessert', True, '7.99', 'Warm cake with a molten centre'),
    ('Tiramisu', 'dessert', False, '6.99', 'Coffee soaked ladyfingers with mascarpone'),
    ('Fresh Orange Juice', 'drink', False, '3.99', 'Squeezed to order'),
    ('Cappuccino', 'drink', False, '3.49', 'Espresso with steamed milk'),
    ('Iced Tea', 'drink', False, '2.99', 'House brewed'),
    ('Red Wine', 'alcohol', False, '8.99', 'By the glass'),
    ('Craft Beer', 'alcohol', False, '5.99', 'Local draught'),
]


class Command(BaseCommand):
    help = "Create roles, an admin user and a demo menu (safe to run more than once)"

    def add_arguments(self, parser):
        parser.add_argument('--admin-username', default='admin')
        parser.add_argument('--admin-password', default='admin123')
        parser.add_argument('--tables', type=int, default=10, help='number of demo tables to create')

    @transaction.atomic
    def handle(self, *args, **options):
        roles = {}
        for name, display in ROLES:
            roles[name], _ = Role.objects.update_or_create(name=name, defaults={'display_name': display})

        admin, created = User.objects.get_or_create(
            username=options['admin_username'],
            defaults={'role': roles[Role.ADMIN], 'is_staff': True, 'is_superuser': True},
        )
        if created:
            admin.set_password(options['admin_password'])
            admin.save()
            self.stdout.write(f"Created admin user '{admin.username}'")

        categories = {}
        for name, display in CATEGORIES:
            categories[name], _ = Category.objects.update_or_create(name=name, defaults={'display_name': display})

        table_types = []
        for name, display, order in TABLE_TYPES:
            table_type, _ = TableType.objects.update_or_create(
                name=name, defaults={'display_name': display, 'order': order},
            )
            table_types.append(table_type)

        for index in range(1, options['tables'] + 1):
            Table.objects.get_or_create(
                number=str(index),
                defaults={'name': f"Table {index}", 'table_type': table_types[(index - 1) % len(table_types)]},
            )

        for order, (name, display, symbol) in enumerate(UNITS, start=1):
            Unit.objects.update_or_create(name=name, defaults={'display_name': display, 'symbol': symbol, 'order': order})

        for name, category, is_cook, base, description in MENU:
            menu_item, _ = MenuItem.objects.update_or_create(
                name=name, category=categories[category],
                defaults={'is_cook': is_cook, 'description': description},
            )
            for step, table_type in enumerate(table_types):
                Price.objects.update_or_create(
                    menu_item=menu_item, table_type=table_type,
                    defaults={'amount': Decimal(base) + 2 * step},
                )

        ShopInfo.load()
        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(ROLES)} roles, {len(MENU)} menu items, {len(table_types)} table types."
        ))
