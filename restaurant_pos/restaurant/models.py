from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    ADMIN = 'admin'
    CHEF = 'chef'
    WAITER = 'waiter'
    ORDER = 'order'

    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)

    def __str__(self):
        return self.display_name or self.name


class User(AbstractUser):
    role = models.ForeignKey(Role, null=True, blank=True, on_delete=models.PROTECT, related_name='users')

    @property
    def role_name(self):
        return self.role.name if self.role_id else None


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=150)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.display_name


class TableType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=150)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ['order', 'name']

    def __str__(self):
        return self.display_name


class Table(models.Model):
    AVAILABLE = 'available'
    OCCUPIED = 'occupied'
    STATUS = (
        (AVAILABLE, 'Available'),
        (OCCUPIED, 'Occupied'),
        ('reserved', 'Reserved'),
        ('maintenance', 'Maintenance'),
    )
    number = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100, blank=True, null=True)
    capacity = models.PositiveIntegerField(default=4)
    table_type = models.ForeignKey(TableType, on_delete=models.PROTECT, related_name='tables')
    status = models.CharField(max_length=20, choices=STATUS, default=AVAILABLE)

    def __str__(self):
        return f"Table {self.number} ({self.status})"


class MenuItem(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    image = models.URLField(max_length=500, blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='menu_items')
    is_cook = models.BooleanField(default=False)  # needs the kitchen before delivery
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['name', 'category'], name='unique_menu_item_per_category'),
        ]

    def __str__(self):
        return self.name


class Price(models.Model):
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, related_name='prices')
    table_type = models.ForeignKey(TableType, on_delete=models.PROTECT, related_name='prices')
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['menu_item', 'table_type'], name='unique_price_per_table_type'),
        ]

    def __str__(self):
        return f"{self.menu_item} @ {self.table_type}: {self.amount}"


class Order(models.Model):
    NEW = 'new'
    ON_PROCESS = 'on_process'
    DONE = 'done'
    STATUS = (
        (NEW, 'New'),
        (ON_PROCESS, 'On process'),
        (DONE, 'Done'),
    )
    PERCENTAGE = 'percentage'
    AMOUNT = 'amount'
    DISCOUNT_TYPES = (
        (PERCENTAGE, 'Percentage'),
        (AMOUNT, 'Amount'),
    )
    order_number = models.CharField(max_length=12, unique=True)
    table = models.ForeignKey(Table, null=True, blank=True, on_delete=models.SET_NULL, related_name='orders')
    customer_name = models.CharField(max_length=120, blank=True, null=True)
    status = models.CharField(max_length=12, choices=STATUS, default=NEW)
    discount_type = models.CharField(max_length=12, choices=DISCOUNT_TYPES, blank=True, null=True)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order #{self.order_number} [{self.status}]"

    def recalc_totals(self):
        from .services.totals import order_totals

        totals = order_totals(
            [item.total_price for item in self.items.all()],
            self.discount_type,
            self.discount_value,
        )
        self.subtotal = totals.subtotal
        self.discount_amount = totals.discount_amount
        self.total = totals.total
        return totals


class OrderItem(models.Model):
    PENDING = 'pending'
    PREPARING = 'preparing'
    READY = 'ready'
    SERVED = 'served'
    CANCELLED = 'cancelled'
    STATUS = (
        (PENDING, 'Pending'),
        (PREPARING, 'Preparing'),
        (READY, 'Ready'),
        (SERVED, 'Served'),
        (CANCELLED, 'Cancelled'),
    )
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=12, choices=STATUS, default=PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.menu_item.name} x {self.quantity}"

    def set_quantity(self, quantity):
        self.quantity = quantity
        self.total_price = self.unit_price * quantity


class OrderNumberSequence(models.Model):
    """Last order counter handed out for one calendar day."""
    day = models.DateField(unique=True)
    last = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.day}: {self.last}"


class Unit(models.Model):
    name = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    symbol = models.CharField(max_length=20, blank=True, null=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['order', 'name']

    def __str__(self):
        return self.display_name


class Product(models.Model):
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    unit = models.ForeignKey(Unit, null=True, blank=True, on_delete=models.PROTECT, related_name='products')
    category = models.CharField(max_length=100, blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Expense(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=100)
    date = models.DateTimeField()
    receipt_number = models.CharField(max_length=100, blank=True, null=True)
    vendor = models.CharField(max_length=200, blank=True, null=True)
    payment_method = models.CharField(max_length=50, blank=True, null=True)
    receipt_image = models.URLField(max_length=500, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    currency = models.CharField(max_length=3, default='USD')
    # derived from items, see services.totals.expense_totals
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    amount_usd = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    amount_khr = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} ({self.date:%Y-%m-%d})"

    def recalc_totals(self):
        from .services.totals import expense_totals

        totals = expense_totals((item.currency, item.total_price) for item in self.items.all())
        self.amount_usd = totals.amount_usd
        self.amount_khr = totals.amount_khr
        self.amount = totals.amount
        return totals


class ExpenseItem(models.Model):
    USD = 'USD'
    KHR = 'KHR'
    CURRENCIES = (
        (USD, 'US Dollar'),
        (KHR, 'Khmer Riel'),
    )
    PAYMENT_STATUS = (
        ('UNPAID', 'Unpaid'),
        ('PAID', 'Paid'),
    )
    expense = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, null=True, blank=True, on_delete=models.SET_NULL, related_name='expense_items')
    product_name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.ForeignKey(Unit, null=True, blank=True, on_delete=models.SET_NULL, related_name='expense_items')
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCIES, default=USD)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS, default='UNPAID')
    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.product_name} x {self.quantity} {self.currency}"


class ShopInfo(models.Model):
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    logo = models.URLField(max_length=500, blank=True, null=True)
    tax_id = models.CharField(max_length=100, blank=True, null=True)

    class Meta:
        verbose_name_plural = 'shop info'

    def __str__(self):
        return self.name

    @classmethod
    def load(cls):
        shop = cls.objects.order_by('id').first()
        if shop is None:
            shop = cls.objects.create(name='Shop Name')
        return shop
