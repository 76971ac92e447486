from decimal import Decimal

from rest_framework import serializers
from django.db import transaction

from .models import (
    Category, Expense, ExpenseItem, MenuItem, Order, OrderItem, Price,
    Product, Role, ShopInfo, Table, TableType, Unit, User,
)
from .services.orders import ITEM_STATUSES


# -------- Lookups --------
class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'display_name']


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'display_name']


class TableTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = TableType
        fields = ['id', 'name', 'display_name', 'order']


class UnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Unit
        fields = ['id', 'name', 'display_name', 'symbol', 'order', 'is_active']


class ProductSerializer(serializers.ModelSerializer):
    unit = UnitSerializer(read_only=True)
    unit_id = serializers.PrimaryKeyRelatedField(
        source='unit', queryset=Unit.objects.all(), write_only=True, required=False, allow_null=True,
    )

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'unit', 'unit_id', 'category', 'is_active']


class ShopInfoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShopInfo
        fields = ['id', 'name', 'address', 'phone', 'email', 'logo', 'tax_id']


# -------- Menu & Table --------
class TableSerializer(serializers.ModelSerializer):
    table_type = TableTypeSerializer(read_only=True)
    table_type_id = serializers.PrimaryKeyRelatedField(
        source='table_type', queryset=TableType.objects.all(), write_only=True,
    )

    class Meta:
        model = Table
        fields = ['id', 'number', 'name', 'capacity', 'status', 'table_type', 'table_type_id']


class PriceSerializer(serializers.ModelSerializer):
    table_type_id = serializers.PrimaryKeyRelatedField(source='table_type', queryset=TableType.objects.all())
    table_type_name = serializers.ReadOnlyField(source='table_type.name')
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))

    class Meta:
        model = Price
        fields = ['id', 'table_type_id', 'table_type_name', 'amount']


class MenuItemSerializer(serializers.ModelSerializer):
    """Admin view of a menu item; ``prices`` replaces the whole price list when sent."""
    category = CategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        source='category', queryset=Category.objects.all(), write_only=True,
    )
    prices = PriceSerializer(many=True, required=False)

    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'description', 'image', 'is_cook', 'category', 'category_id', 'prices', 'created_at']
        read_only_fields = ['created_at']
        validators = []

    def validate(self, data):
        name = data.get('name', getattr(self.instance, 'name', None))
        category = data.get('category', getattr(self.instance, 'category', None))
        clash = MenuItem.objects.filter(name=name, category=category)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError(
                {'name': 'Menu item with this name already exists in this category'}, code='unique',
            )
        return data

    def validate_prices(self, prices):
        seen = set()
        for price in prices:
            if price['table_type'].pk in seen:
                raise serializers.ValidationError("Only one price per table type.")
            seen.add(price['table_type'].pk)
        return prices

    def _save_prices(self, menu_item, prices):
        menu_item.prices.all().delete()
        Price.objects.bulk_create(
            Price(menu_item=menu_item, table_type=p['table_type'], amount=p['amount'])
            for p in prices
        )

    @transaction.atomic
    def create(self, validated_data):
        prices = validated_data.pop('prices', [])
        menu_item = MenuItem.objects.create(**validated_data)
        self._save_prices(menu_item, prices)
        return menu_item

    @transaction.atomic
    def update(self, instance, validated_data):
        prices = validated_data.pop('prices', None)
        instance = super().update(instance, validated_data)
        if prices is not None:
            self._save_prices(instance, prices)
        return instance


class PublicMenuItemSerializer(serializers.ModelSerializer):
    category = serializers.ReadOnlyField(source='category.name')
    prices = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'description', 'image', 'category', 'is_cook', 'prices']

    def get_prices(self, obj):
        # table type name -> amount
        return {p.table_type.name: str(p.amount) for p in obj.prices.all()}


# -------- Orders --------
class OrderMenuItemSerializer(serializers.ModelSerializer):
    category = serializers.ReadOnlyField(source='category.name')

    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'image', 'is_cook', 'category']


class OrderItemSerializer(serializers.ModelSerializer):
    menu_item = OrderMenuItemSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'menu_item', 'quantity', 'unit_price', 'total_price', 'status', 'created_at', 'updated_at']


class OrderSerializer(serializers.ModelSerializer):
    table = TableSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'table', 'customer_name', 'status',
            'discount_type', 'discount_value', 'subtotal', 'discount_amount', 'total',
            'items', 'created_at', 'updated_at',
        ]


class KitchenOrderSerializer(OrderSerializer):
    """Order with only the lines a chef or delivery screen should see."""
    items = OrderItemSerializer(source='visible_items', many=True, read_only=True)


class OrderItemInputSerializer(serializers.Serializer):
    menu_item_id = serializers.PrimaryKeyRelatedField(queryset=MenuItem.objects.all())
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    table_id = serializers.PrimaryKeyRelatedField(queryset=Table.objects.all(), required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=120, required=False, allow_blank=True, allow_null=True)
    items = OrderItemInputSerializer(many=True, required=False)
    discount_type = serializers.ChoiceField(choices=Order.DISCOUNT_TYPES, required=False, allow_null=True, allow_blank=True)
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)


class UpdateOrderSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS, required=False)
    discount_type = serializers.ChoiceField(choices=Order.DISCOUNT_TYPES, required=False, allow_null=True, allow_blank=True)
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)


class UpdateOrderItemSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=0)


class OrderItemStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

    def validate_status(self, value):
        if value not in ITEM_STATUSES:
            raise serializers.ValidationError(f"Status must be one of: {', '.join(ITEM_STATUSES)}")
        return value


# -------- Expenses --------
class ExpenseItemSerializer(serializers.ModelSerializer):
    product_id = serializers.PrimaryKeyRelatedField(
        source='product', queryset=Product.objects.all(), required=False, allow_null=True,
    )
    unit_id = serializers.PrimaryKeyRelatedField(
        source='unit', queryset=Unit.objects.all(), required=False, allow_null=True,
    )
    unit_name = serializers.ReadOnlyField(source='unit.display_name', default=None)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal("0.001"))
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))

    class Meta:
        model = ExpenseItem
        fields = [
            'id', 'product_id', 'product_name', 'quantity', 'unit_id', 'unit_name',
            'unit_price', 'total_price', 'currency', 'payment_status', 'notes',
        ]
        read_only_fields = ['total_price']


class ExpenseSerializer(serializers.ModelSerializer):
    items = ExpenseItemSerializer(many=True, required=False)

    class Meta:
        model = Expense
        fields = [
            'id', 'title', 'description', 'category', 'date', 'receipt_number', 'vendor',
            'payment_method', 'receipt_image', 'notes', 'currency',
            'amount', 'amount_usd', 'amount_khr', 'items', 'created_at',
        ]
        read_only_fields = ['amount', 'amount_usd', 'amount_khr', 'created_at']


class UpdateExpenseItemSerializer(ExpenseItemSerializer):
    item_id = serializers.IntegerField(write_only=True)

    class Meta(ExpenseItemSerializer.Meta):
        fields = ExpenseItemSerializer.Meta.fields + ['item_id']


# -------- Users & auth --------
class UserSerializer(serializers.ModelSerializer):
    role = RoleSerializer(read_only=True)
    role_id = serializers.PrimaryKeyRelatedField(source='role', queryset=Role.objects.all(), write_only=True)
    password = serializers.CharField(write_only=True, min_length=6, required=False)

    class Meta:
        model = User
        fields = ['id', 'username', 'password', 'role', 'role_id', 'is_active', 'date_joined']
        read_only_fields = ['date_joined']

    def validate(self, data):
        if self.instance is None and not data.get('password'):
            raise serializers.ValidationError({'password': 'Password is required'})
        return data

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            instance.save(update_fields=['password'])
        return instance


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)
