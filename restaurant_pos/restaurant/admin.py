from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import (
    Category, Expense, ExpenseItem, MenuItem, Order, OrderItem, OrderNumberSequence,
    Price, Product, Role, ShopInfo, Table, TableType, Unit, User,
)

@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'display_name')

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'role', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active')
    fieldsets = BaseUserAdmin.fieldsets + (('Restaurant', {'fields': ('role',)}),)

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'display_name')
    search_fields = ('name', 'display_name')

@admin.register(TableType)
class TableTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'display_name', 'order')

@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    list_display = ('number', 'name', 'table_type', 'capacity', 'status')
    list_filter = ('status', 'table_type')

class PriceInline(admin.TabularInline):
    model = Price
    extra = 0

@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'is_cook', 'created_at')
    list_filter = ('category', 'is_cook')
    search_fields = ('name',)
    inlines = [PriceInline]

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('total_price',)

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'table', 'customer_name', 'status', 'total', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_number', 'customer_name')
    readonly_fields = ('order_number', 'subtotal', 'discount_amount', 'total')
    inlines = [OrderItemInline]

@admin.register(OrderNumberSequence)
class OrderNumberSequenceAdmin(admin.ModelAdmin):
    list_display = ('day', 'last')

@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ('name', 'display_name', 'symbol', 'order', 'is_active')

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'unit', 'category', 'is_active')
    search_fields = ('name',)

class ExpenseItemInline(admin.TabularInline):
    model = ExpenseItem
    extra = 0
    readonly_fields = ('total_price',)

@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'date', 'amount_usd', 'amount_khr', 'amount')
    list_filter = ('category',)
    readonly_fields = ('amount', 'amount_usd', 'amount_khr')
    inlines = [ExpenseItemInline]

@admin.register(ShopInfo)
class ShopInfoAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email')
