import logging
from datetime import datetime, time

from django.conf import settings
from django.core.paginator import EmptyPage, Page, Paginator
from django.db.models import Count, Q, Prefetch, Sum
from django.http import Http404, HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import generics, permissions
from rest_framework.renderers import JSONRenderer
from rest_framework.views import APIView

from .authentication import generate_token
from .exceptions import AccountDisabled, InvalidCredentials, NotFoundError, ValidationFailed
from .models import (
    Category, Expense, MenuItem, Order, OrderItem, Price, Product, Role, ShopInfo, Table, TableType, Unit, User,
)
from .responses import paginated, success_response
from .serializers import (
    CategorySerializer, CreateOrderSerializer, ExpenseItemSerializer, ExpenseSerializer,
    KitchenOrderSerializer, LoginSerializer, MenuItemSerializer, OrderItemInputSerializer,
    OrderItemSerializer, OrderItemStatusSerializer, OrderSerializer, ProductSerializer,
    PublicMenuItemSerializer, RoleSerializer, ShopInfoSerializer, TableSerializer,
    TableTypeSerializer, UnitSerializer, UpdateExpenseItemSerializer, UpdateOrderItemSerializer,
    UpdateOrderSerializer, UserSerializer,
)
from .services import expenses as expense_service
from .services import orders as order_service
from .services.invoices import expense_invoice, order_invoice, render_png
from .services.kitchen import chef_orders, delivery_orders
from .services.totals import money
from .streams import EventStreamRenderer, PollingEventStream, event_stream_response

logger = logging.getLogger(__name__)

ADMIN_ONLY = (Role.ADMIN,)
ORDER_ROLES = (Role.ADMIN, Role.WAITER, Role.ORDER)
ITEM_STATUS_ROLES = (Role.ADMIN, Role.CHEF, Role.ORDER)
CHEF_ROLES = (Role.ADMIN, Role.CHEF)


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def paginate(request, queryset):
    """Page of ``queryset`` from ?page=&limit= (1 / DEFAULT_PAGE_SIZE when missing)."""
    limit = min(_positive_int(request.query_params.get('limit'), settings.RESTAURANT['DEFAULT_PAGE_SIZE']), 100)
    number = _positive_int(request.query_params.get('page'), 1)
    paginator = Paginator(queryset, limit)
    try:
        return paginator.page(number)
    except EmptyPage:
        return Page([], number, paginator)


def _find(queryset, label, **lookup):
    obj = queryset.filter(**lookup).first()
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


def _date_param(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValidationFailed(f"{name} must be a date (YYYY-MM-DD)", [{"field": name, "message": "Invalid date"}])
    return value


def _day_bounds(start, end):
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(start, time.min), tz),
        timezone.make_aware(datetime.combine(end, time.max), tz),
    )


def png_response(content, number):
    response = HttpResponse(content, content_type='image/png')
    response['Content-Disposition'] = f'inline; filename="invoice-{number}.png"'
    return response


# ------------ BASE VIEWS ------------
class RecordListCreateView(generics.ListCreateAPIView):
    allowed_roles = ADMIN_ONLY
    label = 'Record'
    plural = 'Records'

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        data = self.get_serializer(queryset, many=True).data
        return success_response(data, f"{self.plural} fetched successfully")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return success_response(serializer.data, f"{self.label} created successfully", 201)


class RecordDetailView(generics.RetrieveUpdateDestroyAPIView):
    """GET / PUT / DELETE one row; PUT only touches the fields that were sent."""
    allowed_roles = ADMIN_ONLY
    http_method_names = ['get', 'put', 'delete', 'head', 'options']
    label = 'Record'

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFoundError(f"{self.label} not found")

    def retrieve(self, request, *args, **kwargs):
        data = self.get_serializer(self.get_object()).data
        return success_response(data, f"{self.label} fetched successfully")

    def update(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        return success_response(serializer.data, f"{self.label} updated successfully")

    def destroy(self, request, *args, **kwargs):
        self.perform_destroy(self.get_object())
        return success_response(None, f"{self.label} deleted successfully")


# ------------ AUTH ------------
class LoginView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    error_resource = 'LOGIN'

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.select_related('role').filter(username=data['username']).first()
        if user is None or not user.check_password(data['password']):
            raise InvalidCredentials(details=[{"message": "Invalid username or password"}])
        if not user.is_active:
            raise AccountDisabled(details=[{"message": "Account is disabled"}])

        logger.info("user %s logged in", user.username)
        return success_response({
            "token": generate_token(user),
            "user": UserSerializer(user).data,
        }, "Login successful")


class MeView(APIView):
    error_resource = 'USER'

    def get(self, request):
        return success_response(UserSerializer(request.user).data, "User fetched successfully")


# ------------ PUBLIC MENU ------------
class PublicMenuView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    error_resource = 'MENU'

    def get(self, request):
        """
        ?category=<name>    only that category
        ?table_type=<name>  only that table type's price
        """
        prices = Price.objects.select_related('table_type')
        table_type = request.query_params.get('table_type')
        if table_type:
            prices = prices.filter(table_type__name=table_type)

        items = MenuItem.objects.select_related('category').order_by('name')
        category = request.query_params.get('category')
        if category:
            items = items.filter(category__name=category)
        items = items.prefetch_related(Prefetch('prices', queryset=prices))

        return success_response(PublicMenuItemSerializer(items, many=True).data, "Menu fetched successfully")


class PublicCategoryListView(RecordListCreateView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    http_method_names = ['get', 'head', 'options']
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    error_resource = 'CATEGORIES'
    plural = 'Categories'


class PublicTableTypeListView(RecordListCreateView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    http_method_names = ['get', 'head', 'options']
    queryset = TableType.objects.all()
    serializer_class = TableTypeSerializer
    error_resource = 'TABLE_TYPES'
    plural = 'Table types'


# ------------ CATEGORIES / TABLE TYPES / TABLES ------------
class CategoryListCreateView(RecordListCreateView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    error_resource = 'CATEGORY'
    label, plural = 'Category', 'Categories'


class CategoryDetailView(RecordDetailView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    error_resource = 'CATEGORY'
    label = 'Category'


class TableTypeListCreateView(RecordListCreateView):
    queryset = TableType.objects.all()
    serializer_class = TableTypeSerializer
    error_resource = 'TABLE_TYPE'
    label, plural = 'Table type', 'Table types'


class TableTypeDetailView(RecordDetailView):
    queryset = TableType.objects.all()
    serializer_class = TableTypeSerializer
    error_resource = 'TABLE_TYPE'
    label = 'Table type'


class TableListCreateView(RecordListCreateView):
    serializer_class = TableSerializer
    error_resource = 'TABLE'
    label, plural = 'Table', 'Tables'

    def get_queryset(self):
        queryset = Table.objects.select_related('table_type').order_by('number')
        status = self.request.query_params.get('status')
        if status:
            queryset = queryset.filter(status=status)
        table_type_id = self.request.query_params.get('table_type_id')
        if table_type_id:
            queryset = queryset.filter(table_type_id=table_type_id)
        return queryset


class TableDetailView(RecordDetailView):
    queryset = Table.objects.select_related('table_type')
    serializer_class = TableSerializer
    error_resource = 'TABLE'
    label = 'Table'


# ------------ MENU ITEMS ------------
class MenuItemListCreateView(RecordListCreateView):
    serializer_class = MenuItemSerializer
    error_resource = 'MENU_ITEM'
    label, plural = 'Menu item', 'Menu items'

    def get_queryset(self):
        queryset = (
            MenuItem.objects
            .select_related('category')
            .prefetch_related(Prefetch('prices', queryset=Price.objects.select_related('table_type')))
            .order_by('name', 'id')
        )
        category_id = self.request.query_params.get('category_id')
        if category_id:
            queryset = queryset.filter(category_id=category_id)
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(description__icontains=search)
                | Q(category__name__icontains=search)
                | Q(category__display_name__icontains=search)
            )
        return queryset

    def list(self, request, *args, **kwargs):
        page = paginate(request, self.get_queryset())
        data = self.get_serializer(page.object_list, many=True).data
        return success_response(paginated(data, page), "Menu items fetched successfully")


class MenuItemDetailView(RecordDetailView):
    queryset = MenuItem.objects.select_related('category').prefetch_related('prices__table_type')
    serializer_class = MenuItemSerializer
    error_resource = 'MENU_ITEM'
    label = 'Menu item'

    def perform_update(self, serializer):
        menu_item = serializer.save()
        # drop the prefetched prices so the response shows the replaced list
        if hasattr(menu_item, '_prefetched_objects_cache'):
            menu_item._prefetched_objects_cache = {}


# ------------ UNITS / PRODUCTS ------------
class UnitListCreateView(RecordListCreateView):
    serializer_class = UnitSerializer
    error_resource = 'UNIT'
    label, plural = 'Unit', 'Units'

    def get_queryset(self):
        queryset = Unit.objects.all()
        if self.request.query_params.get('active') == 'true':
            queryset = queryset.filter(is_active=True)
        return queryset


class UnitDetailView(RecordDetailView):
    queryset = Unit.objects.all()
    serializer_class = UnitSerializer
    error_resource = 'UNIT'
    label = 'Unit'


class ProductListCreateView(RecordListCreateView):
    serializer_class = ProductSerializer
    error_resource = 'PRODUCT'
    label, plural = 'Product', 'Products'

    def get_queryset(self):
        queryset = Product.objects.select_related('unit')
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(category__icontains=search))
        if self.request.query_params.get('active') == 'true':
            queryset = queryset.filter(is_active=True)
        return queryset


class ProductDetailView(RecordDetailView):
    queryset = Product.objects.select_related('unit')
    serializer_class = ProductSerializer
    error_resource = 'PRODUCT'
    label = 'Product'


# ------------ USERS / ROLES / SHOP ------------
class UserListCreateView(RecordListCreateView):
    queryset = User.objects.select_related('role').order_by('username')
    serializer_class = UserSerializer
    error_resource = 'USER'
    label, plural = 'User', 'Users'


class UserDetailView(RecordDetailView):
    queryset = User.objects.select_related('role')
    serializer_class = UserSerializer
    error_resource = 'USER'
    label = 'User'

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationFailed("You cannot delete your own account")
        instance.delete()


class RoleListView(RecordListCreateView):
    http_method_names = ['get', 'head', 'options']
    queryset = Role.objects.order_by('name')
    serializer_class = RoleSerializer
    error_resource = 'ROLES'
    plural = 'Roles'


class ShopInfoView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'SHOP_INFO'

    def get(self, request):
        return success_response(ShopInfoSerializer(ShopInfo.load()).data, "Shop info fetched successfully")

    def put(self, request):
        serializer = ShopInfoSerializer(ShopInfo.load(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data, "Shop info updated successfully")


# ------------ ORDERS ------------
def order_queryset():
    return (
        Order.objects
        .select_related('table__table_type')
        .prefetch_related('items__menu_item__category')
    )


def _order_data(order):
    return OrderSerializer(order_queryset().get(pk=order.pk)).data


class OrderListCreateView(APIView):
    allowed_roles = ORDER_ROLES
    error_resource = 'ORDER'

    def get(self, request):
        """?page=&limit=&status=&table_id="""
        queryset = order_queryset().order_by('-created_at', '-id')
        status = request.query_params.get('status')
        if status:
            queryset = queryset.filter(status=status)
        table_id = request.query_params.get('table_id')
        if table_id:
            queryset = queryset.filter(table_id=table_id)

        page = paginate(request, queryset)
        data = OrderSerializer(page.object_list, many=True).data
        return success_response(paginated(data, page), "Orders fetched successfully")

    def post(self, request):
        """
        Body:
        {
          "table_id": 1,            # optional, takeaway when missing
          "customer_name": "Dara",
          "items": [
             {"menu_item_id": 2, "quantity": 3},
             {"menu_item_id": 5, "quantity": 1}
          ],
          "discount_type": "percentage",   # or "amount"
          "discount_value": 10
        }
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = order_service.create_order(
            table=data.get('table_id'),
            customer_name=data.get('customer_name'),
            items=[(item['menu_item_id'], item['quantity']) for item in data.get('items', [])],
            discount_type=data.get('discount_type'),
            discount_value=data.get('discount_value'),
        )
        return success_response(_order_data(order), "Order created successfully", 201)


class OrderDetailView(APIView):
    allowed_roles = ORDER_ROLES
    error_resource = 'ORDER'

    def get(self, request, pk):
        order = _find(order_queryset(), 'Order', pk=pk)
        return success_response(OrderSerializer(order).data, "Order fetched successfully")

    def put(self, request, pk):
        order = _find(Order.objects.all(), 'Order', pk=pk)
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.update_order(order, **serializer.validated_data)
        return success_response(_order_data(order), "Order updated successfully")

    def delete(self, request, pk):
        order = _find(Order.objects.all(), 'Order', pk=pk)
        order_service.delete_order(order)
        return success_response(None, "Order deleted successfully")


class OrderItemsView(APIView):
    allowed_roles = ORDER_ROLES
    error_resource = 'ORDER_ITEM'

    def post(self, request, pk):
        order = _find(Order.objects.select_related('table'), 'Order', pk=pk)
        serializer = OrderItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order, _ = order_service.add_item(order, data['menu_item_id'], data['quantity'])
        return success_response(_order_data(order), "Item added to order successfully")

    def put(self, request, pk):
        order = _find(Order.objects.all(), 'Order', pk=pk)
        serializer = UpdateOrderItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = order_service.update_item_quantity(order, data['item_id'], data['quantity'])
        return success_response(_order_data(order), "Order item updated successfully")

    def delete(self, request, pk):
        order = _find(Order.objects.all(), 'Order', pk=pk)
        item_id = _positive_int(request.query_params.get('item_id'), None)
        if item_id is None:
            raise ValidationFailed("item_id is required", [{"field": "item_id", "message": "item_id is required"}])
        order = order_service.remove_item(order, item_id)
        return success_response(_order_data(order), "Order item deleted successfully")


class OrderItemStatusView(APIView):
    allowed_roles = ITEM_STATUS_ROLES
    error_resource = 'ORDER_ITEM_STATUS'

    def put(self, request, pk, item_id):
        _find(Order.objects.all(), 'Order', pk=pk)
        serializer = OrderItemStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = order_service.set_item_status(pk, item_id, serializer.validated_data['status'])
        line = OrderItem.objects.select_related('menu_item__category').get(pk=line.pk)
        return success_response(OrderItemSerializer(line).data, "Order item status updated successfully")


class OrderInvoiceImageView(APIView):
    allowed_roles = ORDER_ROLES
    error_resource = 'ORDER_INVOICE'

    def get(self, request, pk):
        order = _find(Order.objects.select_related('table'), 'Order', pk=pk)
        invoice = order_invoice(order, ShopInfo.load())
        return png_response(render_png(invoice), invoice.number)


# ------------ EXPENSES ------------
def expense_queryset():
    return Expense.objects.prefetch_related('items__unit')


def _expense_data(expense):
    return ExpenseSerializer(expense_queryset().get(pk=expense.pk)).data


class ExpenseListCreateView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'EXPENSE'

    def get(self, request):
        """?page=&limit=&category=&start_date=&end_date="""
        queryset = expense_queryset().order_by('-date', '-id')
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category)
        start = _date_param(request, 'start_date')
        end = _date_param(request, 'end_date')
        if start:
            queryset = queryset.filter(date__gte=_day_bounds(start, start)[0])
        if end:
            queryset = queryset.filter(date__lte=_day_bounds(end, end)[1])

        page = paginate(request, queryset)
        data = ExpenseSerializer(page.object_list, many=True).data
        return success_response(paginated(data, page), "Expenses fetched successfully")

    def post(self, request):
        serializer = ExpenseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        items = fields.pop('items', [])
        expense = expense_service.create_expense(items=items, **fields)
        return success_response(_expense_data(expense), "Expense created successfully", 201)


class ExpenseDetailView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'EXPENSE'

    def get(self, request, pk):
        expense = _find(expense_queryset(), 'Expense', pk=pk)
        return success_response(ExpenseSerializer(expense).data, "Expense fetched successfully")

    def put(self, request, pk):
        expense = _find(Expense.objects.all(), 'Expense', pk=pk)
        serializer = ExpenseSerializer(expense, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        # items change through /items; amounts always follow the items
        fields.pop('items', None)
        for name, value in fields.items():
            setattr(expense, name, value)
        expense.save()
        return success_response(_expense_data(expense), "Expense updated successfully")

    def delete(self, request, pk):
        expense = _find(Expense.objects.all(), 'Expense', pk=pk)
        expense.delete()
        return success_response(None, "Expense deleted successfully")


class ExpenseItemsView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'EXPENSE_ITEM'

    def post(self, request, pk):
        expense = _find(Expense.objects.all(), 'Expense', pk=pk)
        serializer = ExpenseItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expense = expense_service.add_item(expense, serializer.validated_data)
        return success_response(_expense_data(expense), "Item added successfully")

    def put(self, request, pk):
        expense = _find(Expense.objects.all(), 'Expense', pk=pk)
        serializer = UpdateExpenseItemSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        item_id = data.pop('item_id', None)
        if item_id is None:
            raise ValidationFailed("item_id is required", [{"field": "item_id", "message": "item_id is required"}])
        expense = expense_service.update_item(expense, item_id, data)
        return success_response(_expense_data(expense), "Item updated successfully")

    def delete(self, request, pk):
        expense = _find(Expense.objects.all(), 'Expense', pk=pk)
        item_id = _positive_int(request.query_params.get('item_id'), None)
        if item_id is None:
            raise ValidationFailed("item_id is required", [{"field": "item_id", "message": "item_id is required"}])
        expense = expense_service.remove_item(expense, item_id)
        return success_response(_expense_data(expense), "Item deleted successfully")


class ExpenseInvoiceImageView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'EXPENSE_INVOICE'

    def get(self, request, pk):
        expense = _find(expense_queryset(), 'Expense', pk=pk)
        invoice = expense_invoice(expense, ShopInfo.load())
        return png_response(render_png(invoice), invoice.number)


# ------------ REPORTS ------------
class SalesReportView(APIView):
    allowed_roles = ADMIN_ONLY
    error_resource = 'SALES_REPORT'

    def get(self, request):
        """
        ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD (both optional, default today)
        Totals over finished (done) orders created in that local date range.
        """
        start = _date_param(request, 'start_date') or timezone.localdate()
        end = _date_param(request, 'end_date') or start
        if end < start:
            raise ValidationFailed("end_date must not be before start_date", [
                {"field": "end_date", "message": "end_date must not be before start_date"},
            ])

        qs = Order.objects.filter(status=Order.DONE, created_at__range=_day_bounds(start, end))
        totals = qs.aggregate(
            orders=Count('id'),
            subtotal=Sum('subtotal'),
            discount=Sum('discount_amount'),
            income=Sum('total'),
        )
        count = totals['orders']
        income = money(totals['income'] or 0)
        average = money(income / count) if count else money(0)
        return success_response({
            "start_date": str(start),
            "end_date": str(end),
            "total_orders": count,
            "total_subtotal": str(money(totals['subtotal'] or 0)),
            "total_discount": str(money(totals['discount'] or 0)),
            "total_income": str(income),
            "average_order_value": str(average),
        }, "Sales report fetched successfully")


# ------------ KITCHEN & DELIVERY ------------
class KitchenFeedView(APIView):
    """Shared by the chef and delivery screens: one JSON snapshot, or an SSE feed."""
    fetch_orders = None
    stream = False
    message = "Orders fetched successfully"

    def status_filter(self, request):
        status = request.query_params.get('status') or None
        if status and status not in order_service.ITEM_STATUSES:
            raise ValidationFailed(f"Status must be one of: {', '.join(order_service.ITEM_STATUSES)}", [
                {"field": "status", "message": "Invalid status"},
            ])
        return status

    def snapshot(self, status):
        return KitchenOrderSerializer(self.fetch_orders(status), many=True).data

    def get(self, request):
        status = self.status_filter(request)
        if self.stream:
            feed = PollingEventStream(
                lambda: self.snapshot(status),
                name=f"{self.error_resource.lower()} stream ({request.user.username})",
            )
            return event_stream_response(feed)
        return success_response({"items": self.snapshot(status)}, self.message)


class ChefOrdersView(KitchenFeedView):
    allowed_roles = CHEF_ROLES
    error_resource = 'COOK_ORDERS'
    fetch_orders = staticmethod(chef_orders)
    message = "Cook orders fetched successfully"


class ChefOrdersStreamView(ChefOrdersView):
    stream = True
    renderer_classes = [JSONRenderer, EventStreamRenderer]


class DeliveryItemsView(KitchenFeedView):
    allowed_roles = ORDER_ROLES
    error_resource = 'DELIVERY_ITEMS'
    fetch_orders = staticmethod(delivery_orders)
    message = "Delivery items fetched successfully"


class DeliveryItemsStreamView(DeliveryItemsView):
    stream = True
    renderer_classes = [JSONRenderer, EventStreamRenderer]
