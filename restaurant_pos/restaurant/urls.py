from django.urls import path
from . import views

urlpatterns = [
    # Auth
    path('auth/login', views.LoginView.as_view(), name='auth-login'),
    path('auth/me', views.MeView.as_view(), name='auth-me'),

    # Public menu
    path('menu', views.PublicMenuView.as_view(), name='menu'),
    path('categories', views.PublicCategoryListView.as_view(), name='categories'),
    path('table-types', views.PublicTableTypeListView.as_view(), name='table-types'),

    # Admin: catalogue
    path('admin/categories', views.CategoryListCreateView.as_view(), name='category-list'),
    path('admin/categories/<int:pk>', views.CategoryDetailView.as_view(), name='category-detail'),
    path('admin/table-types', views.TableTypeListCreateView.as_view(), name='table-type-list'),
    path('admin/table-types/<int:pk>', views.TableTypeDetailView.as_view(), name='table-type-detail'),
    path('admin/tables', views.TableListCreateView.as_view(), name='table-list'),
    path('admin/tables/<int:pk>', views.TableDetailView.as_view(), name='table-detail'),
    path('admin/menu-items', views.MenuItemListCreateView.as_view(), name='menu-item-list'),
    path('admin/menu-items/<int:pk>', views.MenuItemDetailView.as_view(), name='menu-item-detail'),
    path('admin/units', views.UnitListCreateView.as_view(), name='unit-list'),
    path('admin/units/<int:pk>', views.UnitDetailView.as_view(), name='unit-detail'),
    path('admin/products', views.ProductListCreateView.as_view(), name='product-list'),
    path('admin/products/<int:pk>', views.ProductDetailView.as_view(), name='product-detail'),

    # Admin: people & shop
    path('admin/users', views.UserListCreateView.as_view(), name='user-list'),
    path('admin/users/<int:pk>', views.UserDetailView.as_view(), name='user-detail'),
    path('admin/roles', views.RoleListView.as_view(), name='role-list'),
    path('admin/shop-info', views.ShopInfoView.as_view(), name='shop-info'),

    # Orders
    path('admin/orders', views.OrderListCreateView.as_view(), name='order-list'),
    path('admin/orders/<int:pk>', views.OrderDetailView.as_view(), name='order-detail'),
    path('admin/orders/<int:pk>/items', views.OrderItemsView.as_view(), name='order-items'),
    path('admin/orders/<int:pk>/items/<int:item_id>/status', views.OrderItemStatusView.as_view(), name='order-item-status'),
    path('admin/orders/<int:pk>/invoice-image', views.OrderInvoiceImageView.as_view(), name='order-invoice-image'),

    # Expenses
    path('admin/expenses', views.ExpenseListCreateView.as_view(), name='expense-list'),
    path('admin/expenses/<int:pk>', views.ExpenseDetailView.as_view(), name='expense-detail'),
    path('admin/expenses/<int:pk>/items', views.ExpenseItemsView.as_view(), name='expense-items'),
    path('admin/expenses/<int:pk>/invoice-image', views.ExpenseInvoiceImageView.as_view(), name='expense-invoice-image'),

    # Reports
    path('admin/reports/sales', views.SalesReportView.as_view(), name='report-sales'),

    # Kitchen & delivery
    path('chef/orders', views.ChefOrdersView.as_view(), name='chef-orders'),
    path('chef/orders/stream', views.ChefOrdersStreamView.as_view(), name='chef-orders-stream'),
    path('delivery/items', views.DeliveryItemsView.as_view(), name='delivery-items'),
    path('delivery/items/stream', views.DeliveryItemsStreamView.as_view(), name='delivery-items-stream'),
]
