"""
Printable receipts for orders and expenses.

Receipts are laid out as plain text rows and drawn onto a narrow PNG sized
for an 80mm thermal printer.
"""
import io
from collections import OrderedDict, namedtuple
from decimal import Decimal

from django.conf import settings
from django.utils import timezone
from PIL import Image, ImageDraw, ImageFont

InvoiceLine = namedtuple('InvoiceLine', ['name', 'quantity', 'unit_price', 'total'])
Invoice = namedtuple('Invoice', ['number', 'header', 'lines', 'footer'])

WIDTH = 450
MARGIN = 15
ROW = 20


def _fmt(value):
    return f"{Decimal(value):,.2f}"


def _qty(value):
    value = Decimal(value)
    return f"{value.normalize():f}" if value != value.to_integral() else str(int(value))


def _shop_header(shop):
    header = [shop.name]
    for extra in (shop.address, shop.phone, shop.email):
        if extra:
            header.append(extra)
    if shop.tax_id:
        header.append(f"Tax ID: {shop.tax_id}")
    return header


def group_order_lines(items):
    """Same dish at the same price prints as one line."""
    grouped = OrderedDict()
    for item in items:
        key = (item.menu_item.name, item.unit_price)
        if key not in grouped:
            grouped[key] = [0, Decimal('0.00')]
        grouped[key][0] += item.quantity
        grouped[key][1] += item.total_price
    return [
        InvoiceLine(name, quantity, unit_price, total)
        for (name, unit_price), (quantity, total) in grouped.items()
    ]


def order_invoice(order, shop):
    header = _shop_header(shop) + [
        f"Invoice #{order.order_number}",
        f"Date: {timezone.localtime(order.created_at):%d/%m/%Y %H:%M}",
    ]
    if order.table_id:
        header.append(f"Table: {order.table.name or order.table.number}")
    if order.customer_name:
        header.append(f"Customer: {order.customer_name}")

    items = order.items.select_related('menu_item').order_by('created_at', 'id')
    footer = [("Subtotal", _fmt(order.subtotal))]
    if order.discount_amount:
        label = "Discount"
        if order.discount_type == 'percentage':
            label = f"Discount ({order.discount_value.normalize():f}%)"
        footer.append((label, f"-{_fmt(order.discount_amount)}"))
    footer.append(("Total", _fmt(order.total)))
    return Invoice(order.order_number, header, group_order_lines(items), footer)


def expense_invoice(expense, shop):
    header = _shop_header(shop) + [
        f"Expense: {expense.title}",
        f"Date: {timezone.localtime(expense.date):%d/%m/%Y}",
    ]
    if expense.vendor:
        header.append(f"Vendor: {expense.vendor}")
    if expense.receipt_number:
        header.append(f"Receipt: {expense.receipt_number}")

    lines = [
        InvoiceLine(f"{item.product_name} ({item.currency})", item.quantity, item.unit_price, item.total_price)
        for item in expense.items.all()
    ]
    footer = [
        ("Total USD", _fmt(expense.amount_usd)),
        ("Total KHR (items)", _fmt(expense.amount_khr)),
        ("Grand total KHR", _fmt(expense.amount)),
    ]
    return Invoice(f"EXP{expense.pk:06d}", header, lines, footer)


def _font():
    path = settings.RESTAURANT.get('INVOICE_FONT')
    if path:
        return ImageFont.truetype(path, 14)
    return ImageFont.load_default()


def render_png(invoice):
    font = _font()
    rows = len(invoice.header) + 2 * len(invoice.lines) + len(invoice.footer) + 4
    image = Image.new('RGB', (WIDTH, MARGIN * 2 + rows * ROW), 'white')
    draw = ImageDraw.Draw(image)
    right = WIDTH - MARGIN
    y = MARGIN

    def rule():
        nonlocal y
        draw.line((MARGIN, y + ROW // 2, right, y + ROW // 2), fill='black')
        y += ROW

    def right_text(text, top):
        draw.text((right - draw.textlength(text, font=font), top), text, fill='black', font=font)

    for text in invoice.header:
        draw.text(((WIDTH - draw.textlength(text, font=font)) / 2, y), text, fill='black', font=font)
        y += ROW
    rule()

    for line in invoice.lines:
        draw.text((MARGIN, y), line.name, fill='black', font=font)
        y += ROW
        draw.text((MARGIN + 10, y), f"{_qty(line.quantity)} x {_fmt(line.unit_price)}", fill='black', font=font)
        right_text(_fmt(line.total), y)
        y += ROW
    rule()

    for label, value in invoice.footer:
        draw.text((MARGIN, y), label, fill='black', font=font)
        right_text(value, y)
        y += ROW

    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()
