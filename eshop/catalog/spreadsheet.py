"""
Product import/export as XLSX workbooks (openpyxl).

Workbooks have a "Products" sheet and an optional "Variants" sheet; the
first row of each sheet holds the column headers below.
"""
import logging
from decimal import Decimal, InvalidOperation
from io import BytesIO

from django.db import transaction
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill

from eshop.core.cache_signals import suspend_cache_signals
from eshop.core.cache_utils import invalidate_storefront_cache
from eshop.core.utils import create_slug, unique_slug
from .models import Category, Product, ProductVariant

logger = logging.getLogger(__name__)

PRODUCTS_SHEET = 'Products'
VARIANTS_SHEET = 'Variants'

PRODUCT_COLUMNS = [
    'ID', 'Name', 'Slug', 'Code', 'Category', 'Brand', 'Price', 'Regular price',
    'Stock', 'Short description', 'Detail description', 'Warranty', 'Main image',
]
VARIANT_COLUMNS = [
    'Product ID', 'Product name', 'Color', 'Color code', 'Size', 'Stock',
    'Variant price', 'Variant image',
]

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


class SpreadsheetError(ValueError):
    pass


def _write_sheet(ws, headers, rows):
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)
    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center')
    for row_num, row in enumerate(rows, 2):
        for col_num, value in enumerate(row, 1):
            ws.cell(row=row_num, column=col_num, value=value)
    for col_num, header in enumerate(headers, 1):
        ws.column_dimensions[ws.cell(row=1, column=col_num).column_letter].width = max(12, len(header) + 4)
    ws.freeze_panes = 'A2'


def _number(value):
    return float(value) if value is not None else None


def export_products(queryset=None, template=False):
    """Return the XLSX bytes for ``queryset`` (or an empty template)"""
    wb = Workbook()
    ws_products = wb.active
    ws_products.title = PRODUCTS_SHEET
    ws_variants = wb.create_sheet(VARIANTS_SHEET)

    product_rows = []
    variant_rows = []
    if not template:
        if queryset is None:
            queryset = Product.objects.all()
        queryset = queryset.select_related('category').prefetch_related('variants')
        for product in queryset:
            product_rows.append([
                product.id,
                product.name,
                product.slug,
                product.code,
                product.category.name if product.category else '',
                product.brand,
                _number(product.price),
                _number(product.regular_price),
                product.stock,
                product.description,
                product.detail_description,
                product.warranty,
                product.image,
            ])
            for variant in product.variants.all():
                variant_rows.append([
                    product.id,
                    product.name,
                    variant.color_name,
                    variant.color_code,
                    variant.size_name,
                    variant.stock,
                    _number(variant.price),
                    variant.image_url,
                ])

    _write_sheet(ws_products, PRODUCT_COLUMNS, product_rows)
    _write_sheet(ws_variants, VARIANT_COLUMNS, variant_rows)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _rows_as_dicts(ws):
    rows = ws.iter_rows(values_only=True)
    try:
        headers = [str(h).strip() if h is not None else '' for h in next(rows)]
    except StopIteration:
        return []
    result = []
    for row in rows:
        if row is None or all(value in (None, '') for value in row):
            continue
        result.append(dict(zip(headers, row)))
    return result


def _text(row, column):
    value = row.get(column)
    if value is None:
        return ''
    return str(value).strip()


def _decimal(row, column):
    value = row.get(column)
    if value in (None, ''):
        return None
    if isinstance(value, (int, float, Decimal)):
        cleaned = str(value)
    else:
        cleaned = str(value).replace(' ', '').replace(',', '.')
    try:
        number = Decimal(cleaned).quantize(Decimal('0.01'))
    except InvalidOperation:
        raise SpreadsheetError(f"Invalid number in column '{column}': {value!r}")
    if not number.is_finite():
        raise SpreadsheetError(f"Invalid number in column '{column}': {value!r}")
    if number < 0:
        raise SpreadsheetError(f"Negative value in column '{column}': {value!r}")
    return number


def _int(row, column):
    number = _decimal(row, column)
    return int(number) if number is not None else 0


def _resolve_category(name, cache):
    if not name:
        return None
    key = name.lower()
    if key not in cache:
        category = Category.objects.filter(name__iexact=name).first()
        if category is None:
            category = Category.objects.filter(slug=create_slug(name)).first()
        if category is None:
            category = Category.objects.create(
                name=name,
                slug=unique_slug(Category, name),
                order=Category.objects.filter(parent__isnull=True).count(),
            )
            logger.info(f"Import created category {category.slug}")
        cache[key] = category
    return cache[key]


def _find_product(row):
    product_id = row.get('ID')
    if product_id not in (None, ''):
        try:
            product = Product.objects.filter(pk=int(product_id)).first()
        except (TypeError, ValueError):
            product = None
        if product:
            return product
    slug = _text(row, 'Slug')
    if slug:
        product = Product.objects.filter(slug=slug).first()
        if product:
            return product
    name = _text(row, 'Name')
    return Product.objects.filter(name=name).first() if name else None


def _import_product_row(row, category_cache):
    name = _text(row, 'Name')
    if not name:
        raise SpreadsheetError('Missing name')

    fields = {
        'name': name,
        'price': _decimal(row, 'Price') or Decimal('0.00'),
        'regular_price': _decimal(row, 'Regular price'),
        'stock': _int(row, 'Stock'),
    }
    optional = {
        'code': _text(row, 'Code'),
        'brand': _text(row, 'Brand'),
        'description': _text(row, 'Short description'),
        'detail_description': _text(row, 'Detail description'),
        'warranty': _text(row, 'Warranty'),
        'image': _text(row, 'Main image'),
    }
    category = _resolve_category(_text(row, 'Category'), category_cache)

    product = _find_product(row)
    if product is not None:
        for attr, value in fields.items():
            setattr(product, attr, value)
        # Blank cells keep the stored values
        for attr, value in optional.items():
            if value:
                setattr(product, attr, value)
        if category is not None:
            product.category = category
        product.save()
        return product, 'updated'

    slug = _text(row, 'Slug')
    if not slug or Product.objects.filter(slug=slug).exists():
        slug = unique_slug(Product, slug or name)
    product = Product.objects.create(slug=slug, category=category, **fields, **optional)
    return product, 'created'


def _import_variant_row(row):
    product = None
    product_id = row.get('Product ID')
    if product_id not in (None, ''):
        try:
            product = Product.objects.filter(pk=int(product_id)).first()
        except (TypeError, ValueError):
            product = None
    if product is None:
        name = _text(row, 'Product name')
        product = Product.objects.filter(name=name).first() if name else None
    if product is None:
        raise SpreadsheetError(f"Product not found for variant: {row.get('Product name') or product_id}")

    color = _text(row, 'Color')
    size = _text(row, 'Size')
    values = {
        'color_code': _text(row, 'Color code'),
        'stock': _int(row, 'Stock'),
        'price': _decimal(row, 'Variant price'),
        'image_url': _text(row, 'Variant image'),
    }
    variant, created = ProductVariant.objects.update_or_create(
        product=product, color_name=color, size_name=size, defaults=values
    )
    return variant, created


def import_products(file_obj):
    """
    Create or update products (and variants) from an uploaded workbook.

    Rows are matched by ID, then slug, then exact name. Each row is applied
    on its own; failures are reported per row and do not stop the import.
    """
    try:
        wb = load_workbook(file_obj, read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetError(f"Could not read workbook: {str(e)}") from e

    products_ws = wb[PRODUCTS_SHEET] if PRODUCTS_SHEET in wb.sheetnames else wb.worksheets[0]
    result = {'success': True, 'created': 0, 'updated': 0, 'variants': 0, 'errors': [], 'details': []}
    category_cache = {}

    with suspend_cache_signals():
        for index, row in enumerate(_rows_as_dicts(products_ws), start=2):
            try:
                with transaction.atomic():
                    product, action = _import_product_row(row, category_cache)
            except SpreadsheetError as e:
                result['errors'].append(f"Row {index}: {str(e)}")
                result['details'].append({'row': index, 'product_name': _text(row, 'Name'), 'action': 'error', 'message': str(e)})
                continue
            result[action] += 1
            result['details'].append({'row': index, 'product_name': product.name, 'action': action})

        if VARIANTS_SHEET in wb.sheetnames and wb[VARIANTS_SHEET] is not products_ws:
            for index, row in enumerate(_rows_as_dicts(wb[VARIANTS_SHEET]), start=2):
                try:
                    with transaction.atomic():
                        _import_variant_row(row)
                except SpreadsheetError as e:
                    result['errors'].append(f"Variants row {index}: {str(e)}")
                    continue
                result['variants'] += 1

    wb.close()
    invalidate_storefront_cache()
    logger.info(f"Product import finished: {result['created']} created, {result['updated']} updated, {len(result['errors'])} errors")
    return result
