"""
Utility functions for catalog operations: category ordering, hierarchy
checks and product duplication
"""
import logging

from django.db import transaction
from django.db.models import F

from eshop.core.cache_utils import invalidate_storefront_cache
from eshop.core.utils import unique_slug
from .models import Category, Product, ProductImage, ProductVariant

logger = logging.getLogger(__name__)

REORDER_STEP = 1
MOVE_STEP = 10


class CategoryOrderError(ValueError):
    pass


def get_descendant_ids(category):
    """Ids of every category below ``category`` in the tree"""
    descendant_ids = set()
    frontier = [category.pk]
    while frontier:
        child_ids = list(
            Category.objects.filter(parent_id__in=frontier)
            .exclude(pk__in=descendant_ids)
            .values_list('pk', flat=True)
        )
        child_ids = [pk for pk in child_ids if pk != category.pk]
        descendant_ids.update(child_ids)
        frontier = child_ids
    return descendant_ids


def would_create_cycle(category, new_parent):
    """
    True if making ``new_parent`` the parent of ``category`` would close a loop.

    Walks parent pointers upward from the proposed parent; reaching the
    category being edited (or starting on it) means a cycle.
    """
    if new_parent is None or category.pk is None:
        return False
    if new_parent.pk == category.pk:
        return True

    seen = set()
    node = new_parent
    while node is not None:
        if node.pk == category.pk:
            return True
        if node.pk in seen:
            # Pre-existing loop in stored data that does not involve this category
            return False
        seen.add(node.pk)
        node = node.parent
    return False


def siblings_of(category):
    return Category.objects.filter(parent_id=category.parent_id).exclude(pk=category.pk)


def reorder_category(category, new_order, step=REORDER_STEP):
    """
    Move ``category`` to ``new_order`` among its siblings.

    Moving up shifts siblings in [new, old) by +step; moving down shifts
    siblings in (old, new] by -step. Runs in one transaction.
    """
    new_order = int(new_order)
    with transaction.atomic():
        category = Category.objects.select_for_update().get(pk=category.pk)
        old_order = category.order

        if new_order < old_order:
            siblings_of(category).filter(
                order__gte=new_order, order__lt=old_order
            ).update(order=F('order') + step)
        elif new_order > old_order:
            siblings_of(category).filter(
                order__gt=old_order, order__lte=new_order
            ).update(order=F('order') - step)

        category.order = new_order
        category.save(update_fields=['order', 'updated_at'])

    logger.info(f"Category {category.pk} reordered {old_order} -> {new_order}")
    return category


def move_category(category, direction, step=MOVE_STEP):
    """
    Swap ``category`` with its neighbour in ``direction`` ('up' or 'down').

    When both share the same order value the moved category is pushed
    ``step`` past the neighbour so the two become distinct.
    Returns the list of categories whose order changed.
    """
    if direction not in ('up', 'down'):
        raise CategoryOrderError("Direction must be 'up' or 'down'")

    with transaction.atomic():
        category = Category.objects.select_for_update().get(pk=category.pk)
        siblings = list(
            Category.objects.filter(parent_id=category.parent_id).order_by('order', 'name', 'pk')
        )
        index = next(i for i, c in enumerate(siblings) if c.pk == category.pk)
        neighbour_index = index - 1 if direction == 'up' else index + 1
        if neighbour_index < 0 or neighbour_index >= len(siblings):
            raise CategoryOrderError(f"Category is already at the {'top' if direction == 'up' else 'bottom'}")

        neighbour = siblings[neighbour_index]
        if neighbour.order == category.order:
            category_order = category.order - step if direction == 'up' else category.order + step
            neighbour_order = neighbour.order
        else:
            category_order, neighbour_order = neighbour.order, category.order

        category.order = category_order
        neighbour.order = neighbour_order
        category.save(update_fields=['order', 'updated_at'])
        neighbour.save(update_fields=['order', 'updated_at'])

    return [category, neighbour]


def apply_bulk_order(updates):
    """
    Apply ``[{'id': ..., 'order': ...}, ...]`` in a single transaction.

    Raises CategoryOrderError for malformed entries or unknown ids; nothing
    is written in that case.
    """
    parsed = []
    for entry in updates:
        if not isinstance(entry, dict) or 'id' not in entry or 'order' not in entry:
            raise CategoryOrderError('Each entry needs "id" and "order"')
        try:
            parsed.append((int(entry['id']), int(entry['order'])))
        except (TypeError, ValueError):
            raise CategoryOrderError(f"Invalid id/order pair: {entry!r}")

    ids = [pk for pk, _ in parsed]
    with transaction.atomic():
        categories = Category.objects.select_for_update().in_bulk(ids)
        missing = sorted(set(ids) - set(categories))
        if missing:
            raise CategoryOrderError(f"Unknown category ids: {missing}")
        for pk, order in parsed:
            category = categories[pk]
            category.order = order
        Category.objects.bulk_update(list(categories.values()), ['order'])
        # bulk_update bypasses the model signals
        transaction.on_commit(invalidate_storefront_cache)
    return len(parsed)


def duplicate_product(product):
    """Copy a product with its images and variants under a fresh slug"""
    with transaction.atomic():
        images = list(product.images.all())
        variants = list(product.variants.all())

        copy = Product.objects.get(pk=product.pk)
        copy.pk = None
        copy.id = None
        copy.name = f"{product.name} (copy)"
        copy.slug = unique_slug(Product, copy.name)
        copy.code = ''
        copy.sold_count = 0
        copy.average_rating = 0
        copy.total_ratings = 0
        copy.save()

        ProductImage.objects.bulk_create([
            ProductImage(product=copy, url=image.url, alt=image.alt, order=image.order)
            for image in images
        ])
        ProductVariant.objects.bulk_create([
            ProductVariant(
                product=copy,
                color_name=variant.color_name,
                color_code=variant.color_code,
                size_name=variant.size_name,
                size_order=variant.size_order,
                stock=variant.stock,
                price=variant.price,
                regular_price=variant.regular_price,
                image_url=variant.image_url,
                order=variant.order,
                is_active=variant.is_active,
            )
            for variant in variants
        ])
    return copy
