"""Shared helpers: request metadata, slugs and list pagination"""
import re
import unicodedata

from django.core.paginator import Paginator

# Letters NFKD does not decompose into an ASCII base
SLUG_CHAR_MAP = {
    'ł': 'l', 'Ł': 'l',
    'đ': 'd', 'Đ': 'd',
    'ß': 'ss',
    'ø': 'o', 'Ø': 'o',
    'æ': 'ae', 'Æ': 'ae',
}


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_slug(text):
    """
    Build a URL-safe slug from a display name.

    Accented characters are folded to their ASCII base
    ("Příslušenství" -> "prislusenstvi", "Łódź" -> "lodz").
    """
    if not text:
        return ''
    for char, replacement in SLUG_CHAR_MAP.items():
        text = text.replace(char, replacement)
    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))
    text = text.lower()
    text = re.sub(r'[^a-z0-9]+', '-', text)
    return text.strip('-')


def unique_slug(model, text, exclude_pk=None, field='slug'):
    """
    Return a slug for ``text`` that is not yet used by ``model``.

    Collisions get a numeric suffix: ``phone-case``, ``phone-case-2``, ...
    """
    base = create_slug(text) or 'item'
    candidate = base
    counter = 2
    queryset = model.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    while queryset.filter(**{field: candidate}).exists():
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def parse_int(value, default, minimum=None, maximum=None):
    """Parse a query parameter as int, falling back to ``default``"""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if minimum is not None and number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


def paginate(request, queryset, serializer_class, default_limit=20, max_limit=200, context=None):
    """
    Paginate ``queryset`` from ``page``/``limit`` query parameters.

    Returns the response payload used by every paginated list endpoint.
    """
    page = parse_int(request.query_params.get('page'), 1, minimum=1)
    limit = parse_int(request.query_params.get('limit'), default_limit, minimum=1, maximum=max_limit)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
