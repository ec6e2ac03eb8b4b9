from decimal import ROUND_HALF_UP, Decimal

from django import template
from django.utils import timezone

from ..models import Category

register = template.Library()


def _group_indian(digits):
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


@register.filter
def inr(value):
    """Format a price as Indian rupees without decimals, e.g. ₹1,25,000."""
    if value in (None, ""):
        return ""
    amount = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(amount)))}"


@register.filter
def listing_subtitle(listing):
    """Short category-specific line shown on feed cards."""
    if listing.category == Category.CARS and listing.year:
        if listing.km_driven:
            return f"{listing.year} - {listing.km_driven} km"
        return str(listing.year)
    if listing.category == Category.PROPERTIES and listing.property_type:
        if listing.bedrooms:
            return f"{listing.property_type} - {listing.bedrooms} BHK"
        return listing.property_type
    return ""


@register.filter
def short_date(value):
    if not value:
        return "Just now"
    value = timezone.localtime(value)
    return f"{value:%b} {value.day}"
