# utils/feed_utils.py
"""Listing feed: boost-priority ordering and category filtering."""

from ..models import Category, Listing

ALL_CATEGORIES = "All"


def boosted_first(listings):
    """
    Move boosted listings ahead of the rest.

    ``sorted`` is stable, so each group keeps the order it arrived in
    (newest first when fed from ``Listing.objects.newest_first()``).
    """
    return sorted(listings, key=lambda listing: not listing.is_boosted)


def filter_by_category(listings, category):
    if not category or category == ALL_CATEGORIES:
        return list(listings)
    return [listing for listing in listings if listing.category == category]


def load_feed(category=ALL_CATEGORIES):
    listings = Listing.objects.newest_first().select_related("owner").prefetch_related("images")
    return filter_by_category(boosted_first(listings), category)


def category_choices():
    return [ALL_CATEGORIES] + [value for value, _ in Category.choices]
