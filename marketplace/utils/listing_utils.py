# utils/listing_utils.py
from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
import logging

from ..models import Listing, ListingImage
from ..storage import upload_listing_images

logger = logging.getLogger(__name__)


def create_listing(owner, fields, images):
    """
    Validate the listing, upload the images, then write the listing and its
    image rows.

    An invalid record raises ValidationError before any file is stored. The
    listing only exists once every image is stored. Raises UploadError if a
    file can't be stored; nothing is written to the database then.
    """
    listing = Listing(owner=owner, **fields)
    listing.full_clean()

    stored_names = upload_listing_images(owner.pk, images)
    with transaction.atomic():
        listing.save()
        ListingImage.objects.bulk_create(
            [
                ListingImage(listing=listing, image=name, order=index)
                for index, name in enumerate(stored_names)
            ]
        )
    logger.info(f"Listing {listing.pk} created by user {owner.pk} with {len(stored_names)} image(s)")
    return listing


def get_owned_listing(listing, user):
    if listing.owner_id != user.pk:
        raise PermissionDenied(f"User {user.pk} does not own listing {listing.pk}")
    return listing


def delete_listing(listing, user):
    """Delete the record only; its files stay in storage."""
    get_owned_listing(listing, user)
    listing_id = listing.pk
    listing.delete()
    logger.info(f"Listing {listing_id} deleted by user {user.pk}")


def boost_listing(listing, user, payment_id):
    """
    Mark a listing boosted after the checkout reported success.

    The payment id is only logged; it is not verified with the provider.
    """
    get_owned_listing(listing, user)
    if not payment_id:
        raise ValidationError("Missing payment reference.")
    listing.mark_boosted()
    logger.info(
        f"Listing {listing.pk} boosted until {listing.boosted_until.isoformat()} (payment {payment_id})"
    )
    return listing


def checkout_options(listing, account):
    """Options handed to the Razorpay checkout widget for boosting ``listing``."""
    return {
        "key": settings.RAZORPAY_KEY_ID,
        "amount": settings.BOOST_AMOUNT_PAISE,
        "currency": settings.BOOST_CURRENCY,
        "name": settings.MARKETPLACE_NAME,
        "description": f"Boost Ad: {listing.title}",
        "prefill": {
            "name": account.name,
            "email": account.email,
            "contact": "",
        },
        "theme": {"color": settings.BOOST_THEME_COLOR},
    }


def carousel_position(index, count):
    """
    Current, previous and next image indexes, wrapping at both ends.

    ``index`` may be out of range (e.g. straight from the query string).
    """
    if count <= 0:
        return 0, 0, 0
    current = index % count
    return current, (current - 1) % count, (current + 1) % count
