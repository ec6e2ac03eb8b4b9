from django.conf import settings

from .accounts import AccountContext
from .utils.feed_utils import category_choices


def marketplace(request):
    """
    Expose the signed-in account and the category bar to all templates.
    """
    return {
        "account": getattr(request, "account", AccountContext.anonymous()),
        "categories": category_choices(),
        "marketplace_name": settings.MARKETPLACE_NAME,
    }
