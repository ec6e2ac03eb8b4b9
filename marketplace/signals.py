from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver
import logging

from .accounts import end_session, start_session

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def init_account_context(sender, request, user, **kwargs):
    """
    Build the account context as soon as a user signs in
    """
    if request is None:
        return
    start_session(request, user)
    logger.info(f"Account context started for user {user.pk}")


@receiver(user_logged_out)
def teardown_account_context(sender, request, user, **kwargs):
    if request is None:
        return
    end_session(request)
    if user is not None:
        logger.info(f"Account context cleared for user {user.pk}")
