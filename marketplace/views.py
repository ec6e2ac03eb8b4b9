# marketplace/views.py
from django.conf import settings
from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View
from django.views.decorators.http import require_POST
import logging

from .accounts import refresh_session
from .forms import ListingForm, LoginForm, ProfileForm, RegisterForm
from .models import Listing, User
from .storage import UploadError, avatar_path, upload
from .utils.feed_utils import ALL_CATEGORIES, load_feed
from .utils.listing_utils import (
    boost_listing,
    carousel_position,
    checkout_options,
    create_listing,
    delete_listing,
)

logger = logging.getLogger(__name__)


def _is_ajax(request):
    return request.headers.get("X-Requested-With") == "XMLHttpRequest"


def _safe_next(request, fallback="marketplace:home"):
    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return next_url
    return fallback


def home(request):
    selected_category = request.GET.get("category") or ALL_CATEGORIES
    try:
        listings = load_feed(selected_category)
    except DatabaseError as e:
        logger.error(f"Error fetching listings: {str(e)}", exc_info=True)
        messages.error(request, "Could not load listings. Please try again.")
        listings = []

    context = {
        "listings": listings,
        "selected_category": selected_category,
    }
    return render(request, "home.html", context)


def product_detail(request, listing_id):
    """Display one listing with its image carousel and seller card"""
    listing = (
        Listing.objects.select_related("owner__profile")
        .prefetch_related("images")
        .filter(pk=listing_id)
        .first()
    )
    if listing is None:
        return render(request, "product_not_found.html", status=404)

    image_urls = listing.image_urls
    try:
        requested = int(request.GET.get("image", 0))
    except ValueError:
        requested = 0
    current, previous, following = carousel_position(requested, len(image_urls))

    context = {
        "listing": listing,
        "seller": getattr(listing.owner, "profile", None),
        "image_urls": image_urls,
        "active_image": image_urls[current] if image_urls else None,
        "active_index": current,
        "previous_index": previous,
        "next_index": following,
    }
    return render(request, "product_detail.html", context)


@login_required
def add_product(request):
    if request.method == "POST":
        form = ListingForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                create_listing(request.user, form.listing_fields(), form.cleaned_data["images"])
            except (UploadError, DatabaseError, ValidationError) as e:
                logger.error(f"Error creating listing for user {request.user.pk}: {str(e)}")
                form.add_error(None, "Failed to create listing. Please try again.")
            else:
                messages.success(request, "Your ad has been posted!")
                return redirect("marketplace:home")
    else:
        form = ListingForm()

    return render(request, "add_product.html", {"form": form})


@login_required
def my_products(request):
    listings = Listing.objects.owned_by(request.user).newest_first().prefetch_related("images")
    context = {
        "listings": listings,
        "checkout_options": {
            str(listing.pk): checkout_options(listing, request.account) for listing in listings
        },
        "razorpay_checkout_url": settings.RAZORPAY_CHECKOUT_URL,
    }
    return render(request, "my_products.html", context)


@login_required
@require_POST
def delete_product(request, listing_id):
    listing = get_object_or_404(Listing, pk=listing_id)
    try:
        delete_listing(listing, request.user)
    except PermissionDenied:
        messages.error(request, "You are not authorized to delete this ad.")
    except DatabaseError as e:
        logger.error(f"Error deleting listing {listing_id}: {str(e)}", exc_info=True)
        messages.error(request, "Failed to delete product.")
    else:
        messages.success(request, "Your ad has been deleted.")
    return redirect("marketplace:my_products")


@login_required
@require_POST
def boost_product(request, listing_id):
    """Success callback of the boost checkout"""
    listing = get_object_or_404(Listing, pk=listing_id)
    payment_id = request.POST.get("razorpay_payment_id", "").strip()

    try:
        boost_listing(listing, request.user, payment_id)
    except PermissionDenied:
        error, status = "You are not authorized to boost this ad.", 403
    except ValidationError as e:
        error, status = e.messages[0], 400
    except DatabaseError as e:
        logger.error(
            f"Payment {payment_id} succeeded but listing {listing_id} was not boosted: {str(e)}",
            exc_info=True,
        )
        error, status = "Payment successful but failed to update ad status. Please contact support.", 500
    else:
        success = f"Success! Payment ID: {payment_id}. Your ad is now boosted for {settings.BOOST_DURATION_DAYS} days."
        if _is_ajax(request):
            return JsonResponse(
                {
                    "success": True,
                    "message": success,
                    "boosted_until": listing.boosted_until.isoformat(),
                }
            )
        messages.success(request, success)
        return redirect("marketplace:my_products")

    if _is_ajax(request):
        return JsonResponse({"success": False, "error": error}, status=status)
    messages.error(request, error)
    return redirect("marketplace:my_products")


@login_required
def profile(request):
    """Display and edit the user's profile (/profile/ and /profile/edit/)"""
    user = request.user
    profile = user.profile

    if request.method == "POST":
        form = ProfileForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                avatar = form.cleaned_data.get("avatar")
                if avatar:
                    stored_name, _ = upload(avatar_path(user.pk, avatar.name), avatar)
                    profile.avatar = stored_name
                profile.name = form.cleaned_data["name"].strip()
                user.first_name = profile.name[:150]
                user.save(update_fields=["first_name"])
                profile.save()
            except (UploadError, DatabaseError) as e:
                logger.error(f"Error updating profile for user {user.pk}: {str(e)}")
                messages.error(request, "Failed to update profile.")
            else:
                refresh_session(request)
                messages.success(request, "Profile updated successfully!")
                return redirect("marketplace:profile")
    else:
        form = ProfileForm(initial={"name": profile.display_name})

    context = {
        "form": form,
        "profile": profile,
    }
    return render(request, "profile.html", context)


class RegisterView(View):
    template_name = "register.html"

    def get(self, request):
        if request.user.is_authenticated:
            return redirect("marketplace:home")
        return render(request, self.template_name, {"form": RegisterForm()})

    def post(self, request):
        form = RegisterForm(request.POST)
        if not form.is_valid():
            return render(request, self.template_name, {"form": form}, status=400)

        cd = form.cleaned_data
        try:
            user = User.objects.create_user(
                username=cd["email"],
                email=cd["email"],
                password=cd["password"],
                first_name=cd["name"].strip(),
            )
        except DatabaseError as e:
            logger.error(f"Error registering {cd['email']}: {str(e)}", exc_info=True)
            messages.error(request, "An error occurred during registration. Please try again.")
            return render(request, self.template_name, {"form": form})

        login(request, user, backend="django.contrib.auth.backends.ModelBackend")
        messages.success(request, f"Welcome, {user.profile.display_name}!")
        return redirect("marketplace:home")


def login_view(request):
    if request.user.is_authenticated:
        return redirect("marketplace:home")

    if request.method == "POST":
        form = LoginForm(request.POST, request=request)
        if form.is_valid():
            login(request, form.user)
            messages.success(request, f"Welcome back, {form.user.profile.display_name}!")
            return redirect(_safe_next(request))
    else:
        form = LoginForm()

    return render(request, "login.html", {"form": form, "next": request.GET.get("next", "")})


def logout_view(request):
    if request.user.is_authenticated:
        logout(request)
        messages.success(request, "You have been logged out successfully.")
    return redirect("marketplace:home")
