import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from io import BytesIO
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth.models import User
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, Client, override_settings
from django.urls import reverse
from django.utils import timezone
from PIL import Image

from .accounts import SESSION_KEY, AccountContext
from .models import Category, Listing, ListingImage, UserProfile
from .storage import UploadError, upload_listing_images
from .templatetags.marketplace_extras import inr, listing_subtitle, short_date
from .utils.feed_utils import boosted_first, filter_by_category, load_feed
from .utils.listing_utils import (
    boost_listing,
    carousel_position,
    checkout_options,
    create_listing,
    delete_listing,
)

MEDIA_ROOT = tempfile.mkdtemp(prefix="marketplace-tests-")


def create_test_image(name="test.png", size=(100, 100), color="red"):
    """Helper function to create a test image file"""
    file = BytesIO()
    image = Image.new("RGB", size, color)
    image.save(file, "PNG")
    file.seek(0)
    return SimpleUploadedFile(name, file.read(), content_type="image/png")


def make_user(email, password="testpass123", name=""):
    return User.objects.create_user(username=email, email=email, password=password, first_name=name)


def make_listing(owner, title="Item", category=Category.OTHER, days_ago=0, boosted=False, **fields):
    return Listing.objects.create(
        owner=owner,
        title=title,
        description=f"{title} description",
        price=fields.pop("price", Decimal("100.00")),
        category=category,
        created_at=timezone.now() - timedelta(days=days_ago),
        is_boosted=boosted,
        **fields,
    )


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class MarketplaceTestCase(TestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.client = Client()
        self.user = make_user("seller@example.com", name="Test Seller")

    def login(self, user=None):
        user = user or self.user
        self.client.login(username=user.username, password="testpass123")

    def messages_of(self, response):
        return [str(m) for m in response.context["messages"]]


class FeedOrderingTests(MarketplaceTestCase):
    """Boost-priority ordering and category filtering of the feed"""

    def test_boosted_listings_first_keeping_date_order(self):
        """A(boosted, day 1), B(day 3), C(boosted, day 2) -> [A, C, B]"""
        make_listing(self.user, "A", days_ago=1, boosted=True)
        make_listing(self.user, "B", days_ago=3)
        make_listing(self.user, "C", days_ago=2, boosted=True)

        self.assertEqual([l.title for l in load_feed()], ["A", "C", "B"])

    def test_partitions_keep_newest_first(self):
        for days_ago, boosted in [(5, False), (1, True), (0, False), (4, True), (2, False), (3, True)]:
            make_listing(self.user, f"{days_ago}-{boosted}", days_ago=days_ago, boosted=boosted)

        feed = load_feed()
        flags = [l.is_boosted for l in feed]
        self.assertEqual(flags, sorted(flags, reverse=True))

        boosted = [l.created_at for l in feed if l.is_boosted]
        rest = [l.created_at for l in feed if not l.is_boosted]
        self.assertEqual(boosted, sorted(boosted, reverse=True))
        self.assertEqual(rest, sorted(rest, reverse=True))

    def test_boosted_first_is_stable(self):
        items = [
            SimpleNamespace(name="n1", is_boosted=False),
            SimpleNamespace(name="b1", is_boosted=True),
            SimpleNamespace(name="n2", is_boosted=False),
            SimpleNamespace(name="b2", is_boosted=True),
        ]
        self.assertEqual([i.name for i in boosted_first(items)], ["b1", "b2", "n1", "n2"])

    def test_filter_by_category_returns_exact_subset(self):
        car = make_listing(self.user, "Car", category=Category.CARS, days_ago=2)
        make_listing(self.user, "Sofa", category=Category.FURNITURE, days_ago=1)
        boosted_car = make_listing(self.user, "Jeep", category=Category.CARS, boosted=True)

        self.assertEqual(load_feed(Category.CARS), [boosted_car, car])

    def test_all_returns_full_ordered_set(self):
        listings = [make_listing(self.user, str(i), days_ago=i) for i in range(3)]
        self.assertEqual(load_feed("All"), listings)
        self.assertEqual(filter_by_category(listings, None), listings)

    def test_unknown_category_matches_nothing(self):
        make_listing(self.user, "Phone", category=Category.MOBILES)
        self.assertEqual(load_feed("Boats"), [])


class HomeViewTests(MarketplaceTestCase):
    def test_empty_feed_shows_empty_state(self):
        response = self.client.get(reverse("marketplace:home"))

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "home.html")
        self.assertContains(response, "No products found")

    def test_featured_badge_only_on_boosted_listings(self):
        make_listing(self.user, "Plain bike", category=Category.BIKES)
        make_listing(self.user, "Shiny bike", category=Category.BIKES, boosted=True)

        response = self.client.get(reverse("marketplace:home"))

        self.assertContains(response, "FEATURED", count=1)
        self.assertEqual(
            [l.title for l in response.context["listings"]], ["Shiny bike", "Plain bike"]
        )

    def test_category_query_param_filters_feed(self):
        make_listing(self.user, "Flat", category=Category.PROPERTIES)
        make_listing(self.user, "Shirt", category=Category.FASHION)

        response = self.client.get(reverse("marketplace:home"), {"category": "Fashion"})

        self.assertEqual([l.title for l in response.context["listings"]], ["Shirt"])
        self.assertEqual(response.context["selected_category"], "Fashion")

    def test_card_shows_price_and_subtitle(self):
        make_listing(
            self.user, "Swift", category=Category.CARS, price=Decimal("350000"), year=2018, km_driven=50000
        )

        response = self.client.get(reverse("marketplace:home"))

        self.assertContains(response, "₹3,50,000")
        self.assertContains(response, "2018 - 50000 km")


class CreateListingTests(MarketplaceTestCase):
    """Tests for the add_product view (listing creation)"""

    def setUp(self):
        super().setUp()
        self.url = reverse("marketplace:add_product")

    def post_listing(self, images=None, follow=False, **overrides):
        data = {
            "title": "Notebook",
            "description": "A great notebook for class notes",
            "price": "299",
            "category": Category.ELECTRONICS,
        }
        data.update(overrides)
        if images is None:
            images = [create_test_image("photo.png")]
        data["images"] = images
        return self.client.post(self.url, data, follow=follow)

    def test_add_product_requires_login(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("marketplace:login"), response.url)

    def test_add_product_page_loads_for_authenticated_user(self):
        self.login()
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "add_product.html")

    def test_create_listing_success(self):
        self.login()
        response = self.post_listing(images=[create_test_image(f"p{i}.png") for i in range(3)])

        self.assertRedirects(response, reverse("marketplace:home"), fetch_redirect_response=False)
        listing = Listing.objects.get()
        self.assertEqual(listing.title, "Notebook")
        self.assertEqual(listing.price, Decimal("299"))
        self.assertEqual(listing.owner, self.user)
        self.assertFalse(listing.is_boosted)
        self.assertIsNone(listing.boosted_until)
        self.assertEqual([img.order for img in listing.images.all()], [0, 1, 2])
        self.assertEqual(len(listing.image_urls), 3)

    def test_images_stored_under_owner_path_in_upload_order(self):
        self.login()
        self.post_listing(images=[create_test_image("first.png"), create_test_image("second.png")])

        names = [img.image.name for img in Listing.objects.get().images.all()]
        self.assertTrue(all(n.startswith(f"products/{self.user.pk}/") for n in names))
        self.assertTrue(names[0].endswith("first.png"))
        self.assertTrue(names[1].endswith("second.png"))

    def test_car_listing_keeps_only_car_fields(self):
        self.login()
        self.post_listing(category="Cars", year="2018", bedrooms="3", furnished="Furnished")

        listing = Listing.objects.get()
        self.assertEqual(listing.year, 2018)
        self.assertIsNone(listing.km_driven)
        self.assertEqual(listing.fuel_type, "")
        self.assertIsNone(listing.bedrooms)
        self.assertEqual(listing.furnished, "")
        self.assertEqual(listing.property_type, "")

    def test_property_listing_keeps_only_property_fields(self):
        self.login()
        self.post_listing(
            category="Properties", property_type="Apartment", bedrooms="2", year="2010", transmission="Manual"
        )

        listing = Listing.objects.get()
        self.assertEqual(listing.property_type, "Apartment")
        self.assertEqual(listing.bedrooms, 2)
        self.assertIsNone(listing.year)
        self.assertEqual(listing.transmission, "")

    def test_other_category_drops_all_specific_fields(self):
        self.login()
        self.post_listing(category="Mobiles", year="2020", area="900")

        listing = Listing.objects.get()
        self.assertIsNone(listing.year)
        self.assertIsNone(listing.area)

    def test_invalid_fields_of_other_category_do_not_block_post(self):
        self.login()
        response = self.post_listing(category=Category.OTHER, year="1850", bedrooms="-2")

        self.assertRedirects(response, reverse("marketplace:home"), fetch_redirect_response=False)
        listing = Listing.objects.get()
        self.assertIsNone(listing.year)
        self.assertIsNone(listing.bedrooms)

    def test_invalid_field_of_selected_category_is_rejected(self):
        self.login()
        response = self.post_listing(category=Category.CARS, year="1850")

        self.assertEqual(Listing.objects.count(), 0)
        self.assertIn("year", response.context["form"].errors)

    def test_rejects_listing_without_images(self):
        self.login()
        response = self.post_listing(images=[])

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Listing.objects.count(), 0)
        self.assertContains(response, "Please upload at least one image.")

    def test_rejects_more_than_five_images(self):
        self.login()
        response = self.post_listing(images=[create_test_image(f"p{i}.png") for i in range(6)])

        self.assertEqual(Listing.objects.count(), 0)
        self.assertContains(response, "Maximum 5 images allowed.")

    def test_rejects_title_longer_than_seventy_chars(self):
        self.login()
        response = self.post_listing(title="x" * 71)

        self.assertEqual(Listing.objects.count(), 0)
        self.assertIn("title", response.context["form"].errors)

    def test_rejects_negative_price(self):
        self.login()
        response = self.post_listing(price="-10")

        self.assertEqual(Listing.objects.count(), 0)
        self.assertIn("price", response.context["form"].errors)

    def test_zero_price_is_allowed(self):
        self.login()
        self.post_listing(price="0")

        self.assertEqual(Listing.objects.get().price, Decimal("0"))

    def test_rejects_unknown_category(self):
        self.login()
        response = self.post_listing(category="Boats")

        self.assertEqual(Listing.objects.count(), 0)
        self.assertIn("category", response.context["form"].errors)

    def test_rejects_non_image_upload(self):
        self.login()
        bogus = SimpleUploadedFile("notes.png", b"not really a png", content_type="image/png")
        response = self.post_listing(images=[bogus])

        self.assertEqual(Listing.objects.count(), 0)
        self.assertIn("images", response.context["form"].errors)

    def test_failed_upload_aborts_submission(self):
        self.login()
        with mock.patch(
            "marketplace.storage.default_storage.save",
            side_effect=[f"products/{self.user.pk}/1_a.png", OSError("disk full")],
        ) as save:
            response = self.post_listing(images=[create_test_image("a.png"), create_test_image("b.png")])

        self.assertEqual(save.call_count, 2)
        self.assertEqual(Listing.objects.count(), 0)
        self.assertEqual(ListingImage.objects.count(), 0)
        self.assertContains(response, "Failed to create listing. Please try again.")

    def test_invalid_record_uploads_nothing(self):
        fields = {
            "title": "Sofa",
            "description": "Three seater",
            "price": Decimal("5000"),
            "category": Category.FURNITURE,
            "year": 2018,
        }
        with mock.patch("marketplace.storage.default_storage.save") as save:
            with self.assertRaises(ValidationError):
                create_listing(self.user, fields, [create_test_image("sofa.png")])

        save.assert_not_called()
        self.assertEqual(Listing.objects.count(), 0)


class StorageTests(MarketplaceTestCase):
    def test_uploads_run_in_order_and_stop_at_first_failure(self):
        images = [create_test_image(f"{n}.png") for n in ("a", "b", "c")]
        with mock.patch(
            "marketplace.storage.default_storage.save",
            side_effect=["products/1/a.png", OSError("boom"), "products/1/c.png"],
        ) as save:
            with self.assertRaises(UploadError):
                upload_listing_images(1, images)

        self.assertEqual(save.call_count, 2)
        self.assertTrue(save.call_args_list[0].args[0].endswith("_a.png"))

    def test_returns_stored_names(self):
        names = upload_listing_images(self.user.pk, [create_test_image("x.png")])

        self.assertEqual(len(names), 1)
        self.assertTrue(names[0].startswith(f"products/{self.user.pk}/"))


class ListingModelTests(MarketplaceTestCase):
    def test_clean_rejects_fields_from_other_category(self):
        listing = Listing(
            owner=self.user,
            title="Car",
            description="Fast",
            price=Decimal("1"),
            category=Category.CARS,
            year=2015,
            bedrooms=3,
        )
        with self.assertRaises(ValidationError) as ctx:
            listing.full_clean()
        self.assertIn("bedrooms", ctx.exception.message_dict)
        self.assertNotIn("year", ctx.exception.message_dict)

    def test_clean_accepts_matching_fields(self):
        listing = Listing(
            owner=self.user,
            title="Villa",
            description="Sea view",
            price=Decimal("1"),
            category=Category.PROPERTIES,
            property_type="House",
            area=1200,
        )
        listing.full_clean()

    def test_mark_boosted_sets_expiry_seven_days_out(self):
        listing = make_listing(self.user)
        now = timezone.now()

        listing.mark_boosted(now=now)
        listing.refresh_from_db()

        self.assertTrue(listing.is_boosted)
        self.assertEqual(listing.boosted_until, now + timedelta(days=7))

    def test_specific_details_only_for_own_category(self):
        listing = make_listing(
            self.user, category=Category.CARS, year=2019, fuel_type="Diesel", transmission="Manual"
        )
        self.assertEqual(
            listing.specific_details(), [("Year", 2019), ("Fuel", "Diesel"), ("Transmission", "Manual")]
        )
        self.assertEqual(make_listing(self.user, category=Category.FASHION).specific_details(), [])

    def test_profile_created_with_user(self):
        profile = UserProfile.objects.get(user=self.user)

        self.assertEqual(profile.name, "Test Seller")
        self.assertEqual(profile.uid, self.user.pk)
        self.assertEqual(profile.email, "seller@example.com")
        self.assertIsNone(profile.avatar_url)

    def test_deleting_user_removes_their_listings(self):
        make_listing(self.user)
        self.user.delete()

        self.assertEqual(Listing.objects.count(), 0)


class OwnershipConsoleTests(MarketplaceTestCase):
    """Tests for listing the user's own ads and deleting them"""

    def setUp(self):
        super().setUp()
        self.other_user = make_user("other@example.com", name="Other")
        self.listing = make_listing(self.user, "Mine")
        self.others_listing = make_listing(self.other_user, "Theirs")
        self.console_url = reverse("marketplace:my_products")

    def test_console_requires_login(self):
        response = self.client.get(self.console_url)

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("marketplace:login"), response.url)

    def test_console_lists_only_own_listings(self):
        self.login()
        response = self.client.get(self.console_url)

        self.assertEqual(list(response.context["listings"]), [self.listing])
        self.assertContains(response, "Mine")
        self.assertNotContains(response, "Theirs")

    def test_console_empty_state(self):
        self.listing.delete()
        self.login()
        response = self.client.get(self.console_url)

        self.assertContains(response, "Start Selling")

    def test_delete_by_owner_removes_from_console_and_feed(self):
        self.login()
        url = reverse("marketplace:delete_product", args=[self.listing.pk])

        response = self.client.post(url, follow=True)

        self.assertFalse(Listing.objects.filter(pk=self.listing.pk).exists())
        self.assertEqual(list(response.context["listings"]), [])
        self.assertNotIn(self.listing.pk, [l.pk for l in load_feed()])

    def test_delete_leaves_image_files_in_storage(self):
        image = ListingImage.objects.create(listing=self.listing, image=create_test_image(), order=0)
        storage, name = image.image.storage, image.image.name
        self.login()

        self.client.post(reverse("marketplace:delete_product", args=[self.listing.pk]))

        self.assertEqual(ListingImage.objects.count(), 0)
        self.assertTrue(storage.exists(name))

    def test_delete_denied_for_non_owner(self):
        self.login()
        url = reverse("marketplace:delete_product", args=[self.others_listing.pk])

        response = self.client.post(url, follow=True)

        self.assertTrue(Listing.objects.filter(pk=self.others_listing.pk).exists())
        self.assertTrue(any("not authorized" in m.lower() for m in self.messages_of(response)))

    def test_delete_nonexistent_listing_returns_404(self):
        self.login()
        response = self.client.post(reverse("marketplace:delete_product", args=[99999]))

        self.assertEqual(response.status_code, 404)

    def test_delete_requires_post(self):
        self.login()
        response = self.client.get(reverse("marketplace:delete_product", args=[self.listing.pk]))

        self.assertEqual(response.status_code, 405)
        self.assertTrue(Listing.objects.filter(pk=self.listing.pk).exists())

    def test_delete_listing_checks_owner(self):
        with self.assertRaises(PermissionDenied):
            delete_listing(self.others_listing, self.user)


class BoostTests(MarketplaceTestCase):
    """Tests for the boost checkout callback"""

    def setUp(self):
        super().setUp()
        self.other_user = make_user("other@example.com")
        self.listing = make_listing(self.user, "Scooter", category=Category.BIKES)
        self.url = reverse("marketplace:boost_product", args=[self.listing.pk])

    def test_boost_sets_flag_and_seven_day_expiry(self):
        self.login()
        before = timezone.now()
        response = self.client.post(self.url, {"razorpay_payment_id": "pay_123"}, follow=True)
        after = timezone.now()

        self.listing.refresh_from_db()
        self.assertTrue(self.listing.is_boosted)
        self.assertGreaterEqual(self.listing.boosted_until, before + timedelta(days=7))
        self.assertLessEqual(self.listing.boosted_until, after + timedelta(days=7))
        self.assertIn(
            "Success! Payment ID: pay_123. Your ad is now boosted for 7 days.", self.messages_of(response)
        )

    def test_boost_ajax_returns_json(self):
        self.login()
        response = self.client.post(
            self.url, {"razorpay_payment_id": "pay_456"}, HTTP_X_REQUESTED_WITH="XMLHttpRequest"
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.listing.refresh_from_db()
        self.assertEqual(payload["boosted_until"], self.listing.boosted_until.isoformat())

    def test_boost_without_payment_id_is_rejected(self):
        self.login()
        response = self.client.post(self.url, {}, HTTP_X_REQUESTED_WITH="XMLHttpRequest")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing payment reference.")
        self.listing.refresh_from_db()
        self.assertFalse(self.listing.is_boosted)

    def test_boost_denied_for_non_owner(self):
        self.login(self.other_user)
        response = self.client.post(
            self.url, {"razorpay_payment_id": "pay_789"}, HTTP_X_REQUESTED_WITH="XMLHttpRequest"
        )

        self.assertEqual(response.status_code, 403)
        self.listing.refresh_from_db()
        self.assertFalse(self.listing.is_boosted)

    def test_boost_requires_login(self):
        response = self.client.post(self.url, {"razorpay_payment_id": "pay_1"})

        self.assertEqual(response.status_code, 302)
        self.listing.refresh_from_db()
        self.assertFalse(self.listing.is_boosted)

    def test_boosted_listing_moves_to_top_of_feed(self):
        newer = make_listing(self.user, "Newer", days_ago=0)
        self.listing.created_at = timezone.now() - timedelta(days=3)
        self.listing.save()

        boost_listing(self.listing, self.user, "pay_1")

        self.assertEqual(load_feed()[:2], [self.listing, newer])

    def test_expired_boost_still_counts_as_boosted(self):
        self.listing.mark_boosted(now=timezone.now() - timedelta(days=30))

        self.assertEqual(load_feed()[0], self.listing)

    def test_checkout_options(self):
        account = AccountContext(uid=self.user.pk, name="Test Seller", email="seller@example.com")

        options = checkout_options(self.listing, account)

        self.assertEqual(options["amount"], 4900)
        self.assertEqual(options["currency"], "INR")
        self.assertEqual(options["description"], "Boost Ad: Scooter")
        self.assertEqual(options["prefill"]["email"], "seller@example.com")

    def test_console_renders_checkout_options(self):
        self.login()
        response = self.client.get(reverse("marketplace:my_products"))

        self.assertContains(response, "Boost Ad: Scooter")
        self.assertContains(response, "checkout.razorpay.com")


class ProductDetailTests(MarketplaceTestCase):
    def setUp(self):
        super().setUp()
        self.listing = make_listing(
            self.user, "Sedan", category=Category.CARS, year=2017, km_driven=42000, fuel_type="Petrol"
        )
        for i in range(3):
            ListingImage.objects.create(listing=self.listing, image=create_test_image(f"c{i}.png"), order=i)
        self.url = reverse("marketplace:product_detail", args=[self.listing.pk])

    def test_detail_shows_listing_and_seller(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "product_detail.html")
        self.assertEqual(response.context["seller"], self.user.profile)
        self.assertContains(response, "Test Seller")
        self.assertContains(response, "42000")
        self.assertContains(response, "Petrol")

    def test_unknown_listing_renders_not_found(self):
        response = self.client.get(reverse("marketplace:product_detail", args=[99999]))

        self.assertEqual(response.status_code, 404)
        self.assertTemplateUsed(response, "product_not_found.html")
        self.assertContains(response, "Product not found", status_code=404)

    def test_carousel_starts_on_first_image(self):
        response = self.client.get(self.url)

        self.assertEqual(response.context["active_index"], 0)
        self.assertEqual(response.context["previous_index"], 2)
        self.assertEqual(response.context["next_index"], 1)
        self.assertEqual(response.context["active_image"], response.context["image_urls"][0])

    def test_carousel_index_wraps(self):
        response = self.client.get(self.url, {"image": 5})

        self.assertEqual(response.context["active_index"], 2)
        self.assertEqual(response.context["next_index"], 0)

    def test_carousel_ignores_garbage_index(self):
        response = self.client.get(self.url, {"image": "abc"})

        self.assertEqual(response.context["active_index"], 0)

    def test_carousel_position_wraps_both_ways(self):
        self.assertEqual(carousel_position(0, 3), (0, 2, 1))
        self.assertEqual(carousel_position(2, 3), (2, 1, 0))
        self.assertEqual(carousel_position(-1, 3), (2, 1, 0))
        self.assertEqual(carousel_position(0, 1), (0, 0, 0))
        self.assertEqual(carousel_position(4, 0), (0, 0, 0))


class AuthTests(MarketplaceTestCase):
    """Registration, login, logout and the account context lifecycle"""

    def test_register_creates_user_profile_and_signs_in(self):
        response = self.client.post(
            reverse("marketplace:register"),
            {
                "name": "New Person",
                "email": "New@Example.com",
                "password": "Sup3r-secret-pw!",
                "confirm_password": "Sup3r-secret-pw!",
            },
        )

        self.assertRedirects(response, reverse("marketplace:home"), fetch_redirect_response=False)
        user = User.objects.get(email="new@example.com")
        self.assertEqual(user.profile.name, "New Person")
        self.assertEqual(self.client.session[SESSION_KEY]["uid"], user.pk)

    def test_register_rejects_duplicate_email(self):
        response = self.client.post(
            reverse("marketplace:register"),
            {
                "name": "Dup",
                "email": "seller@example.com",
                "password": "Sup3r-secret-pw!",
                "confirm_password": "Sup3r-secret-pw!",
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.context["form"].errors)

    def test_register_rejects_password_mismatch(self):
        response = self.client.post(
            reverse("marketplace:register"),
            {
                "name": "Someone",
                "email": "someone@example.com",
                "password": "Sup3r-secret-pw!",
                "confirm_password": "different-pw-123",
            },
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(User.objects.filter(email="someone@example.com").exists())

    def test_login_starts_account_context(self):
        response = self.client.post(
            reverse("marketplace:login"), {"email": "seller@example.com", "password": "testpass123"}
        )

        self.assertRedirects(response, reverse("marketplace:home"), fetch_redirect_response=False)
        account = self.client.session[SESSION_KEY]
        self.assertEqual(account["name"], "Test Seller")
        self.assertEqual(account["email"], "seller@example.com")

    def test_login_honors_next(self):
        response = self.client.post(
            reverse("marketplace:login") + "?next=/add-product/",
            {"email": "seller@example.com", "password": "testpass123", "next": "/add-product/"},
        )

        self.assertRedirects(response, "/add-product/", fetch_redirect_response=False)

    def test_login_ignores_external_next(self):
        response = self.client.post(
            reverse("marketplace:login"),
            {"email": "seller@example.com", "password": "testpass123", "next": "https://evil.example/"},
        )

        self.assertRedirects(response, reverse("marketplace:home"), fetch_redirect_response=False)

    def test_login_with_wrong_password(self):
        response = self.client.post(
            reverse("marketplace:login"), {"email": "seller@example.com", "password": "nope"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Invalid email or password.")
        self.assertNotIn(SESSION_KEY, self.client.session)

    def test_login_with_unknown_email_gives_same_error(self):
        response = self.client.post(
            reverse("marketplace:login"), {"email": "ghost@example.com", "password": "testpass123"}
        )

        self.assertContains(response, "Invalid email or password.")

    def test_logout_tears_down_account_context(self):
        self.login()
        self.assertIn(SESSION_KEY, self.client.session)

        self.client.post(reverse("marketplace:logout"))

        self.assertNotIn(SESSION_KEY, self.client.session)
        response = self.client.get(reverse("marketplace:home"))
        self.assertFalse(response.context["account"].is_authenticated)

    def test_gated_routes_redirect_to_login(self):
        for name in ("add_product", "profile", "profile_edit", "my_products"):
            response = self.client.get(reverse(f"marketplace:{name}"))
            self.assertEqual(response.status_code, 302, name)
            self.assertTrue(response.url.startswith(reverse("marketplace:login")), name)

    def test_account_context_exposed_to_templates(self):
        self.login()
        response = self.client.get(reverse("marketplace:home"))

        account = response.context["account"]
        self.assertTrue(account.is_authenticated)
        self.assertEqual(account.uid, self.user.pk)
        self.assertEqual(account, AccountContext.for_user(self.user))


class ProfileTests(MarketplaceTestCase):
    def test_profile_and_edit_render_same_view(self):
        self.login()
        for name in ("profile", "profile_edit"):
            response = self.client.get(reverse(f"marketplace:{name}"))
            self.assertEqual(response.status_code, 200)
            self.assertTemplateUsed(response, "profile.html")

    def test_update_name(self):
        self.login()
        response = self.client.post(reverse("marketplace:profile_edit"), {"name": "Renamed"}, follow=True)

        self.user.refresh_from_db()
        self.assertEqual(self.user.profile.name, "Renamed")
        self.assertEqual(self.user.first_name, "Renamed")
        self.assertEqual(self.client.session[SESSION_KEY]["name"], "Renamed")
        self.assertIn("Profile updated successfully!", self.messages_of(response))

    def test_profile_change_from_another_session_refreshes_account(self):
        self.login()
        other = Client()
        other.login(username=self.user.username, password="testpass123")

        other.post(reverse("marketplace:profile_edit"), {"name": "Changed Elsewhere"})
        response = self.client.get(reverse("marketplace:home"))

        self.assertEqual(response.context["account"].name, "Changed Elsewhere")
        self.assertEqual(self.client.session[SESSION_KEY]["name"], "Changed Elsewhere")

    def test_upload_avatar(self):
        self.login()
        self.client.post(
            reverse("marketplace:profile"),
            {"name": "With Face", "avatar": create_test_image("me.png")},
        )

        profile = UserProfile.objects.get(user=self.user)
        self.assertTrue(profile.avatar.name.startswith(f"users/{self.user.pk}/profile_"))
        self.assertTrue(profile.avatar.name.endswith(".png"))
        self.assertEqual(self.client.session[SESSION_KEY]["avatar_url"], profile.avatar_url)

    def test_failed_avatar_upload_keeps_old_profile(self):
        self.login()
        with mock.patch("marketplace.storage.default_storage.save", side_effect=OSError("down")):
            response = self.client.post(
                reverse("marketplace:profile"),
                {"name": "Nope", "avatar": create_test_image("me.png")},
            )

        self.assertEqual(response.status_code, 200)
        self.assertIn("Failed to update profile.", self.messages_of(response))
        self.assertEqual(UserProfile.objects.get(user=self.user).name, "Test Seller")


class TemplateFilterTests(TestCase):
    def test_inr_groups_indian_style(self):
        self.assertEqual(inr(Decimal("125000")), "₹1,25,000")
        self.assertEqual(inr(Decimal("12345678.40")), "₹1,23,45,678")
        self.assertEqual(inr(999), "₹999")
        self.assertEqual(inr(Decimal("49.50")), "₹50")
        self.assertEqual(inr(None), "")

    def test_listing_subtitle(self):
        car = SimpleNamespace(category="Cars", year=2018, km_driven=50000)
        flat = SimpleNamespace(category="Properties", property_type="Apartment", bedrooms=2)
        bare_flat = SimpleNamespace(category="Properties", property_type="", bedrooms=2)
        phone = SimpleNamespace(category="Mobiles")

        self.assertEqual(listing_subtitle(car), "2018 - 50000 km")
        self.assertEqual(listing_subtitle(flat), "Apartment - 2 BHK")
        self.assertEqual(listing_subtitle(bare_flat), "")
        self.assertEqual(listing_subtitle(phone), "")

    def test_short_date(self):
        self.assertEqual(short_date(None), "Just now")
        value = timezone.localtime(timezone.now())
        self.assertEqual(short_date(value), f"{value:%b} {value.day}")
