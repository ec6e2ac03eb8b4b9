from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class Category(models.TextChoices):
    CARS = "Cars", "Cars"
    PROPERTIES = "Properties", "Properties"
    MOBILES = "Mobiles", "Mobiles"
    BIKES = "Bikes", "Bikes"
    ELECTRONICS = "Electronics", "Electronics"
    FURNITURE = "Furniture", "Furniture"
    FASHION = "Fashion", "Fashion"
    OTHER = "Other", "Other"


class FuelType(models.TextChoices):
    PETROL = "Petrol", "Petrol"
    DIESEL = "Diesel", "Diesel"
    CNG = "CNG", "CNG"
    ELECTRIC = "Electric", "Electric"
    LPG = "LPG", "LPG"


class Transmission(models.TextChoices):
    MANUAL = "Manual", "Manual"
    AUTOMATIC = "Automatic", "Automatic"


class PropertyType(models.TextChoices):
    APARTMENT = "Apartment", "Apartment"
    HOUSE = "House", "House/Villa"
    PLOT = "Plot", "Plot"
    OFFICE = "Office", "Office"


class Furnishing(models.TextChoices):
    FURNISHED = "Furnished", "Furnished"
    SEMI_FURNISHED = "Semi-Furnished", "Semi-Furnished"
    UNFURNISHED = "Unfurnished", "Unfurnished"


# Optional fields that only apply to one category
CATEGORY_FIELDS = {
    Category.CARS.value: ("year", "km_driven", "fuel_type", "transmission"),
    Category.PROPERTIES.value: (
        "property_type",
        "bedrooms",
        "bathrooms",
        "furnished",
        "area",
    ),
}


class UserProfile(models.Model):
    # Link to Django's built-in User (for authentication)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")

    name = models.CharField(max_length=150, blank=True)
    avatar = models.ImageField(upload_to="users/", blank=True, null=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.email} Profile"

    @property
    def uid(self):
        return self.user_id

    @property
    def email(self):
        return self.user.email

    @property
    def display_name(self):
        return self.name or self.user.get_full_name() or self.user.username

    @property
    def avatar_url(self):
        return self.avatar.url if self.avatar else None


class ListingQuerySet(models.QuerySet):
    def newest_first(self):
        return self.order_by("-created_at", "-id")

    def owned_by(self, user):
        return self.filter(owner=user)


class Listing(models.Model):
    title = models.CharField(max_length=70)
    description = models.TextField()
    price = models.DecimalField(
        default=Decimal("0.00"),
        decimal_places=2,
        max_digits=12,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    category = models.CharField(max_length=20, choices=Category.choices)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="listings")
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    # Paid features
    is_boosted = models.BooleanField(default=False)
    boosted_until = models.DateTimeField(null=True, blank=True)

    # Car specific
    year = models.PositiveIntegerField(null=True, blank=True)
    km_driven = models.PositiveIntegerField(null=True, blank=True)
    fuel_type = models.CharField(max_length=20, choices=FuelType.choices, blank=True)
    transmission = models.CharField(max_length=20, choices=Transmission.choices, blank=True)

    # Property specific
    property_type = models.CharField(max_length=20, choices=PropertyType.choices, blank=True)
    bedrooms = models.PositiveIntegerField(null=True, blank=True)
    bathrooms = models.PositiveIntegerField(null=True, blank=True)
    furnished = models.CharField(max_length=20, choices=Furnishing.choices, blank=True)
    area = models.PositiveIntegerField(null=True, blank=True, help_text="Area in sq ft")

    objects = ListingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["owner", "-created_at"], name="listing_owner_created_idx"),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        """Reject category-specific values that belong to another category."""
        super().clean()
        allowed = set(CATEGORY_FIELDS.get(self.category, ()))
        stray = [
            name
            for fields in CATEGORY_FIELDS.values()
            for name in fields
            if name not in allowed and getattr(self, name) not in (None, "")
        ]
        if stray:
            raise ValidationError(
                {name: f"Not applicable to {self.category} listings." for name in stray}
            )

    @property
    def image_urls(self):
        return [image.url for image in self.images.all()]

    def specific_details(self):
        """(label, value) pairs for the filled category-specific fields."""
        labels = {
            "year": "Year",
            "km_driven": "KM Driven",
            "fuel_type": "Fuel",
            "transmission": "Transmission",
            "property_type": "Type",
            "bedrooms": "Bedrooms",
            "bathrooms": "Bathrooms",
            "furnished": "Furnishing",
            "area": "Area (sq ft)",
        }
        details = []
        for name in CATEGORY_FIELDS.get(self.category, ()):
            value = getattr(self, name)
            if value not in (None, ""):
                details.append((labels[name], value))
        return details

    def mark_boosted(self, now=None):
        """Flag the listing as boosted for BOOST_DURATION_DAYS from ``now``."""
        now = now or timezone.now()
        self.is_boosted = True
        self.boosted_until = now + timedelta(days=settings.BOOST_DURATION_DAYS)
        self.save(update_fields=["is_boosted", "boosted_until"])


class ListingImage(models.Model):
    """One uploaded photo of a listing (up to 5 per listing)"""
    listing = models.ForeignKey(Listing, on_delete=models.CASCADE, related_name="images")
    image = models.ImageField(upload_to="products/", max_length=255)
    order = models.PositiveSmallIntegerField(default=0, help_text="Order of image display (0 = primary)")

    class Meta:
        ordering = ["order", "id"]
        verbose_name = "Listing Image"
        verbose_name_plural = "Listing Images"

    def __str__(self):
        return f"Image {self.order} for {self.listing.title}"

    @property
    def url(self):
        return self.image.url


# Signal to automatically create profile when User is created
@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    if created:
        UserProfile.objects.create(user=instance, name=instance.get_full_name())
