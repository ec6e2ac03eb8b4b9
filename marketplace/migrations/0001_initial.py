from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Listing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=70)),
                ("description", models.TextField()),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Cars", "Cars"),
                            ("Properties", "Properties"),
                            ("Mobiles", "Mobiles"),
                            ("Bikes", "Bikes"),
                            ("Electronics", "Electronics"),
                            ("Furniture", "Furniture"),
                            ("Fashion", "Fashion"),
                            ("Other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("is_boosted", models.BooleanField(default=False)),
                ("boosted_until", models.DateTimeField(blank=True, null=True)),
                ("year", models.PositiveIntegerField(blank=True, null=True)),
                ("km_driven", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "fuel_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Petrol", "Petrol"),
                            ("Diesel", "Diesel"),
                            ("CNG", "CNG"),
                            ("Electric", "Electric"),
                            ("LPG", "LPG"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "transmission",
                    models.CharField(
                        blank=True,
                        choices=[("Manual", "Manual"), ("Automatic", "Automatic")],
                        max_length=20,
                    ),
                ),
                (
                    "property_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Apartment", "Apartment"),
                            ("House", "House/Villa"),
                            ("Plot", "Plot"),
                            ("Office", "Office"),
                        ],
                        max_length=20,
                    ),
                ),
                ("bedrooms", models.PositiveIntegerField(blank=True, null=True)),
                ("bathrooms", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "furnished",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Furnished", "Furnished"),
                            ("Semi-Furnished", "Semi-Furnished"),
                            ("Unfurnished", "Unfurnished"),
                        ],
                        max_length=20,
                    ),
                ),
                ("area", models.PositiveIntegerField(blank=True, help_text="Area in sq ft", null=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="listings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["owner", "-created_at"], name="listing_owner_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="ListingImage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("image", models.ImageField(max_length=255, upload_to="products/")),
                (
                    "order",
                    models.PositiveSmallIntegerField(default=0, help_text="Order of image display (0 = primary)"),
                ),
                (
                    "listing",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="images",
                        to="marketplace.listing",
                    ),
                ),
            ],
            options={
                "verbose_name": "Listing Image",
                "verbose_name_plural": "Listing Images",
                "ordering": ["order", "id"],
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=150)),
                ("avatar", models.ImageField(blank=True, null=True, upload_to="users/")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
    ]
