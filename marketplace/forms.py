from django import forms
from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError

from .models import (
    CATEGORY_FIELDS,
    Category,
    Furnishing,
    FuelType,
    PropertyType,
    Transmission,
    User,
)


def _with_blank(choices, label="Select"):
    return [("", label)] + list(choices)


class RegisterForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)
    confirm_password = forms.CharField(widget=forms.PasswordInput)

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise ValidationError("Email already registered.")
        return email

    def clean(self):
        cd = super().clean()
        if cd.get("password") != cd.get("confirm_password"):
            self.add_error("confirm_password", "Passwords do not match.")
        elif cd.get("password"):
            try:
                validate_password(cd["password"])
            except ValidationError as e:
                self.add_error("password", e)
        return cd


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(widget=forms.PasswordInput)

    def __init__(self, *args, request=None, **kwargs):
        self.request = request
        self.user = None
        super().__init__(*args, **kwargs)

    def clean(self):
        cd = super().clean()
        email = cd.get("email")
        password = cd.get("password")
        if not email or not password:
            return cd
        # Don't reveal whether the email exists
        user = User.objects.filter(email__iexact=email).first()
        if user is not None:
            user = authenticate(self.request, username=user.username, password=password)
        if user is None:
            raise ValidationError("Invalid email or password.")
        self.user = user
        return cd


class MultipleFileInput(forms.ClearableFileInput):
    allow_multiple_selected = True


class MultipleImageField(forms.ImageField):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault("widget", MultipleFileInput(attrs={"accept": "image/*"}))
        super().__init__(*args, **kwargs)

    def clean(self, data, initial=None):
        single_file_clean = super().clean
        if isinstance(data, (list, tuple)):
            return [single_file_clean(d, initial) for d in data if d]
        return [single_file_clean(data, initial)] if data else []


class ListingForm(forms.Form):
    category = forms.ChoiceField(choices=_with_blank(Category.choices, "Select Category"))
    title = forms.CharField(
        max_length=70,
        widget=forms.TextInput(attrs={"placeholder": "Mention the key features of your item"}),
    )
    description = forms.CharField(
        widget=forms.Textarea(
            attrs={"rows": 4, "placeholder": "Include condition, features and reason for selling"}
        ),
    )
    price = forms.DecimalField(min_value=0, max_digits=12, decimal_places=2)
    images = MultipleImageField(required=False)

    # Cars
    year = forms.IntegerField(required=False, min_value=1900, max_value=2100)
    km_driven = forms.IntegerField(required=False, min_value=0)
    fuel_type = forms.ChoiceField(required=False, choices=_with_blank(FuelType.choices))
    transmission = forms.ChoiceField(required=False, choices=_with_blank(Transmission.choices))

    # Properties
    property_type = forms.ChoiceField(required=False, choices=_with_blank(PropertyType.choices))
    bedrooms = forms.IntegerField(required=False, min_value=0)
    bathrooms = forms.IntegerField(required=False, min_value=0)
    furnished = forms.ChoiceField(required=False, choices=_with_blank(Furnishing.choices))
    area = forms.IntegerField(required=False, min_value=0)

    def clean_images(self):
        images = self.cleaned_data.get("images") or []
        if not images:
            raise ValidationError("Please upload at least one image.")
        if len(images) > settings.MAX_LISTING_IMAGES:
            raise ValidationError(f"Maximum {settings.MAX_LISTING_IMAGES} images allowed.")
        return images

    def clean(self):
        cleaned_data = super().clean()
        # Fields of other categories are never saved, so their errors don't count.
        applicable = CATEGORY_FIELDS.get(cleaned_data.get("category"), ())
        for fields in CATEGORY_FIELDS.values():
            for name in fields:
                if name not in applicable:
                    self._errors.pop(name, None)
                    cleaned_data.pop(name, None)
        return cleaned_data

    def category_fields(self):
        """
        The filled-in fields of the selected category only.

        Values typed into another category's fields are dropped.
        """
        category = self.cleaned_data["category"]
        return {
            name: self.cleaned_data[name]
            for name in CATEGORY_FIELDS.get(category, ())
            if self.cleaned_data.get(name) not in (None, "")
        }

    def listing_fields(self):
        fields = {
            "title": self.cleaned_data["title"].strip(),
            "description": self.cleaned_data["description"].strip(),
            "price": self.cleaned_data["price"],
            "category": self.cleaned_data["category"],
        }
        fields.update(self.category_fields())
        return fields


class ProfileForm(forms.Form):
    name = forms.CharField(max_length=150)
    avatar = forms.ImageField(required=False)
