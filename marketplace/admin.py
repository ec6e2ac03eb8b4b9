from django.contrib import admin

from .models import Listing, ListingImage, UserProfile


class ListingImageInline(admin.TabularInline):
    model = ListingImage
    extra = 0
    ordering = ["order"]


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ["title", "category", "price", "owner", "is_boosted", "boosted_until", "created_at"]
    list_filter = ["category", "is_boosted", "created_at"]
    search_fields = ["title", "description", "owner__email"]
    readonly_fields = ["created_at"]
    date_hierarchy = "created_at"
    inlines = [ListingImageInline]


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "name", "created_at"]
    search_fields = ["name", "user__email", "user__username"]
    readonly_fields = ["created_at", "updated_at"]


admin.site.register(ListingImage)

admin.site.site_header = "Andaman Connect Admin"
admin.site.site_title = "Andaman Connect Admin Portal"
admin.site.index_title = "Welcome to Andaman Connect Admin Portal"
