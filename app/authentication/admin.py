"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import Group, User


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin configuration for ledger groups."""

    list_display = ("name", "id", "created_at")
    search_fields = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication.
    """

    list_display = (
        "email",
        "group",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "is_active",
        "is_staff",
        "is_superuser",
        "date_joined",
    )
    search_fields = ("email",)
    ordering = ("-date_joined",)
    raw_id_fields = ("group",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Ledger", {"fields": ("group",)}),
        (
            "Status",
            {"fields": ("is_active", "is_staff", "is_superuser")},
        ),
        (
            "Permissions",
            {"fields": ("groups", "user_permissions")},
        ),
        (
            "Important dates",
            {"fields": ("date_joined", "last_login")},
        ),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "group", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login")
