"""
Django admin configuration for ledger models.

Balances and transactions are read-only here: editing them outside
TransactionService would break the link between a balance and its
transactions. Use the API (or the reconciliation task) to change them.
"""

from django.contrib import admin

from ledger.models import Account, AccountLimit, Category, Transaction


class AccountLimitInline(admin.TabularInline):
    """Inline display of spending limits in account admin."""

    model = AccountLimit
    extra = 0
    readonly_fields = ["created_at"]


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """Admin interface for Account model."""

    list_display = ["name", "type", "group", "balance", "opening_balance", "created_at"]
    list_filter = ["type", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["id", "balance", "opening_balance", "created_at", "updated_at"]
    raw_id_fields = ["group"]
    inlines = [AccountLimitInline]
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "group", "name", "type", "note")}),
        ("Balance", {"fields": ("balance", "opening_balance")}),
        ("Metadata", {"fields": ("metadata",), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for Category model."""

    list_display = ["name", "type", "group", "created_at"]
    list_filter = ["type"]
    search_fields = ["name"]
    raw_id_fields = ["group"]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Read-only admin interface for Transaction model."""

    list_display = ["id", "type", "amount", "account", "category", "date", "is_highlighted"]
    list_filter = ["type", "is_highlighted", "date"]
    search_fields = ["id", "note"]
    date_hierarchy = "date"
    ordering = ["-date"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
