import django_filters as filters

from ledger.models import Transaction


class TransactionFilter(filters.FilterSet):
    account = filters.UUIDFilter(field_name="account_id")
    category = filters.UUIDFilter(field_name="category_id")
    start_date = filters.IsoDateTimeFilter(field_name="date", lookup_expr="gte")
    end_date = filters.IsoDateTimeFilter(field_name="date", lookup_expr="lte")
    min_amount = filters.NumberFilter(field_name="amount", lookup_expr="gte")
    max_amount = filters.NumberFilter(field_name="amount", lookup_expr="lte")

    class Meta:
        model = Transaction
        fields = [
            "type",
            "is_highlighted",
            "account",
            "category",
            "start_date",
            "end_date",
            "min_amount",
            "max_amount",
        ]
