from django.contrib import admin

from modules.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["name", "role", "wallet", "distance_km", "orders_count", "is_active"]
    list_filter = ["role", "is_active"]
    search_fields = ["name", "phone"]
    readonly_fields = ["orders_count", "spent"]
