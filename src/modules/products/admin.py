from django.contrib import admin

from modules.products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "price_net", "discount_percent", "amount", "orders_count"]
    search_fields = ["name"]
    readonly_fields = ["orders_count", "created_at", "updated_at"]
