from django.contrib import admin

from modules.coupons.models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ["code", "value", "used", "limit", "remaining", "expire", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code"]
    # ``used`` only moves through redemption and release.
    readonly_fields = ["used"]
