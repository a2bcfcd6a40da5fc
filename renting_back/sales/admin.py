from django.contrib import admin
from .models import Sale, SalesCharge, Payment, SaleMedia


class SalesChargeInline(admin.TabularInline):
    model = SalesCharge
    extra = 0


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fk_name = 'sale'
    readonly_fields = ('verified_by', 'verified_at')


class SaleMediaInline(admin.TabularInline):
    model = SaleMedia
    extra = 0


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ('customer_name', 'vehicle', 'date_of_delivery', 'return_date',
                    'total_amount', 'status', 'payment_status')
    list_filter = ('status', 'payment_status', 'is_damaged', 'is_delayed')
    search_fields = ('customer_name', 'vehicle__registration_number')
    readonly_fields = ('full_days', 'half_days', 'number_of_days', 'charge_half_day',
                       'discount', 'total_amount', 'payment_status')
    inlines = [SalesChargeInline, PaymentInline, SaleMediaInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('sale', 'amount_paid', 'payment_type', 'payment_method',
                    'payment_status', 'verified_by_admin', 'payment_date')
    list_filter = ('payment_status', 'payment_method', 'verified_by_admin')
