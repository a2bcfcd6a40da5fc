from django.contrib import admin
from .models import Expense, RevenueRecognition


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('expense_type', 'amount', 'expense_date', 'vehicle', 'company', 'recorded_by')
    list_filter = ('expense_type', 'company')
    date_hierarchy = 'expense_date'


@admin.register(RevenueRecognition)
class RevenueRecognitionAdmin(admin.ModelAdmin):
    list_display = ('sale', 'total_amount', 'start_date', 'end_date', 'daily_amount')
    readonly_fields = ('daily_amount',)
