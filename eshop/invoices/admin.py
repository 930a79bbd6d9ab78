from django.contrib import admin
from .models import Invoice


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'order', 'issue_date', 'due_date', 'total_amount', 'vat_amount', 'status']
    list_filter = ['status', 'issue_date']
    search_fields = ['invoice_number', 'order__order_number', 'order__customer_email']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-issue_date']
