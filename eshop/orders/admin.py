from django.contrib import admin
from .models import Order, OrderHistory


class OrderHistoryInline(admin.TabularInline):
    model = OrderHistory
    extra = 0
    readonly_fields = ['action', 'description', 'old_value', 'new_value', 'performed_by', 'metadata', 'created_at']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'customer_email', 'total', 'status', 'payment_status', 'created_at']
    list_filter = ['status', 'payment_status', 'delivery_method', 'payment_method', 'created_at']
    search_fields = ['order_number', 'customer_email', 'customer_name', 'customer_phone', 'tracking_number']
    readonly_fields = ['order_number', 'items', 'total', 'created_at', 'updated_at']
    ordering = ['-created_at']
    inlines = [OrderHistoryInline]


@admin.register(OrderHistory)
class OrderHistoryAdmin(admin.ModelAdmin):
    list_display = ['order', 'action', 'old_value', 'new_value', 'performed_by', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['order__order_number', 'description']
    ordering = ['-created_at']
