from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from decimal import Decimal


class Order(models.Model):
    """Customer order; line items are stored as a JSON snapshot"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('paid', 'Paid'),
    ]

    # Allowed targets for each status
    STATUS_TRANSITIONS = {
        'pending': {'processing', 'cancelled'},
        'processing': {'shipped', 'cancelled'},
        'shipped': {'delivered'},
        'delivered': set(),
        'cancelled': set(),
    }

    order_number = models.CharField(max_length=20, unique=True, db_index=True)

    # Customer
    customer_email = models.EmailField(db_index=True)
    customer_name = models.CharField(max_length=255, blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)
    is_company = models.BooleanField(default=False)
    company_name = models.CharField(max_length=255, blank=True)
    company_tax_id = models.CharField(max_length=50, blank=True)

    # Billing address
    billing_first_name = models.CharField(max_length=100)
    billing_last_name = models.CharField(max_length=100)
    billing_address = models.CharField(max_length=255)
    billing_city = models.CharField(max_length=100)
    billing_postal_code = models.CharField(max_length=20)

    # Delivery address (copied from billing unless use_different_delivery)
    use_different_delivery = models.BooleanField(default=False)
    delivery_first_name = models.CharField(max_length=100, blank=True)
    delivery_last_name = models.CharField(max_length=100, blank=True)
    delivery_address = models.CharField(max_length=255, blank=True)
    delivery_city = models.CharField(max_length=100, blank=True)
    delivery_postal_code = models.CharField(max_length=20, blank=True)

    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid', db_index=True)
    delivery_method = models.CharField(max_length=50)
    payment_method = models.CharField(max_length=50)
    note = models.TextField(blank=True)
    tracking_number = models.CharField(max_length=100, blank=True, null=True)
    admin_notes = models.TextField(blank=True)
    comments = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def can_transition_to(self, new_status):
        return new_status == self.status or new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    def get_delivery_address(self):
        """Delivery address with billing fallback"""
        return {
            'first_name': self.delivery_first_name or self.billing_first_name,
            'last_name': self.delivery_last_name or self.billing_last_name,
            'street': self.delivery_address or self.billing_address,
            'city': self.delivery_city or self.billing_city,
            'postal_code': self.delivery_postal_code or self.billing_postal_code,
        }

    def get_billing_address(self):
        return {
            'first_name': self.billing_first_name,
            'last_name': self.billing_last_name,
            'street': self.billing_address,
            'city': self.billing_city,
            'postal_code': self.billing_postal_code,
        }

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']


class OrderHistory(models.Model):
    """Append-only audit trail of order changes"""
    ACTION_CHOICES = [
        ('order_created', 'Order Created'),
        ('status_change', 'Status Change'),
        ('payment_status_change', 'Payment Status Change'),
        ('tracking_added', 'Tracking Added'),
        ('tracking_updated', 'Tracking Updated'),
        ('tracking_removed', 'Tracking Removed'),
        ('order_updated', 'Order Updated'),
        ('email_sent', 'Email Sent'),
        ('invoice_generated', 'Invoice Generated'),
    ]

    # Actions shown to customers on the order status page
    PUBLIC_ACTIONS = [
        'order_created', 'status_change', 'tracking_added',
        'tracking_updated', 'email_sent', 'payment_status_change',
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='history')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES, db_index=True)
    description = models.TextField()
    old_value = models.CharField(max_length=255, blank=True, null=True)
    new_value = models.CharField(max_length=255, blank=True, null=True)
    performed_by = models.CharField(max_length=100, default='Admin')
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.action}"

    class Meta:
        db_table = 'order_history'
        verbose_name_plural = 'order history'
        ordering = ['-created_at', '-id']
