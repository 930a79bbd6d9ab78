from django.core.exceptions import ObjectDoesNotExist
from rest_framework import serializers

from .cart import MAX_QUANTITY
from .models import Order, OrderHistory
from .options import DELIVERY_METHODS, PAYMENT_METHODS, get_delivery_method_label, get_payment_method_label


class CartItemSerializer(serializers.Serializer):
    """Cart add/update payload"""
    product_id = serializers.IntegerField(min_value=1)
    variant_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, default=1, max_value=MAX_QUANTITY)


class CheckoutItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    variant_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)


class CheckoutSerializer(serializers.Serializer):
    """
    Checkout form. ``items`` is optional; the session cart is used when
    it is omitted.
    """
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(max_length=50)
    is_company = serializers.BooleanField(required=False, default=False)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    company_tax_id = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')

    billing_first_name = serializers.CharField(max_length=100)
    billing_last_name = serializers.CharField(max_length=100)
    billing_address = serializers.CharField(max_length=255)
    billing_city = serializers.CharField(max_length=100)
    billing_postal_code = serializers.CharField(max_length=20)

    use_different_delivery = serializers.BooleanField(required=False, default=False)
    delivery_first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    delivery_city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True)

    delivery_method = serializers.ChoiceField(choices=list(DELIVERY_METHODS))
    payment_method = serializers.ChoiceField(choices=list(PAYMENT_METHODS))
    note = serializers.CharField(required=False, allow_blank=True, default='')
    items = CheckoutItemSerializer(many=True, required=False)

    def validate(self, attrs):
        if attrs.get('use_different_delivery'):
            missing = [
                field for field in (
                    'delivery_first_name', 'delivery_last_name', 'delivery_address',
                    'delivery_city', 'delivery_postal_code',
                )
                if not attrs.get(field)
            ]
            if missing:
                raise serializers.ValidationError({field: 'This field is required.' for field in missing})
        if attrs.get('is_company') and not attrs.get('company_name'):
            raise serializers.ValidationError({'company_name': 'Company name is required for company orders.'})
        return attrs


class OrderHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderHistory
        fields = [
            'id', 'action', 'description', 'old_value', 'new_value',
            'performed_by', 'metadata', 'created_at',
        ]


class PublicOrderHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderHistory
        fields = ['id', 'action', 'description', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'customer_email', 'customer_phone',
            'total', 'status', 'payment_status', 'delivery_method', 'payment_method',
            'tracking_number', 'item_count', 'created_at', 'updated_at',
        ]

    def get_item_count(self, obj):
        return sum(int(item.get('quantity', 0)) for item in obj.items)


class OrderSerializer(serializers.ModelSerializer):
    """Full order for the back-office, with history and invoice summary"""
    history = OrderHistorySerializer(many=True, read_only=True)
    invoice = serializers.SerializerMethodField()
    delivery_method_label = serializers.SerializerMethodField()
    payment_method_label = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number',
            'customer_email', 'customer_name', 'customer_phone',
            'is_company', 'company_name', 'company_tax_id',
            'billing_first_name', 'billing_last_name', 'billing_address', 'billing_city', 'billing_postal_code',
            'use_different_delivery',
            'delivery_first_name', 'delivery_last_name', 'delivery_address', 'delivery_city', 'delivery_postal_code',
            'items', 'total', 'status', 'payment_status',
            'delivery_method', 'delivery_method_label', 'payment_method', 'payment_method_label',
            'note', 'tracking_number', 'admin_notes', 'comments',
            'history', 'invoice', 'created_at', 'updated_at',
        ]

    def get_invoice(self, obj):
        try:
            invoice = obj.invoice
        except ObjectDoesNotExist:
            return None
        return {
            'id': invoice.pk,
            'invoice_number': invoice.invoice_number,
            'status': invoice.status,
            'pdf_url': invoice.pdf_url,
        }

    def get_delivery_method_label(self, obj):
        return get_delivery_method_label(obj.delivery_method)

    def get_payment_method_label(self, obj):
        return get_payment_method_label(obj.payment_method)


class OrderUpdateSerializer(serializers.Serializer):
    """Fields an admin may change; every field is optional"""
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    admin_notes = serializers.CharField(required=False, allow_blank=True)
    comments = serializers.CharField(required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True)

    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    is_company = serializers.BooleanField(required=False)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    company_tax_id = serializers.CharField(max_length=50, required=False, allow_blank=True)

    billing_first_name = serializers.CharField(max_length=100, required=False)
    billing_last_name = serializers.CharField(max_length=100, required=False)
    billing_address = serializers.CharField(max_length=255, required=False)
    billing_city = serializers.CharField(max_length=100, required=False)
    billing_postal_code = serializers.CharField(max_length=20, required=False)

    use_different_delivery = serializers.BooleanField(required=False)
    delivery_first_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    delivery_city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    delivery_postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True)


class ProductInquirySerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    subject = serializers.CharField(max_length=255)
    message = serializers.CharField()
    product_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    product_url = serializers.URLField(required=False, allow_blank=True, default='')
