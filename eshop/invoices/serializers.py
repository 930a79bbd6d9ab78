from rest_framework import serializers
from .models import Invoice


class InvoiceSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_name = serializers.CharField(source='order.customer_name', read_only=True)
    customer_email = serializers.EmailField(source='order.customer_email', read_only=True)
    net_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'order', 'order_number', 'customer_name', 'customer_email',
            'issue_date', 'due_date', 'total_amount', 'vat_amount', 'net_amount',
            'status', 'pdf_url', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'invoice_number', 'order', 'total_amount', 'vat_amount', 'pdf_url', 'created_at', 'updated_at',
        ]

    def validate(self, attrs):
        issue_date = attrs.get('issue_date', self.instance.issue_date if self.instance else None)
        due_date = attrs.get('due_date', self.instance.due_date if self.instance else None)
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the issue date'})
        return attrs
