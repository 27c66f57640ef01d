"""
Initial migration for Stockledger models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _document_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('document_number', models.CharField(max_length=30, unique=True, verbose_name='Number')),
        ('status', models.CharField(choices=[('draft', 'Draft'), ('waiting', 'Waiting'), ('ready', 'Ready'), ('done', 'Done'), ('canceled', 'Canceled')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
        ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
        ('validated_at', models.DateTimeField(blank=True, null=True, verbose_name='Validated at')),
        ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Created by')),
        ('validated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Validated by')),
    ]


def _line_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='stockledger.product', verbose_name='Product')),
    ]


def _quantity_field():
    return ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity'))


class Migration(migrations.Migration):
    """Create Stockledger models."""

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Category',
                'verbose_name_plural': 'Categories',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Unique identifier (e.g. WH-MAIN)', max_length=50, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('address', models.TextField(blank=True, default='', verbose_name='Address')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Created by')),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=50, unique=True, verbose_name='SKU')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('unit_of_measure', models.CharField(default='unit', max_length=20, verbose_name='Unit of measure')),
                ('reorder_level', models.DecimalField(decimal_places=3, default=Decimal('10'), help_text='Product is low on stock when on-hand quantity is at or below this value.', max_digits=12, verbose_name='Reorder level')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products', to='stockledger.category', verbose_name='Category')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Created by')),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='StockBalance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantity')),
                ('version', models.PositiveIntegerField(default=0, verbose_name='Version')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='stockledger.product', verbose_name='Product')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='balances', to='stockledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Stock balance',
                'verbose_name_plural': 'Stock balances',
            },
        ),
        migrations.AddConstraint(
            model_name='stockbalance',
            constraint=models.UniqueConstraint(fields=('product', 'warehouse'), name='unique_balance_per_product_warehouse'),
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transaction_type', models.CharField(choices=[('receipt', 'Receipt'), ('delivery', 'Delivery'), ('transfer', 'Transfer'), ('adjustment', 'Adjustment')], db_index=True, max_length=20, verbose_name='Transaction type')),
                ('reference_id', models.PositiveIntegerField(verbose_name='Reference ID')),
                ('reference_number', models.CharField(blank=True, default='', max_length=30, verbose_name='Reference number')),
                ('line_number', models.PositiveIntegerField(default=1, help_text='Position of this entry within its posting.', verbose_name='Line')),
                ('quantity_change', models.DecimalField(decimal_places=3, help_text='Positive = in, negative = out', max_digits=12, verbose_name='Change')),
                ('balance_after', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Balance after')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Created at')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='User')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='stockledger.product', verbose_name='Product')),
                ('reference_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='contenttypes.contenttype', verbose_name='Reference type')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='stockledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Ledger entry',
                'verbose_name_plural': 'Ledger entries',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='ledgerentry',
            constraint=models.UniqueConstraint(fields=('reference_type', 'reference_id', 'product', 'warehouse'), name='unique_ledger_entry_per_document_leg'),
        ),
        migrations.AddIndex(
            model_name='ledgerentry',
            index=models.Index(fields=['product', 'warehouse'], name='ledger_product_wh_idx'),
        ),
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, unique=True, verbose_name='Name')),
                ('current_value', models.PositiveIntegerField(default=0, verbose_name='Current value')),
            ],
            options={
                'verbose_name': 'Document sequence',
                'verbose_name_plural': 'Document sequences',
            },
        ),
        # Documents
        migrations.CreateModel(
            name='Receipt',
            fields=_document_fields() + [
                ('supplier_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Supplier')),
                ('receipt_date', models.DateField(blank=True, null=True, verbose_name='Receipt date')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='receipts', to='stockledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Receipt',
                'verbose_name_plural': 'Receipts',
                'ordering': ['-created_at', '-id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Delivery',
            fields=_document_fields() + [
                ('customer_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Customer')),
                ('delivery_date', models.DateField(blank=True, null=True, verbose_name='Delivery date')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='deliveries', to='stockledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Delivery',
                'verbose_name_plural': 'Deliveries',
                'ordering': ['-created_at', '-id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Transfer',
            fields=_document_fields() + [
                ('transfer_date', models.DateField(blank=True, null=True, verbose_name='Transfer date')),
                ('from_warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transfers_out', to='stockledger.warehouse', verbose_name='From warehouse')),
                ('to_warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transfers_in', to='stockledger.warehouse', verbose_name='To warehouse')),
            ],
            options={
                'verbose_name': 'Transfer',
                'verbose_name_plural': 'Transfers',
                'ordering': ['-created_at', '-id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Adjustment',
            fields=_document_fields() + [
                ('reason', models.CharField(blank=True, default='', max_length=255, verbose_name='Reason')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='adjustments', to='stockledger.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Adjustment',
                'verbose_name_plural': 'Adjustments',
                'ordering': ['-created_at', '-id'],
                'abstract': False,
            },
        ),
        # Lines
        migrations.CreateModel(
            name='ReceiptLine',
            fields=_line_fields() + [
                _quantity_field(),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockledger.receipt', verbose_name='Receipt')),
            ],
            options={
                'verbose_name': 'Receipt line',
                'verbose_name_plural': 'Receipt lines',
                'ordering': ['pk'],
                'abstract': False,
            },
        ),
        migrations.AddConstraint(
            model_name='receiptline',
            constraint=models.UniqueConstraint(fields=('document', 'product'), name='unique_receipt_line_product'),
        ),
        migrations.CreateModel(
            name='DeliveryLine',
            fields=_line_fields() + [
                _quantity_field(),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockledger.delivery', verbose_name='Delivery')),
            ],
            options={
                'verbose_name': 'Delivery line',
                'verbose_name_plural': 'Delivery lines',
                'ordering': ['pk'],
                'abstract': False,
            },
        ),
        migrations.AddConstraint(
            model_name='deliveryline',
            constraint=models.UniqueConstraint(fields=('document', 'product'), name='unique_delivery_line_product'),
        ),
        migrations.CreateModel(
            name='TransferLine',
            fields=_line_fields() + [
                _quantity_field(),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockledger.transfer', verbose_name='Transfer')),
            ],
            options={
                'verbose_name': 'Transfer line',
                'verbose_name_plural': 'Transfer lines',
                'ordering': ['pk'],
                'abstract': False,
            },
        ),
        migrations.AddConstraint(
            model_name='transferline',
            constraint=models.UniqueConstraint(fields=('document', 'product'), name='unique_transfer_line_product'),
        ),
        migrations.CreateModel(
            name='AdjustmentLine',
            fields=_line_fields() + [
                ('quantity_change', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Change')),
                ('system_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, verbose_name='System quantity')),
                ('counted_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, verbose_name='Counted quantity')),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='stockledger.adjustment', verbose_name='Adjustment')),
            ],
            options={
                'verbose_name': 'Adjustment line',
                'verbose_name_plural': 'Adjustment lines',
                'ordering': ['pk'],
                'abstract': False,
            },
        ),
        migrations.AddConstraint(
            model_name='adjustmentline',
            constraint=models.UniqueConstraint(fields=('document', 'product'), name='unique_adjustment_line_product'),
        ),
    ]
