import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='LedgerBlock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('index', models.PositiveIntegerField(unique=True, verbose_name='Block Height')),
                ('timestamp', models.DateTimeField()),
                ('merkle_root', models.CharField(max_length=64, verbose_name='Merkle Root (SHA256)')),
                ('previous_hash', models.CharField(max_length=64, verbose_name='Previous Hash')),
                ('block_hash', models.CharField(max_length=64, unique=True, verbose_name='Block Hash')),
                ('block_hash_input', models.TextField(verbose_name='Block Hash Pre-image')),
                ('validator_signature', models.CharField(blank=True, max_length=64, null=True, verbose_name='Validator Signature')),
                ('transaction_count', models.PositiveIntegerField(verbose_name='Transactions')),
            ],
            options={
                'verbose_name': 'Ledger Block',
                'verbose_name_plural': 'Ledger Blocks',
                'db_table': 'ledger_blocks',
                'ordering': ['index'],
            },
        ),
        migrations.CreateModel(
            name='LedgerTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tx_id', models.CharField(max_length=64, unique=True, verbose_name='Transaction ID')),
                ('sender', models.CharField(default='system', max_length=100, verbose_name='From')),
                ('receiver', models.CharField(max_length=100, verbose_name='To')),
                ('credits', models.FloatField(verbose_name='Credits (t CO2e)')),
                ('project_id', models.CharField(db_index=True, max_length=64, verbose_name='Project')),
                ('timestamp', models.DateTimeField()),
                ('proof_hash', models.CharField(max_length=64, verbose_name='Proof Hash')),
                ('block', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='blockchain.ledgerblock')),
            ],
            options={
                'verbose_name': 'Ledger Transaction',
                'verbose_name_plural': 'Ledger Transactions',
                'db_table': 'ledger_transactions',
                'ordering': ['id'],
            },
        ),
    ]
