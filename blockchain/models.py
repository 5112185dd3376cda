from django.db import models

from .records import BlockRecord, TransactionRecord


class LedgerBlock(models.Model):
    index = models.PositiveIntegerField(unique=True, verbose_name="Block Height")
    timestamp = models.DateTimeField()

    # Criptografia
    merkle_root = models.CharField(max_length=64, verbose_name="Merkle Root (SHA256)")
    previous_hash = models.CharField(max_length=64, verbose_name="Previous Hash")
    block_hash = models.CharField(max_length=64, unique=True, verbose_name="Block Hash")
    block_hash_input = models.TextField(verbose_name="Block Hash Pre-image")

    validator_signature = models.CharField(max_length=64, blank=True, null=True, verbose_name="Validator Signature")
    transaction_count = models.PositiveIntegerField(verbose_name="Transactions")

    class Meta:
        db_table = 'ledger_blocks'
        ordering = ['index']
        verbose_name = 'Ledger Block'
        verbose_name_plural = 'Ledger Blocks'

    def __str__(self):
        return f"Block #{self.index} [{self.block_hash[:8]}] - {self.transaction_count} tx"

    def to_record(self):
        return BlockRecord(
            id=str(self.pk),
            index=self.index,
            timestamp=self.timestamp,
            merkle_root=self.merkle_root,
            previous_hash=self.previous_hash,
            block_hash=self.block_hash,
            block_hash_input=self.block_hash_input,
            transaction_count=self.transaction_count,
            validator_signature=self.validator_signature,
        )


class LedgerTransaction(models.Model):
    tx_id = models.CharField(max_length=64, unique=True, verbose_name="Transaction ID")
    sender = models.CharField(max_length=100, default='system', verbose_name="From")
    receiver = models.CharField(max_length=100, verbose_name="To")
    credits = models.FloatField(verbose_name="Credits (t CO2e)")
    project_id = models.CharField(max_length=64, db_index=True, verbose_name="Project")
    timestamp = models.DateTimeField()
    proof_hash = models.CharField(max_length=64, verbose_name="Proof Hash")

    # Null enquanto pendente; escrito uma única vez pelo selo do bloco
    block = models.ForeignKey(
        LedgerBlock,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transactions',
    )

    class Meta:
        db_table = 'ledger_transactions'
        ordering = ['id']
        verbose_name = 'Ledger Transaction'
        verbose_name_plural = 'Ledger Transactions'

    def __str__(self):
        return f"Tx {self.tx_id[:8]} - {self.credits} credits to {self.receiver}"

    def to_record(self):
        return TransactionRecord(
            id=str(self.pk),
            tx_id=self.tx_id,
            sender=self.sender,
            receiver=self.receiver,
            credits=self.credits,
            project_id=self.project_id,
            timestamp=self.timestamp,
            proof_hash=self.proof_hash,
            block_id=str(self.block_id) if self.block_id is not None else None,
        )
