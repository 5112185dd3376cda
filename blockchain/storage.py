"""
Ledger stores: append-only transactions and blocks.

Two variants share one interface. ``create_ledger_store`` picks one from the
``LEDGER_STORAGE`` setting when the app starts; callers get the store through
``LedgerService`` and never choose a backend themselves.

Sealing (read pending -> build block -> write block -> assign) runs as one
critical section per store. The block is written before any transaction is
assigned, so a failed write leaves every transaction pending for the next
pass.
"""
import abc
import contextlib
import dataclasses
import logging
import threading

from django.db import transaction

from .chain import assemble_block, check_extends
from .exceptions import ChainContinuityError, LedgerConfigurationError, LedgerError
from .models import LedgerBlock, LedgerTransaction
from .records import new_record_id

logger = logging.getLogger(__name__)

MEMORY = 'memory'
DATABASE = 'database'


class LedgerStore(abc.ABC):
    backend = None

    def __init__(self):
        self._seal_lock = threading.Lock()

    # --- Transactions ---

    @abc.abstractmethod
    def add_transaction(self, record):
        """Persist a new, unassigned transaction and return it."""

    @abc.abstractmethod
    def get_transaction(self, record_id):
        pass

    @abc.abstractmethod
    def get_transaction_by_tx_id(self, tx_id):
        pass

    @abc.abstractmethod
    def all_transactions(self):
        """Every transaction in creation order."""

    def pending_transactions(self):
        return [tx for tx in self.all_transactions() if tx.is_pending]

    def transactions_for_block(self, block_id):
        return [tx for tx in self.all_transactions() if tx.block_id == block_id]

    def transactions_for_receiver(self, receiver):
        return [tx for tx in self.all_transactions() if tx.receiver == str(receiver)]

    def transactions_for_project(self, project_id):
        return [tx for tx in self.all_transactions() if tx.project_id == str(project_id)]

    # --- Blocks ---

    @abc.abstractmethod
    def get_block(self, block_id):
        pass

    @abc.abstractmethod
    def get_block_by_index(self, index):
        pass

    @abc.abstractmethod
    def get_block_by_hash(self, block_hash):
        pass

    @abc.abstractmethod
    def all_blocks(self):
        """Every block, index ascending."""

    @abc.abstractmethod
    def last_block(self):
        pass

    # --- Write hooks used inside the critical section ---

    @abc.abstractmethod
    def _sealing(self):
        """Context manager wrapping one seal or append (a DB transaction, or nothing)."""

    @abc.abstractmethod
    def _read_pending_for_seal(self):
        pass

    @abc.abstractmethod
    def _write_block(self, block):
        """Persist ``block`` and return it as stored (store-assigned id)."""

    @abc.abstractmethod
    def _assign(self, pending, block):
        pass

    @abc.abstractmethod
    def _write_sealed_transactions(self, transactions, block):
        pass

    # --- Batching ---

    def seal_pending(self, validator_id=None):
        """
        Seal every unassigned transaction into one new block.

        Returns the new block, or ``None`` when nothing was pending.
        """
        with self._seal_lock, self._sealing():
            pending = self._read_pending_for_seal()
            if not pending:
                return None

            draft = assemble_block(pending, self.last_block(), validator_id)
            block = self._write_block(draft)
            self._assign(pending, block)

        self._on_commit(lambda: logger.info(
            "[Ledger %s] Block #%s sealed with %s transaction(s): %s",
            self.backend, block.index, block.transaction_count, block.block_hash,
        ))
        return block

    def append_block(self, block, transactions):
        """
        Append an externally built block (import or manual insertion).

        The block must extend the current head and match ``transactions``;
        otherwise ``ChainContinuityError`` is raised and nothing is written.
        """
        transactions = list(transactions)
        with self._seal_lock, self._sealing():
            check_extends(block, self.last_block(), transactions)
            if len({tx.tx_id for tx in transactions}) != len(transactions):
                raise ChainContinuityError(f"Block #{block.index} repeats a transaction", index=block.index)
            for tx in transactions:
                if self.get_transaction_by_tx_id(tx.tx_id) is not None:
                    raise ChainContinuityError(
                        f"Transaction {tx.tx_id} is already recorded", index=block.index
                    )

            stored = self._write_block(block)
            self._write_sealed_transactions(transactions, stored)

        self._on_commit(lambda: logger.info(
            "[Ledger %s] Block #%s appended from import", self.backend, stored.index
        ))
        return stored

    def _on_commit(self, func):
        """Run ``func`` once the write is durable (immediately for the memory store)."""
        func()


class MemoryLedgerStore(LedgerStore):
    """Process-local store; contents vanish on restart."""

    backend = MEMORY

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()
        self._transactions = {}
        self._tx_ids = {}
        self._blocks = {}

    def add_transaction(self, record):
        if not record.is_pending:
            raise LedgerError("New transactions must not belong to a block yet")
        with self._lock:
            if record.tx_id in self._tx_ids:
                raise LedgerError(f"Duplicate transaction id {record.tx_id}")
            self._transactions[record.id] = record
            self._tx_ids[record.tx_id] = record.id
        return record

    def get_transaction(self, record_id):
        with self._lock:
            return self._transactions.get(str(record_id))

    def get_transaction_by_tx_id(self, tx_id):
        with self._lock:
            record_id = self._tx_ids.get(tx_id)
            return self._transactions.get(record_id) if record_id else None

    def all_transactions(self):
        with self._lock:
            return list(self._transactions.values())

    def get_block(self, block_id):
        with self._lock:
            return self._blocks.get(str(block_id))

    def get_block_by_index(self, index):
        return next((b for b in self.all_blocks() if b.index == index), None)

    def get_block_by_hash(self, block_hash):
        return next((b for b in self.all_blocks() if b.block_hash == block_hash), None)

    def all_blocks(self):
        with self._lock:
            return sorted(self._blocks.values(), key=lambda b: b.index)

    def last_block(self):
        blocks = self.all_blocks()
        return blocks[-1] if blocks else None

    @contextlib.contextmanager
    def _sealing(self):
        with self._lock:
            yield

    def _read_pending_for_seal(self):
        return self.pending_transactions()

    def _write_block(self, block):
        # Same guarantees as the unique columns of the database variant
        for existing in self._blocks.values():
            if existing.index == block.index or existing.block_hash == block.block_hash:
                raise ChainContinuityError(f"Block #{block.index} already exists", index=block.index)
        self._blocks[block.id] = block
        return block

    def _assign(self, pending, block):
        for tx in pending:
            current = self._transactions[tx.id]
            self._transactions[tx.id] = current.assigned_to(block.id)

    def _write_sealed_transactions(self, transactions, block):
        for tx in transactions:
            record = _fresh_copy(tx)
            self.add_transaction(record)
            self._transactions[record.id] = record.assigned_to(block.id)


class DatabaseLedgerStore(LedgerStore):
    """Django ORM store (``ledger_transactions`` / ``ledger_blocks``)."""

    backend = DATABASE

    def add_transaction(self, record):
        if not record.is_pending:
            raise LedgerError("New transactions must not belong to a block yet")
        row = LedgerTransaction.objects.create(
            tx_id=record.tx_id,
            sender=record.sender,
            receiver=record.receiver,
            credits=record.credits,
            project_id=record.project_id,
            timestamp=record.timestamp,
            proof_hash=record.proof_hash,
        )
        return row.to_record()

    def get_transaction(self, record_id):
        pk = _pk(record_id)
        if pk is None:
            return None
        row = LedgerTransaction.objects.filter(pk=pk).first()
        return row.to_record() if row else None

    def get_transaction_by_tx_id(self, tx_id):
        row = LedgerTransaction.objects.filter(tx_id=tx_id).first()
        return row.to_record() if row else None

    def all_transactions(self):
        return [row.to_record() for row in LedgerTransaction.objects.order_by('id')]

    def pending_transactions(self):
        return [row.to_record() for row in LedgerTransaction.objects.filter(block__isnull=True).order_by('id')]

    def transactions_for_block(self, block_id):
        pk = _pk(block_id)
        if pk is None:
            return []
        return [row.to_record() for row in LedgerTransaction.objects.filter(block_id=pk).order_by('id')]

    def transactions_for_receiver(self, receiver):
        return [row.to_record() for row in LedgerTransaction.objects.filter(receiver=str(receiver)).order_by('id')]

    def transactions_for_project(self, project_id):
        return [row.to_record() for row in LedgerTransaction.objects.filter(project_id=str(project_id)).order_by('id')]

    def get_block(self, block_id):
        pk = _pk(block_id)
        if pk is None:
            return None
        row = LedgerBlock.objects.filter(pk=pk).first()
        return row.to_record() if row else None

    def get_block_by_index(self, index):
        row = LedgerBlock.objects.filter(index=index).first()
        return row.to_record() if row else None

    def get_block_by_hash(self, block_hash):
        row = LedgerBlock.objects.filter(block_hash=block_hash).first()
        return row.to_record() if row else None

    def all_blocks(self):
        return [row.to_record() for row in LedgerBlock.objects.order_by('index')]

    def last_block(self):
        row = LedgerBlock.objects.order_by('-index').first()
        return row.to_record() if row else None

    def _sealing(self):
        return transaction.atomic()

    def _on_commit(self, func):
        # Um atomic() exterior pode ainda desfazer o bloco
        transaction.on_commit(func)

    def _read_pending_for_seal(self):
        # Row locks keep a concurrent sealer (another process) off the same batch
        rows = LedgerTransaction.objects.select_for_update().filter(block__isnull=True).order_by('id')
        return [row.to_record() for row in rows]

    def _write_block(self, block):
        row = LedgerBlock.objects.create(
            index=block.index,
            timestamp=block.timestamp,
            merkle_root=block.merkle_root,
            previous_hash=block.previous_hash,
            block_hash=block.block_hash,
            block_hash_input=block.block_hash_input,
            validator_signature=block.validator_signature,
            transaction_count=block.transaction_count,
        )
        return row.to_record()

    def _assign(self, pending, block):
        updated = LedgerTransaction.objects.filter(
            pk__in=[int(tx.id) for tx in pending], block__isnull=True
        ).update(block_id=int(block.id))
        if updated != len(pending):
            # Rolls the whole seal back, block included
            raise LedgerError(f"Expected to assign {len(pending)} transactions, assigned {updated}")

    def _write_sealed_transactions(self, transactions, block):
        LedgerTransaction.objects.bulk_create([
            LedgerTransaction(
                tx_id=tx.tx_id,
                sender=tx.sender,
                receiver=tx.receiver,
                credits=tx.credits,
                project_id=tx.project_id,
                timestamp=tx.timestamp,
                proof_hash=tx.proof_hash,
                block_id=int(block.id),
            )
            for tx in transactions
        ])


def _pk(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _fresh_copy(record):
    return dataclasses.replace(record, id=new_record_id(), block_id=None)


STORE_CLASSES = {
    MEMORY: MemoryLedgerStore,
    DATABASE: DatabaseLedgerStore,
}


def create_ledger_store(backend):
    try:
        store_class = STORE_CLASSES[backend]
    except KeyError:
        raise LedgerConfigurationError(
            f"Unknown LEDGER_STORAGE '{backend}' (expected one of: {', '.join(sorted(STORE_CLASSES))})"
        )
    logger.info("Using %s ledger storage", backend)
    return store_class()
