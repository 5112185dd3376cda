import collections
import logging
import math

from .chain import SYSTEM_VALIDATOR, verify_chain
from .exceptions import ChainContinuityError, InvalidTransactionError, LedgerConfigurationError
from .hashing import iso_timestamp, new_proof_hash, new_transaction_id, utc_now
from .records import (
    ApprovalResult, TransactionRecord, block_from_dict, new_record_id, transaction_from_dict,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Service do ledger de créditos: transforma aprovações em transações e
    sela-as em blocos encadeados no store injetado.
    """

    def __init__(self, store):
        self.store = store

    def record_approval(self, event):
        """
        Create the approval transaction and run one batching pass.

        Validation happens before anything is hashed, so a rejected event
        leaves no trace in the store.
        """
        # 1. Validar o evento
        credits = _validated_credits(event.credit_amount)
        if not event.project_id or not event.user_id:
            raise InvalidTransactionError("Approval needs both a project and a receiving user")

        # 2. Criar a transação (pendente)
        timestamp = utc_now()
        record = TransactionRecord(
            id=new_record_id(),
            tx_id=new_transaction_id(event.project_id, event.user_id, credits, timestamp),
            sender=SYSTEM_VALIDATOR,
            receiver=str(event.user_id),
            credits=credits,
            project_id=str(event.project_id),
            timestamp=timestamp,
            proof_hash=new_proof_hash(event.proof_reference),
        )
        record = self.store.add_transaction(record)
        logger.info("Transaction %s recorded for project %s (%s credits)",
                    record.tx_id, record.project_id, credits)

        # 3. Selar tudo o que estiver pendente
        block = self.store.seal_pending(event.verifier_id or SYSTEM_VALIDATOR)
        if block is not None:
            record = self.store.get_transaction(record.id) or record

        return ApprovalResult(transaction=record, block=block)

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    def get_chain(self):
        """Blocks (index ascending) as dicts, each with its transactions."""
        by_block = self._transactions_by_block()
        chain = []
        for block in self.store.all_blocks():
            entry = block.as_dict()
            entry["transactions"] = [tx.as_dict() for tx in by_block.get(block.id, [])]
            chain.append(entry)
        return chain

    def verify(self):
        return verify_chain(self.store.all_blocks(), self._transactions_by_block())

    def certificate_entry(self, project_id):
        """(transaction, block) behind a project's approval; either may be None."""
        transactions = self.store.transactions_for_project(project_id)
        if not transactions:
            return None, None
        tx = transactions[0]
        block = self.store.get_block(tx.block_id) if tx.block_id else None
        return tx, block

    def export(self):
        transactions = self.store.all_transactions()
        report = self.verify()
        return {
            "exported_at": iso_timestamp(utc_now()),
            "total_blocks": report.block_count,
            "total_transactions": len(transactions),
            "total_projects": len({tx.project_id for tx in transactions}),
            "blocks": self.get_chain(),
            "pending_transactions": [tx.as_dict() for tx in transactions if tx.is_pending],
            "integrity": report.as_dict()["integrity"],
            "problems": report.problems,
        }

    # ------------------------------------------------------------------
    # Importação
    # ------------------------------------------------------------------

    def import_export(self, payload):
        """
        Replay the blocks of an export document onto this store.

        Stops at the first block that does not extend the chain; blocks
        before it stay appended.
        """
        entries = _parsed_export(payload)

        appended = []
        for block, transactions in entries:
            appended.append(self.store.append_block(block, transactions))
        logger.info("Imported %s block(s)", len(appended))
        return appended

    def _transactions_by_block(self):
        grouped = collections.defaultdict(list)
        for tx in self.store.all_transactions():
            if tx.block_id is not None:
                grouped[tx.block_id].append(tx)
        return grouped


def _parsed_export(payload):
    """(block, transactions) pairs from an export document, index ascending."""
    if not isinstance(payload, dict):
        raise ChainContinuityError("Malformed export: document must be an object")
    entries = payload.get("blocks", [])
    if not isinstance(entries, list):
        raise ChainContinuityError("Malformed export: 'blocks' must be a list")

    parsed = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ChainContinuityError(f"Malformed export: block at position {position} is not an object")
        try:
            block = block_from_dict(entry)
            raw_transactions = entry.get("transactions", [])
            if not isinstance(raw_transactions, list):
                raise TypeError("'transactions' must be a list")
            transactions = [transaction_from_dict(tx) for tx in raw_transactions]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ChainContinuityError(f"Malformed block in export: {e}", index=entry.get("index"))
        parsed.append((block, transactions))

    return sorted(parsed, key=lambda pair: pair[0].index)


def _validated_credits(value):
    try:
        credits = float(value)
    except (TypeError, ValueError):
        raise InvalidTransactionError(f"Credit amount must be a number, got {value!r}")
    if not math.isfinite(credits) or credits <= 0:
        raise InvalidTransactionError(f"Credit amount must be positive, got {value!r}")
    return credits


# Instância única, criada pelo BlockchainConfig.ready() a partir de settings.LEDGER_STORAGE
_ledger_service = None


def configure_ledger_service(store):
    global _ledger_service
    _ledger_service = LedgerService(store)
    return _ledger_service


def get_ledger_service():
    if _ledger_service is None:
        raise LedgerConfigurationError("Ledger service is not configured; is 'blockchain' in INSTALLED_APPS?")
    return _ledger_service
