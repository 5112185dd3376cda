import dataclasses
import datetime
import uuid
from typing import Optional

from .hashing import iso_timestamp


def new_record_id():
    return str(uuid.uuid4())


@dataclasses.dataclass(frozen=True)
class ApprovalEvent:
    """What a completed project review hands to the ledger."""
    project_id: str
    user_id: str
    credit_amount: float
    proof_reference: Optional[str] = None
    verifier_id: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class TransactionRecord:
    id: str
    tx_id: str
    sender: str
    receiver: str
    credits: float
    project_id: str
    timestamp: datetime.datetime
    proof_hash: str
    block_id: Optional[str] = None

    @property
    def is_pending(self):
        return self.block_id is None

    def assigned_to(self, block_id):
        if self.block_id is not None:
            raise ValueError(f"Transaction {self.tx_id} already belongs to block {self.block_id}")
        return dataclasses.replace(self, block_id=block_id)

    def as_dict(self):
        return {
            "id": self.id,
            "tx_id": self.tx_id,
            "from": self.sender,
            "to": self.receiver,
            "credits": self.credits,
            "project_id": self.project_id,
            "timestamp": iso_timestamp(self.timestamp),
            "proof_hash": self.proof_hash,
            "block_id": self.block_id,
        }


@dataclasses.dataclass(frozen=True)
class BlockRecord:
    id: str
    index: int
    timestamp: datetime.datetime
    merkle_root: str
    previous_hash: str
    block_hash: str
    block_hash_input: str
    transaction_count: int
    validator_signature: Optional[str] = None

    def as_dict(self):
        return {
            "id": self.id,
            "index": self.index,
            "timestamp": iso_timestamp(self.timestamp),
            "merkle_root": self.merkle_root,
            "previous_hash": self.previous_hash,
            "block_hash": self.block_hash,
            "block_hash_input": self.block_hash_input,
            "validator_signature": self.validator_signature,
            "transaction_count": self.transaction_count,
        }


def parse_timestamp(value):
    if isinstance(value, datetime.datetime):
        return value
    moment = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment


def transaction_from_dict(data):
    return TransactionRecord(
        id=data.get("id") or new_record_id(),
        tx_id=data["tx_id"],
        sender=data.get("from", "system"),
        receiver=data["to"],
        credits=float(data["credits"]),
        project_id=data["project_id"],
        timestamp=parse_timestamp(data["timestamp"]),
        proof_hash=data["proof_hash"],
        block_id=data.get("block_id"),
    )


def block_from_dict(data):
    return BlockRecord(
        id=data.get("id") or new_record_id(),
        index=int(data["index"]),
        timestamp=parse_timestamp(data["timestamp"]),
        merkle_root=data["merkle_root"],
        previous_hash=data["previous_hash"],
        block_hash=data["block_hash"],
        block_hash_input=data["block_hash_input"],
        transaction_count=int(data["transaction_count"]),
        validator_signature=data.get("validator_signature"),
    )


@dataclasses.dataclass(frozen=True)
class ApprovalResult:
    transaction: TransactionRecord
    block: Optional[BlockRecord] = None
