"""
Block assembly and chain verification.

Everything here is pure: stores call ``assemble_block`` inside their sealing
critical section and ``check_extends`` before accepting an imported block.
"""
import dataclasses
from typing import List

from .exceptions import ChainContinuityError
from .hashing import (
    GENESIS_PREVIOUS_HASH, compute_block_hash, compute_merkle_root, sha256_hex, sign_block, utc_now,
)
from .records import BlockRecord, new_record_id

SYSTEM_VALIDATOR = "system"


def next_link(last_block):
    """(index, previous_hash) for the block that follows ``last_block``."""
    if last_block is None:
        return 0, GENESIS_PREVIOUS_HASH
    return last_block.index + 1, last_block.block_hash


def assemble_block(pending, last_block, validator_id=None, timestamp=None, block_id=None):
    if not pending:
        raise ValueError("A block needs at least one pending transaction")

    index, previous_hash = next_link(last_block)
    timestamp = timestamp or utc_now()
    merkle_root = compute_merkle_root(tx.tx_id for tx in pending)
    digest = compute_block_hash(index, timestamp, merkle_root, previous_hash, len(pending))

    return BlockRecord(
        id=block_id or new_record_id(),
        index=index,
        timestamp=timestamp,
        merkle_root=merkle_root,
        previous_hash=previous_hash,
        block_hash=digest.hash,
        block_hash_input=digest.preimage,
        transaction_count=len(pending),
        validator_signature=sign_block(digest.hash, validator_id or SYSTEM_VALIDATOR),
    )


def verify_block(block):
    """Problems found when re-deriving ``block``'s hash. Empty list means intact."""
    problems = []
    if sha256_hex(block.block_hash_input) != block.block_hash:
        problems.append(f"Block #{block.index}: stored pre-image does not digest to the stored hash")

    expected = compute_block_hash(
        block.index, block.timestamp, block.merkle_root, block.previous_hash, block.transaction_count
    )
    if expected.preimage != block.block_hash_input:
        problems.append(f"Block #{block.index}: pre-image does not match the block fields")
    return problems


def verify_membership(block, transactions):
    problems = []
    if len(transactions) != block.transaction_count:
        problems.append(
            f"Block #{block.index}: holds {len(transactions)} transactions, "
            f"header says {block.transaction_count}"
        )
    if compute_merkle_root(tx.tx_id for tx in transactions) != block.merkle_root:
        problems.append(f"Block #{block.index}: Merkle root does not match its transactions")
    return problems


@dataclasses.dataclass
class ChainReport:
    block_count: int
    problems: List[str] = dataclasses.field(default_factory=list)

    @property
    def valid(self):
        return not self.problems

    def as_dict(self):
        return {
            "valid": self.valid,
            "integrity": "verified" if self.valid else "broken",
            "block_count": self.block_count,
            "problems": list(self.problems),
        }


def verify_chain(blocks, transactions_by_block=None):
    """
    Walk ``blocks`` (index ascending) and collect every continuity or hash
    problem. ``transactions_by_block`` maps block id to its transactions; when
    given, membership (count and Merkle root) is checked too.
    """
    report = ChainReport(block_count=len(blocks))
    last = None
    for block in blocks:
        index, previous_hash = next_link(last)
        if block.index != index:
            report.problems.append(f"Block #{block.index}: expected index {index}")
        if block.previous_hash != previous_hash:
            report.problems.append(f"Block #{block.index}: previous hash does not match block #{index - 1}")
        report.problems.extend(verify_block(block))
        if transactions_by_block is not None:
            report.problems.extend(verify_membership(block, transactions_by_block.get(block.id, [])))
        last = block
    return report


def check_extends(block, last_block, transactions):
    """Raise ``ChainContinuityError`` unless ``block`` is a valid successor of ``last_block``."""
    index, previous_hash = next_link(last_block)
    if block.index != index:
        raise ChainContinuityError(f"Expected block #{index}, got #{block.index}", index=block.index)
    if block.previous_hash != previous_hash:
        raise ChainContinuityError(
            f"Block #{block.index} does not link to the current chain head", index=block.index
        )

    problems = verify_block(block) + verify_membership(block, transactions)
    if problems:
        raise ChainContinuityError("; ".join(problems), index=block.index)
