"""
Hashing primitives of the credit ledger.

Transaction ids and proof hashes mix in a random salt or the wall clock, so
nobody can re-derive them from their inputs later. Block hashes are the only
values a third party can re-verify: they are a plain SHA-256 over the
pre-image returned by ``compute_block_hash``.
"""
import datetime
import hashlib
import secrets
import time
from collections import namedtuple

GENESIS_PREVIOUS_HASH = "0000000000000000"
EMPTY_MERKLE_LEAF = "empty"
SALT_BYTES = 16

BlockHash = namedtuple("BlockHash", ["hash", "preimage"])


def sha256_hex(value):
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha256(value).hexdigest()


def utc_now():
    """Current UTC time truncated to milliseconds (what the pre-image keeps)."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def iso_timestamp(moment):
    """ISO-8601 with millisecond precision and a ``Z`` suffix, e.g. 2024-05-01T10:00:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    moment = moment.astimezone(datetime.timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def format_credits(credits):
    # 12.0 -> "12", 12.5 -> "12.5"
    value = float(credits)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def wall_clock_ms():
    return str(int(time.time() * 1000))


# ----------------------------------------------------------------------
# Identifiers
# ----------------------------------------------------------------------

def new_transaction_id(project_id, user_id, credits, timestamp):
    salt = secrets.token_hex(SALT_BYTES)
    source = f"{project_id}{user_id}{format_credits(credits)}{iso_timestamp(timestamp)}{salt}"
    return sha256_hex(source)


def new_proof_hash(reference):
    return sha256_hex(f"{reference or ''}{wall_clock_ms()}")


# ----------------------------------------------------------------------
# Merkle root and block hash
# ----------------------------------------------------------------------

def compute_merkle_root(ids):
    """
    Merkle root over transaction ids, in the order given.

    Leaves are digested before pairing and an odd node at the end of a level
    is paired with itself. A single id yields ``sha256(id)``.
    """
    ids = list(ids)
    if not ids:
        return sha256_hex(EMPTY_MERKLE_LEAF)

    level = [sha256_hex(tx_id) for tx_id in ids]
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        level = [sha256_hex(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def block_preimage(index, timestamp, merkle_root, previous_hash, transaction_count):
    return f"{int(index)}{iso_timestamp(timestamp)}{merkle_root}{previous_hash}{int(transaction_count)}"


def compute_block_hash(index, timestamp, merkle_root, previous_hash, transaction_count):
    preimage = block_preimage(index, timestamp, merkle_root, previous_hash, transaction_count)
    return BlockHash(hash=sha256_hex(preimage), preimage=preimage)


def sign_block(block_hash, validator_id):
    """Audit marker only: the wall clock is folded in, so it cannot be re-verified."""
    return sha256_hex(f"{block_hash}{validator_id}{wall_clock_ms()}")
