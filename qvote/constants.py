"""
qvote Constants

This module consolidates the protocol constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

PROGRAM_DEFAULTS = {
    'QVOTE_PROGRAM_ID':                '0x' + '51' * 32,
    'QVOTE_ASSET_MINT':                '',
    'QVOTE_STORE_PATH':                'data/qvote.json',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW ARE PART OF THE ADDRESS DERIVATION SCHEME. CHANGING ANY OF THEM
# MOVES EVERY GOVERNANCE, PROPOSAL AND VOTE RECORD TO A DIFFERENT ADDRESS.

# ==================================================================================
# ADDRESS DERIVATION
# ==================================================================================
SEED_GOVERNANCE = b"gov"
SEED_PROPOSAL = b"proposal"
SEED_VOTE = b"vote"

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LENGTH = 32
MAX_BUMP = 255

ADDRESS_LENGTH = 32          # Derived record addresses (bytes)
PRINCIPAL_LENGTH = 20        # Principal ids (bytes)
PROPOSAL_INDEX_BYTES = 8
ENDIAN = 'little'

# secp256k1 field prime; derived addresses must not be x-coordinates on this curve
SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F


# ==================================================================================
# NUMERIC LIMITS
# ==================================================================================
U64_MAX = 2 ** 64 - 1


# ==================================================================================
# VOTING
# ==================================================================================
VOTE_NO = 0
VOTE_YES = 1

# Stable error code base (matches the on-chain custom error offset)
ERROR_CODE_BASE = 6000


# ==================================================================================
# OPERATION DOMAINS
# ==================================================================================
OP_OPEN_GOVERNANCE = b"qvote:open_governance"
OP_OPEN_PROPOSAL = b"qvote:open_proposal"
OP_CAST_VOTE = b"qvote:cast_vote"
OP_CLOSE_PROPOSAL = b"qvote:close_proposal"


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = PROGRAM_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
