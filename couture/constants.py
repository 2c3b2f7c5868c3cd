"""
Couture Ledger Constants

This module consolidates the protocol constants of the fashion NFT registry
and exchange together with the environment configuration read from `.env`.
Constants are organized by category for easy reference and maintenance.
"""
import ast
import re
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LEDGER_DEFAULTS = {
    'COUTURE_ADMIN':                   'ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM',
    'COUTURE_STATE_FILE':              'couture-state.json',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_TO_FILE':                     'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE LIMITS BELOW ARE PART OF THE LEDGER STATE MACHINE. CHANGING THEM
# CHANGES WHICH CALLS SUCCEED, AND STATE FILES WRITTEN UNDER DIFFERENT LIMITS
# MAY NO LONGER SATISFY THE INVARIANTS OF THE LEDGERS THAT LOAD THEM.

# ==================================================================================
# ADDRESSES
# ==================================================================================
# Reserved burn address. It can never own a token, receive funds or act as admin.
ZERO_ADDRESS = 'SP000000000000000000002Q6VF78'


# ==================================================================================
# TOKEN REGISTRY LIMITS
# ==================================================================================
MAX_CREATORS = 1000  # Creator whitelist capacity
MAX_MINTS_PER_CREATOR = 1000
MAX_URI_LENGTH = 256
FIRST_TOKEN_ID = 1


# ==================================================================================
# EXCHANGE PARAMETERS (basis points)
# ==================================================================================
BASIS_POINTS = 10_000  # 100.00%
MAX_PLATFORM_FEE_PERCENT = 500  # 5%
DEFAULT_PLATFORM_FEE_PERCENT = 200  # 2%
DEFAULT_MAX_ROYALTY_PERCENT = 1000  # 10%
# Fee ceiling plus royalty ceiling must leave the seller a non-negative share
MAX_ROYALTY_CEILING = BASIS_POINTS - MAX_PLATFORM_FEE_PERCENT


# ==================================================================================
# EVENT LOG
# ==================================================================================
MAX_EVENT_DATA_LENGTH = 256
NO_TOKEN_ID = 0

EVENT_CREATOR_REGISTERED = 'creator-registered'
EVENT_ADMIN_TRANSFERRED = 'admin-transferred'
EVENT_PAUSE_TOGGLED = 'pause-toggled'
EVENT_NFT_MINTED = 'nft-minted'
EVENT_NFT_TRANSFERRED = 'nft-transferred'
EVENT_METADATA_UPDATED = 'metadata-updated'
EVENT_FEE_ADDRESS_UPDATED = 'fee-address-updated'
EVENT_FEE_PERCENT_UPDATED = 'fee-percent-updated'
EVENT_MAX_ROYALTY_UPDATED = 'max-royalty-updated'
EVENT_OPERATOR_APPROVED = 'operator-approved'
EVENT_OPERATOR_REVOKED = 'operator-revoked'
EVENT_NFT_LISTED = 'nft-listed'
EVENT_NFT_DELISTED = 'nft-delisted'
EVENT_NFT_SOLD = 'nft-sold'


# ==================================================================================
# VALIDATION PATTERNS
# ==================================================================================
# Event types are lowercase words joined by hyphens
VALID_EVENT_TYPE_PATTERN = re.compile(r'^[a-z]+(-[a-z]+)*$')


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
DEFAULTS = LEDGER_DEFAULTS | LOGGER_DEFAULTS
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
