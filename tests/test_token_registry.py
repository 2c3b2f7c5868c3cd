"""
Token Registry Test Suite

Coverage:
  - Deployment and read-only queries
  - Creator whitelist: admin gating, duplicates, zero address, capacity
  - Minting: sequential IDs, creator gating, URI validation, per-creator cap
  - Transfers and creator-only metadata edits
  - Admin control plane: pause and admin transfer
  - Serialization round trip
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from couture.constants import (
    EVENT_CREATOR_REGISTERED,
    EVENT_METADATA_UPDATED,
    EVENT_NFT_MINTED,
    EVENT_NFT_TRANSFERRED,
    EVENT_PAUSE_TOGGLED,
    MAX_URI_LENGTH,
    ZERO_ADDRESS,
)
from couture.exceptions import (
    AlreadyExistsError,
    ErrorCode,
    ErrorKind,
    InvalidInputError,
    LimitExceededError,
    NotFoundError,
    PausedError,
    UnauthorizedError,
)
from couture.ledger import ChainEnvironment
from couture.tokens import TokenMetadata, TokenRegistry


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
CREATOR = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
CREATOR_2 = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
ALICE = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP"
BOB = "ST4JQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGN"
URI = "ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


def make_registry(**kwargs) -> TokenRegistry:
    """Registry with ADMIN as admin on a fresh environment."""
    return TokenRegistry(ChainEnvironment(), admin=ADMIN, **kwargs)


def make_registry_with_creator(**kwargs) -> TokenRegistry:
    registry = make_registry(**kwargs)
    registry.register_creator(ADMIN, CREATOR)
    return registry


# ══════════════════════════════════════════════════════════════════════
#  DEPLOYMENT & QUERIES
# ══════════════════════════════════════════════════════════════════════


class TestRegistryDeploy:

    def test_deploy_basic(self):
        registry = make_registry()
        assert registry.get_admin() == ADMIN
        assert registry.is_paused() is False
        assert registry.get_total_minted() == 0
        assert registry.creator_count == 0
        assert len(registry.events) == 0

    def test_default_limits(self):
        registry = make_registry()
        assert registry.max_creators == 1000
        assert registry.max_mints_per_creator == 1000

    def test_zero_admin_rejected(self):
        with pytest.raises(InvalidInputError):
            TokenRegistry(ChainEnvironment(), admin=ZERO_ADDRESS)

    def test_invalid_limits_rejected(self):
        with pytest.raises(ValueError):
            make_registry(max_creators=0)
        with pytest.raises(ValueError):
            make_registry(max_mints_per_creator=0)

    def test_queries_on_absent_data_do_not_raise(self):
        registry = make_registry()
        assert registry.get_owner(99) is None
        assert registry.get_metadata(99) is None
        assert registry.get_creator_mint_count(ALICE) == 0
        assert registry.is_creator_registered(ALICE) is False
        assert registry.token_exists(99) is False
        assert registry.get_event(1) is None

    def test_repr(self):
        assert "minted=0" in repr(make_registry())


# ══════════════════════════════════════════════════════════════════════
#  CREATOR WHITELIST
# ══════════════════════════════════════════════════════════════════════


class TestRegisterCreator:

    def test_register(self):
        registry = make_registry()
        assert registry.register_creator(ADMIN, CREATOR) is True
        assert registry.is_creator_registered(CREATOR)
        assert registry.get_creators() == [CREATOR]
        event = registry.get_event(1)
        assert event.event_type == EVENT_CREATOR_REGISTERED
        assert event.data == CREATOR
        assert event.token_id == 0

    def test_non_admin_rejected(self):
        registry = make_registry()
        with pytest.raises(UnauthorizedError) as exc:
            registry.register_creator(CREATOR, ALICE)
        assert exc.value.code == ErrorCode.NOT_AUTHORIZED
        assert exc.value.kind == ErrorKind.UNAUTHORIZED
        assert registry.creator_count == 0

    def test_zero_address_rejected(self):
        registry = make_registry()
        with pytest.raises(InvalidInputError) as exc:
            registry.register_creator(ADMIN, ZERO_ADDRESS)
        assert exc.value.code == ErrorCode.INVALID_ADDRESS

    def test_duplicate_rejected(self):
        registry = make_registry_with_creator()
        with pytest.raises(AlreadyExistsError) as exc:
            registry.register_creator(ADMIN, CREATOR)
        assert exc.value.code == ErrorCode.DUPLICATE_CREATOR
        assert registry.creator_count == 1
        assert len(registry.events) == 1

    def test_capacity_is_a_typed_error(self):
        registry = make_registry(max_creators=2)
        registry.register_creator(ADMIN, CREATOR)
        registry.register_creator(ADMIN, CREATOR_2)
        with pytest.raises(LimitExceededError) as exc:
            registry.register_creator(ADMIN, ALICE)
        assert exc.value.code == ErrorCode.CAPACITY_EXCEEDED
        assert registry.get_creators() == [CREATOR, CREATOR_2]

    def test_registration_allowed_while_paused(self):
        registry = make_registry()
        registry.set_paused(ADMIN, True)
        assert registry.register_creator(ADMIN, CREATOR)


# ══════════════════════════════════════════════════════════════════════
#  MINTING
# ══════════════════════════════════════════════════════════════════════


class TestMint:

    def test_mint(self):
        registry = make_registry_with_creator()
        token_id = registry.mint(CREATOR, ALICE, URI)
        assert token_id == 1
        assert registry.get_owner(1) == ALICE
        assert registry.get_metadata(1) == TokenMetadata(uri=URI, creator=CREATOR)
        assert registry.get_creator_mint_count(CREATOR) == 1
        assert registry.get_total_minted() == 1

    def test_mint_emits_event(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        event = registry.events.of_type(EVENT_NFT_MINTED)[0]
        assert event.token_id == 1
        assert event.sender == CREATOR
        assert event.data == URI

    def test_ids_are_sequential_without_gaps(self):
        registry = make_registry_with_creator()
        registry.register_creator(ADMIN, CREATOR_2)
        ids = []
        for i in range(6):
            creator = CREATOR if i % 2 else CREATOR_2
            ids.append(registry.mint(creator, ALICE, f"ipfs://item-{i}"))
        assert ids == [1, 2, 3, 4, 5, 6]
        assert registry.get_creator_mint_count(CREATOR) == 3
        assert registry.get_creator_mint_count(CREATOR_2) == 3

    def test_failed_mint_does_not_consume_an_id(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        with pytest.raises(InvalidInputError):
            registry.mint(CREATOR, ALICE, "")
        assert registry.mint(CREATOR, ALICE, URI) == 2

    def test_unregistered_creator_rejected(self):
        registry = make_registry()
        with pytest.raises(UnauthorizedError) as exc:
            registry.mint(CREATOR, ALICE, URI)
        assert exc.value.code == ErrorCode.UNAUTHORIZED_CREATOR
        assert registry.get_total_minted() == 0
        assert len(registry.events) == 0

    def test_zero_recipient_rejected(self):
        registry = make_registry_with_creator()
        with pytest.raises(InvalidInputError) as exc:
            registry.mint(CREATOR, ZERO_ADDRESS, URI)
        assert exc.value.code == ErrorCode.INVALID_ADDRESS

    def test_empty_uri_rejected(self):
        registry = make_registry_with_creator()
        with pytest.raises(InvalidInputError) as exc:
            registry.mint(CREATOR, ALICE, "")
        assert exc.value.code == ErrorCode.INVALID_URI
        assert registry.get_creator_mint_count(CREATOR) == 0

    def test_oversized_uri_rejected(self):
        registry = make_registry_with_creator()
        with pytest.raises(InvalidInputError):
            registry.mint(CREATOR, ALICE, "x" * (MAX_URI_LENGTH + 1))
        assert registry.mint(CREATOR, ALICE, "x" * MAX_URI_LENGTH) == 1

    def test_mint_cap(self):
        registry = make_registry_with_creator(max_mints_per_creator=2)
        registry.mint(CREATOR, ALICE, URI)
        registry.mint(CREATOR, ALICE, URI)
        events_before = len(registry.events)
        with pytest.raises(LimitExceededError) as exc:
            registry.mint(CREATOR, ALICE, URI)
        assert exc.value.code == ErrorCode.MINT_LIMIT_EXCEEDED
        assert registry.get_creator_mint_count(CREATOR) == 2
        assert registry.get_total_minted() == 2
        assert len(registry.events) == events_before

    def test_cap_is_per_creator(self):
        registry = make_registry_with_creator(max_mints_per_creator=1)
        registry.register_creator(ADMIN, CREATOR_2)
        registry.mint(CREATOR, ALICE, URI)
        assert registry.mint(CREATOR_2, ALICE, URI) == 2

    def test_tokens_of(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        registry.mint(CREATOR, BOB, URI)
        registry.mint(CREATOR, ALICE, URI)
        assert registry.tokens_of(ALICE) == [1, 3]


# ══════════════════════════════════════════════════════════════════════
#  TRANSFER & METADATA
# ══════════════════════════════════════════════════════════════════════


class TestTransfer:

    def test_transfer(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        registry.mint(CREATOR, ALICE, URI)
        assert registry.transfer(ALICE, 1, BOB) is True
        assert registry.get_owner(1) == BOB
        assert registry.get_owner(2) == ALICE
        event = registry.events.of_type(EVENT_NFT_TRANSFERRED)[0]
        assert (event.token_id, event.sender, event.data) == (1, ALICE, BOB)

    def test_non_owner_rejected(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        with pytest.raises(UnauthorizedError) as exc:
            registry.transfer(BOB, 1, BOB)
        assert exc.value.code == ErrorCode.NOT_OWNER
        assert registry.get_owner(1) == ALICE

    def test_missing_token_is_not_owner(self):
        registry = make_registry()
        with pytest.raises(UnauthorizedError) as exc:
            registry.transfer(ALICE, 42, BOB)
        assert exc.value.code == ErrorCode.NOT_OWNER

    def test_zero_recipient_rejected(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        with pytest.raises(InvalidInputError):
            registry.transfer(ALICE, 1, ZERO_ADDRESS)
        assert registry.get_owner(1) == ALICE


class TestUpdateMetadata:

    def test_creator_updates(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        assert registry.update_metadata(CREATOR, 1, "ipfs://new") is True
        assert registry.get_metadata(1) == TokenMetadata(uri="ipfs://new", creator=CREATOR)
        assert registry.events.of_type(EVENT_METADATA_UPDATED)[0].data == "ipfs://new"

    def test_creator_keeps_rights_after_transfer(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, CREATOR, URI)
        registry.transfer(CREATOR, 1, BOB)
        assert registry.update_metadata(CREATOR, 1, "ipfs://v2")

    def test_owner_who_is_not_creator_rejected(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        with pytest.raises(UnauthorizedError) as exc:
            registry.update_metadata(ALICE, 1, "ipfs://hijack")
        assert exc.value.code == ErrorCode.NOT_AUTHORIZED
        assert registry.get_metadata(1).uri == URI

    def test_missing_token(self):
        registry = make_registry_with_creator()
        with pytest.raises(NotFoundError) as exc:
            registry.update_metadata(CREATOR, 7, "ipfs://x")
        assert exc.value.code == ErrorCode.TOKEN_NOT_FOUND

    def test_empty_uri_rejected(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        with pytest.raises(InvalidInputError) as exc:
            registry.update_metadata(CREATOR, 1, "")
        assert exc.value.code == ErrorCode.INVALID_URI


# ══════════════════════════════════════════════════════════════════════
#  ADMIN CONTROL PLANE
# ══════════════════════════════════════════════════════════════════════


class TestRegistryAdmin:

    def test_pause_blocks_mutations(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        assert registry.set_paused(ADMIN, True) is True

        for call in (
            lambda: registry.mint(CREATOR, ALICE, URI),
            lambda: registry.transfer(ALICE, 1, BOB),
            lambda: registry.update_metadata(CREATOR, 1, "ipfs://x"),
        ):
            with pytest.raises(PausedError) as exc:
                call()
            assert exc.value.code == ErrorCode.PAUSED

        # Queries still answer
        assert registry.get_owner(1) == ALICE
        assert registry.is_paused() is True

    def test_unpause_restores_mutations(self):
        registry = make_registry_with_creator()
        registry.set_paused(ADMIN, True)
        assert registry.set_paused(ADMIN, False) is False
        assert registry.mint(CREATOR, ALICE, URI) == 1

    def test_pause_events(self):
        registry = make_registry()
        registry.set_paused(ADMIN, True)
        registry.set_paused(ADMIN, False)
        assert [e.data for e in registry.events.of_type(EVENT_PAUSE_TOGGLED)] == ["paused", "unpaused"]

    def test_non_admin_cannot_pause(self):
        registry = make_registry()
        with pytest.raises(UnauthorizedError):
            registry.set_paused(ALICE, True)
        assert registry.is_paused() is False

    def test_transfer_admin(self):
        registry = make_registry()
        assert registry.transfer_admin(ADMIN, ALICE)
        assert registry.get_admin() == ALICE
        with pytest.raises(UnauthorizedError):
            registry.register_creator(ADMIN, CREATOR)
        assert registry.register_creator(ALICE, CREATOR)

    def test_transfer_admin_to_zero_rejected(self):
        registry = make_registry()
        with pytest.raises(InvalidInputError):
            registry.transfer_admin(ADMIN, ZERO_ADDRESS)
        assert registry.get_admin() == ADMIN

    def test_transfer_admin_while_paused(self):
        registry = make_registry()
        registry.set_paused(ADMIN, True)
        assert registry.transfer_admin(ADMIN, ALICE)


# ══════════════════════════════════════════════════════════════════════
#  SERIALIZATION
# ══════════════════════════════════════════════════════════════════════


class TestRegistrySerialization:

    def test_round_trip_preserves_state(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        registry.mint(CREATOR, BOB, "ipfs://two")
        registry.transfer(ALICE, 1, BOB)
        registry.set_paused(ADMIN, True)

        restored = TokenRegistry.from_dict(ChainEnvironment(), registry.to_dict())
        assert restored.to_dict() == registry.to_dict()
        assert restored.is_paused() is True
        assert restored.get_owner(1) == BOB
        assert restored.get_creator_mint_count(CREATOR) == 2
        assert len(restored.events) == len(registry.events)

    def test_ids_continue_after_reload(self):
        registry = make_registry_with_creator()
        registry.mint(CREATOR, ALICE, URI)
        restored = TokenRegistry.from_dict(ChainEnvironment(), registry.to_dict())
        assert restored.mint(CREATOR, ALICE, URI) == 2

    def test_token_outside_minted_range_rejected(self):
        data = make_registry_with_creator().to_dict()
        data["tokens"] = {"5": {"owner": ALICE, "uri": URI, "creator": CREATOR}}
        with pytest.raises(ValueError):
            TokenRegistry.from_dict(ChainEnvironment(), data)
