"""
Deployment Bundle and CLI Tests

Coverage:
  - FashionChain deploy from config, JSON save/load round trip
  - Version check on load
  - End-to-end CLI flow: init, register, mint, fund, list, buy, inspect
  - CLI error reporting and state persistence on failure
"""

import json
import os
import sys

import pytest
from click.testing import CliRunner

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from couture.chain import STATE_FORMAT_VERSION, FashionChain
from couture.cli.ledger import cli
from couture.config import LedgerConfig
from couture.exceptions import ConfigurationError


ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
FEE = "ST1SJ3DTE5DN7X54YDH5D64R3BCB6A2AG2ZQ8YPD5"
CREATOR = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
OWNER = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP"
BUYER = "ST2REHHS5J3CERCRBEPMGH7921Q6PYKAADT7JP2VB"
URI = "ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


def make_config(**exchange) -> LedgerConfig:
    cfg = LedgerConfig()
    cfg.registry.admin = ADMIN
    cfg.exchange.admin = ADMIN
    cfg.exchange.platform_fee_address = FEE
    for key, value in exchange.items():
        setattr(cfg.exchange, key, value)
    return cfg


def make_traded_chain() -> FashionChain:
    chain = FashionChain.deploy(make_config())
    chain.registry.register_creator(ADMIN, CREATOR)
    chain.registry.mint(CREATOR, OWNER, URI)
    chain.registry.mint(CREATOR, OWNER, "ipfs://second")
    chain.exchange.list(OWNER, 1, 1000, 500)
    chain.exchange.list(OWNER, 2, 400, 0)
    chain.env.credit(BUYER, 1000)
    chain.exchange.buy(BUYER, 1)
    return chain


# ══════════════════════════════════════════════════════════════════════
#  DEPLOYMENT BUNDLE
# ══════════════════════════════════════════════════════════════════════


class TestFashionChain:

    def test_deploy_from_config(self):
        chain = FashionChain.deploy(make_config(platform_fee_percent=300))
        assert chain.registry.get_admin() == ADMIN
        assert chain.exchange.get_platform_fee_address() == FEE
        assert chain.exchange.get_platform_fee_percent() == 300
        assert chain.exchange.tokens.get_owner(1) is None

    def test_deploy_validates_config(self):
        with pytest.raises(ConfigurationError):
            FashionChain.deploy(make_config(platform_fee_percent=9000))

    def test_exchange_reads_the_deployed_registry(self):
        chain = make_traded_chain()
        assert chain.exchange.tokens.get_owner(1) == BUYER
        assert chain.registry.get_owner(1) == BUYER

    def test_save_load_round_trip(self, tmp_path):
        chain = make_traded_chain()
        path = tmp_path / "state.json"
        chain.save(path)

        loaded = FashionChain.load(path)
        assert loaded.to_dict() == chain.to_dict()
        assert loaded.env.get_balance(FEE) == 20
        assert loaded.exchange.get_listing(2).price == 400

    def test_loaded_chain_keeps_working(self, tmp_path):
        path = tmp_path / "state.json"
        make_traded_chain().save(path)
        loaded = FashionChain.load(path)

        assert loaded.registry.mint(CREATOR, BUYER, URI) == 3
        loaded.env.credit(BUYER, 400)
        receipt = loaded.exchange.buy(BUYER, 2)
        assert receipt.previous_owner == OWNER
        assert loaded.registry.get_owner(2) == BUYER

    def test_save_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        make_traded_chain().save(path)
        assert sorted(p.name for p in path.parent.iterdir()) == ["state.json"]

    def test_unknown_version_rejected(self):
        data = make_traded_chain().to_dict()
        data["version"] = STATE_FORMAT_VERSION + 1
        with pytest.raises(ValueError, match="Unsupported state format"):
            FashionChain.from_dict(data)


# ══════════════════════════════════════════════════════════════════════
#  CLI
# ══════════════════════════════════════════════════════════════════════


class CliSession:
    """Runs CLI commands against one temporary state file."""

    def __init__(self, tmp_path):
        self.runner = CliRunner()
        self.state = tmp_path / "state.json"
        self.config = tmp_path / "absent.toml"

    def run(self, *args):
        return self.runner.invoke(
            cli,
            ["--state", str(self.state), "--config", str(self.config), *args],
        )

    def ok(self, *args):
        result = self.run(*args)
        assert result.exit_code == 0, result.output
        return result.output


@pytest.fixture
def session(tmp_path, monkeypatch):
    monkeypatch.delenv("COUTURE_CONFIG", raising=False)
    monkeypatch.delenv("COUTURE_ADMIN", raising=False)
    return CliSession(tmp_path)


@pytest.fixture
def deployed(session):
    session.ok("init", "--admin", ADMIN, "--fee-address", FEE)
    session.ok("register-creator", "-c", ADMIN, CREATOR)
    return session


class TestCli:

    def test_init(self, session):
        output = session.ok("init", "--admin", ADMIN, "--fee-percent", "250")
        assert "Ledgers deployed" in output
        assert "250 bps" in output
        assert session.state.exists()

    def test_init_refuses_to_overwrite(self, session):
        session.ok("init", "--admin", ADMIN)
        result = session.run("init", "--admin", ADMIN)
        assert result.exit_code != 0
        assert "already exists" in result.output
        session.ok("init", "--admin", ADMIN, "--force")

    def test_init_rejects_bad_fee(self, session):
        result = session.run("init", "--admin", ADMIN, "--fee-percent", "900")
        assert result.exit_code != 0
        assert "Failed to deploy" in result.output
        assert not session.state.exists()

    def test_commands_need_init(self, session):
        result = session.run("balance", BUYER)
        assert result.exit_code != 0
        assert "couture init" in result.output

    def test_full_trade(self, deployed):
        assert "Minted token #1" in deployed.ok("mint", "-c", CREATOR, OWNER, URI)
        deployed.ok("fund", BUYER, "1000")
        assert "Listed #1 at 1000" in deployed.ok("list", "-c", OWNER, "1", "1000", "500")

        output = deployed.ok("buy", "-c", BUYER, "1")
        assert "Bought #1 for 1000" in output
        assert f"Platform fee: 20 → {FEE}" in output
        assert f"Royalty:      50 → {CREATOR}" in output
        assert f"Seller:       930 → {OWNER}" in output

        assert "930" in deployed.ok("balance", OWNER).splitlines()
        assert f'"owner": "{BUYER}"' in deployed.ok("token", "1")
        assert "nft-sold" in deployed.ok("events", "--ledger", "exchange")

    def test_rejection_reports_code_and_keeps_state(self, deployed):
        result = deployed.run("mint", "-c", OWNER, OWNER, URI)
        assert result.exit_code != 0
        assert "[108] UNAUTHORIZED_CREATOR (unauthorized)" in result.output

        state = json.loads(deployed.state.read_text())
        assert state["registry"]["lastTokenId"] == 0

    def test_insufficient_funds(self, deployed):
        deployed.ok("mint", "-c", CREATOR, OWNER, URI)
        deployed.ok("list", "-c", OWNER, "1", "1000", "0")
        deployed.ok("fund", BUYER, "999")
        result = deployed.run("buy", "-c", BUYER, "1")
        assert "[203] INSUFFICIENT_FUNDS" in result.output
        assert "999" in deployed.ok("balance", BUYER).splitlines()

    def test_exchange_pause(self, deployed):
        deployed.ok("mint", "-c", CREATOR, OWNER, URI)
        assert "exchange paused" in deployed.ok("pause", "-c", ADMIN, "--ledger", "exchange")
        result = deployed.run("list", "-c", OWNER, "1", "10", "0")
        assert "[204] EXCHANGE_PAUSED" in result.output
        deployed.ok("pause", "-c", ADMIN, "--ledger", "exchange", "--off")
        deployed.ok("list", "-c", OWNER, "1", "10", "0")

    def test_operator_listing(self, deployed):
        operator = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"
        deployed.ok("mint", "-c", CREATOR, OWNER, URI)
        deployed.ok("approve", "-c", OWNER, "1", operator)
        deployed.ok("list", "-c", operator, "1", "50", "0")
        assert f'"seller": "{operator}"' in deployed.ok("listing", "1")
        deployed.ok("delist", "-c", operator, "1")
        assert deployed.run("listing", "1").exit_code != 0

    def test_metadata_update(self, deployed):
        deployed.ok("mint", "-c", CREATOR, OWNER, URI)
        deployed.ok("transfer", "-c", OWNER, "1", BUYER)
        deployed.ok("update-metadata", "-c", CREATOR, "1", "ipfs://v2")
        output = deployed.ok("token", "1")
        assert '"uri": "ipfs://v2"' in output
        assert f'"creator": "{CREATOR}"' in output

    def test_invalid_config_file(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[registry\n")
        result = CliRunner().invoke(cli, ["--config", str(bad), "--state", str(tmp_path / "s.json"), "balance", ADMIN])
        assert result.exit_code != 0
        assert "Invalid TOML" in result.output
