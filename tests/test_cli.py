"""Tests for the typer command-line surface."""

import asyncio
import re
from decimal import Decimal

import pytest
import yaml
from typer.testing import CliRunner

from safe_wallet.cli import app as cli_module
from safe_wallet.cli.app import app
from safe_wallet.ledger.local import LocalLedger
from safe_wallet.wallet.keys import derive_public_key, generate_secret_key

runner = CliRunner()

_CREATED_RE = re.compile(r'Wallet created at XOR name: "([0-9a-f]{64})"')


@pytest.fixture
def config_path(tmp_path, caller_sk):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"wallet": {"secret_key": caller_sk}}), encoding="utf-8")
    return path


def invoke(config_path, *args):
    return runner.invoke(app, ["--config", str(config_path), *args])


def create_wallet(config_path) -> str:
    result = invoke(config_path, "wallet", "create")
    assert result.exit_code == 0, result.output
    return _CREATED_RE.search(result.output).group(1)


class TestWalletCommands:
    def test_create(self, config_path):
        result = invoke(config_path, "wallet", "create")
        assert result.exit_code == 0
        assert _CREATED_RE.search(result.output)

    def test_insert_then_balance(self, config_path):
        wallet = create_wallet(config_path)

        result = invoke(
            config_path, "wallet", "insert", "payee", wallet,
            "--name", "main", "--test-coins", "--preload", "10",
        )
        assert result.exit_code == 0, result.output
        assert "New spendable balance generated with name 'main'" in result.output
        assert f'"{wallet}"' in result.output

        result = invoke(config_path, "wallet", "--target", wallet, "balance")
        assert result.exit_code == 0, result.output
        assert f'Wallet at XOR name "{wallet}" has a total balance of 10 safecoins' in result.output

    def test_insert_existing_key_prompts_for_secret(self, config_path, tmp_path, monkeypatch):
        wallet = create_wallet(config_path)

        async def _store_coin():
            async with LocalLedger.at(tmp_path / "ledger.db") as ledger:
                with generate_secret_key() as sk:
                    coin = await ledger.keys_create_preload_test_coins(
                        Decimal("4"), derive_public_key(sk)
                    )
                    return coin, sk.expose()

        coin, secret = asyncio.run(_store_coin())
        prompts = []

        def fake_prompt(prompt_text, error_text):
            prompts.append(prompt_text)
            return secret

        monkeypatch.setattr(cli_module, "prompt_user", fake_prompt)

        result = invoke(config_path, "wallet", "insert", "payee", wallet, coin, "--name", "linked")

        assert result.exit_code == 0, result.output
        assert len(prompts) == 1
        assert coin in prompts[0]
        assert secret not in result.output
        assert "Spendable balance added with name 'linked'" in result.output

    def test_show_lists_balances(self, config_path):
        wallet = create_wallet(config_path)
        invoke(config_path, "wallet", "insert", "p", wallet, "--name", "main", "--test-coins", "--default")

        result = invoke(config_path, "wallet", "--target", wallet, "show")
        assert result.exit_code == 0, result.output
        assert "main" in result.output

    def test_show_prints_names_literally(self, config_path):
        wallet = create_wallet(config_path)
        result = invoke(config_path, "wallet", "insert", "p", wallet, "--name", "[/bold]", "--test-coins")
        assert result.exit_code == 0, result.output

        result = invoke(config_path, "wallet", "--target", wallet, "show")
        assert result.exit_code == 0, result.output
        assert "[/bold]" in result.output

    def test_sweep(self, config_path):
        a = create_wallet(config_path)
        b = create_wallet(config_path)
        invoke(config_path, "wallet", "insert", "p", a, "--name", "x", "--test-coins", "--preload", "2")
        invoke(config_path, "wallet", "insert", "p", b, "--name", "y", "--test-coins", "--default")

        result = invoke(config_path, "wallet", "sweep", "--from", a, "--to", b)
        assert result.exit_code == 0, result.output

        result = invoke(config_path, "wallet", "--target", b, "balance")
        assert "total balance of 2 safecoins" in result.output


class TestTargets:
    def test_no_target_fails(self, config_path):
        result = invoke(config_path, "wallet", "balance")
        assert result.exit_code == 1
        assert "No target location provided" in result.output
        assert "Traceback" not in result.output
        assert not (config_path.parent / "ledger.db").exists()

    def test_set_default_is_used(self, config_path, monkeypatch):
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        raw["ledger"] = {"path": "${SAFE_WALLET_LEDGER_DIR}/ledger.db"}
        monkeypatch.setenv("SAFE_WALLET_LEDGER_DIR", str(config_path.parent))
        config_path.write_text(yaml.safe_dump(raw), encoding="utf-8")
        wallet = create_wallet(config_path)

        result = invoke(config_path, "wallet", "set-default", wallet)
        assert result.exit_code == 0, result.output

        saved = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        assert saved["wallet"]["default_target"] == wallet
        assert saved["ledger"]["path"] == "${SAFE_WALLET_LEDGER_DIR}/ledger.db"

        result = invoke(config_path, "wallet", "balance")
        assert result.exit_code == 0, result.output
        assert f'"{wallet}" has a total balance of 0 safecoins' in result.output


class TestFailures:
    @pytest.mark.parametrize(
        "args",
        [["wallet", "transfer", "somewhere"], ["wallet", "transfer", "to", "from"], ["wallet", "check-tx"]],
    )
    def test_unsupported(self, config_path, args):
        result = invoke(config_path, *args)
        assert result.exit_code == 1
        assert result.output.strip() == "Sub-command not supported yet"

    def test_invalid_preload(self, config_path):
        wallet = create_wallet(config_path)
        result = invoke(
            config_path, "wallet", "insert", "p", wallet, "--name", "m", "--test-coins", "--preload=-5"
        )
        assert result.exit_code == 1
        assert "Invalid preload amount" in result.output

    def test_non_ascii_secret_key(self, config_path, tmp_path, monkeypatch):
        wallet = create_wallet(config_path)

        async def _store_coin():
            async with LocalLedger.at(tmp_path / "ledger.db") as ledger:
                with generate_secret_key() as sk:
                    return await ledger.keys_create_preload_test_coins(
                        Decimal("1"), derive_public_key(sk)
                    )

        coin = asyncio.run(_store_coin())
        monkeypatch.setattr(cli_module, "prompt_user", lambda prompt_text, error_text: "clé-secrète")

        result = invoke(config_path, "wallet", "insert", "p", wallet, coin, "--name", "k")

        assert result.exit_code == 1
        assert "Invalid secret key" in result.output
        assert "Traceback" not in result.output

    def test_unknown_wallet(self, config_path):
        result = invoke(config_path, "wallet", "--target", "ab" * 32, "show")
        assert result.exit_code == 1
        assert "No wallet found" in result.output

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("wallet: [not, a, mapping]\n", encoding="utf-8")
        result = invoke(path, "wallet", "create")
        assert result.exit_code == 1
        assert "Invalid config file" in result.output


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "safe-wallet-cli" in result.output
