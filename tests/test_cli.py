"""
CLI end-to-end.

Coverage:
- seed-commit then seed-reveal from a state directory
- play-commit then play-reveal
- verify exit status
- shuffle output
"""

from __future__ import annotations

import re

import pytest

from cangkul_zk.hashing import keccak256
from cli.main import main

from conftest import PLAYER


def _field(out: str, name: str) -> str:
    m = re.search(rf"{name}\s*: (\S+)", out)
    assert m, f"{name} missing in output"
    return m.group(1)


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    monkeypatch.delenv("CANGKUL_STORE_KEY", raising=False)


class TestSeedCommands:
    def test_commit_then_reveal(self, tmp_path, capsys):
        out_dir = str(tmp_path / "state")
        main(["seed-commit", "--out", out_dir, "--session", "7", "--player", PLAYER])
        commit_hash = _field(capsys.readouterr().out, "commit_hash")

        main(["seed-reveal", "--out", out_dir, "--session", "7", "--player", PLAYER,
              "--commit-hash", commit_hash, "--clear"])
        out = capsys.readouterr().out
        proof = _field(out, "proof")
        inputs = _field(out, "public_inputs")
        assert len(bytes.fromhex(proof[2:])) == 224

        main(["verify", "--domain", "seed", "--inputs", inputs, "--proof", proof])
        assert "Proof verified" in capsys.readouterr().out

    def test_reveal_without_commit(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["seed-reveal", "--out", str(tmp_path), "--session", "1", "--player", PLAYER,
                  "--commit-hash", "0x" + "00" * 32])


class TestPlayCommands:
    def test_commit_then_reveal(self, tmp_path, capsys):
        out_dir = str(tmp_path / "state")
        main(["play-commit", "--out", out_dir, "--session", "3", "--player", PLAYER,
              "--card", "13", "--hand", "0,9,13,20,30", "--trick-suit", "1"])
        out = capsys.readouterr().out
        assert "(ring)" in out
        commit_hash = _field(out, "commit_hash")

        main(["play-reveal", "--out", out_dir, "--session", "3", "--player", PLAYER,
              "--commit-hash", commit_hash])
        assert "matches commitment" in capsys.readouterr().out

    def test_illegal_play(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["play-commit", "--out", str(tmp_path), "--session", "3", "--player", PLAYER,
                  "--card", "0", "--hand", "0,9", "--trick-suit", "1"])


class TestVerifyAndShuffle:
    def test_verify_rejects(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["verify", "--domain", "seed", "--inputs", "00", "--proof", "00" * 10])
        assert exc.value.code == 1
        assert "PROOF_WRONG_LENGTH" in capsys.readouterr().out

    def test_shuffle(self, capsys):
        sh1 = keccak256(b"\x01" * 32).hex()
        sh2 = keccak256(b"\x02" * 32).hex()
        main(["shuffle", "--seed-hash1", sh1, "--seed-hash2", sh2, "--session", "9"])
        out = capsys.readouterr().out
        deck = [int(x) for x in _field(out, "deck").split(",")]
        assert sorted(deck) == list(range(36))
