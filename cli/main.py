from __future__ import annotations

import argparse
import json
import os
from typing import Any, List, Optional, cast

from cangkul_zk.cards import CANNOT_FOLLOW_SENTINEL, card_label
from cangkul_zk.dispatch import Dispatcher, ProofDomain
from cangkul_zk.errors import ZkError
from cangkul_zk.hashing import from_hex, to_hex32
from cangkul_zk.models import ProofMode
from cangkul_zk.reveal import commit_play, commit_seed, open_play_commitment, rebuild_seed_reveal
from cangkul_zk.settings import Settings
from cangkul_zk.shuffle import shuffle_and_deal
from vault.crypto import key_from_hex, key_to_hex, new_key
from vault.store import FileBackend, SecretStore


def ensure_state(out: str):
    os.makedirs(out, exist_ok=True)
    return {
        "vault": os.path.join(out, "vault"),
        "backup": os.path.join(out, "vault_backup"),
        "keys": os.path.join(out, "keys.json"),
    }

def load_keys(path: str) -> dict[str, Any]:
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    return {}

def save_keys(path: str, keys: dict):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(keys, f, indent=2, sort_keys=True)

def open_store(out: str, settings: Settings) -> SecretStore:
    st = ensure_state(out)
    master = settings.store_key
    if master is None:
        keys = load_keys(st["keys"])
        if "store_key_hex" not in keys:
            keys["store_key_hex"] = key_to_hex(new_key())
            save_keys(st["keys"], keys)
        master = key_from_hex(keys["store_key_hex"])
    return SecretStore(master, FileBackend(st["vault"]), FileBackend(st["backup"]))

def parse_card(s: str) -> int:
    if s.strip().lower() in ("cangkul", "none", "sentinel"):
        return CANNOT_FOLLOW_SENTINEL
    return int(s, 0)

def parse_hand(s: str) -> List[int]:
    return [int(x, 0) for x in s.split(",") if x.strip()]

def cmd_seed_commit(args):
    store = open_store(args.out, Settings.load())
    c = commit_seed(args.player, ProofMode(args.mode))
    store.put_seed(args.session, args.player, c.secret)

    print("✅ Seed committed + sealed")
    print(f"   mode        : {args.mode}")
    print(f"   commit_hash : {to_hex32(c.commit_hash)}")
    print(f"   session     : {args.session}")

def cmd_seed_reveal(args):
    store = open_store(args.out, Settings.load())
    secret = store.load_seed(args.session, args.player)
    if secret is None:
        raise SystemExit("❌ No stored seed for this session/player. Did you commit from this state dir?")
    try:
        rev = rebuild_seed_reveal(secret, args.session, args.player, from_hex(args.commit_hash))
    except ZkError as e:
        raise SystemExit(f"❌ Seed reveal failed: {e}")

    print("✅ Seed reveal rebuilt")
    print(f"   mode          : {rev.mode.value}")
    print(f"   seed_hash     : {to_hex32(rev.seed_hash)}")
    print(f"   proof         : 0x{rev.proof.hex()}")
    print(f"   public_inputs : 0x{rev.public_inputs.hex()}")
    if args.clear:
        store.clear_seed(args.session, args.player)
        print("   cleared       : yes")

def cmd_play_commit(args):
    settings = Settings.load()
    store = open_store(args.out, settings)
    card = parse_card(args.card)
    try:
        c = commit_play(
            card,
            parse_hand(args.hand),
            args.trick_suit,
            args.session,
            args.player,
            zk=not args.no_zk,
            settings=settings,
        )
    except ZkError as e:
        raise SystemExit(f"❌ Play commit failed: {e}")
    store.put_play(args.session, args.player, c.secret)

    label = "Cangkul!" if card == CANNOT_FOLLOW_SENTINEL else card_label(card)
    print(f"✅ Play committed ({c.kind})")
    print(f"   card          : {label}")
    print(f"   commit_hash   : {to_hex32(c.commit_hash)}")
    if c.proof is not None:
        print(f"   proof         : 0x{c.proof.hex()}")
        print(f"   public_inputs : 0x{(c.public_inputs or b'').hex()}")

def cmd_play_reveal(args):
    store = open_store(args.out, Settings.load())
    secret = store.load_play(args.session, args.player)
    if secret is None:
        raise SystemExit("❌ No stored play commit for this session/player.")
    hand = parse_hand(args.hand) if args.hand else None
    try:
        open_play_commitment(secret.card_id, secret.salt_bytes(), from_hex(args.commit_hash), secret.zk_mode, hand)
    except ZkError as e:
        raise SystemExit(f"❌ Play reveal failed: {e}")
    store.clear_play(args.session, args.player)

    label = "Cangkul!" if secret.is_cannot_follow else card_label(secret.card_id)
    print("✅ Play opening matches commitment")
    print(f"   card    : {label} ({secret.card_id})")
    print(f"   salt    : 0x{secret.salt}")
    print(f"   zk_mode : {secret.zk_mode}")

def cmd_verify(args):
    dispatcher = Dispatcher(Settings.load())
    res = dispatcher.verify(ProofDomain(args.domain), from_hex(args.inputs), from_hex(args.proof))
    print(f"✅ Proof verified ({res.kind})" if res else f"❌ Proof rejected: {res.reason.value}")
    if not res:
        raise SystemExit(1)

def cmd_shuffle(args):
    d = shuffle_and_deal(from_hex(args.seed_hash1), from_hex(args.seed_hash2), args.session)
    print("✅ Shuffle derived")
    print(f"   hand1     : {' '.join(card_label(c) for c in d.hand1)}")
    print(f"   hand2     : {' '.join(card_label(c) for c in d.hand2)}")
    print(f"   draw_pile : {len(d.draw_pile)} cards")
    print(f"   deck      : {','.join(str(c) for c in d.deck)}")

def main(argv: Optional[List[str]] = None) -> None:
    p = argparse.ArgumentParser(prog="cangkul-zk")
    sub = p.add_subparsers(dest="cmd", required=True)

    # seed-commit
    sc = sub.add_parser("seed-commit", help="Draw + commit a shuffle seed, sealing the secret")
    sc.add_argument("--out", required=True, help="State directory")
    sc.add_argument("--session", type=int, required=True)
    sc.add_argument("--player", required=True)
    sc.add_argument("--mode", choices=[m.value for m in ProofMode], default=ProofMode.PEDERSEN.value)
    sc.set_defaults(func=cmd_seed_commit)

    # seed-reveal
    sr = sub.add_parser("seed-reveal", help="Rebuild seed hash + proof from the sealed secret")
    sr.add_argument("--out", required=True, help="State directory")
    sr.add_argument("--session", type=int, required=True)
    sr.add_argument("--player", required=True)
    sr.add_argument("--commit-hash", required=True)
    sr.add_argument("--clear", action="store_true", help="Delete the secret after rebuilding")
    sr.set_defaults(func=cmd_seed_reveal)

    # play-commit
    pc = sub.add_parser("play-commit", help="Commit a card (or 'cangkul') with optional ZK proof")
    pc.add_argument("--out", required=True, help="State directory")
    pc.add_argument("--session", type=int, required=True)
    pc.add_argument("--player", required=True)
    pc.add_argument("--card", required=True, help="Card id 0-35, or 'cangkul' for cannot-follow")
    pc.add_argument("--hand", required=True, help="Comma-separated card ids")
    pc.add_argument("--trick-suit", type=int, required=True, choices=[0, 1, 2, 3])
    pc.add_argument("--no-zk", action="store_true", help="Use the legacy keccak commitment")
    pc.set_defaults(func=cmd_play_commit)

    # play-reveal
    pr = sub.add_parser("play-reveal", help="Open the sealed play commit against its hash")
    pr.add_argument("--out", required=True, help="State directory")
    pr.add_argument("--session", type=int, required=True)
    pr.add_argument("--player", required=True)
    pr.add_argument("--commit-hash", required=True)
    pr.add_argument("--hand", help="Revealed hand (needed for a ZK cannot-follow opening)")
    pr.set_defaults(func=cmd_play_reveal)

    # verify
    v = sub.add_parser("verify", help="Verify a proof against encoded public inputs")
    v.add_argument("--domain", choices=[d.value for d in ProofDomain], required=True)
    v.add_argument("--inputs", required=True, help="Hex public inputs")
    v.add_argument("--proof", required=True, help="Hex proof")
    v.set_defaults(func=cmd_verify)

    # shuffle
    sh = sub.add_parser("shuffle", help="Recompute the deck from both revealed seed hashes")
    sh.add_argument("--seed-hash1", required=True)
    sh.add_argument("--seed-hash2", required=True)
    sh.add_argument("--session", type=int, required=True)
    sh.set_defaults(func=cmd_shuffle)

    args = p.parse_args(argv)
    if hasattr(args, "func"):
        args.func(args)

if __name__ == "__main__":
    main()
