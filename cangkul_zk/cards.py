"""
Card encoding for the 36-card Cangkulan deck.

card_id = suit * 9 + (rank - 2), suit in 0..3 (spades, hearts, diamonds,
clubs), rank in 2..10. The id is used directly as the Pedersen value scalar
for card-play commitments.
"""

from __future__ import annotations

from typing import Final, List, Sequence

from .errors import MalformedInput

CARDS_PER_SUIT: Final[int] = 9
SUITS: Final[int] = 4
DECK_SIZE: Final[int] = CARDS_PER_SUIT * SUITS
HAND_SIZE: Final[int] = 5
MIN_RANK: Final[int] = 2
MAX_RANK: Final[int] = 10

# Reserved action meaning "no card of the trick suit can be played"
CANNOT_FOLLOW_SENTINEL: Final[int] = 0xFFFFFFFF

SUIT_SYMBOLS: Final[Sequence[str]] = ("♠", "♥", "♦", "♣")
SUIT_NAMES: Final[Sequence[str]] = ("Spades", "Hearts", "Diamonds", "Clubs")


def card_id(suit: int, rank: int) -> int:
    if not (0 <= suit < SUITS):
        raise MalformedInput(f"suit out of range: {suit}")
    if not (MIN_RANK <= rank <= MAX_RANK):
        raise MalformedInput(f"rank out of range: {rank}")
    return suit * CARDS_PER_SUIT + (rank - MIN_RANK)


def check_card(cid: int) -> int:
    if not (0 <= cid < DECK_SIZE):
        raise MalformedInput(f"card id out of range: {cid}")
    return cid


def card_suit(cid: int) -> int:
    return check_card(cid) // CARDS_PER_SUIT


def card_rank(cid: int) -> int:
    return check_card(cid) % CARDS_PER_SUIT + MIN_RANK


def card_label(cid: int) -> str:
    return f"{card_rank(cid)}{SUIT_SYMBOLS[card_suit(cid)]}"


def card_name(cid: int) -> str:
    return f"{card_rank(cid)} of {SUIT_NAMES[card_suit(cid)]}"


def valid_set(hand: Sequence[int], trick_suit: int) -> List[int]:
    """Cards of the hand that follow the trick suit, in hand order."""
    return [c for c in hand if card_suit(c) == trick_suit]


def can_follow(hand: Sequence[int], trick_suit: int) -> bool:
    return any(card_suit(c) == trick_suit for c in hand)
