"""
Split calculator: validates and normalizes how an expense amount divides across
participants.

All amounts are integer cents. For an equal split the cents are floor-divided among
participants and the leftover cents go one at a time to participants in the order
they were given, so the shares always add up to the amount exactly and the same
input always yields the same shares.
"""
from typing import Dict, Iterable, List, Optional
from tripledger.core.exceptions import ValidationError
from tripledger.models.expense import SplitKind


def _normalize_kind(split_kind) -> SplitKind:
    try:
        return SplitKind(split_kind)
    except ValueError:
        raise ValidationError(f"Unknown split kind: {split_kind!r}")


def validate_participants(participants: Iterable[int]) -> List[int]:
    """Participants must be non-empty and unique; order is preserved."""
    participants = list(participants)
    if not participants:
        raise ValidationError("At least one participant is required")
    if len(participants) != len(set(participants)):
        raise ValidationError("Duplicate users found in participants")
    return participants


def split_equal(amount_cents: int, participants: List[int]) -> Dict[int, int]:
    """Divide amount_cents across participants, leftover cents to the first ones."""
    base, remainder = divmod(amount_cents, len(participants))
    shares = {}
    for index, user_id in enumerate(participants):
        shares[user_id] = base + (1 if index < remainder else 0)
    return shares


def split_unequal(amount_cents: int, participants: List[int], shares: Dict[int, int]) -> Dict[int, int]:
    """Validate explicit shares. Participants without a share owe nothing."""
    if not shares:
        raise ValidationError("shares required for unequal split")

    unknown = [user_id for user_id in shares if user_id not in participants]
    if unknown:
        raise ValidationError("Shares reference users who are not participants", details=unknown)

    if any(value < 0 for value in shares.values()):
        raise ValidationError("Share amounts must not be negative")

    total = sum(shares.values())
    if total != amount_cents:
        raise ValidationError(
            "Sum of shares must equal the expense amount",
            details={"amount_cents": amount_cents, "shares_total_cents": total},
        )

    return {user_id: shares.get(user_id, 0) for user_id in participants}


def compute_split(
    amount_cents: int,
    split_kind,
    participants: Iterable[int],
    shares: Optional[Dict[int, int]] = None
) -> Dict[int, int]:
    """
    Compute the normalized share (in cents) owed by each participant.

    Returns a dict ordered like ``participants``. Raises ValidationError for a
    non-positive amount, empty or duplicate participants, an unknown split kind,
    or unequal shares that are empty, negative, reference non-participants or do
    not add up to the amount.
    """
    kind = _normalize_kind(split_kind)
    if amount_cents <= 0:
        raise ValidationError("Amount must be positive")
    participants = validate_participants(participants)

    if kind == SplitKind.EQUAL:
        return split_equal(amount_cents, participants)
    return split_unequal(amount_cents, participants, shares or {})
