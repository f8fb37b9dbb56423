from __future__ import annotations
from typing import Dict, List, Optional

# Strategy A: emotion families (otio wheel). Each family has 4 members,
# the family name included. "balanced" has a weight but no members.
FAMILY_ORDER = [
    "happy",
    "loved",
    "confident",
    "playful",
    "balanced",
    "embarrassed",
    "angry",
    "scared",
    "sad",
]

BALANCED = "balanced"

FAMILY_WEIGHTS: Dict[str, float] = {
    "happy": 4.0,
    "loved": 3.0,
    "confident": 2.0,
    "playful": 1.0,
    "balanced": 0.0,
    "embarrassed": -1.0,
    "angry": -2.0,
    "scared": -3.0,
    "sad": -4.0,
}

EMOTION_FAMILIES: Dict[str, List[str]] = {
    "sad": ["sad", "lonely", "hurt", "disappointed"],
    "scared": ["scared", "anxious", "powerless", "overwhelmed"],
    "angry": ["angry", "bored", "jealous", "annoyed"],
    "embarrassed": ["embarrassed", "ashamed", "excluded", "guilty"],
    "playful": ["playful", "creative", "curious", "affectionate"],
    "confident": ["confident", "brave", "hopeful", "powerful"],
    "loved": ["loved", "respected", "valued", "accepted"],
    "happy": ["happy", "caring", "grateful", "excited"],
    "balanced": [],
}

# member -> family
_MEMBER_TO_FAMILY: Dict[str, str] = {BALANCED: BALANCED}
for _family, _members in EMOTION_FAMILIES.items():
    for _m in _members:
        _MEMBER_TO_FAMILY[_m] = _family

# largest single-record contribution under strategy A
FAMILY_MAX_WEIGHT = max(FAMILY_WEIGHTS.values())

# Strategy B: primary labels (puls / Vibes). Intensity multiplies the weight.
NEUTRAL = "neutral"

PRIMARY_WEIGHTS: Dict[str, float] = {
    "happy": 2.0,
    "sad": 1.0,
    "anxious": -1.0,
    "angry": -2.0,
    "neutral": 0.0,
}

PRIMARY_MAX_WEIGHT = max(PRIMARY_WEIGHTS.values())


def normalize_label(label) -> Optional[str]:
    """Lower-cased, stripped label, or None when it is not a usable string."""
    if not isinstance(label, str):
        return None
    s = label.strip().lower()
    return s or None


def resolve_family(label) -> Optional[str]:
    key = normalize_label(label)
    if key is None:
        return None
    return _MEMBER_TO_FAMILY.get(key)


def resolve_primary(label) -> Optional[str]:
    key = normalize_label(label)
    if key is None or key not in PRIMARY_WEIGHTS:
        return None
    return key


def family_members(family: str) -> List[str]:
    return list(EMOTION_FAMILIES.get(family, []))
