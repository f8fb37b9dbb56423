"""Sound recommendation: normalized score -> coping sound category.

Each preset is an ordered table evaluated top-down, first match wins.
Anything no row matches (out of [-1, 1], NaN) falls back to NEUTRAL_DEFAULT.

The presets come from different app releases and disagree on which range
gets which sound. They are kept side by side on purpose:

- TIERED: exact 0.0 is "balanced" and gets the nature sound; every positive
  range is uplifting, [-0.2, 0) soothing, below that calming.
- SPLIT: the first otio table. Only [0.6, 1] is uplifting, [0.2, 0.6) is
  soothing, [-0.2, 0.2) gets the nature sound, below -0.6 grounding.
- FAMILY: the later otio table with one meditation per emotion family in
  quarter-width buckets. Its 0.0 row comes after [0, 0.25), so 0.0 is playful.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Optional, Tuple


class SoundCategory(str, Enum):
    UPLIFTING = "uplifting"
    SOOTHING = "soothing"
    CALMING = "calming"
    GROUNDING = "grounding"
    NEUTRAL_DEFAULT = "neutral_default"
    # family meditations
    HAPPY = "happy"
    LOVED = "loved"
    CONFIDENT = "confident"
    PLAYFUL = "playful"
    EMBARRASSED = "embarrassed"
    SCARED = "scared"
    ANGRY = "angry"
    SAD = "sad"


class BucketPreset(str, Enum):
    TIERED = "tiered"
    SPLIT = "split"
    FAMILY = "family"


# (low, high, high_inclusive, category); low is always inclusive.
# low == high with high_inclusive marks an exact point.
Bucket = Tuple[float, float, bool, SoundCategory]

PRESET_TABLES: Dict[BucketPreset, List[Bucket]] = {
    BucketPreset.TIERED: [
        (0.0, 0.0, True, SoundCategory.NEUTRAL_DEFAULT),
        (0.6, 1.0, True, SoundCategory.UPLIFTING),
        (0.2, 0.6, False, SoundCategory.UPLIFTING),
        (0.0, 0.2, False, SoundCategory.UPLIFTING),
        (-0.2, 0.0, False, SoundCategory.SOOTHING),
        (-0.6, -0.2, False, SoundCategory.CALMING),
        (-1.0, -0.6, False, SoundCategory.CALMING),
    ],
    BucketPreset.SPLIT: [
        (0.6, 1.0, True, SoundCategory.UPLIFTING),
        (0.2, 0.6, False, SoundCategory.SOOTHING),
        (-0.2, 0.2, False, SoundCategory.NEUTRAL_DEFAULT),
        (-0.6, -0.2, False, SoundCategory.CALMING),
        (-1.0, -0.6, False, SoundCategory.GROUNDING),
    ],
    BucketPreset.FAMILY: [
        (0.75, 1.0, True, SoundCategory.HAPPY),
        (0.5, 0.75, False, SoundCategory.LOVED),
        (0.25, 0.5, False, SoundCategory.CONFIDENT),
        (0.0, 0.25, False, SoundCategory.PLAYFUL),
        (-0.25, 0.0, False, SoundCategory.EMBARRASSED),
        (-0.5, -0.25, False, SoundCategory.SCARED),
        (-0.75, -0.5, False, SoundCategory.ANGRY),
        (-1.0, -0.75, False, SoundCategory.SAD),
        (0.0, 0.0, True, SoundCategory.NEUTRAL_DEFAULT),
    ],
}


def _matches(score: float, bucket: Bucket) -> bool:
    low, high, high_inclusive, _ = bucket
    if score < low:
        return False
    if high_inclusive:
        return score <= high
    return score < high


def match_bucket(score: float, preset: BucketPreset = BucketPreset.TIERED) -> Optional[Bucket]:
    """The first bucket of `preset` containing `score`, or None."""
    if score is None or math.isnan(score):
        return None
    for bucket in PRESET_TABLES[BucketPreset(preset)]:
        if _matches(score, bucket):
            return bucket
    return None


def recommend_category(score: float, preset: BucketPreset = BucketPreset.TIERED) -> SoundCategory:
    bucket = match_bucket(score, preset)
    if bucket is None:
        return SoundCategory.NEUTRAL_DEFAULT
    return bucket[3]
