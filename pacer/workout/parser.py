"""Free-text interval workout parser.

Turns instructions such as ``"Jog for 60s, walk for 90s, repeat for 20 minutes"``
into raw steps: activity steps plus repeat directives that carry a snapshot of
the activity steps they apply to. Fragments that cannot be understood are
dropped; parsing never raises.
"""

from __future__ import annotations

import logging
import re

from pacer.workout.model import (
    ActivityStep,
    Duration,
    DurationUnit,
    RawStep,
    RepeatCountStep,
    RepeatDurationStep,
)

logger = logging.getLogger(__name__)

# The lookahead keeps "5 miles" from reading as five minutes.
_UNIT = r"(minutes?|mins?|m|seconds?|secs?|s)(?![a-z])"

_SEGMENT_SPLIT_RE = re.compile(r"[,.]|\s+(?:then|and)\s+", re.IGNORECASE)
_REPEAT_WORD_RE = re.compile(r"repeat|again", re.IGNORECASE)
_REPEAT_COUNT_RE = re.compile(r"(?:repeat|do|again)\s+(\d+)\s*(?:x|times?)", re.IGNORECASE)
_REPEAT_DURATION_RE = re.compile(
    rf"(?:repeat|do|again)(?:\s+for)?\s+(\d+)\s*{_UNIT}", re.IGNORECASE
)
_CLOCK_RE = re.compile(r"(\d+):(\d{2})")
_DURATION_RE = re.compile(rf"(?:for\s+)?(\d+)\s*{_UNIT}", re.IGNORECASE)

_LABEL_STRIP_RES = (
    _CLOCK_RE,
    re.compile(rf"for\s+\d+\s*{_UNIT}", re.IGNORECASE),
    re.compile(rf"\d+\s*{_UNIT}", re.IGNORECASE),
)
_TRAILING_FOR_RE = re.compile(r"(?:^|\s+)for\s*$", re.IGNORECASE)

# Repeating a block once more when no count or duration is given.
DEFAULT_REPEAT_COUNT = 2

# Checked in order; the first key found anywhere in the label wins.
ACTIVITY_SYNONYMS: tuple[tuple[str, str], ...] = (
    ("run", "Run"),
    ("jog", "Jog"),
    ("walk", "Walk"),
    ("sprint", "Sprint"),
    ("rest", "Rest"),
    ("recover", "Recover"),
    ("warm up", "Warm up"),
    ("warmup", "Warm up"),
    ("cool down", "Cool down"),
    ("cooldown", "Cool down"),
    ("easy", "Easy pace"),
    ("moderate", "Moderate pace"),
    ("hard", "Hard pace"),
    ("fast", "Fast pace"),
)


def parse_instructions(text: str) -> list[RawStep]:
    steps: list[RawStep] = []
    pending: list[ActivityStep] = []

    for segment in split_segments(text):
        clean = segment.lower()
        if _REPEAT_WORD_RE.search(clean):
            repeat = _parse_repeat(clean, tuple(pending))
            steps.append(repeat)
            pending = []
            continue

        activity = _parse_activity(clean)
        if activity is None:
            continue
        steps.append(activity)
        pending.append(activity)

    return steps


def split_segments(text: str) -> list[str]:
    parts = (part.strip() for part in _SEGMENT_SPLIT_RE.split(text or ""))
    return [part for part in parts if part]


def extract_duration(text: str) -> Duration | None:
    clock = _CLOCK_RE.search(text)
    if clock:
        minutes, seconds = int(clock.group(1)), int(clock.group(2))
        return Duration(minutes * 60 + seconds, "seconds")

    match = _DURATION_RE.search(text)
    if match:
        return Duration(int(match.group(1)), _unit_from_token(match.group(2)))
    return None


def extract_activity(text: str) -> str | None:
    label = text
    for pattern in _LABEL_STRIP_RES:
        label = pattern.sub("", label)
    label = re.sub(r"\s+", " ", label).strip()
    label = _TRAILING_FOR_RE.sub("", label).strip()
    if not label:
        return None

    lowered = label.lower()
    for key, canonical in ACTIVITY_SYNONYMS:
        if key in lowered:
            return canonical
    return " ".join(word[:1].upper() + word[1:] for word in label.split(" "))


def _parse_repeat(
    segment: str, block: tuple[ActivityStep, ...]
) -> RepeatCountStep | RepeatDurationStep:
    count = _REPEAT_COUNT_RE.search(segment)
    if count and int(count.group(1)) >= 1:
        return RepeatCountStep(count=int(count.group(1)), steps_to_repeat=block)

    duration = _REPEAT_DURATION_RE.search(segment)
    if duration:
        return RepeatDurationStep(
            duration=Duration(int(duration.group(1)), _unit_from_token(duration.group(2))),
            steps_to_repeat=block,
        )

    logger.debug(
        "repeat directive %r has no count or duration, assuming %d passes",
        segment,
        DEFAULT_REPEAT_COUNT,
    )
    return RepeatCountStep(count=DEFAULT_REPEAT_COUNT, steps_to_repeat=block)


def _parse_activity(segment: str) -> ActivityStep | None:
    duration = extract_duration(segment)
    if duration is None:
        logger.debug("dropping segment %r: no duration", segment)
        return None
    activity = extract_activity(segment)
    if activity is None:
        logger.debug("dropping segment %r: no activity label", segment)
        return None
    return ActivityStep(activity=activity, duration=duration)


def _unit_from_token(token: str) -> DurationUnit:
    return "minutes" if token.lower().startswith("m") else "seconds"
