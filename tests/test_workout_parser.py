from __future__ import annotations

from pacer.workout.model import (
    ActivityStep,
    Duration,
    RepeatCountStep,
    RepeatDurationStep,
    describe_raw_step,
)
from pacer.workout.parser import (
    DEFAULT_REPEAT_COUNT,
    extract_activity,
    extract_duration,
    parse_instructions,
    split_segments,
)

JOG_60 = ActivityStep("Jog", Duration(60, "seconds"))
WALK_90 = ActivityStep("Walk", Duration(90, "seconds"))


def test_parse_two_activities() -> None:
    steps = parse_instructions("Jog for 60s, walk for 90s")

    assert steps == [JOG_60, WALK_90]


def test_parse_clock_duration_converts_to_seconds() -> None:
    steps = parse_instructions("Run for 1:30")

    assert steps == [ActivityStep("Run", Duration(90, "seconds"))]


def test_parse_repeat_count() -> None:
    steps = parse_instructions("jog for 60s, walk for 90s, repeat 3 times")

    assert steps == [
        JOG_60,
        WALK_90,
        RepeatCountStep(count=3, steps_to_repeat=(JOG_60, WALK_90)),
    ]


def test_parse_repeat_duration() -> None:
    steps = parse_instructions("jog for 60s, repeat for 5 minutes")

    assert steps == [
        JOG_60,
        RepeatDurationStep(duration=Duration(5, "minutes"), steps_to_repeat=(JOG_60,)),
    ]


def test_parse_repeat_variants() -> None:
    assert parse_instructions("sprint 20s, do it again 4x")[-1] == RepeatCountStep(
        count=4, steps_to_repeat=(ActivityStep("Sprint", Duration(20, "seconds")),)
    )
    assert parse_instructions("rest 30 sec, repeat 90 s")[-1] == RepeatDurationStep(
        duration=Duration(90, "seconds"),
        steps_to_repeat=(ActivityStep("Rest", Duration(30, "seconds")),),
    )


def test_bare_repeat_defaults_to_two_passes() -> None:
    # Heuristic default: a bare "repeat" means run the block twice in total.
    steps = parse_instructions("jog for 60s. Repeat")

    assert DEFAULT_REPEAT_COUNT == 2
    assert steps[-1] == RepeatCountStep(count=2, steps_to_repeat=(JOG_60,))


def test_repeat_blocks_are_independent_snapshots() -> None:
    steps = parse_instructions(
        "jog for 60s, repeat 2 times, walk for 90s, repeat 3 times"
    )

    assert steps == [
        JOG_60,
        RepeatCountStep(count=2, steps_to_repeat=(JOG_60,)),
        WALK_90,
        RepeatCountStep(count=3, steps_to_repeat=(WALK_90,)),
    ]


def test_trailing_repeat_without_activities_is_kept() -> None:
    steps = parse_instructions("repeat 3 times")

    assert steps == [RepeatCountStep(count=3, steps_to_repeat=())]


def test_split_on_then_and_periods() -> None:
    assert split_segments("Warm up 5 min then run 10 min AND cool down 5 min.") == [
        "Warm up 5 min",
        "run 10 min",
        "cool down 5 min",
    ]
    assert split_segments(" , . ") == []


def test_fragments_without_duration_or_label_are_dropped() -> None:
    steps = parse_instructions("stretch a bit, 30s, run for 2 minutes")

    assert steps == [ActivityStep("Run", Duration(2, "minutes"))]


def test_activity_synonyms_and_title_case() -> None:
    assert extract_activity("warmup 5 min") == "Warm up"
    assert extract_activity("easy 10 min") == "Easy pace"
    assert extract_activity("cool down for 3 minutes") == "Cool down"
    assert extract_activity("hill climbs 2 min") == "Hill Climbs"


def test_extract_duration_units() -> None:
    assert extract_duration("walk 2 min") == Duration(2, "minutes")
    assert extract_duration("walk 45 seconds") == Duration(45, "seconds")
    assert extract_duration("walk 0:45") == Duration(45, "seconds")
    assert extract_duration("walk 5 miles") is None


def test_describe_raw_steps() -> None:
    assert describe_raw_step(JOG_60) == "Jog for 1 minute"
    assert describe_raw_step(WALK_90) == "Walk for 1:30"
    assert (
        describe_raw_step(RepeatCountStep(count=3, steps_to_repeat=(JOG_60, WALK_90)))
        == "Repeat previous 2 steps 3 times"
    )
    assert (
        describe_raw_step(
            RepeatDurationStep(duration=Duration(5, "minutes"), steps_to_repeat=(JOG_60,))
        )
        == "Repeat previous 1 step for 5 minutes"
    )


def test_parse_never_raises_on_noise() -> None:
    assert parse_instructions("") == []
    assert parse_instructions("!!! ??? 12:3 for for then and") == []


def test_plural_short_units() -> None:
    steps = parse_instructions("Run for 10 mins, walk for 30 secs, repeat for 20 mins")

    run = ActivityStep("Run", Duration(10, "minutes"))
    walk = ActivityStep("Walk", Duration(30, "seconds"))
    assert steps == [
        run,
        walk,
        RepeatDurationStep(duration=Duration(20, "minutes"), steps_to_repeat=(run, walk)),
    ]
    assert extract_duration("jog 2 mins") == Duration(2, "minutes")
    assert extract_duration("jog 2 minx") is None
