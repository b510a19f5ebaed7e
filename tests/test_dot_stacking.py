from combat_lab.modules import dot
from combat_lab.modules.dot import PeriodicEffect, PeriodicType, StackMode


def poison(mode, duration=4, amount=-4, source="caster", max_stacks=None, id="poison"):
    return PeriodicEffect(
        id=id,
        source=source,
        type=PeriodicType.DAMAGE,
        amount_per_turn=amount,
        duration=duration,
        stack_mode=mode,
        max_stacks=max_stacks,
    )


def test_increment_adds_stacks_but_never_touches_duration():
    effects = []
    observed = []
    for _ in range(3):
        effects = dot.add_effect(effects, poison(StackMode.INCREMENT))
        observed.append((effects[0].current_stacks, effects[0].duration))
        effects = dot.tick_durations(effects)

    assert observed == [(1, 4), (2, 3), (3, 2)]
    assert len(effects) == 1


def test_increment_capped_stops_at_max_stacks_and_refreshes():
    effects = []
    for _ in range(10):
        effects = dot.add_effect(effects, poison(StackMode.INCREMENT_CAPPED, duration=3, max_stacks=5))
        effects = dot.tick_durations(effects)
    effects = dot.add_effect(effects, poison(StackMode.INCREMENT_CAPPED, duration=3, max_stacks=5))

    assert len(effects) == 1
    assert effects[0].current_stacks == 5
    assert effects[0].duration == 3


def test_increment_refresh_keeps_longer_duration():
    effects = dot.add_effect([], poison(StackMode.INCREMENT_REFRESH, duration=5))
    effects = dot.add_effect(effects, poison(StackMode.INCREMENT_REFRESH, duration=2))
    assert effects[0].current_stacks == 2
    assert effects[0].duration == 5

    effects = dot.add_effect(effects, poison(StackMode.INCREMENT_REFRESH, duration=8))
    assert effects[0].current_stacks == 3
    assert effects[0].duration == 8


def test_separate_creates_independent_instances():
    effects = []
    for duration in (2, 3, 4):
        effects = dot.add_effect(effects, poison(StackMode.SEPARATE, duration=duration))

    assert len(effects) == 3
    assert all(e.current_stacks == 1 for e in effects)
    assert [e.duration for e in effects] == [2, 3, 4]
    assert dot.calculate_total_per_turn(effects).damage == 3 * 4


def test_none_mode_refreshes_duration_without_stacking():
    effects = dot.add_effect([], poison(StackMode.NONE, duration=5))
    effects = dot.add_effect(effects, poison(StackMode.NONE, duration=2))

    assert len(effects) == 1
    assert effects[0].current_stacks == 1
    assert effects[0].duration == 2


def test_different_sources_never_merge():
    effects = dot.add_effect([], poison(StackMode.INCREMENT, source="a"))
    effects = dot.add_effect(effects, poison(StackMode.INCREMENT, source="b"))
    assert len(effects) == 2
    assert all(e.current_stacks == 1 for e in effects)


def test_tick_removes_exactly_the_expired_effects():
    effects = [
        poison(StackMode.SEPARATE, duration=1, id="short"),
        poison(StackMode.SEPARATE, duration=2, id="mid"),
        poison(StackMode.SEPARATE, duration=3, id="long"),
    ]
    ticked = dot.tick_durations(effects)

    assert [(e.id, e.duration) for e in ticked] == [("mid", 1), ("long", 2)]
    # inputs are untouched
    assert [e.duration for e in effects] == [1, 2, 3]


def test_totals_split_damage_and_healing():
    regen = PeriodicEffect(id="regen", source="healer", type="heal", amount_per_turn=3, duration=2)
    effects = dot.add_effect([], poison(StackMode.INCREMENT))
    effects = dot.add_effect(effects, poison(StackMode.INCREMENT))
    effects = dot.add_effect(effects, regen)

    totals = dot.calculate_total_per_turn(effects)
    assert totals.damage == 8
    assert totals.heal == 3


def test_apply_tick_is_bounded_by_hp():
    assert dot.apply_tick(5, -10, 100) == (0, -5)
    assert dot.apply_tick(95, 10, 100) == (100, 5)
    assert dot.apply_tick(50, -4, 100) == (46, -4)


def test_total_value_over_lifetime():
    assert dot.calculate_total_value(-4, 3, stacks=2) == 24
