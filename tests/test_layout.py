from __future__ import annotations

import random

import pytest

import collage


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.mark.parametrize("width, height", [(1200, 1200), (1920, 1080), (1080, 3240), (3240, 1080), (7, 5)])
@pytest.mark.parametrize("count", [0, 1, 2, 3, 4, 5, 9, 17, 40])
def test_partition_properties(count, width, height):
    for seed in range(8):
        plan = collage.generate_layout(count, width, height, rng=random.Random(seed))
        assert len(plan) == count
        assert plan.indices() == list(range(count))
        plan.validate()
        if count:
            assert sum(t.area for t in plan) == pytest.approx(width * height)


def test_empty_plan():
    plan = collage.generate_layout(0, 1200, 1200)
    assert len(plan) == 0
    assert plan.tiles == ()


def test_single_image_gets_whole_canvas():
    plan = collage.generate_layout(1, 1920, 1080, rng=random.Random(5))
    assert plan.tiles == (collage.Tile(0, 0, 1920, 1080, 0),)


def test_four_square():
    plan = collage.generate_layout(4, 1200, 1200, rng=random.Random(11))
    assert len(plan) == 4
    plan.validate()


def test_wide_canvas_splits_side_by_side():
    plan = collage.generate_layout(2, 3000, 1000, rng=random.Random(1))
    assert all(t.y == 0 and t.height == 1000 for t in plan)
    assert sorted(t.x for t in plan)[0] == 0


def test_tall_canvas_stacks():
    plan = collage.generate_layout(2, 1000, 3000, rng=random.Random(1))
    assert all(t.x == 0 and t.width == 1000 for t in plan)


def test_split_fraction_bounds():
    for seed in range(50):
        plan = collage.generate_layout(2, 1000, 4000, rng=random.Random(seed))
        top = min(plan, key=lambda t: t.y)
        assert 0.3 * 4000 <= top.height <= 0.7 * 4000


def test_same_seed_same_plan():
    a = collage.generate_layout(12, 1920, 1080, rng=random.Random(42))
    b = collage.generate_layout(12, 1920, 1080, rng=random.Random(42))
    assert a == b


def test_independent_randomness_varies_plans():
    plans = {collage.generate_layout(6, 1200, 1200, rng=random.Random(s)).tiles for s in range(20)}
    assert len(plans) > 1


def test_fresh_entropy_without_rng():
    plan = collage.generate_layout(7, 1200, 1200)
    plan.validate()


@pytest.mark.parametrize("width, height", [(0, 100), (100, 0), (-5, 100), (100, -1)])
def test_invalid_canvas_size(width, height):
    with pytest.raises(collage.InvalidCanvasSize):
        collage.generate_layout(3, width, height)


def test_invalid_canvas_size_even_without_images():
    with pytest.raises(collage.InvalidCanvasSize):
        collage.generate_layout(0, 0, 0)


def test_negative_count():
    with pytest.raises(ValueError):
        collage.generate_layout(-1, 100, 100)


@pytest.mark.parametrize("fraction", [0.3, 0.45, 0.5, 0.5000001, 0.6, 2 / 3 + 1e-9, 0.7])
def test_split_count_leaves_both_groups_non_empty(fraction):
    for remaining in range(2, 80):
        k = collage.split_count(remaining, fraction)
        assert 1 <= k <= remaining - 1


def test_split_count_follows_ceiling_when_possible():
    assert collage.split_count(10, 0.35) == 4
    assert collage.split_count(5, 0.5) == 3
    assert collage.split_count(2, 0.6) == 1


def test_split_count_needs_two():
    with pytest.raises(ValueError):
        collage.split_count(1, 0.5)


def test_choose_split_axis():
    assert collage.choose_split_axis(2.0, FixedRandom(0.9)) is True
    assert collage.choose_split_axis(0.5, FixedRandom(0.1)) is False
    assert collage.choose_split_axis(0.8, FixedRandom(0.1)) is False
    assert collage.choose_split_axis(1.0, FixedRandom(0.1)) is True
    assert collage.choose_split_axis(1.2, FixedRandom(0.9)) is False


def test_shuffled_indices_is_permutation():
    rng = random.Random(3)
    for n in (0, 1, 2, 10, 100):
        order = collage.shuffled_indices(n, rng)
        assert sorted(order) == list(range(n))


def test_many_images_no_recursion_limit():
    plan = collage.generate_layout(5000, 3240, 1080, rng=random.Random(0))
    assert plan.indices() == list(range(5000))
    assert sum(t.area for t in plan) == pytest.approx(3240 * 1080)


def test_validate_rejects_overlap():
    plan = collage.LayoutPlan(
        100,
        100,
        (collage.Tile(0, 0, 60, 100, 0), collage.Tile(50, 0, 50, 100, 1)),
    )
    with pytest.raises(collage.LayoutError):
        plan.validate()


def test_validate_rejects_duplicate_index():
    plan = collage.LayoutPlan(
        100,
        100,
        (collage.Tile(0, 0, 50, 100, 0), collage.Tile(50, 0, 50, 100, 0)),
    )
    with pytest.raises(collage.LayoutError):
        plan.validate()


def test_validate_rejects_gap():
    plan = collage.LayoutPlan(100, 100, (collage.Tile(0, 0, 50, 100, 0),))
    with pytest.raises(collage.LayoutError):
        plan.validate()


def test_layout_stats():
    plan = collage.LayoutPlan(
        100,
        100,
        (collage.Tile(0, 0, 25, 100, 0), collage.Tile(25, 0, 75, 100, 1)),
    )
    st = collage.layout_stats(plan)
    assert st["tiles"] == 2
    assert st["max_min_ratio"] == pytest.approx(3.0)
    assert collage.layout_stats(collage.LayoutPlan(10, 10))["tiles"] == 0
