import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

import universegen
from universegen import (
    MAX_BODIES,
    MAX_MOONS_PER_PLANET,
    MAX_PLANETS_PER_STAR,
    PLANET_BODY_CAP,
    PRESETS,
    RESOURCE_KINDS,
    STAR_HARD_CAP,
    Atmosphere,
    BodyType,
    GalaxyShape,
    GenerationParams,
    SeededSequence,
    assemble_galaxy,
    draw_atmosphere,
    generate_bodies,
    generate_galaxy,
    hash_seed,
    place,
    select_shape,
    star_count_for,
    validate_galaxy,
)


SCENARIO = GenerationParams(
    galaxy_size=100, star_density=0.2, planet_probability=0.5, life_probability=0.05,
)


# ---------------------------------------------------------------------------
# Seed hashing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("seed, expected", [
    ("", 0),
    ("a", 97),
    ("abc", 96354),
    ("hello", 99162322),
    ("polygenelubricants", 2 ** 31),   # wraps to INT32_MIN before abs()
    ("\U0001F600", 0xD83D * 31 + 0xDE00),  # hashed as a surrogate pair
    ("\ud800", 0xD800),
])
def test_hash_seed_known_values(seed, expected):
    assert hash_seed(seed) == expected


def test_hash_seed_is_non_negative_and_32_bit():
    for seed in ["x" * n for n in range(50)] + ["zzzzzzzzzzzzzzzz", "Ω≈ç√∫"]:
        h = hash_seed(seed)
        assert 0 <= h <= 2 ** 31


# ---------------------------------------------------------------------------
# Seeded sequence
# ---------------------------------------------------------------------------

def test_sequence_reproducible():
    a, b = SeededSequence(1234), SeededSequence(1234)
    ranges = [(0, 1), (-5, 5), (3000, 30000), (0, 2 * math.pi)] * 25
    assert [a.next(*r) for r in ranges] == [b.next(*r) for r in ranges]


def test_sequence_values_in_range_and_counted():
    prs = SeededSequence(7)
    for n in range(1, 501):
        v = prs.next(10.0, 30.0)
        assert 10.0 <= v < 30.0
        assert prs.draws == n


def test_sequence_advances_on_discarded_draws():
    prs = SeededSequence(99)
    prs.chance(0.0)
    prs.chance(1.0)
    assert prs.draws == 2
    assert SeededSequence(99).next(0, 1) != prs.next(0, 1)


def test_different_seeds_give_different_sequences():
    assert SeededSequence(1).next(0, 1) != SeededSequence(2).next(0, 1)


# ---------------------------------------------------------------------------
# Shape selection and placement
# ---------------------------------------------------------------------------

def test_select_shape_consumes_one_draw():
    prs = SeededSequence(5)
    assert isinstance(select_shape(prs), GalaxyShape)
    assert prs.draws == 1


def test_select_shape_covers_all_archetypes():
    shapes = {select_shape(SeededSequence(s)) for s in range(200)}
    assert shapes == set(GalaxyShape)


def test_place_plain_polar_for_non_spiral():
    for shape in (GalaxyShape.ELLIPTICAL, GalaxyShape.IRREGULAR, GalaxyShape.DWARF):
        x, y = place(0.0, 2.0, shape)
        assert x == pytest.approx(2.0)
        assert y == pytest.approx(0.0)


def test_place_spiral_winds_by_radius():
    x, y = place(0.0, 2.0, GalaxyShape.SPIRAL)
    assert x == pytest.approx(2.0 * math.cos(1.0))
    assert y == pytest.approx(2.0 * math.sin(1.0))


def test_place_non_finite_does_not_raise():
    x, y = place(0.0, math.inf, GalaxyShape.SPIRAL)
    assert math.isnan(x) and math.isnan(y)


# ---------------------------------------------------------------------------
# Star count caps
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("size, density, expected", [
    (100, 0.2, 20),
    (100, 0.25, 25),
    (1000, 1.0, STAR_HARD_CAP),
    (1e9, 1e9, STAR_HARD_CAP),
    (math.inf, 1.0, STAR_HARD_CAP),
    (100, 0.0, 0),
    (-100, 0.2, 0),
    (math.nan, 0.2, 0),
    (math.inf, 0.0, 0),
    (-100, -0.2, 0),
    (-math.inf, -1.0, 0),
    (100, math.nan, 0),
])
def test_star_count_for(size, density, expected):
    params = GenerationParams(galaxy_size=size, star_density=density)
    assert star_count_for(params) == expected


# ---------------------------------------------------------------------------
# Generation properties
# ---------------------------------------------------------------------------

def _field_tuple(body):
    return (body.x, body.y, body.size, body.color, body.temperature, body.mass)


def test_scenario_abc_is_reproducible():
    g1 = generate_galaxy("abc", SCENARIO)
    g2 = generate_galaxy("abc", SCENARIO)
    assert g1.star_count == g2.star_count == 20
    assert len(g1.bodies) == len(g2.bodies)
    assert _field_tuple(g1.bodies[0]) == _field_tuple(g2.bodies[0])
    assert g1 == g2


def test_galaxy_metadata():
    g = generate_galaxy("abcdefghijk", SCENARIO)
    assert g.id == "galaxy-abcdefghijk"
    assert g.name == "Galaxy-ABCDEFGH"
    assert g.seed == "abcdefghijk"
    assert g.size == 100
    assert 1.0 <= g.age < 13.8
    assert 0.1 <= g.metallicity < 2.0
    assert g.params == SCENARIO


def test_empty_seed_produces_valid_galaxy():
    g = generate_galaxy("")
    assert g.id == "galaxy-"
    assert g.name == "Galaxy-"
    assert validate_galaxy(g) == []


def test_default_params_used_when_omitted():
    assert generate_galaxy("abc") == generate_galaxy("abc", GenerationParams())


def test_seed_sensitivity():
    firsts = {generate_galaxy(f"seed-{n}").bodies[0].x for n in range(50)}
    assert len(firsts) >= 48


def test_bounded_growth_under_extreme_params():
    params = GenerationParams(
        galaxy_size=1e9, star_density=1e9,
        planet_probability=1.0, life_probability=1.0,
    )
    for n in range(20):
        g = generate_galaxy(f"huge-{n}", params)
        assert g.star_count == STAR_HARD_CAP
        assert len(g.stars()) == STAR_HARD_CAP
        assert len(g.bodies) <= MAX_BODIES
        assert validate_galaxy(g) == []


def test_per_level_caps():
    params = GenerationParams(planet_probability=1.0)
    for n in range(20):
        g = generate_galaxy(f"levels-{n}", params)
        for star in g.stars():
            planets = g.planets_of(star.index)
            assert len(planets) <= MAX_PLANETS_PER_STAR
            for planet in planets:
                assert len(g.children(planet.index)) <= MAX_MOONS_PER_PLANET


def test_zero_planet_probability_gives_only_stars():
    g = generate_galaxy("abc", GenerationParams(planet_probability=0.0))
    assert len(g.bodies) == g.star_count == 20
    assert all(b.body_type is BodyType.STAR for b in g.bodies)


def test_full_planet_probability_gives_every_star_a_planet():
    # 20 stars × at most 7 bodies each never reaches the planet body cap
    params = GenerationParams(planet_probability=1.0)
    assert 20 * (1 + 2 * MAX_PLANETS_PER_STAR) < PLANET_BODY_CAP
    for n in range(10):
        g = generate_galaxy(f"planets-{n}", params)
        for star in g.stars():
            assert len(g.planets_of(star.index)) >= 1


def test_hierarchy_and_generation_order():
    params = GenerationParams(planet_probability=1.0)
    g = generate_galaxy("order", params)
    last_star = last_planet = None
    for pos, body in enumerate(g.bodies):
        assert body.index == pos
        if body.body_type is BodyType.STAR:
            assert body.parent_index is None
            last_star, last_planet = pos, None
        elif body.body_type is BodyType.PLANET:
            assert body.parent_index == last_star
            last_planet = pos
        else:
            assert body.body_type is BodyType.MOON
            assert body.parent_index == last_planet
    assert validate_galaxy(g) == []


def test_identifiers_follow_generation_indices():
    g = generate_galaxy("ids", GenerationParams(planet_probability=1.0))
    for body in g.bodies:
        parent = g.parent_of(body)
        if body.body_type is BodyType.STAR:
            assert body.id.startswith("star-")
            assert body.name == f"Star-{int(body.id.split('-')[1]) + 1}"
        elif body.body_type is BodyType.PLANET:
            i, j = body.id.split("-")[1:]
            assert parent.id == f"star-{i}"
            assert body.name == f"{parent.name}-{int(j) + 1}"
        else:
            i, j, k = body.id.split("-")[1:]
            assert parent.id == f"planet-{i}-{j}"
            assert body.name == f"{parent.name}-M{int(k) + 1}"
    assert len({b.id for b in g.bodies}) == len(g.bodies)


def test_attribute_ranges():
    g = generate_galaxy("ranges", GenerationParams(planet_probability=1.0))
    for b in g.bodies:
        assert b.color.startswith("hsl(")
        if b.body_type is BodyType.STAR:
            assert 2 <= b.size < 8
            assert 3000 <= b.temperature < 30000
            assert 0.5 <= b.mass < 50
            assert b.orbital_period == 0
            assert b.atmosphere is Atmosphere.NONE
            assert b.resources == ()
        elif b.body_type is BodyType.PLANET:
            assert 1 <= b.size < 3
            assert -200 <= b.temperature < 500
            assert 50 <= b.orbital_period < 500
            assert b.atmosphere is not Atmosphere.NONE
            assert set(b.resources) <= set(RESOURCE_KINDS)
            assert list(b.resources) == [r for r in RESOURCE_KINDS if r in b.resources]
        else:
            assert 5 <= b.distance < 10
            assert 10 <= b.orbital_period < 50
            assert not b.has_life
            assert b.atmosphere is Atmosphere.NONE
            assert b.resources == ()


def test_moons_are_placed_relative_to_their_planet():
    for n in range(30):
        g = generate_galaxy(f"moons-{n}", GenerationParams(planet_probability=1.0))
        for b in g.bodies:
            if b.body_type is BodyType.MOON:
                planet = g.parent_of(b)
                gap = math.hypot(b.x - planet.x, b.y - planet.y)
                assert gap == pytest.approx(b.distance)
                return
    pytest.fail("no moon generated across 30 seeds")


def test_life_only_on_planets_with_biodiversity():
    params = GenerationParams(planet_probability=1.0, life_probability=1.0)
    g = generate_galaxy("life", params)
    for b in g.bodies:
        if b.body_type is BodyType.PLANET:
            assert b.has_life
            assert 0 <= b.biodiversity < 100
        else:
            assert not b.has_life
            assert b.biodiversity == 0

    g = generate_galaxy("life", GenerationParams(life_probability=0.0))
    assert not any(b.has_life for b in g.bodies)
    assert all(b.biodiversity == 0 for b in g.bodies)


def test_star_only_galaxy_consumes_fixed_draw_count():
    params = GenerationParams(planet_probability=0.0)
    prs = SeededSequence(hash_seed("abc"))
    shape = select_shape(prs)
    star_count, bodies = generate_bodies(prs, params, shape)
    # 7 attribute draws + 1 planet gate draw per star
    assert prs.draws == 1 + star_count * 8
    galaxy = assemble_galaxy("abc", params, shape, star_count, bodies, prs)
    assert prs.draws == 1 + star_count * 8 + 2
    assert galaxy == generate_galaxy("abc", params)


@pytest.mark.parametrize("params", [
    GenerationParams(galaxy_size=-100.0),
    GenerationParams(galaxy_size=0.0),
    GenerationParams(star_density=-1.0),
    GenerationParams(galaxy_size=math.nan),
    GenerationParams(galaxy_size=math.inf),
    GenerationParams(planet_probability=-3.0, life_probability=7.0),
    GenerationParams(complexity=-1.0, fractal_iterations=-5),
])
def test_degenerate_params_never_raise(params):
    g = generate_galaxy("degenerate", params)
    assert len(g.bodies) <= MAX_BODIES
    assert validate_galaxy(g) == []


def test_independent_calls_run_concurrently():
    seeds = [f"thread-{n}" for n in range(16)]
    expected = [generate_galaxy(s, SCENARIO) for s in seeds]
    with ThreadPoolExecutor(max_workers=4) as pool:
        got = list(pool.map(lambda s: generate_galaxy(s, SCENARIO), seeds))
    assert got == expected


def test_galaxy_is_immutable():
    g = generate_galaxy("abc")
    with pytest.raises(AttributeError):
        g.name = "other"
    with pytest.raises(AttributeError):
        g.bodies[0].x = 0.0


# ---------------------------------------------------------------------------
# Params
# ---------------------------------------------------------------------------

def test_params_round_trip_ignores_unknown_keys():
    data = {**SCENARIO.to_dict(), "seed": "abc", "out_dir": "x"}
    assert GenerationParams.from_dict(data) == SCENARIO


def test_presets():
    assert PRESETS["default"] == GenerationParams()
    classic = PRESETS["classic"]
    assert (classic.galaxy_size, classic.star_density) == (200.0, 0.3)
    assert (classic.planet_probability, classic.life_probability) == (0.7, 0.1)
    assert (classic.complexity, classic.fractal_iterations) == (0.5, 5)
    assert np.isclose(star_count_for(classic), STAR_HARD_CAP)


def test_negative_size_and_density_give_no_stars():
    g = generate_galaxy("negneg", GenerationParams(galaxy_size=-100.0, star_density=-0.2))
    assert g.star_count == 0
    assert g.bodies == ()


# ---------------------------------------------------------------------------
# Body caps
# ---------------------------------------------------------------------------

EXTREME = GenerationParams(
    galaxy_size=1e9, star_density=1e9, planet_probability=1.0, life_probability=1.0,
)


def test_small_body_caps_are_never_exceeded(monkeypatch):
    monkeypatch.setattr(universegen, "PLANET_BODY_CAP", 10)
    monkeypatch.setattr(universegen, "MAX_BODIES", 14)
    for n in range(20):
        g = generate_galaxy(f"caps-{n}", EXTREME)
        assert len(g.bodies) <= 14
        assert g.star_count == len(g.stars())
        for b in g.bodies:
            if b.body_type is BodyType.PLANET:
                assert b.parent_index < 10
        assert validate_galaxy(g) == []


def test_body_cap_stops_star_generation(monkeypatch):
    monkeypatch.setattr(universegen, "MAX_BODIES", 14)
    g = generate_galaxy("x", EXTREME)
    assert len(g.bodies) == 14
    assert g.star_count < STAR_HARD_CAP


def test_planet_gate_draw_consumed_when_cap_refuses(monkeypatch):
    # Every star is already at the planet cap, so no star gets planets, yet
    # each one still spends its gate draw.
    monkeypatch.setattr(universegen, "PLANET_BODY_CAP", 0)
    prs = SeededSequence(hash_seed("gate"))
    shape = select_shape(prs)
    star_count, bodies = generate_bodies(prs, EXTREME, shape)
    assert star_count == STAR_HARD_CAP
    assert all(b.body_type is BodyType.STAR for b in bodies)
    assert prs.draws == 1 + star_count * 8


# ---------------------------------------------------------------------------
# Atmosphere
# ---------------------------------------------------------------------------

def test_atmosphere_draw_is_three_way():
    seen = set()
    for n in range(20):
        g = generate_galaxy(f"air-{n}", GenerationParams(planet_probability=1.0))
        seen.update(b.atmosphere for b in g.bodies if b.body_type is BodyType.PLANET)
    assert seen == {Atmosphere.OXYGEN, Atmosphere.NITROGEN, Atmosphere.METHANE}


def test_atmosphere_draw_count_per_branch():
    counts = {}
    for seed in range(200):
        prs = SeededSequence(seed)
        atmosphere = draw_atmosphere(prs)
        counts.setdefault(atmosphere, set()).add(prs.draws)
    assert counts[Atmosphere.METHANE] == {1}
    assert counts[Atmosphere.OXYGEN] == {2}
    assert counts[Atmosphere.NITROGEN] == {2}
