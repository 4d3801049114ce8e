"""
universegen.py
==============
Deterministic procedural universe generator.

Given a seed string and a ``GenerationParams`` value, produces a reproducible
hierarchical collection of celestial bodies laid out in a 2-D face-on galaxy:

  • stars   – placed by (angle, radius) draws, wound into arms for spirals
  • planets – 1-3 per star, drawn with probability ``planet_probability``
  • moons   – at most one per planet, drawn with a fixed low probability

Every body carries narrative attributes (temperature, mass, atmosphere,
life, biodiversity, resources) drawn from a single seeded sequence in a fixed
order, so the same seed and parameters always rebuild an identical galaxy.

Constraints enforced
--------------------
1. Star count:    min(STAR_HARD_CAP, min(STAR_SOFT_CAP, floor(density × size))).
2. Body count:    planetary systems only start below PLANET_BODY_CAP bodies,
                  moons only below MAX_BODIES, and nothing is ever appended
                  once MAX_BODIES is reached.
3. Hierarchy:     star → planet → moon, stored as a flat list with parent
                  indices (no star has a parent, every planet's parent is a
                  star, every moon's parent is a planet).
4. Purity:        ``generate_galaxy`` performs no I/O and never raises.

Usage (importable)
------------------
    from universegen import GenerationParams, generate_galaxy
    galaxy = generate_galaxy("abc", GenerationParams(galaxy_size=100))
    print(summarize(galaxy))

Usage (script, uses all defaults)
----------------------------------
    python universegen.py
"""

from __future__ import annotations

import dataclasses
import enum
import json
import math
import os
import time
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from scipy.spatial import cKDTree


# ---------------------------------------------------------------------------
# Safety caps
# ---------------------------------------------------------------------------

STAR_SOFT_CAP   = 100   # upper bound on floor(star_density × galaxy_size)
STAR_HARD_CAP   = 50    # absolute star limit, independent of parameters
PLANET_BODY_CAP = 200   # a star only gets planets while fewer bodies exist
MAX_BODIES      = 250   # global body limit; never exceeded

MAX_PLANETS_PER_STAR = 3
MAX_MOONS_PER_PLANET = 1
MOON_PROBABILITY     = 0.2

SPIRAL_WINDING = 0.5    # radians of arm winding per unit of radius

RESOURCE_KINDS = ("water", "minerals", "gases")
RESOURCE_PROBABILITY = 0.4


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class GalaxyShape(enum.Enum):
    """Galaxy archetypes.  Only affects star placement."""

    SPIRAL = "spiral"
    ELLIPTICAL = "elliptical"
    IRREGULAR = "irregular"
    DWARF = "dwarf"


# Selection order for ``select_shape``
_SHAPES: Tuple[GalaxyShape, ...] = (
    GalaxyShape.SPIRAL,
    GalaxyShape.ELLIPTICAL,
    GalaxyShape.IRREGULAR,
    GalaxyShape.DWARF,
)


class BodyType(enum.Enum):
    """Kinds of celestial body.  Asteroids and nebulae are never generated."""

    STAR = "star"
    PLANET = "planet"
    MOON = "moon"
    ASTEROID = "asteroid"
    NEBULA = "nebula"


class Atmosphere(enum.Enum):
    NONE = ""
    OXYGEN = "oxygen"
    NITROGEN = "nitrogen"
    METHANE = "methane"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class GenerationParams:
    """All tunable parameters for galaxy generation.

    Numeric fields are expected to be finite and non-negative.  Anything else
    (negative, zero, NaN, infinite) yields a degenerate galaxy rather than an
    error.

    Notes on COMPLEXITY / FRACTAL_ITERATIONS
    ----------------------------------------
    Both knobs are carried through and exported with the galaxy but are not
    consumed by the body generator.  See ``fractals.py``.
    """

    galaxy_size: float = 100.0        # outer radius bound
    star_density: float = 0.2         # stars per unit of size, before caps
    planet_probability: float = 0.5   # chance [0, 1] a star hosts planets
    life_probability: float = 0.05    # chance [0, 1] a planet hosts life
    complexity: float = 0.3
    fractal_iterations: int = 3

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationParams":
        """Build params from a mapping, ignoring keys that are not fields."""
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


PRESETS: dict[str, GenerationParams] = {
    "default": GenerationParams(),
    "classic": GenerationParams(
        galaxy_size=200.0,
        star_density=0.3,
        planet_probability=0.7,
        life_probability=0.1,
        complexity=0.5,
        fractal_iterations=5,
    ),
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class CelestialBody:
    """A single generated body.

    ``index`` is the body's position in ``Galaxy.bodies``; ``parent_index``
    points at its parent in the same tuple (``None`` for stars).
    """

    id: str
    name: str
    body_type: BodyType
    x: float
    y: float
    size: float
    color: str
    temperature: float
    mass: float
    distance: float                 # from parent (galactic radius for stars)
    orbital_period: float = 0.0
    has_life: bool = False
    biodiversity: float = 0.0       # 0-100, 0 unless has_life
    atmosphere: Atmosphere = Atmosphere.NONE
    resources: Tuple[str, ...] = ()
    index: int = 0
    parent_index: Optional[int] = None

    def to_dict(self) -> dict:
        d = dataclasses.asdict(self)
        d["body_type"]  = self.body_type.value
        d["atmosphere"] = self.atmosphere.value
        d["resources"]  = list(self.resources)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "CelestialBody":
        d = dict(data)
        d["body_type"]  = BodyType(d["body_type"])
        d["atmosphere"] = Atmosphere(d.get("atmosphere", ""))
        d["resources"]  = tuple(d.get("resources", ()))
        return cls(**d)


@dataclasses.dataclass(frozen=True)
class Galaxy:
    """Immutable result of one generation call."""

    id: str
    name: str
    seed: str
    shape: GalaxyShape
    size: float
    star_count: int
    bodies: Tuple[CelestialBody, ...]
    age: float              # billions of years
    metallicity: float
    params: GenerationParams = GenerationParams()

    # -- hierarchy navigation (arena + index) --

    def stars(self) -> list[CelestialBody]:
        return [b for b in self.bodies if b.body_type is BodyType.STAR]

    def children(self, index: int) -> list[CelestialBody]:
        """Direct children of the body at *index*, in generation order."""
        return [b for b in self.bodies if b.parent_index == index]

    def parent_of(self, body: CelestialBody) -> Optional[CelestialBody]:
        if body.parent_index is None:
            return None
        return self.bodies[body.parent_index]

    def planets_of(self, star_index: int) -> list[CelestialBody]:
        return [b for b in self.children(star_index)
                if b.body_type is BodyType.PLANET]

    # -- serialisation --

    def to_dict(self) -> dict:
        return {
            "id":          self.id,
            "name":        self.name,
            "seed":        self.seed,
            "shape":       self.shape.value,
            "size":        self.size,
            "star_count":  self.star_count,
            "age":         self.age,
            "metallicity": self.metallicity,
            "params":      self.params.to_dict(),
            "bodies":      [b.to_dict() for b in self.bodies],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Galaxy":
        return cls(
            id          = data["id"],
            name        = data["name"],
            seed        = data["seed"],
            shape       = GalaxyShape(data["shape"]),
            size        = data["size"],
            star_count  = int(data["star_count"]),
            bodies      = tuple(CelestialBody.from_dict(b) for b in data["bodies"]),
            age         = data["age"],
            metallicity = data["metallicity"],
            params      = GenerationParams.from_dict(data.get("params", {})),
        )


# ---------------------------------------------------------------------------
# Seed hashing and the seeded sequence
# ---------------------------------------------------------------------------

def hash_seed(seed: str) -> int:
    """Hash *seed* to a non-negative integer.

    31-multiplier rolling hash over the string's UTF-16 code units, wrapped
    to signed 32 bits at every step; the absolute value is returned.  Lone
    surrogates are hashed as-is, so the function is total over ``str``.
    """
    units = np.frombuffer(seed.encode("utf-16-le", "surrogatepass"), dtype="<u2")
    h = 0
    for unit in units.tolist():
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class SeededSequence:
    """Stateful pseudo-random sequence of floats.

    Backed by numpy's PCG64 ``Generator``; every ``next`` call consumes exactly
    one double from it, whether or not the caller keeps the value.

    Parameters
    ----------
    seed : int
        Non-negative integer, typically from ``hash_seed``.
    """

    def __init__(self, seed: int) -> None:
        self._rng   = np.random.default_rng(seed)
        self._draws = 0

    @property
    def draws(self) -> int:
        """Number of values produced so far."""
        return self._draws

    def next(self, lo: float, hi: float) -> float:
        """Return a float in [lo, hi) and advance the sequence."""
        u = float(self._rng.random())
        self._draws += 1
        return lo + u * (hi - lo)

    def chance(self, p: float) -> bool:
        """One draw in [0, 1) compared against probability *p*."""
        return self.next(0.0, 1.0) < p


# ---------------------------------------------------------------------------
# Shape selection and placement
# ---------------------------------------------------------------------------

def select_shape(prs: SeededSequence) -> GalaxyShape:
    """Pick a galaxy archetype with a single draw."""
    idx = int(math.floor(prs.next(0.0, len(_SHAPES))))
    return _SHAPES[min(idx, len(_SHAPES) - 1)]


def polar_to_cartesian(angle: float, radius: float) -> Tuple[float, float]:
    """Plain polar → Cartesian.  Non-finite input maps to (nan, nan)."""
    if not (math.isfinite(angle) and math.isfinite(radius)):
        return math.nan, math.nan
    return radius * math.cos(angle), radius * math.sin(angle)


def place(angle: float, radius: float, shape: GalaxyShape) -> Tuple[float, float]:
    """Map (angle, radius) to galaxy-plane coordinates.

    Spiral galaxies wind the angle by ``radius × SPIRAL_WINDING`` first;
    every other shape uses plain polar coordinates.
    """
    if shape is GalaxyShape.SPIRAL:
        angle = angle + radius * SPIRAL_WINDING
    return polar_to_cartesian(angle, radius)


def _hsl(hue: float, saturation: int, lightness: float) -> str:
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def star_count_for(params: GenerationParams) -> int:
    """Number of stars to generate, after both caps.

    A NaN or non-positive size or density gives 0, even when the product
    of two negatives would be positive; +inf saturates at the hard cap.
    """
    size, density = params.galaxy_size, params.star_density
    if math.isnan(size) or math.isnan(density) or size <= 0 or density <= 0:
        return 0
    raw = density * size
    if math.isinf(raw):
        return STAR_HARD_CAP
    return min(STAR_HARD_CAP, min(STAR_SOFT_CAP, int(math.floor(raw))))


# ---------------------------------------------------------------------------
# Hierarchical body generation
# ---------------------------------------------------------------------------

def _make_star(
    prs: SeededSequence, params: GenerationParams, shape: GalaxyShape,
    i: int, index: int,
) -> Tuple[CelestialBody, float, float]:
    """Draw one star.  Returns the body plus its (angle, distance)."""
    angle    = prs.next(0.0, 2.0 * math.pi)
    distance = prs.next(0.0, params.galaxy_size / 2.0)
    x, y     = place(angle, distance, shape)

    size      = prs.next(2.0, 8.0)
    hue       = prs.next(0.0, 60.0)
    lightness = prs.next(50.0, 80.0)
    star = CelestialBody(
        id          = f"star-{i}",
        name        = f"Star-{i + 1}",
        body_type   = BodyType.STAR,
        x           = x,
        y           = y,
        size        = size,
        color       = _hsl(hue, 100, lightness),
        temperature = prs.next(3000.0, 30000.0),
        mass        = prs.next(0.5, 50.0),
        distance    = distance,
        index       = index,
    )
    return star, angle, distance


def draw_atmosphere(prs: SeededSequence) -> Atmosphere:
    """Three-way categorical atmosphere draw.

    70% chance of a breathable-class atmosphere, split evenly between oxygen
    and nitrogen (two draws); otherwise methane (one draw).
    """
    if prs.chance(0.7):
        return Atmosphere.OXYGEN if prs.chance(0.5) else Atmosphere.NITROGEN
    return Atmosphere.METHANE


def _make_planet(
    prs: SeededSequence, params: GenerationParams, star: CelestialBody,
    star_angle: float, star_distance: float, i: int, j: int, index: int,
) -> Tuple[CelestialBody, float]:
    """Draw one planet of *star*.  Returns the body plus its angle."""
    distance = star_distance + prs.next(10.0, 30.0)
    angle    = star_angle + prs.next(0.0, 2.0 * math.pi)
    x, y     = polar_to_cartesian(angle, distance)

    size        = prs.next(1.0, 3.0)
    hue         = prs.next(180.0, 300.0)
    lightness   = prs.next(30.0, 60.0)
    temperature = prs.next(-200.0, 500.0)
    mass        = prs.next(0.1, 3.0)
    period      = prs.next(50.0, 500.0)
    has_life    = prs.chance(params.life_probability)
    biodiversity = prs.next(0.0, 100.0)

    atmosphere = draw_atmosphere(prs)
    resources = tuple(r for r in RESOURCE_KINDS if prs.chance(RESOURCE_PROBABILITY))

    planet = CelestialBody(
        id             = f"planet-{i}-{j}",
        name           = f"{star.name}-{j + 1}",
        body_type      = BodyType.PLANET,
        x              = x,
        y              = y,
        size           = size,
        color          = _hsl(hue, 70, lightness),
        temperature    = temperature,
        mass           = mass,
        distance       = distance,
        orbital_period = period,
        has_life       = has_life,
        biodiversity   = biodiversity if has_life else 0.0,
        atmosphere     = atmosphere,
        resources      = resources,
        index          = index,
        parent_index   = star.index,
    )
    return planet, angle


def _make_moon(
    prs: SeededSequence, planet: CelestialBody, planet_angle: float,
    i: int, j: int, k: int, index: int,
) -> CelestialBody:
    """Draw one moon, positioned relative to *planet*."""
    distance = prs.next(5.0, 10.0)
    angle    = planet_angle + prs.next(0.0, 2.0 * math.pi)
    dx, dy   = polar_to_cartesian(angle, distance)

    size      = prs.next(0.5, 1.5)
    hue       = prs.next(0.0, 360.0)
    lightness = prs.next(40.0, 70.0)
    return CelestialBody(
        id             = f"moon-{i}-{j}-{k}",
        name           = f"{planet.name}-M{k + 1}",
        body_type      = BodyType.MOON,
        x              = planet.x + dx,
        y              = planet.y + dy,
        size           = size,
        color          = _hsl(hue, 50, lightness),
        temperature    = prs.next(-250.0, 200.0),
        mass           = prs.next(0.01, 0.3),
        distance       = distance,
        orbital_period = prs.next(10.0, 50.0),
        index          = index,
        parent_index   = planet.index,
    )


def generate_bodies(
    prs: SeededSequence,
    params: GenerationParams,
    shape: GalaxyShape,
) -> Tuple[int, Tuple[CelestialBody, ...]]:
    """Generate stars, planets and moons into one flat ordered tuple.

    Order: each star, then its planets, each planet immediately followed by
    its moons, before the next star.

    Returns
    -------
    star_count : number of stars generated
    bodies     : tuple of CelestialBody in generation order
    """
    bodies: list[CelestialBody] = []
    n_stars = star_count_for(params)

    for i in range(n_stars):
        if len(bodies) >= MAX_BODIES:
            n_stars = i
            break
        star, star_angle, star_distance = _make_star(
            prs, params, shape, i, len(bodies))
        bodies.append(star)

        # The gate draw is consumed even when the body cap already refuses
        if not (prs.chance(params.planet_probability)
                and len(bodies) < PLANET_BODY_CAP):
            continue

        n_planets = min(MAX_PLANETS_PER_STAR, int(math.floor(prs.next(1.0, 4.0))))
        for j in range(n_planets):
            if len(bodies) >= MAX_BODIES:
                break
            planet, planet_angle = _make_planet(
                prs, params, star, star_angle, star_distance, i, j, len(bodies))
            bodies.append(planet)

            if not (prs.chance(MOON_PROBABILITY) and len(bodies) < MAX_BODIES):
                continue

            n_moons = min(MAX_MOONS_PER_PLANET, int(math.floor(prs.next(1.0, 2.0))))
            for k in range(n_moons):
                if len(bodies) >= MAX_BODIES:
                    break
                bodies.append(
                    _make_moon(prs, planet, planet_angle, i, j, k, len(bodies)))

    return n_stars, tuple(bodies)


# ---------------------------------------------------------------------------
# Assembly and entry point
# ---------------------------------------------------------------------------

def assemble_galaxy(
    seed: str,
    params: GenerationParams,
    shape: GalaxyShape,
    star_count: int,
    bodies: Tuple[CelestialBody, ...],
    prs: SeededSequence,
) -> Galaxy:
    """Package generated bodies with metadata (age, then metallicity)."""
    age         = prs.next(1.0, 13.8)
    metallicity = prs.next(0.1, 2.0)
    return Galaxy(
        id          = f"galaxy-{seed}",
        name        = f"Galaxy-{seed[:8].upper()}",
        seed        = seed,
        shape       = shape,
        size        = params.galaxy_size,
        star_count  = star_count,
        bodies      = bodies,
        age         = age,
        metallicity = metallicity,
        params      = params,
    )


def generate_galaxy(seed: str, params: Optional[GenerationParams] = None) -> Galaxy:
    """Generate a galaxy from *seed* and *params*.

    Pure and synchronous: no I/O, no shared state.  Two calls with equal
    arguments return equal galaxies.
    """
    if params is None:
        params = GenerationParams()
    prs   = SeededSequence(hash_seed(seed))
    shape = select_shape(prs)
    star_count, bodies = generate_bodies(prs, params, shape)
    return assemble_galaxy(seed, params, shape, star_count, bodies, prs)


_SEED_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_seed(rng: Optional[np.random.Generator] = None, length: int = 11) -> str:
    """Return a fresh random base-36 seed string.

    Uses OS entropy unless an explicit *rng* is given.
    """
    if rng is None:
        rng = np.random.default_rng()
    digits = rng.integers(0, len(_SEED_ALPHABET), size=length)
    return "".join(_SEED_ALPHABET[int(d)] for d in digits)


# ---------------------------------------------------------------------------
# Standalone analytics / query helpers (operate on a finished Galaxy)
# ---------------------------------------------------------------------------

BODY_COLUMNS = [
    "index", "parent_index", "id", "name", "type", "x", "y", "size", "color",
    "temperature", "mass", "distance", "orbital_period", "has_life",
    "biodiversity", "atmosphere", "resources",
]


def bodies_frame(galaxy: Galaxy) -> pd.DataFrame:
    """One row per body, in generation order.

    ``parent_index`` is -1 for stars; ``resources`` is ';'-joined.
    """
    rows = [
        {
            "index":          b.index,
            "parent_index":   -1 if b.parent_index is None else b.parent_index,
            "id":             b.id,
            "name":           b.name,
            "type":           b.body_type.value,
            "x":              b.x,
            "y":              b.y,
            "size":           b.size,
            "color":          b.color,
            "temperature":    b.temperature,
            "mass":           b.mass,
            "distance":       b.distance,
            "orbital_period": b.orbital_period,
            "has_life":       b.has_life,
            "biodiversity":   b.biodiversity,
            "atmosphere":     b.atmosphere.value,
            "resources":      ";".join(b.resources),
        }
        for b in galaxy.bodies
    ]
    df = pd.DataFrame(rows, columns=BODY_COLUMNS)
    return df.astype({"index": np.int64, "parent_index": np.int64})


def type_counts(galaxy: Galaxy) -> dict[str, int]:
    """Number of bodies per type, for types that occur."""
    counts: dict[str, int] = {}
    for b in galaxy.bodies:
        counts[b.body_type.value] = counts.get(b.body_type.value, 0) + 1
    return counts


def summarize(galaxy: Galaxy) -> dict:
    """Headline statistics for a galaxy."""
    df = bodies_frame(galaxy)
    planets = df[df["type"] == BodyType.PLANET.value]
    return {
        "name":            galaxy.name,
        "shape":           galaxy.shape.value,
        "age":             galaxy.age,
        "metallicity":     galaxy.metallicity,
        "total_bodies":    len(df),
        "stars":           int((df["type"] == BodyType.STAR.value).sum()),
        "planets":         len(planets),
        "moons":           int((df["type"] == BodyType.MOON.value).sum()),
        "with_life":       int(df["has_life"].sum()) if len(df) else 0,
        "total_resources": sum(len(b.resources) for b in galaxy.bodies),
        "by_type":         type_counts(galaxy),
        "mean_planet_temperature": (
            float(planets["temperature"].mean()) if len(planets) else None
        ),
    }


def body_at(
    galaxy: Galaxy, x: float, y: float, pick_scale: float = 3.0
) -> Optional[CelestialBody]:
    """First body (in generation order) whose pick radius covers (x, y).

    A body's pick radius is ``size × pick_scale``.  Bodies with non-finite
    positions are never picked.
    """
    if not galaxy.bodies:
        return None

    xy    = np.array([(b.x, b.y) for b in galaxy.bodies], dtype=np.float64)
    sizes = np.array([b.size for b in galaxy.bodies], dtype=np.float64)
    finite = np.isfinite(xy).all(axis=1) & np.isfinite(sizes)
    if not finite.any():
        return None

    idx_map = np.where(finite)[0]
    tree    = cKDTree(xy[finite])
    radius  = float(sizes[finite].max()) * pick_scale
    candidates = tree.query_ball_point([x, y], r=radius)

    hits = []
    for c in candidates:
        i = int(idx_map[c])
        if math.hypot(xy[i, 0] - x, xy[i, 1] - y) <= sizes[i] * pick_scale:
            hits.append(i)
    if not hits:
        return None
    return galaxy.bodies[min(hits)]


def search_bodies(frame: pd.DataFrame, attr: str, op: str, query: str) -> list[int]:
    """Row labels of *frame* where column *attr* matches *query* under *op*.

    Operators: ``contains`` (case-insensitive substring), ``=``, ``>``, ``<``,
    ``>=``, ``<=``.  ``=`` compares numerically when *query* parses as a
    float and as text otherwise.

    Raises
    ------
    KeyError   : *attr* is not a column of *frame*.
    ValueError : unknown *op*, or a non-numeric *query* for an ordering op.
    """
    if attr not in frame.columns:
        raise KeyError(f"Column '{attr}' not in data.")

    col = frame[attr]
    if op == "contains":
        mask = col.astype(str).str.contains(query, case=False, na=False, regex=False)
    elif op == "=":
        try:
            mask = col == float(query)
        except ValueError:
            mask = col.astype(str) == query
    elif op == ">":
        mask = col.astype(float) > float(query)
    elif op == "<":
        mask = col.astype(float) < float(query)
    elif op == ">=":
        mask = col.astype(float) >= float(query)
    elif op == "<=":
        mask = col.astype(float) <= float(query)
    else:
        raise ValueError(f"Unknown search operator '{op}'.")

    return [int(i) for i in frame.index[mask]]


def validate_galaxy(galaxy: Galaxy) -> list[str]:
    """Return a list of invariant violations (empty when the galaxy is sound)."""
    problems: list[str] = []
    n_stars = len(galaxy.stars())

    if n_stars > STAR_HARD_CAP:
        problems.append(f"{n_stars} stars exceeds hard cap {STAR_HARD_CAP}")
    if n_stars != galaxy.star_count:
        problems.append(f"star_count {galaxy.star_count} != {n_stars} stars")
    if len(galaxy.bodies) > MAX_BODIES:
        problems.append(f"{len(galaxy.bodies)} bodies exceeds cap {MAX_BODIES}")
    if len({b.id for b in galaxy.bodies}) != len(galaxy.bodies):
        problems.append("duplicate body identifiers")

    expected_parent = {
        BodyType.PLANET: BodyType.STAR,
        BodyType.MOON:   BodyType.PLANET,
    }
    for pos, b in enumerate(galaxy.bodies):
        if b.index != pos:
            problems.append(f"{b.id}: index {b.index} != position {pos}")
        parent = galaxy.parent_of(b)
        want   = expected_parent.get(b.body_type)
        if want is None:
            if parent is not None:
                problems.append(f"{b.id}: {b.body_type.value} has a parent")
        elif parent is None or parent.body_type is not want:
            problems.append(f"{b.id}: parent is not a {want.value}")
        if b.has_life and b.body_type is not BodyType.PLANET:
            problems.append(f"{b.id}: life on a {b.body_type.value}")
        if not b.has_life and b.biodiversity != 0:
            problems.append(f"{b.id}: biodiversity without life")

    return problems


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def write_json(galaxy: Galaxy, path: str) -> None:
    with open(path, "w") as f:
        json.dump(galaxy.to_dict(), f, indent=2)


def read_json(path: str) -> Galaxy:
    with open(path) as f:
        return Galaxy.from_dict(json.load(f))


def write_gexf(galaxy: Galaxy, path: str) -> bool:
    """Export the body hierarchy as a GEXF file for Gephi (requires networkx).

    Returns True when the file was written.
    """
    try:
        import networkx as nx
    except ImportError:
        print("  networkx not found – skipping GEXF export.  "
              "Install with: pip install networkx")
        return False

    G = nx.DiGraph()
    for b in galaxy.bodies:
        G.add_node(
            b.id,
            label=b.name,
            type=b.body_type.value,
            x=float(b.x),
            y=float(b.y),
            size=float(b.size),
            temperature=float(b.temperature),
            mass=float(b.mass),
            has_life=bool(b.has_life),
            atmosphere=b.atmosphere.value,
        )
    for b in galaxy.bodies:
        parent = galaxy.parent_of(b)
        if parent is not None:
            G.add_edge(parent.id, b.id, distance=float(b.distance))

    nx.write_gexf(G, path)
    return True


# ---------------------------------------------------------------------------
# Run driver
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class RunConfig:
    """Driver settings around one generation call."""

    seed: str = "abc"
    params: GenerationParams = GenerationParams()

    # ---- output ----
    out_dir: str = "output"
    write_gexf: bool = True      # attempt GEXF export (requires networkx)


class UniverseGenerator:
    """Generation driver: runs ``generate_galaxy``, reports, writes outputs.

    Parameters
    ----------
    cfg : RunConfig
    """

    def __init__(self, cfg: RunConfig) -> None:
        self.cfg = cfg

    def generate(self) -> Galaxy:
        return generate_galaxy(self.cfg.seed, self.cfg.params)

    # ------------------------------------------------------------------
    # Acceptance tests
    # ------------------------------------------------------------------

    def _run_checks(self, galaxy: Galaxy) -> None:
        """Print acceptance test results to stdout."""
        sep = "─" * 52
        n_bodies = len(galaxy.bodies)

        print(f"\n{sep}")
        print("  ACCEPTANCE TESTS")
        print(sep)

        ok = galaxy.star_count <= STAR_HARD_CAP
        print(f"  Stars      : {galaxy.star_count:>6,}  (cap {STAR_HARD_CAP})  "
              f"{'✓' if ok else '✗ FAIL'}")
        ok = n_bodies <= MAX_BODIES
        print(f"  Bodies     : {n_bodies:>6,}  (cap {MAX_BODIES})  "
              f"{'✓' if ok else '✗ FAIL'}")

        problems = validate_galaxy(galaxy)
        print(f"  Hierarchy  : {len(problems):>3} problems  "
              f"{'✓' if not problems else '✗ FAIL'}")
        for p in problems[:10]:
            print(f"    {p}")

        stats = summarize(galaxy)
        print(f"\n  Shape {stats['shape']}, age {galaxy.age:.1f}B years, "
              f"metallicity {galaxy.metallicity:.2f}")
        print(f"    stars={stats['stars']}  planets={stats['planets']}  "
              f"moons={stats['moons']}  with life={stats['with_life']}  "
              f"resources={stats['total_resources']}")
        print(sep + "\n")

    def run(self) -> Tuple[Galaxy, pd.DataFrame]:
        """Generate; write outputs; return the galaxy and its body table.

        Outputs
        -------
        bodies.csv  – one row per body (see ``bodies_frame``)
        galaxy.json – full galaxy, reloadable with ``read_json``
        params.json – seed and generation parameters
        graph.gexf  – parent → child hierarchy (optional)
        """
        cfg = self.cfg
        os.makedirs(cfg.out_dir, exist_ok=True)
        t_start = time.perf_counter()

        print(f"Generating galaxy for seed {cfg.seed!r} …")
        t0 = time.perf_counter()
        galaxy = self.generate()
        print(f"  {len(galaxy.bodies):,} bodies generated in "
              f"{time.perf_counter() - t0:.3f}s")

        bodies = bodies_frame(galaxy)
        self._run_checks(galaxy)

        bodies_path = os.path.join(cfg.out_dir, "bodies.csv")
        galaxy_path = os.path.join(cfg.out_dir, "galaxy.json")
        params_path = os.path.join(cfg.out_dir, "params.json")
        bodies.to_csv(bodies_path, index=False)
        write_json(galaxy, galaxy_path)
        with open(params_path, "w") as f:
            json.dump({"seed": cfg.seed, **cfg.params.to_dict()}, f, indent=2)
        print(f"Wrote {bodies_path}")
        print(f"Wrote {galaxy_path}")
        print(f"Wrote {params_path}")

        if cfg.write_gexf:
            gexf_path = os.path.join(cfg.out_dir, "graph.gexf")
            if write_gexf(galaxy, gexf_path):
                print(f"  Wrote {gexf_path}")

        elapsed = time.perf_counter() - t_start
        print(f"\nTotal time: {elapsed:.2f}s")

        return galaxy, bodies


# ---------------------------------------------------------------------------
# Script entry point (uses all RunConfig defaults)
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    UniverseGenerator(RunConfig()).run()
