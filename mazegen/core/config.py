# Mazegen configuration: dataclass settings, validation and loading
#
# Responsibilities:
# - Typed settings for maze dimensions, spawn percentages, lights, probes, materials
# - Strict validation with path-scoped, actionable issues (ValidationIssue)
# - Loading from dicts and optional JSON config files, with env overrides
#
# Config file (JSON) search order for load_config():
#   1) explicit path argument
#   2) $MAZEGEN_CONFIG
#   3) $XDG_CONFIG_HOME/mazegen/config.json (default ~/.config/mazegen/config.json)
#   4) ~/.mazegen/config.json (legacy fallback)
#
# Environment variables supported:
#   MAZEGEN_CONFIG   path to a JSON config file
#   MAZEGEN_SEED     integer seed override

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]
Vec3 = Tuple[float, float, float]


class ConfigError(Exception):
    """Raised when a maze configuration fails validation."""

    def __init__(self, message: str, issues: Optional[List["ValidationIssue"]] = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])


@dataclass
class ValidationIssue:
    path: str
    message: str
    code: str = "invalid"

    def __str__(self) -> str:
        return f"{self.path}: {self.message} ({self.code})"


class LightType(Enum):
    """Blender light types"""
    POINT = "POINT"
    SUN = "SUN"
    SPOT = "SPOT"
    AREA = "AREA"


@dataclass
class LightSettings:
    """Settings applied to every light paired with a wall or structure."""
    light_type: LightType = LightType.AREA   # point or area recommended
    intensity: float = 3.0
    range: float = 5.0
    color: Color = (1.0, 1.0, 1.0)


@dataclass
class ReflectionProbeSettings:
    enabled: bool = False
    resolution: int = 1024
    box_projection: bool = True


@dataclass
class MaterialSettings:
    """Names of existing host materials; None leaves the host default."""
    wall: Optional[str] = None
    ground: Optional[str] = None
    roof: Optional[str] = None


@dataclass
class StructureTemplate:
    """A host object to instantiate as a decorative structure.

    base_scale: x/z footprint (y is replaced by the maze height). None keeps
    the template object's own footprint scale.
    """
    name: str
    base_scale: Optional[Vec3] = None


@dataclass
class MazeConfig:
    width: int = 15
    depth: int = 15
    height: float = 3.0
    wall_length: float = 2.0
    wall_spawn_percentage: int = 70
    structure_spawn_percentage: int = 30
    structures: List[StructureTemplate] = field(default_factory=list)
    lights: LightSettings = field(default_factory=LightSettings)
    reflection_probes: ReflectionProbeSettings = field(default_factory=ReflectionProbeSettings)
    materials: MaterialSettings = field(default_factory=MaterialSettings)
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MazeConfig":
        """Build a config from plain JSON-like data. Unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ConfigError(f"Config must be an object, got: {type(data).__name__}",
                              [ValidationIssue("$", "config must be an object", "type")])
        cfg = cls()
        for key in ("width", "depth", "height", "wall_length",
                    "wall_spawn_percentage", "structure_spawn_percentage", "seed"):
            if key in data:
                setattr(cfg, key, data[key])

        structures = data.get("structures")
        if structures is not None:
            parsed: List[StructureTemplate] = []
            for item in structures if isinstance(structures, list) else [structures]:
                if isinstance(item, str):
                    parsed.append(StructureTemplate(name=item))
                elif isinstance(item, dict):
                    scale = item.get("base_scale")
                    parsed.append(StructureTemplate(name=item.get("name", ""),
                                                    base_scale=tuple(scale) if scale is not None else None))
                else:
                    parsed.append(item)
            cfg.structures = parsed

        lights = data.get("lights")
        if isinstance(lights, dict):
            lt = lights.get("light_type", lights.get("type", cfg.lights.light_type))
            try:
                lt = lt if isinstance(lt, LightType) else LightType(str(lt).upper())
            except ValueError:
                raise ConfigError(f"Unknown light type: {lt!r}",
                                  [ValidationIssue("$.lights.light_type",
                                                   f"must be one of {[t.value for t in LightType]}", "enum")])
            cfg.lights = LightSettings(
                light_type=lt,
                intensity=lights.get("intensity", cfg.lights.intensity),
                range=lights.get("range", cfg.lights.range),
                color=tuple(lights.get("color", cfg.lights.color)),
            )

        probes = data.get("reflection_probes")
        if isinstance(probes, dict):
            cfg.reflection_probes = ReflectionProbeSettings(
                enabled=bool(probes.get("enabled", False)),
                resolution=probes.get("resolution", cfg.reflection_probes.resolution),
                box_projection=bool(probes.get("box_projection", True)),
            )

        materials = data.get("materials")
        if isinstance(materials, dict):
            cfg.materials = MaterialSettings(
                wall=materials.get("wall"),
                ground=materials.get("ground"),
                roof=materials.get("roof"),
            )
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["lights"]["light_type"] = self.lights.light_type.value
        return out


def is_float_round(value: float, epsilon: float = 0.0001) -> bool:
    return abs(value - round(value)) < epsilon


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require(cond: bool, issues: List[ValidationIssue], path: str, msg: str, code: str = "invalid") -> None:
    if not cond:
        issues.append(ValidationIssue(path=path, message=msg, code=code))


def validate_maze_config(cfg: MazeConfig) -> Tuple[bool, List[ValidationIssue]]:
    """Validate a config; returns (ok, issues). Never raises."""
    issues: List[ValidationIssue] = []

    for key in ("width", "depth"):
        val = getattr(cfg, key)
        _require(_is_int(val), issues, f"$.{key}", f"{key} must be an integer, got: {type(val).__name__}", "type")
        if _is_int(val):
            _require(val > 0, issues, f"$.{key}", f"{key} must be > 0", "minimum")

    for key in ("height", "wall_length"):
        val = getattr(cfg, key)
        _require(_is_number(val), issues, f"$.{key}", f"{key} must be a number", "type")
        if _is_number(val):
            _require(val > 0, issues, f"$.{key}", f"{key} must be > 0", "minimum")

    wall_pct = cfg.wall_spawn_percentage
    struct_pct = cfg.structure_spawn_percentage
    for key, val in (("wall_spawn_percentage", wall_pct), ("structure_spawn_percentage", struct_pct)):
        _require(_is_int(val), issues, f"$.{key}", f"{key} must be an integer", "type")
        if _is_int(val):
            _require(0 <= val <= 100, issues, f"$.{key}", f"{key} must be within [0, 100]", "range")
    if _is_int(wall_pct) and _is_int(struct_pct):
        _require(wall_pct + struct_pct <= 100, issues, "$",
                 "wall_spawn_percentage + structure_spawn_percentage must not exceed 100", "range")

    if _is_int(struct_pct) and struct_pct > 0:
        _require(len(cfg.structures) > 0, issues, "$.structures",
                 "at least one structure template is required when structure_spawn_percentage > 0", "required")
    for i, tmpl in enumerate(cfg.structures):
        path = f"$.structures[{i}]"
        if not isinstance(tmpl, StructureTemplate):
            issues.append(ValidationIssue(path, "must be a structure template", "type"))
            continue
        _require(isinstance(tmpl.name, str) and bool(tmpl.name.strip()), issues, f"{path}.name",
                 "template name must be a non-empty string", "required")
        scale = tmpl.base_scale
        _require(scale is None or (isinstance(scale, tuple) and len(scale) == 3 and all(_is_number(s) for s in scale)),
                 issues, f"{path}.base_scale", "base_scale must be [x, y, z] or null", "format")

    lights = cfg.lights
    _require(isinstance(lights.light_type, LightType), issues, "$.lights.light_type",
             f"must be one of {[t.value for t in LightType]}", "enum")
    _require(_is_number(lights.intensity) and lights.intensity >= 0, issues, "$.lights.intensity",
             "intensity must be a number >= 0", "range")
    _require(_is_number(lights.range) and lights.range >= 0, issues, "$.lights.range",
             "range must be a number >= 0", "range")
    color = lights.color
    _require(isinstance(color, tuple) and len(color) == 3 and all(_is_number(c) and 0.0 <= c <= 1.0 for c in color),
             issues, "$.lights.color", "color must be [r, g, b] with components in [0, 1]", "format")

    probes = cfg.reflection_probes
    _require(_is_int(probes.resolution) and probes.resolution > 0, issues, "$.reflection_probes.resolution",
             "resolution must be a positive integer", "range")

    for key in ("wall", "ground", "roof"):
        val = getattr(cfg.materials, key)
        _require(val is None or isinstance(val, str), issues, f"$.materials.{key}",
                 "material must be a name or null", "type")

    if cfg.seed is not None:
        _require(_is_int(cfg.seed) and cfg.seed >= 0, issues, "$.seed", "seed must be an integer >= 0", "minimum")

    return (len(issues) == 0), issues


def assert_valid_maze_config(cfg: MazeConfig) -> None:
    """Raise ConfigError listing every issue if the config is invalid."""
    ok, issues = validate_maze_config(cfg)
    if not ok:
        details = "\n".join(f"- {i}" for i in issues)
        raise ConfigError(f"Maze config validation failed:\n{details}", issues)


def config_advisories(cfg: MazeConfig) -> List[str]:
    """Non-fatal warnings for configs that are valid but likely unintended."""
    notes: List[str] = []
    if _is_number(cfg.wall_length) and not is_float_round(cfg.wall_length):
        notes.append("It is not recommended to have the wall length at a non-round value; "
                     "round it to keep walls aligned with the grid")
    if _is_int(cfg.width) and _is_int(cfg.depth):
        if cfg.width < 3 or cfg.depth < 3:
            notes.append(f"Maze {cfg.width}x{cfg.depth} is too small to carve any passages")
        elif cfg.width % 2 == 0 or cfg.depth % 2 == 0:
            notes.append(f"Even dimensions ({cfg.width}x{cfg.depth}) leave an uncarved border row/column")
    return notes


def _config_paths() -> List[str]:
    paths: List[str] = []
    env_path = os.environ.get("MAZEGEN_CONFIG")
    if env_path:
        paths.append(env_path)
    home = os.path.expanduser("~")
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.join(home, ".config"))
    paths.append(os.path.join(xdg_config_home, "mazegen", "config.json"))
    paths.append(os.path.join(home, ".mazegen", "config.json"))
    return paths


def load_config(path: Optional[str] = None) -> MazeConfig:
    """Load the first config file found (see module header), else defaults.

    An explicit path that does not exist or does not parse raises ConfigError;
    files found through the search order are skipped with a warning instead.
    """
    data: Dict[str, Any] = {}
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as ex:
            raise ConfigError(f"Failed reading config file {path}: {ex}") from ex
        logger.debug(f"Loaded maze config from {path}")
    else:
        for candidate in _config_paths():
            if not os.path.isfile(candidate):
                continue
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as ex:
                logger.warning(f"Failed reading config file {candidate}: {ex}")
                continue
            if isinstance(loaded, dict):
                data = loaded
                logger.debug(f"Loaded maze config from {candidate}")
                break

    cfg = MazeConfig.from_dict(data)

    seed_env = os.environ.get("MAZEGEN_SEED")
    if seed_env is not None and seed_env.strip():
        try:
            cfg.seed = int(seed_env)
        except ValueError:
            logger.warning(f"Ignoring non-integer MAZEGEN_SEED={seed_env!r}")
    return cfg
