import pytest

from mazegen.core.config import MazeConfig, MaterialSettings, StructureTemplate
from mazegen.generation.instructions import (
    GroundPlane,
    Light,
    OuterWall,
    ReflectionProbe,
    RoofPlane,
    Structure,
    Wall,
)
from mazegen.generation.scene_builder import GROUP_NAMES, ROOT_GROUP, SceneBuilder
from mazegen.utils.scene_host import DryRunSceneHost, HostError


_WALL = Wall(position=(0.0, 0.0, 0.0), rotation=(0.0, 90.0, 0.0), scale=(0.2, 3.0, 2.0))
_OUTER = OuterWall(position=(-1.0, 0.0, -1.0), rotation=(0.0, 0.0, 0.0), scale=(0.2, 3.0, 2.0))
_GROUND = GroundPlane(position=(4.0, -1.5, 4.0), size=(10.0, 10.0), tiling=(5.0, 5.0))
_ROOF = RoofPlane(position=(4.0, 1.5, 4.0), size=(10.0, 10.0), tiling=(5.0, 5.0))
_LIGHT = Light(position=(1.0, 1.5, 1.0))
_PROBE = ReflectionProbe(position=(0.0, 0.75, 0.0), size=(2.1, 2.1, 2.1), resolution=512, box_projection=True)


def _config(**kwargs):
    cfg = MazeConfig(width=5, depth=5, structures=[StructureTemplate("Pillar"), StructureTemplate("Arch")])
    for key, value in kwargs.items():
        setattr(cfg, key, value)
    return cfg


def _builder(host=None, **kwargs):
    builder = SceneBuilder(host or DryRunSceneHost(), _config(**kwargs), request_id="req-test")
    builder.begin()
    return builder


class _FailingHost(DryRunSceneHost):
    """Dry-run host whose create_primitive blows up with a non-host exception."""

    def create_primitive(self, *args, **kwargs):
        raise RuntimeError("device lost")


class _RefusingParentHost(DryRunSceneHost):
    """Dry-run host that creates objects but refuses to link them."""

    def parent(self, handle, group):
        raise HostError(f"Cannot link '{handle.name}'")


def test_begin_creates_root_and_kind_groups():
    host = DryRunSceneHost()
    builder = _builder(host)
    assert builder.is_built
    assert builder.root.name == ROOT_GROUP
    for kind, name in GROUP_NAMES.items():
        found = host.find_group(f"{ROOT_GROUP}/{name}")
        if name == "Reflection Probes":
            assert found is None  # probes disabled by default
        else:
            assert found is not None


def test_probe_group_exists_only_when_probes_enabled():
    host = DryRunSceneHost()
    cfg = _config()
    cfg.reflection_probes.enabled = True
    SceneBuilder(host, cfg).begin()
    assert host.find_group(f"{ROOT_GROUP}/Reflection Probes") is not None


def test_begin_twice_is_rejected():
    builder = _builder()
    with pytest.raises(RuntimeError):
        builder.begin()


def test_apply_before_begin_is_rejected():
    builder = SceneBuilder(DryRunSceneHost(), _config())
    with pytest.raises(RuntimeError):
        builder.apply(_WALL)


def test_apply_parents_each_kind_under_its_group():
    host = DryRunSceneHost()
    builder = _builder(host)
    for ins in (_WALL, _OUTER, _GROUND, _ROOF, _LIGHT):
        builder.apply(ins)

    assert len(builder.handles) == 5
    assert [o.name for o in host.find_group(f"{ROOT_GROUP}/Walls").objects] == ["Wall.0001"]
    assert [o.kind for o in host.find_group(f"{ROOT_GROUP}/Outer Walls").objects] == ["CUBE"]
    assert [o.kind for o in host.find_group(f"{ROOT_GROUP}/Lights").objects] == ["LIGHT"]
    assert all(h.group is not None for h in builder.handles)


def test_planes_are_scaled_to_size_and_carry_tiling_and_material():
    host = DryRunSceneHost()
    builder = _builder(host, materials=MaterialSettings(wall="Brick", ground="Gravel", roof=None))
    ground = builder.apply(_GROUND)
    roof = builder.apply(_ROOF)
    wall = builder.apply(_WALL)

    assert ground.kind == "PLANE"
    assert ground.scale == (10.0, 1.0, 10.0)
    assert ground.tiling == (5.0, 5.0)
    assert ground.material == "Gravel"
    assert roof.rotation == (0.0, 0.0, 180.0)
    assert roof.material is None
    assert wall.material == "Brick"


def test_light_uses_configured_settings():
    builder = _builder()
    light = builder.apply(_LIGHT)
    assert light.properties["light_type"] == "AREA"
    assert light.properties["intensity"] == 3.0
    assert light.properties["range"] == 5.0


def test_structure_children_are_tracked_as_handles():
    host = DryRunSceneHost(templates={"Pillar": [], "Arch": ["Arch Left", "Arch Right"]})
    builder = _builder(host)
    root = builder.apply(Structure(template_index=1, position=(2.0, 0.0, 2.0),
                                   rotation=(0.0, 180.0, 0.0), scale=(1.0, 3.0, 1.0)))

    assert root.properties["template"] == "Arch"
    assert len(builder.handles) == 3
    assert builder.handles[0] is root
    assert {h.name.split(".")[0] for h in builder.handles[1:]} == {"Arch Left", "Arch Right"}


def test_structure_footprint_flag_reaches_the_host():
    builder = _builder()
    kept = builder.apply(Structure(template_index=0, position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0),
                                   scale=(1.0, 3.0, 1.0), inherit_footprint=True))
    sized = builder.apply(Structure(template_index=1, position=(2.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0),
                                    scale=(2.0, 3.0, 2.0)))
    assert kept.properties["inherit_footprint"] is True
    assert sized.properties["inherit_footprint"] is False
    assert sized.scale == (2.0, 3.0, 2.0)


def test_unknown_template_surfaces_as_host_error_with_request_id():
    host = DryRunSceneHost(templates={"Pillar": []})
    builder = _builder(host)
    with pytest.raises(HostError, match=r"\[req-test\].*Arch"):
        builder.apply(Structure(template_index=1, position=(0.0, 0.0, 0.0),
                                rotation=(0.0, 0.0, 0.0), scale=(1.0, 3.0, 1.0)))


def test_template_index_out_of_range_is_a_host_error():
    builder = _builder()
    with pytest.raises(HostError):
        builder.apply(Structure(template_index=9, position=(0.0, 0.0, 0.0),
                                rotation=(0.0, 0.0, 0.0), scale=(1.0, 3.0, 1.0)))


def test_non_host_exceptions_are_wrapped_as_host_error():
    builder = _builder(_FailingHost())
    with pytest.raises(HostError, match="device lost") as info:
        builder.apply(_WALL)
    assert isinstance(info.value.__cause__, RuntimeError)
    assert builder.handles == []


def test_object_that_cannot_be_parented_is_destroyed():
    host = _RefusingParentHost(templates={"Pillar": ["Cap"], "Arch": []})
    builder = _builder(host)
    with pytest.raises(HostError, match="Cannot link"):
        builder.apply(_WALL)
    with pytest.raises(HostError, match="Cannot link"):
        builder.apply(Structure(template_index=0, position=(0.0, 0.0, 0.0),
                                rotation=(0.0, 0.0, 0.0), scale=(1.0, 3.0, 1.0)))

    assert host.live_objects() == []
    assert builder.handles == []
    assert builder.clear() == 0
    assert host.objects == []


def test_probe_instruction_without_probe_group_is_rejected():
    builder = _builder()
    with pytest.raises(HostError):
        builder.apply(_PROBE)


def test_apply_batch_counts_by_kind():
    builder = _builder()
    assert builder.apply_batch([_OUTER, _OUTER, _WALL, _LIGHT]) == 4
    assert builder.counts[_OUTER.kind] == 2
    assert builder.counts[_WALL.kind] == 1


def test_clear_destroys_everything_and_is_idempotent():
    host = DryRunSceneHost()
    builder = _builder(host)
    builder.apply_batch([_GROUND, _ROOF, _WALL, _LIGHT])

    assert builder.clear() == 4
    assert host.live_objects() == []
    assert host.live_groups() == []
    assert builder.handles == []
    assert not builder.is_built

    assert builder.clear() == 0
    assert host.live_objects() == []


def test_clear_on_never_built_builder_is_a_no_op():
    builder = SceneBuilder(DryRunSceneHost(), _config())
    assert builder.clear() == 0


def test_builder_can_begin_again_after_clear():
    host = DryRunSceneHost()
    builder = _builder(host)
    builder.apply(_WALL)
    builder.clear()
    builder.begin()
    builder.apply(_WALL)
    assert len(host.live_objects()) == 1


def test_set_static_skips_non_renderable_handles():
    host = DryRunSceneHost()
    cfg = _config()
    cfg.reflection_probes.enabled = True
    builder = SceneBuilder(host, cfg)
    builder.begin()
    builder.apply_batch([_WALL, _LIGHT, _PROBE, _GROUND])

    assert builder.set_static(True) == 2
    wall, light, probe, ground = builder.handles
    assert wall.static and ground.static
    assert not light.static and not probe.static
    assert builder.set_static(False) == 2
    assert not any(h.static for h in builder.handles)


def test_set_visible_skips_non_renderable_handles():
    host = DryRunSceneHost()
    cfg = _config()
    cfg.reflection_probes.enabled = True
    builder = SceneBuilder(host, cfg)
    builder.begin()
    builder.apply_batch([_WALL, _LIGHT, _PROBE, _GROUND])

    assert builder.set_visible(False) == 2
    wall, light, probe, ground = builder.handles
    assert wall.visible is False and ground.visible is False
    assert light.visible is True and probe.visible is True
    assert builder.set_visible(True) == 2
    assert wall.visible is True
