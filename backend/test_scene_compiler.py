"""
End-to-end scene compiler tests.

Run: pytest test_scene_compiler.py
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(__file__))

from services.scene_compiler import (
    BuildStatus,
    DisplaySettings,
    ModelDescription,
    RenderCapabilityError,
    SceneCompiler,
    sample_description,
)
from services.scene_compiler import compiler as compiler_module
from services.scene_compiler.openings import window_placement
from services.scene_compiler.description import Room, Window

KITCHEN = {"name": "kitchen", "width": 4, "length": 4, "height": 3, "x": 0, "y": 0, "z": 0}


def _compiler():
    return SceneCompiler(probe=None, texture_seed=11)


def test_kitchen_scenario():
    result = _compiler().build(ModelDescription(rooms=[KITCHEN]))

    assert result.status == BuildStatus.READY
    assert result.diagnostics.valid_room_count == 1
    compiled = result.scene
    floors = [o for o in compiled.objects_of("floor") if o.room == "kitchen"]
    assert len(floors) == 1
    assert floors[0].material.texture.family == "tile"
    assert "room:kitchen/counter" in [o.node for o in compiled.objects_of("furnishing")]
    assert np.allclose(compiled.bounds.bounds, [[0, 0, 0], [4, 3, 4]])


def test_room_volume_material():
    compiled = _compiler().build(ModelDescription(rooms=[KITCHEN])).scene
    volume = compiled.objects_of("room_volume")[0]
    assert volume.material.opacity == 0.3
    assert volume.material.double_sided
    assert volume.material.color[:3] == [0x90, 0xEE, 0x90]
    assert len(compiled.objects_of("room_edges")) == 1


def test_degenerate_room_leaves_no_trace():
    desc = ModelDescription(
        rooms=[KITCHEN, {"name": "ghost", "width": 0, "length": 4, "height": 3, "x": 10}],
        windows=[{"room": "ghost", "wall": "north", "width": 1, "height": 1, "position": 0.5}],
        doors=[{"from": "kitchen", "to": "ghost"}],
    )
    settings = DisplaySettings(roomLabels=True, showMeasurements=True)
    result = _compiler().build(desc, settings)

    assert result.ok
    compiled = result.scene
    assert compiled.objects_in("ghost") == []
    assert not [light for light in compiled.lights if light.room == "ghost"]
    assert "ghost" not in [o.text for o in compiled.objects]
    assert compiled.objects_of("door_panel") == []
    assert result.diagnostics.valid_room_count == 1
    assert result.diagnostics.total_room_count == 2
    warnings = result.diagnostics.warnings
    assert warnings.count("Skipping window on invalid room: ghost") == 1
    assert warnings.count("Skipping door between invalid rooms: kitchen -> ghost") == 1


def test_zero_valid_rooms_is_ready_with_default_bound():
    desc = ModelDescription(rooms=[{"name": "bad", "width": -1, "length": 2, "height": 3}])
    result = _compiler().build(desc)

    assert result.status == BuildStatus.READY
    assert result.scene.bounds.is_default
    assert result.diagnostics.grid_span == 30
    assert np.allclose(result.scene.camera.target, [0.0, 1.5, 0.0])


def test_empty_description_builds():
    result = _compiler().build(ModelDescription())
    assert result.ok
    assert result.diagnostics.valid_room_count == 0


def test_round_trip_is_stable():
    compiler = _compiler()
    desc = sample_description()

    first = compiler.build(desc)
    counts = (len(first.scene.objects_of("room")), first.diagnostics.windows_placed,
              first.diagnostics.doors_placed)
    extents = first.scene.bounds.extents.copy()
    compiler.teardown()

    second = compiler.build(desc)
    assert (len(second.scene.objects_of("room")), second.diagnostics.windows_placed,
            second.diagnostics.doors_placed) == counts
    assert np.allclose(second.scene.bounds.extents, extents)
    assert counts == (7, 4, 6)


def test_wireframe_toggle_only_changes_material_flags():
    compiler = _compiler()
    desc = sample_description()

    def snapshot(result):
        compiled = result.scene
        positions = {o.node: compiled.scene.graph.get(o.node)[0][:3, 3].tolist()
                     for o in compiled.objects_of("room")}
        flags = [o.material.wireframe for o in compiled.objects_of("room_volume")]
        return positions, len(compiled.objects), compiled.bounds.bounds.copy(), flags

    on = snapshot(compiler.build(desc, DisplaySettings(wireframe=True)))
    off = snapshot(compiler.build(desc, DisplaySettings(wireframe=False)))

    assert on[0] == off[0]
    assert on[1] == off[1]
    assert np.allclose(on[2], off[2])
    assert all(on[3]) and not any(off[3])


def test_windows_on_each_wall():
    room = Room(name="bedroom", width=4, length=5, height=3)

    def place(wall, position=0.5):
        return window_placement(Window(room="bedroom", wall=wall, width=1.5, height=1.2,
                                       position=position), room)

    assert place("north").position == pytest.approx((2.0, 1.5, 0.01))
    south = place("South", 0.25)
    assert south.position == pytest.approx((1.0, 1.5, 4.99))
    assert south.rotation_y == pytest.approx(math.pi)
    east = place("E", 0.7)
    assert east.position == pytest.approx((3.99, 1.5, 3.5))
    assert east.rotation_y == pytest.approx(math.pi / 2)
    assert place("west").rotation_y == pytest.approx(-math.pi / 2)
    assert place("up") is None


def test_oversized_window_is_clamped():
    room = Room(name="bath", width=2, length=2, height=2.5)
    placement = window_placement(Window(room="bath", wall="north", width=5, height=4), room)
    assert (placement.width, placement.height) == (2, 2.5)


def test_unknown_wall_and_missing_room_warn():
    desc = ModelDescription(
        rooms=[KITCHEN],
        windows=[
            {"room": "kitchen", "wall": "north", "width": 1, "height": 1},
            {"room": "kitchen", "wall": "ceiling", "width": 1, "height": 1},
            {"room": "attic", "wall": "north", "width": 1, "height": 1},
        ],
    )
    result = _compiler().build(desc)
    assert result.diagnostics.windows_placed == 1
    assert len(result.scene.objects_of("window_pane")) == 1
    assert any("Unknown wall 'ceiling'" in w for w in result.diagnostics.warnings)
    assert any("Room not found for window: attic" in w for w in result.diagnostics.warnings)


def test_labels_and_measurements_follow_settings():
    desc = ModelDescription(rooms=[KITCHEN])
    plain = _compiler().build(desc, DisplaySettings(roomLabels=False)).scene
    assert plain.objects_of("label") == []
    assert plain.objects_of("dimension") == []

    full = _compiler().build(desc, DisplaySettings(showMeasurements=True)).scene
    assert [o.text for o in full.objects_of("label")] == ["kitchen"]
    assert sorted(o.text for o in full.objects_of("dimension")) == ["3m", "4m", "4m"]
    assert all(o.billboard for o in full.objects_of("dimension"))
    assert "0" in [o.text for o in full.objects_of("grid_label")]


def test_environment_toggles():
    desc = ModelDescription(rooms=[KITCHEN])
    bare = _compiler().build(desc, DisplaySettings(showGrid=False, showAxes=False)).scene
    assert bare.objects_of("grid") == [] and bare.objects_of("axes") == []

    full = _compiler().build(desc).scene
    assert full.objects_of("grid") and full.objects_of("axes")
    assert sorted(o.text for o in full.objects_of("axis_label")) == ["X", "Y", "Z"]


def test_lighting_presets():
    desc = ModelDescription(rooms=[KITCHEN])
    day = _compiler().build(desc).scene
    kinds = [light.kind for light in day.lights]
    assert kinds.count("ambient") == 1 and kinds.count("directional") == 1
    point = [light for light in day.lights if light.kind == "point"]
    assert len(point) == 1
    assert point[0].position == pytest.approx((2.0, 2.4, 2.0))

    night = _compiler().build(desc, DisplaySettings(lighting="night")).scene
    assert night.background == "#1a1a2e"
    black = _compiler().build(desc, DisplaySettings(lighting="night", backgroundColor="#000")).scene
    assert black.background == "#000"


def test_unknown_lighting_falls_back():
    result = _compiler().build(ModelDescription(rooms=[KITCHEN]), DisplaySettings(lighting="dusk"))
    assert result.ok
    ambient = [light for light in result.scene.lights if light.kind == "ambient"][0]
    assert ambient.intensity == 1.5
    assert any("Unknown lighting preset 'dusk'" in w for w in result.diagnostics.warnings)


def test_capability_failure_aborts_before_construction():
    def no_gl():
        raise RenderCapabilityError("OpenGL is not available", ["Update your graphics drivers"])

    compiler = SceneCompiler(probe=no_gl)
    result = compiler.build(ModelDescription(rooms=[KITCHEN]))
    assert result.status == BuildStatus.ERROR
    assert result.error_kind == "capability"
    assert result.remediation == ["Update your graphics drivers"]
    assert result.scene is None
    assert compiler.arena.live_generations == []


def test_construction_failure_releases_generation(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(compiler_module, "place_windows", explode)
    compiler = _compiler()
    result = compiler.build(ModelDescription(rooms=[KITCHEN]))
    assert result.status == BuildStatus.ERROR
    assert result.error_kind == "construction"
    assert result.message == "Error initializing 3D scene: boom"
    assert compiler.arena.live_generations == []


@pytest.mark.parametrize("bad_room", [
    {"name": "far", "width": 1e308, "length": 4, "height": 3, "x": 1e308},
    {"name": "lost", "width": 4, "length": 4, "height": 3, "x": float("nan")},
])
def test_unplaceable_room_is_skipped_not_fatal(bad_room):
    result = _compiler().build(ModelDescription(rooms=[KITCHEN, bad_room]))

    assert result.status == BuildStatus.READY
    assert result.diagnostics.valid_room_count == 1
    assert result.scene.objects_in(bad_room["name"]) == []
    assert any(bad_room["name"] in w for w in result.diagnostics.warnings)


def test_validation_failure_is_an_error_result(monkeypatch):
    def explode(*args, **kwargs):
        raise OverflowError("cannot convert float infinity to integer")

    monkeypatch.setattr(compiler_module, "grid_span", explode)
    compiler = _compiler()
    result = compiler.build(ModelDescription(rooms=[KITCHEN]))
    assert result.status == BuildStatus.ERROR
    assert result.error_kind == "construction"
    assert result.diagnostics is None
    assert compiler.status == BuildStatus.ERROR
    assert compiler.arena.live_generations == []


def test_teardown_empties_arena():
    compiler = _compiler()
    first = compiler.build(sample_description())
    generation = first.scene.generation
    assert compiler.arena.live_generations == [generation]

    second = compiler.build(sample_description())
    assert compiler.arena.live_generations == [second.scene.generation]
    assert second.scene.generation != generation

    assert compiler.teardown() > 0
    assert compiler.arena.live_generations == []
    assert len(second.scene.scene.geometry) == 0


def test_diagnostics_summary():
    result = _compiler().build(sample_description())
    d = result.diagnostics
    assert (d.valid_room_count, d.total_room_count, d.window_count, d.door_count) == (7, 7, 4, 6)
    assert d.first_rooms == [("living", 5, 7, 3), ("kitchen", 4, 4, 3)]
    lines = d.summary_lines()
    assert lines[0] == "Rooms: 7 valid / 7 total"
    assert any(line.startswith("Grid size:") for line in lines)


def test_glb_export(tmp_path):
    result = _compiler().build(sample_description())
    path = result.scene.export(str(tmp_path / "house.glb"))
    with open(path, "rb") as f:
        assert f.read(4) == b"glTF"
