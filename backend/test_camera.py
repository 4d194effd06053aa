"""Camera autoframe and orbit control tests."""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(__file__))

from services.scene_compiler import DisplaySettings, ModelDescription, SceneCompiler
from services.scene_compiler.camera import (
    CameraRig,
    OrbitControls,
    camera_distance,
    face_camera,
    look_at,
)

ROOM = {"name": "living", "width": 6, "length": 4, "height": 3}


def test_doubling_zoom_halves_distance():
    base = camera_distance(12.0, 75.0, 1.0)
    assert camera_distance(12.0, 75.0, 2.0) == pytest.approx(base / 2)
    assert camera_distance(12.0, 75.0, 0.5) == pytest.approx(base * 2)
    assert base == pytest.approx(12.0 / math.sin(math.radians(37.5)))


def test_distance_decreases_with_zoom():
    distances = [camera_distance(10.0, zoom=z) for z in (0.5, 1.0, 1.5, 2.0, 3.0)]
    assert distances == sorted(distances, reverse=True)


def test_autoframe_places_camera_on_diagonal():
    compiler = SceneCompiler(probe=None, texture_seed=5)
    compiled = compiler.build(ModelDescription(rooms=[ROOM])).scene
    rig = compiled.camera

    center = np.array([3.0, 1.5, 2.0])
    distance = camera_distance(6.0)
    assert np.allclose(rig.target, center)
    assert np.allclose(rig.position, center + 0.7 * distance)
    assert (rig.fov, rig.near, rig.far) == (75.0, 0.1, 1000.0)


def test_zoom_setting_moves_camera_closer():
    compiler = SceneCompiler(probe=None, texture_seed=5)
    desc = ModelDescription(rooms=[ROOM])
    near = compiler.build(desc, DisplaySettings(zoom=2.0)).scene.camera.distance
    far = compiler.build(desc, DisplaySettings(zoom=1.0)).scene.camera.distance
    assert near == pytest.approx(far / 2)


def test_camera_is_mirrored_into_scene():
    compiled = SceneCompiler(probe=None).build(ModelDescription(rooms=[ROOM])).scene
    scene = compiled.scene
    assert scene.camera.fov[1] == pytest.approx(75.0)
    assert np.allclose(scene.camera_transform, compiled.camera.matrix)


def test_look_at_points_negative_z_at_target():
    matrix = look_at([5.0, 5.0, 5.0], [0.0, 0.0, 0.0])
    forward = -matrix[:3, 2]
    assert np.allclose(forward, -np.ones(3) / math.sqrt(3))
    assert np.allclose(matrix[:3, 3], [5, 5, 5])


def test_orbit_controls_damped_rotation_keeps_radius():
    rig = CameraRig(position=np.array([0.0, 0.0, 10.0]), target=np.zeros(3))
    controls = OrbitControls(rig)
    assert controls.update() is False
    assert np.allclose(rig.position, [0, 0, 10])

    controls.rotate(math.pi / 2)
    assert controls.update() is True
    assert rig.distance == pytest.approx(10.0)
    assert not np.allclose(rig.position, [0, 0, 10])


def test_orbit_controls_dolly_and_pan():
    rig = CameraRig(position=np.array([0.0, 0.0, 10.0]), target=np.zeros(3))
    controls = OrbitControls(rig, damping=1.0)
    controls.dolly(0.5)
    controls.update()
    assert rig.distance == pytest.approx(5.0)

    controls.pan(1.0, 0.0)
    assert controls.update() is True
    assert np.allclose(rig.target, [1.0, 0.0, 0.0])
    assert controls.update() is False


def test_resize_updates_aspect():
    rig = CameraRig(position=np.array([0.0, 0.0, 10.0]), target=np.zeros(3))
    rig.set_size(800, 400)
    assert rig.aspect == 2.0
    assert rig.horizontal_fov() > rig.fov


def _normal_toward(scene, node, eye):
    matrix, _ = scene.graph.get(node)
    normal = matrix[:3, :3] @ np.array([0.0, 0.0, 1.0])
    to_eye = np.asarray(eye) - matrix[:3, 3]
    return float(np.dot(normal, to_eye / np.linalg.norm(to_eye)))


def test_labels_face_the_camera_after_autoframe():
    compiler = SceneCompiler(probe=None, texture_seed=5)
    settings = DisplaySettings(roomLabels=True, showMeasurements=True)
    compiled = compiler.build(ModelDescription(rooms=[ROOM]), settings).scene
    eye = compiled.camera.position

    sprites = [o for o in compiled.objects if o.billboard]
    assert {"label", "dimension", "grid_label", "axis_label"} <= {o.kind for o in sprites}
    for sprite in sprites:
        assert _normal_toward(compiled.scene, sprite.node, eye) == pytest.approx(1.0)


def test_facing_keeps_label_position():
    compiler = SceneCompiler(probe=None, texture_seed=5)
    compiled = compiler.build(ModelDescription(rooms=[ROOM]), DisplaySettings(roomLabels=True)).scene
    label = compiled.objects_of("label")[0]
    before, _ = compiled.scene.graph.get(label.node)

    assert face_camera(compiled.scene, compiled.objects, [-20.0, 5.0, -20.0]) > 0
    after, _ = compiled.scene.graph.get(label.node)
    assert np.allclose(after[:3, 3], before[:3, 3])
    assert _normal_toward(compiled.scene, label.node, [-20.0, 5.0, -20.0]) == pytest.approx(1.0)
