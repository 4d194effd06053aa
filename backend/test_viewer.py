"""Viewer session / render loop lifecycle tests."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(__file__))

from services.scene_compiler import (
    BuildStatus,
    DisplaySettings,
    RenderCapabilityError,
    SceneCompiler,
    ViewerSession,
    sample_description,
)


def _session(renderer=None, probe=None):
    return ViewerSession(SceneCompiler(probe=probe, texture_seed=3), renderer=renderer,
                         size=(640, 480))


def test_load_starts_render_loop():
    frames = []
    session = _session(renderer=lambda scene, rig: frames.append(scene.generation))
    result = session.load(sample_description())

    assert result.ok
    assert session.status == BuildStatus.READY
    assert session.loop is not None and session.loop.active
    assert session.loop.run(max_frames=3, interval=0) == 3
    assert frames == [result.scene.generation] * 3


def test_superseded_loop_stops_scheduling():
    session = _session()
    session.load(sample_description())
    old_loop = session.loop
    assert old_loop.step()

    session.load(sample_description(), DisplaySettings(wireframe=True))
    assert not old_loop.active
    assert old_loop.step() is False
    assert session.loop is not old_loop and session.loop.step()
    assert session.compiler.arena.live_generations == [session.generation]


def test_resize_touches_camera_only():
    session = _session()
    session.load(sample_description())
    nodes = len(session.current.objects)
    assert session.current.camera.aspect == 640 / 480

    session.resize(1000, 500)
    assert session.current.camera.aspect == 2.0
    assert session.current.scene.camera.resolution.tolist() == [1000, 500]
    assert len(session.current.objects) == nodes


def test_orbit_is_applied_on_next_frame():
    session = _session()
    session.load(sample_description())
    before = session.current.camera.position.copy()

    session.orbit(0.5, 0.1)
    assert np.allclose(session.current.camera.position, before)
    session.loop.step()
    assert not np.allclose(session.current.camera.position, before)


def test_failed_load_has_no_loop():
    def no_gl():
        raise RenderCapabilityError("no display", ["Set RENDER_TARGET=glb"])

    session = _session(probe=no_gl)
    result = session.load(sample_description())
    assert session.status == BuildStatus.ERROR
    assert result.remediation == ["Set RENDER_TARGET=glb"]
    assert session.loop is None


def test_close_releases_everything():
    session = _session()
    session.load(sample_description())
    loop = session.loop
    session.close()
    assert loop.step() is False
    assert session.compiler.arena.live_generations == []
    assert session.current is None


def test_labels_follow_orbiting_camera():
    session = _session()
    session.load(sample_description(), DisplaySettings(roomLabels=True))
    label = session.current.objects_of("label")[0]

    session.orbit(1.0, 0.2)
    session.loop.step()
    eye = session.current.camera.position
    matrix, _ = session.current.scene.graph.get(label.node)
    normal = matrix[:3, :3] @ np.array([0.0, 0.0, 1.0])
    to_eye = (eye - matrix[:3, 3]) / np.linalg.norm(eye - matrix[:3, 3])
    assert np.dot(normal, to_eye) == pytest.approx(1.0)
