"""Built-in sample house used by the demo endpoint and tests."""

from .description import ModelDescription


def _room(name, width, length, x, z, connected_to, height=3):
    return {"name": name, "width": width, "length": length, "height": height,
            "x": x, "y": 0, "z": z, "connected_to": connected_to}


SAMPLE_HOUSE = {
    "rooms": [
        _room("living", 5, 7, 0, 0, ["kitchen", "hallway"]),
        _room("kitchen", 4, 4, 5, 0, ["living", "dining"]),
        _room("dining", 4, 5, 5, 4, ["kitchen"]),
        _room("hallway", 2, 5, 0, 7, ["living", "bedroom1", "bedroom2", "bathroom"]),
        _room("bedroom1", 4, 4, -4, 7, ["hallway"]),
        _room("bedroom2", 4, 4, 2, 7, ["hallway"]),
        _room("bathroom", 3, 2, 0, 12, ["hallway"]),
    ],
    "windows": [
        {"room": "living", "wall": "south", "width": 2, "height": 1.5, "position": 0.5},
        {"room": "kitchen", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.7},
        {"room": "bedroom1", "wall": "west", "width": 1.5, "height": 1.2, "position": 0.5},
        {"room": "bedroom2", "wall": "east", "width": 1.5, "height": 1.2, "position": 0.5},
    ],
    "doors": [
        {"from": "living", "to": "kitchen", "width": 1.2, "height": 2.1},
        {"from": "living", "to": "hallway", "width": 1.2, "height": 2.1},
        {"from": "kitchen", "to": "dining", "width": 1.2, "height": 2.1},
        {"from": "hallway", "to": "bedroom1", "width": 0.9, "height": 2.1},
        {"from": "hallway", "to": "bedroom2", "width": 0.9, "height": 2.1},
        {"from": "hallway", "to": "bathroom", "width": 0.8, "height": 2.1},
    ],
}


def sample_description() -> ModelDescription:
    return ModelDescription.model_validate(SAMPLE_HOUSE)
