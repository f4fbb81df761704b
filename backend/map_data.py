# backend/map_data.py
# spawn point lookup in a Tiled JSON map:
#   layers[] -> {"type": "objectgroup", "name": "spawns", "objects": [...]}
#   objects[] -> {"name": "playerSpawn", "x": ..., "y": ...}
import json
import logging

from protocol import DEFAULT_ANIMATION

logger = logging.getLogger(__name__)

DEFAULT_SPAWN = (516, 230)
SPAWN_LAYER = "spawns"
SPAWN_OBJECT = "playerSpawn"


def load_map(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _dicts(items):
    return [i for i in items if isinstance(i, dict)] if isinstance(items, list) else []


def find_object(tilemap, layer_name, object_name):
    # anything not shaped like a Tiled map is skipped rather than trusted
    for layer in _dicts(tilemap.get("layers")):
        if layer.get("type") != "objectgroup" or layer.get("name") != layer_name:
            continue
        for obj in _dicts(layer.get("objects")):
            if obj.get("name") == object_name:
                return obj
    return None


def spawn_from(tilemap):
    obj = find_object(tilemap, SPAWN_LAYER, SPAWN_OBJECT) if tilemap else None
    if not obj:
        return DEFAULT_SPAWN
    # a missing or zero coordinate falls back on its own
    return _coord(obj.get("x"), DEFAULT_SPAWN[0]), _coord(obj.get("y"), DEFAULT_SPAWN[1])


def _coord(v, default):
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not v:
        return default
    return v


def load_spawn(path=None):
    """Spawn (x, y) from the map at ``path``, or the fixed default."""
    if not path:
        return DEFAULT_SPAWN
    try:
        tilemap = load_map(path)
    except (OSError, ValueError) as e:
        logger.warning("could not read map %s (%s), using default spawn", path, e)
        return DEFAULT_SPAWN
    if not isinstance(tilemap, dict):
        return DEFAULT_SPAWN
    return spawn_from(tilemap)


def spawn_state(path=None):
    x, y = load_spawn(path)
    return float(x), float(y), DEFAULT_ANIMATION
