# Shared cleanup utilities for Mazegen
# Remove generated objects and collections from bpy.data, including data-blocks
# (meshes, lights, light probes) left without users. Used by BlenderSceneHost.

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Object type -> bpy.data attribute owning its data-block
_DATA_OWNERS = {
    "MESH": "meshes",
    "LIGHT": "lights",
    "LIGHT_PROBE": "lightprobes",
}


def _safe_unlink_object_from_all_collections(obj) -> None:
    try:
        for col in list(getattr(obj, "users_collection", []) or []):
            try:
                if hasattr(col, "objects") and hasattr(col.objects, "unlink"):
                    col.objects.unlink(obj)
            except Exception:
                pass
    except Exception:
        pass


def _remove_orphan_data(data, obj_type: str, obj_data) -> None:
    owner_name = _DATA_OWNERS.get(obj_type)
    if obj_data is None or owner_name is None:
        return
    if getattr(obj_data, "users", 0) != 0:
        return
    owner = getattr(data, owner_name, None)
    if owner is None or not hasattr(owner, "remove"):
        return
    try:
        owner.remove(obj_data)
    except Exception as ex:
        logger.debug(f"Failed to remove orphan {owner_name} data-block: {ex}")


def safe_remove_object(data, obj) -> bool:
    """Unlink and remove one object; returns False if it was already gone."""
    try:
        obj_type = getattr(obj, "type", "")
        obj_data = getattr(obj, "data", None)
    except ReferenceError:
        return False
    _safe_unlink_object_from_all_collections(obj)
    try:
        try:
            data.objects.remove(obj, do_unlink=True)
        except TypeError:
            data.objects.remove(obj)
    except ReferenceError:
        return False
    except Exception as ex:
        logger.debug(f"safe_remove_object: failed to remove object: {ex}")
        return False
    _remove_orphan_data(data, obj_type, obj_data)
    return True


def _safe_remove_collection(data, col) -> None:
    try:
        if hasattr(data.collections, "remove"):
            try:
                data.collections.remove(col, do_unlink=True)
            except TypeError:
                data.collections.remove(col)
    except Exception as ex:
        logger.debug(f"_safe_remove_collection: failed to remove collection: {ex}")


def remove_collection_tree(data, col) -> int:
    """
    Remove a collection, all of its child collections and every object they hold.
    Returns the number of objects removed. Already-removed collections are ignored.
    """
    try:
        children = list(getattr(col, "children", []) or [])
        objects = list(getattr(col, "objects", []) or [])
    except ReferenceError:
        return 0

    removed = 0
    for child in children:
        removed += remove_collection_tree(data, child)
    # children of template instances come first so parents are removed last
    for obj in sorted(objects, key=lambda o: getattr(o, "parent", None) is None):
        if safe_remove_object(data, obj):
            removed += 1
    _safe_remove_collection(data, col)
    return removed
