# Mazegen: procedural 3D maze generator for Blender
#
# Carves a perfect maze with randomized backtracking, plans a 3D layout
# (walls, outer boundary, ground/roof, structures, lights, reflection probes)
# and builds it into the current scene. Runs headless with a dry-run host
# when bpy is unavailable.
#
# License: MIT
# Compatible with Blender 4.0+

import logging

# Add-on metadata
bl_info = {
    "name": "Mazegen",
    "author": "Mazegen contributors",
    "description": "Procedural 3D maze generation",
    "blender": (4, 0, 0),
    "version": (0, 1, 0),
    "location": "Python API: mazegen.core.generator.MazeGenerator",
    "category": "Add Mesh",
    "support": "COMMUNITY",
}

# Global logger for the add-on
logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)

# Handler to Blender console (if available) or stdout
handler = logging.StreamHandler()
handler.setLevel(logging.INFO)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)


def register():
    """Register the add-on components."""
    logger.info("Registering Mazegen add-on...")
    # Lazy import so the package can be imported without loading every module
    from . import core, generation, utils

    core.register()
    generation.register()
    utils.register()

    logger.info("Mazegen add-on registered successfully.")


def unregister():
    """Unregister the add-on components."""
    logger.info("Unregistering Mazegen add-on...")
    from . import core, generation, utils

    # Unregister in reverse order
    utils.unregister()
    generation.unregister()
    core.unregister()

    logger.info("Mazegen add-on unregistered.")


# Blender calls this on add-on load
if __name__ == "__main__":
    register()
