# Mazegen Generation module

# Note: No top-level bpy import to allow offline tests and package import without Blender.

def register() -> None:
    """Register generation components."""
    # Planner and builder are service classes; they need no class registration.
    pass

def unregister() -> None:
    """Unregister generation components."""
    pass
