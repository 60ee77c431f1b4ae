# Mazegen Utils module

# Note: blender_host imports bpy lazily (try/except) so this package loads in CI.

def register() -> None:
    """Register utility components."""
    pass

def unregister() -> None:
    """Unregister utility components."""
    pass
