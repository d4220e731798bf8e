"""Fixed member paths inside a card container"""

CONTAINER_ROOT = ".card"
CONTENT_DIR = "content"

METADATA_PATH = f"{CONTAINER_ROOT}/metadata.yaml"
STRUCTURE_PATH = f"{CONTAINER_ROOT}/structure.yaml"


def content_path(component_id: str) -> str:
    """Return the content file path for a component id."""
    return f"{CONTENT_DIR}/{component_id}.yaml"
