from .folder import Folder
from .association_tables import folder_children, folder_items

__all__ = [
    "Folder",
    "folder_children",
    "folder_items",
]
