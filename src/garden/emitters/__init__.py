"""Built-in emitters."""

from garden.emitters.aliases import AliasRedirects
from garden.emitters.content_index import ContentIndex
from garden.emitters.content_page import ContentPage
from garden.emitters.folder_page import FolderPage
from garden.emitters.graph import GraphData
from garden.emitters.not_found import NotFoundPage
from garden.emitters.tag_page import TagPage

__all__ = [
    "AliasRedirects",
    "ContentIndex",
    "ContentPage",
    "FolderPage",
    "GraphData",
    "NotFoundPage",
    "TagPage",
]
