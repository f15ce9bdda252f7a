"""Built-in transformers, in the order the stock pipeline runs them."""

from garden.transformers.dates import CreatedModifiedDate
from garden.transformers.description import Description
from garden.transformers.frontmatter import FrontMatter
from garden.transformers.links import CrawlLinks

__all__ = ["FrontMatter", "CreatedModifiedDate", "CrawlLinks", "Description"]
