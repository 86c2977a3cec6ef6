from __future__ import annotations

import importlib
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Iterable, List

from .models import Request


class Spider(ABC):
    """Site-specific parsing logic bound to a spider name.

    Subclasses set name and start_urls and implement parse_item(). The
    return value may be a ParsedItem, a mapping with "requests" and
    "items" keys, or None."""

    name: ClassVar[str] = ""
    start_urls: ClassVar[List[str]] = []

    def start_requests(self) -> Iterable[Request]:
        for url in self.start_urls:
            yield Request(url=url)

    @abstractmethod
    def parse_item(self, response: Any) -> Any:
        ...


def load_spider(path: str) -> Spider:
    """Import and instantiate a spider given as "package.module:ClassName"."""
    module_name, sep, class_name = path.partition(":")
    if not sep or not module_name or not class_name:
        raise ValueError(f"Spider path must look like 'module:ClassName', got {path!r}")
    module = importlib.import_module(module_name)
    cls = getattr(module, class_name)
    if not (isinstance(cls, type) and issubclass(cls, Spider)):
        raise TypeError(f"{path} is not a Spider subclass")
    spider = cls()
    if not spider.name:
        raise ValueError(f"{path} does not define a spider name")
    return spider
