"""
Pipeline cache

Memoizes everything a pipeline instance parses or compiles. One cache is
owned by one pipeline; there is no eviction, only clear().

Fragments and components are master copies: reads always return a deep
clone, so a compile can mutate what it gets without touching the master.
"""

from typing import Dict, Generic, TypeVar

from .errors import CacheMiss
from .evaluator import EvalContent
from ..models.fragment import Component, Fragment, Page


T = TypeVar("T")


class CacheTable(Generic[T]):
    """One keyed mapping of the cache, with the has/get/store contract"""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: Dict[str, T] = {}

    def has(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> T:
        try:
            return self._entries[key]
        except KeyError:
            raise CacheMiss(self.kind, key) from None

    def store(self, key: str, value: T) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class PipelineCache:
    """
    Caches reusable data for one pipeline.

    Tables:
        pages: output path -> Page
        fragments: resource path -> master Fragment
        components: resource path -> master Component
        expressions: expression text -> EvalContent
        scripts: script text -> EvalContent
        external_scripts: resource path -> script text
        created_resources: content hash -> created resource path
    """

    def __init__(self) -> None:
        self.pages: CacheTable[Page] = CacheTable("Page")
        self.fragments: CacheTable[Fragment] = CacheTable("Fragment")
        self.components: CacheTable[Component] = CacheTable("Component")
        self.expressions: CacheTable[EvalContent] = CacheTable("Expression")
        self.scripts: CacheTable[EvalContent] = CacheTable("Script")
        self.external_scripts: CacheTable[str] = CacheTable("ExternalScript")
        self.created_resources: CacheTable[str] = CacheTable("CreatedResource")

    # Page

    def page_has(self, path: str) -> bool:
        return self.pages.has(path)

    def page_get(self, path: str) -> Page:
        return self.pages.get(path)

    def page_store(self, page: Page) -> None:
        self.pages.store(page.path, page)

    # Fragment

    def fragment_has(self, path: str) -> bool:
        return self.fragments.has(path)

    def fragment_get(self, path: str) -> Fragment:
        """Deep clone of the cached master"""
        return self.fragments.get(path).clone()

    def fragment_store(self, fragment: Fragment) -> None:
        self.fragments.store(fragment.path, fragment)

    # Component

    def component_has(self, path: str) -> bool:
        return self.components.has(path)

    def component_get(self, path: str) -> Component:
        """Deep clone of the cached master"""
        return self.components.get(path).clone()

    def component_store(self, component: Component) -> None:
        self.components.store(component.path, component)

    # Expression

    def expression_has(self, text: str) -> bool:
        return self.expressions.has(text)

    def expression_get(self, text: str) -> EvalContent:
        return self.expressions.get(text)

    def expression_store(self, text: str, content: EvalContent) -> None:
        self.expressions.store(text, content)

    # Script

    def script_has(self, text: str) -> bool:
        return self.scripts.has(text)

    def script_get(self, text: str) -> EvalContent:
        return self.scripts.get(text)

    def script_store(self, text: str, content: EvalContent) -> None:
        self.scripts.store(text, content)

    # External script

    def externalScript_has(self, path: str) -> bool:
        return self.external_scripts.has(path)

    def externalScript_get(self, path: str) -> str:
        return self.external_scripts.get(path)

    def externalScript_store(self, path: str, text: str) -> None:
        self.external_scripts.store(path, text)

    # Created resource

    def createdResource_has(self, content_hash: str) -> bool:
        return self.created_resources.has(content_hash)

    def createdResource_get(self, content_hash: str) -> str:
        return self.created_resources.get(content_hash)

    def createdResource_store(self, content_hash: str, res_path: str) -> None:
        self.created_resources.store(content_hash, res_path)

    # General

    def clear(self) -> None:
        """Empty every table"""
        for table in (self.pages, self.fragments, self.components, self.expressions,
                      self.scripts, self.external_scripts, self.created_resources):
            table.clear()
