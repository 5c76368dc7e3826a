"""
Category template and defaults store.

Template data is advisory: fetch failures degrade to an empty index (or no
defaults) and editing continues with plain ``sort_order`` ordering.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from product_editor.exceptions import TemplateFetchError
from product_editor.models import SECTIONS, CategoryDefaults, TemplateEntry, TemplateIndex

logger = logging.getLogger(__name__)

TemplateListener = Callable[[TemplateIndex], None]


@dataclass(frozen=True)
class TemplateRequest:
    """Ticket for one in-flight template load."""
    category_id: Optional[int]
    generation: int


def _parse_entry(row: Any, section: Optional[str] = None) -> Optional[TemplateEntry]:
    if not isinstance(row, dict):
        return None
    field_name = row.get("field_name") or row.get("name")
    if not field_name:
        return None
    try:
        sort_order = int(row.get("sort_order") or 0)
    except (TypeError, ValueError):
        sort_order = 0
    return TemplateEntry(
        field_name=str(field_name),
        sort_order=sort_order,
        section=section or row.get("section"),
    )


def build_template_index(
    rows: Iterable[Any],
    category_id: Optional[int] = None,
) -> TemplateIndex:
    """
    Group flat template rows into the six section buckets.

    Rows for unknown sections are skipped. Each bucket is sorted by
    ``sort_order``; the sort is stable, so ties keep fetch order.
    """
    buckets: dict[str, list[TemplateEntry]] = {section: [] for section in SECTIONS}
    skipped = 0

    for row in rows:
        entry = _parse_entry(row)
        if entry is None or entry.section not in buckets:
            skipped += 1
            continue
        buckets[entry.section].append(entry)

    if skipped:
        logger.warning(
            f"Skipped {skipped} malformed template rows",
            extra={"category_id": category_id},
        )

    return TemplateIndex(
        category_id=category_id,
        **{
            section: tuple(sorted(entries, key=lambda e: e.sort_order))
            for section, entries in buckets.items()
        },
    )


def build_category_defaults(
    body: Any,
    category_id: Optional[int] = None,
) -> CategoryDefaults:
    """Parse the ``{section: [{field_name, sort_order}]}`` defaults document."""
    sections = {}
    if isinstance(body, dict):
        for section in SECTIONS:
            rows = body.get(section) or []
            entries = [_parse_entry(row, section) for row in rows]
            sections[section] = tuple(e for e in entries if e is not None)
    return CategoryDefaults(category_id=category_id, **sections)


class TemplateStore:
    """
    Owns the installed TemplateIndex and CategoryDefaults.

    Each load is stamped with a generation number. A response for anything
    but the latest request is discarded, so a slow reply for a previously
    selected category can never overwrite the current category's templates.
    """

    def __init__(self, client):
        self.client = client
        self._index = TemplateIndex.empty()
        self._defaults: Optional[CategoryDefaults] = None
        self._generation = 0
        self._listeners: list[TemplateListener] = []

    @property
    def index(self) -> TemplateIndex:
        return self._index

    @property
    def defaults(self) -> Optional[CategoryDefaults]:
        return self._defaults

    @property
    def generation(self) -> int:
        return self._generation

    def add_listener(self, listener: TemplateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TemplateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def begin_request(self, category_id: Optional[int]) -> TemplateRequest:
        """Start a load; any earlier request becomes stale."""
        self._generation += 1
        return TemplateRequest(category_id=category_id, generation=self._generation)

    def is_current(self, request: TemplateRequest) -> bool:
        return request.generation == self._generation

    def complete_request(self, request: TemplateRequest, rows: Iterable[Any]) -> bool:
        """
        Install the result of a template fetch.

        Returns:
            True if installed, False if the request was superseded
        """
        if not self.is_current(request):
            logger.info(
                f"Discarding stale templates for category {request.category_id}",
                extra={
                    "category_id": request.category_id,
                    "metrics": {
                        "request_generation": request.generation,
                        "current_generation": self._generation,
                    },
                },
            )
            return False
        self.install(build_template_index(rows, request.category_id))
        return True

    def install(self, index: TemplateIndex) -> None:
        """Replace the index and notify listeners."""
        self._index = index
        for listener in list(self._listeners):
            listener(index)

    def _fetch_rows(self, category_id: int) -> list:
        try:
            return self.client.fetch_category_templates(category_id)
        except Exception as e:
            error = TemplateFetchError(
                message=f"Failed to fetch templates for category {category_id}: {e}",
                category_id=category_id,
                original_exception=e,
            )
            logger.warning(
                f"Template fetch failed, falling back to sort_order: {error.message}",
                extra={"category_id": category_id, "extra_data": error.to_dict()},
            )
            return []

    def load_templates(self, category_id: Optional[int]) -> TemplateIndex:
        """
        Fetch, group and install the templates for a category.

        Never raises: a failed fetch installs an empty index. A category of
        None installs an empty index without fetching.
        """
        request = self.begin_request(category_id)
        if category_id is None:
            self.complete_request(request, [])
            return self._index

        rows = self._fetch_rows(category_id)

        self.complete_request(request, rows)
        return self._index

    def _fetch_defaults(self, category_id: int) -> Optional[dict]:
        try:
            return self.client.fetch_category_defaults(category_id)
        except Exception as e:
            error = TemplateFetchError(
                message=f"Failed to fetch specification defaults for category {category_id}: {e}",
                category_id=category_id,
                resource="defaults",
                original_exception=e,
            )
            logger.warning(
                f"Defaults fetch failed, new entries will not be pre-filled: {error.message}",
                extra={"category_id": category_id, "extra_data": error.to_dict()},
            )
            return None

    def complete_defaults(self, request: TemplateRequest, body: Optional[dict]) -> bool:
        """Install fetched defaults unless the request was superseded; None clears them."""
        if not self.is_current(request):
            logger.info(
                f"Discarding stale defaults for category {request.category_id}",
                extra={"category_id": request.category_id},
            )
            return False
        if body is None:
            self._defaults = None
        else:
            self._defaults = build_category_defaults(body, request.category_id)
        return True

    def load_defaults(self, category_id: Optional[int]) -> Optional[CategoryDefaults]:
        """Fetch and install a category's defaults; None when unavailable."""
        request = self.begin_request(category_id)
        body = self._fetch_defaults(category_id) if category_id is not None else None
        self.complete_defaults(request, body)
        return self._defaults

    def load_category(
        self,
        category_id: Optional[int],
    ) -> tuple[TemplateIndex, Optional[CategoryDefaults]]:
        """
        Load templates and defaults for a category under one request stamp.

        Defaults are installed before the index so listeners see both.
        """
        request = self.begin_request(category_id)
        if category_id is None:
            self.complete_defaults(request, None)
            self.complete_request(request, [])
            return self._index, self._defaults

        rows = self._fetch_rows(category_id)
        body = self._fetch_defaults(category_id)

        self.complete_defaults(request, body)
        self.complete_request(request, rows)
        return self._index, self._defaults
