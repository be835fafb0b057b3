"""JSON documents returned by the content endpoints.

Every document that carries field values embeds the materializer output
verbatim as its ``fields`` member.
"""

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from contentforge.content.config import EngineConfig
from contentforge.content.materializer import materialize
from contentforge.content.models import ContentEntity, ContentRevision, Language, Page
from contentforge.content.types import FieldRow


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _str(value: uuid.UUID | None) -> str | None:
    return str(value) if value else None


def _fields(
    content_id: uuid.UUID | None,
    translation_id: uuid.UUID,
    rows: Iterable[FieldRow],
    populate: bool,
    engine: EngineConfig | None,
) -> dict[str, Any]:
    options = (engine or EngineConfig()).options()
    return materialize(content_id, translation_id, None, rows, populate, **options)


def content_summary(content: ContentEntity, language: Language) -> dict[str, Any]:
    """Content attributes without field values (list views)."""
    return {
        "id": str(content.id),
        "name": content.name,
        "slug": content.slug,
        "workflowStateId": _str(content.workflow_state_id),
        "contentTypeId": str(content.content_type_id),
        "translationId": str(content.translation_id),
        "published": content.published,
        "deleted": content.deleted,
        "createdAt": _iso(content.created_at),
        "updatedAt": _iso(content.updated_at),
        "language": language.to_dict(),
    }


def content_with_fields(
    content: ContentEntity,
    revision: ContentRevision,
    rows: Iterable[FieldRow],
    language: Language,
    populate: bool = False,
    engine: EngineConfig | None = None,
) -> dict[str, Any]:
    """Full content document for the management API."""
    document = content_summary(content, language)
    document["revisionId"] = str(revision.id)
    document["fields"] = _fields(
        revision.id, revision.translation_id, rows, populate, engine
    )
    return document


def public_content(
    content: ContentEntity,
    revision: ContentRevision,
    rows: Iterable[FieldRow],
    language: Language,
    translations: Iterable[tuple[ContentEntity, Language]] = (),
    populate: bool = False,
    engine: EngineConfig | None = None,
) -> dict[str, Any]:
    """Content document for the public delivery API."""
    return {
        "id": str(content.id),
        "name": content.name,
        "slug": content.slug,
        "createdAt": _iso(content.created_at),
        "updatedAt": _iso(content.updated_at),
        "language": language.key,
        "translations": [
            {"id": str(other.id), "slug": other.slug, "language": other_language.key}
            for other, other_language in translations
        ],
        "fields": _fields(revision.id, revision.translation_id, rows, populate, engine),
    }


def default_values(
    content_id: uuid.UUID | None,
    translation_id: uuid.UUID,
    rows: Iterable[FieldRow],
    populate: bool = False,
    engine: EngineConfig | None = None,
) -> dict[str, Any]:
    """Field values a new translation starts from.

    content_id is None when the content has not been saved yet, in which
    case only rows shared through the translation are visible.
    """
    return {"fields": _fields(content_id, translation_id, rows, populate, engine)}


def _links(path: str, page: Page) -> dict[str, Any]:
    def href(number: int) -> dict[str, str]:
        return {"href": f"{path}?page={number}&pagesize={page.size}"}

    links: dict[str, Any] = {
        "self": href(page.number),
        "first": href(1),
        "last": href(page.total_pages),
    }
    if page.number > 1:
        links["previous"] = href(page.number - 1)
    if page.number < page.total_pages:
        links["next"] = href(page.number + 1)
    return links


def content_list(
    items: Iterable[tuple[ContentEntity, Language]],
    page: Page,
    site_id: uuid.UUID,
) -> dict[str, Any]:
    """HAL page of content summaries."""
    return {
        "_links": _links(f"/api/v1/sites/{site_id}/content", page),
        "_page": page.to_dict(),
        "_embedded": {
            "content": [content_summary(content, language) for content, language in items]
        },
    }


def public_content_list(
    items: Iterable[
        tuple[
            ContentEntity,
            ContentRevision,
            Iterable[FieldRow],
            Language,
            Iterable[tuple[ContentEntity, Language]],
        ]
    ],
    page: Page,
    site_id: uuid.UUID,
    populate: bool = False,
    engine: EngineConfig | None = None,
) -> dict[str, Any]:
    """HAL page of public content documents, each with its own fields.

    Every item is ``(content, revision, rows, language, translations)``;
    one populate flag applies to the whole page.
    """
    return {
        "_links": _links(f"/api/v1/public/sites/{site_id}/content", page),
        "_page": page.to_dict(),
        "_embedded": {
            "content": [
                public_content(
                    content, revision, rows, language, translations, populate, engine
                )
                for content, revision, rows, language, translations in items
            ]
        },
    }
