"""Tests for field row materialization.

Covers:
- scalar, array, object and block resolution
- source visibility (revision rows vs rows shared by the translation)
- reference population, cycle cutting and the depth cap
- duplicate sibling names under both policies
- error cases: unknown data types, malformed reference ids
"""

import copy
import itertools
import uuid

import pytest

from contentforge.content import (
    DataType,
    DuplicateFieldError,
    DuplicatePolicy,
    FieldIndex,
    FieldMaterializer,
    FieldRow,
    MalformedReferenceError,
    UnknownDataTypeError,
    materialize,
)

REVISION = uuid.UUID("11111111-1111-4111-8111-111111111111")
TRANSLATION = uuid.UUID("22222222-2222-4222-8222-222222222222")
OTHER_REVISION = uuid.UUID("33333333-3333-4333-8333-333333333333")
OTHER_TRANSLATION = uuid.UUID("44444444-4444-4444-8444-444444444444")


# ── Helpers ──────────────────────────────────────────────────────────────────


def _row(
    name: str,
    data_type: DataType | str,
    value=None,
    parent: FieldRow | None = None,
    source: uuid.UUID = REVISION,
    seq: int | None = None,
) -> FieldRow:
    return FieldRow(
        id=uuid.uuid4(),
        source_id=source,
        name=name,
        data_type=data_type,
        value=value,
        parent_id=parent.id if parent else None,
        sequence_number=seq,
    )


def _pointer(content_id: uuid.UUID, translation_id: uuid.UUID) -> dict[str, str]:
    return {"contentId": str(content_id), "translationId": str(translation_id)}


def _run(rows, populate=False, **options):
    return materialize(REVISION, TRANSLATION, None, rows, populate, **options)


# ── Scalars and compounds ────────────────────────────────────────────────────


class TestScalars:
    def test_empty_row_set(self):
        assert _run([]) == {}

    def test_text_number_boolean(self):
        rows = [
            _row("title", DataType.TEXT, "Hello"),
            _row("rating", DataType.NUMBER, 4.5),
            _row("featured", DataType.BOOLEAN, False),
        ]
        assert _run(rows) == {"title": "Hello", "rating": 4.5, "featured": False}

    def test_null_value_kept(self):
        assert _run([_row("subtitle", DataType.TEXT)]) == {"subtitle": None}

    def test_parent_id_starts_below_compound(self):
        seo = _row("seo", DataType.OBJECT)
        rows = [seo, _row("keywords", DataType.TEXT, "cms", parent=seo)]
        result = materialize(REVISION, TRANSLATION, seo.id, rows)
        assert result == {"keywords": "cms"}


class TestArrays:
    def test_items_ordered_by_sequence_number(self):
        tags = _row("tags", DataType.ARRAY)
        rows = [
            _row("title", DataType.TEXT, "Hello"),
            tags,
            _row("1", DataType.TEXT, "y", parent=tags, seq=1),
            _row("0", DataType.TEXT, "x", parent=tags, seq=0),
        ]
        assert _run(rows) == {"title": "Hello", "tags": ["x", "y"]}

    def test_missing_sequence_numbers_sort_first_and_stay_stable(self):
        items = _row("items", DataType.ARRAY)
        rows = [
            items,
            _row("c", DataType.TEXT, "c", parent=items, seq=2),
            _row("a", DataType.TEXT, "a", parent=items),
            _row("b", DataType.TEXT, "b", parent=items),
            _row("d", DataType.TEXT, "d", parent=items, seq=2),
        ]
        assert _run(rows)["items"] == ["a", "b", "c", "d"]

    def test_empty_array(self):
        assert _run([_row("tags", DataType.ARRAY)]) == {"tags": []}

    def test_item_names_are_ignored(self):
        items = _row("items", DataType.ARRAY)
        rows = [
            items,
            _row("same", DataType.NUMBER, 1, parent=items, seq=0),
            _row("same", DataType.NUMBER, 2, parent=items, seq=1),
        ]
        assert _run(rows, duplicates=DuplicatePolicy.REJECT)["items"] == [1, 2]

    def test_array_of_objects(self):
        links = _row("links", DataType.ARRAY)
        first = _row("0", DataType.OBJECT, parent=links, seq=0)
        second = _row("1", DataType.OBJECT, parent=links, seq=1)
        rows = [
            links,
            second,
            first,
            _row("label", DataType.TEXT, "Docs", parent=first),
            _row("label", DataType.TEXT, "Blog", parent=second),
        ]
        assert _run(rows)["links"] == [{"label": "Docs"}, {"label": "Blog"}]


class TestObjectsAndBlocks:
    def test_object_maps_child_names(self):
        seo = _row("seo", DataType.OBJECT)
        rows = [
            seo,
            _row("title", DataType.TEXT, "SEO title", parent=seo),
            _row("index", DataType.BOOLEAN, True, parent=seo),
        ]
        assert _run(rows) == {"seo": {"title": "SEO title", "index": True}}

    def test_empty_object(self):
        assert _run([_row("seo", DataType.OBJECT)]) == {"seo": {}}

    def test_block_carries_discriminator_and_fields(self):
        hero = _row("hero", DataType.BLOCK, "quote")
        rows = [hero, _row("author", DataType.TEXT, "Ada", parent=hero)]
        assert _run(rows) == {"hero": {"block": "quote", "fields": {"author": "Ada"}}}

    def test_blocks_inside_array(self):
        body = _row("body", DataType.ARRAY)
        quote = _row("0", DataType.BLOCK, "quote", parent=body, seq=0)
        text = _row("1", DataType.BLOCK, "paragraph", parent=body, seq=1)
        rows = [
            body,
            quote,
            text,
            _row("text", DataType.TEXT, "Be curious", parent=quote),
            _row("text", DataType.TEXT, "Lorem ipsum", parent=text),
        ]
        assert _run(rows)["body"] == [
            {"block": "quote", "fields": {"text": "Be curious"}},
            {"block": "paragraph", "fields": {"text": "Lorem ipsum"}},
        ]

    def test_deep_nesting(self):
        outer = _row("outer", DataType.OBJECT)
        middle = _row("middle", DataType.ARRAY, parent=outer)
        inner = _row("0", DataType.OBJECT, parent=middle, seq=0)
        rows = [outer, middle, inner, _row("leaf", DataType.NUMBER, 7, parent=inner)]
        assert _run(rows) == {"outer": {"middle": [{"leaf": 7}]}}


# ── Source visibility ────────────────────────────────────────────────────────


class TestSourceVisibility:
    def test_rows_of_revision_and_translation_are_merged(self):
        rows = [
            _row("title", DataType.TEXT, "Hallo", source=REVISION),
            _row("image", DataType.TEXT, "hero.png", source=TRANSLATION),
        ]
        assert _run(rows) == {"title": "Hallo", "image": "hero.png"}

    def test_rows_of_other_sources_are_invisible(self):
        rows = [
            _row("title", DataType.TEXT, "Mine"),
            _row("other", DataType.TEXT, "Not mine", source=OTHER_REVISION),
        ]
        assert _run(rows) == {"title": "Mine"}

    def test_foreign_children_of_visible_parent_are_dropped(self):
        seo = _row("seo", DataType.OBJECT)
        rows = [
            seo,
            _row("title", DataType.TEXT, "visible", parent=seo),
            _row("leak", DataType.TEXT, "hidden", parent=seo, source=OTHER_REVISION),
        ]
        assert _run(rows) == {"seo": {"title": "visible"}}

    def test_default_values_without_revision(self):
        rows = [
            _row("title", DataType.TEXT, "Revision only", source=REVISION),
            _row("image", DataType.TEXT, "hero.png", source=TRANSLATION),
        ]
        result = materialize(None, TRANSLATION, None, rows)
        assert result == {"image": "hero.png"}


# ── References ───────────────────────────────────────────────────────────────


class TestReferences:
    def test_unpopulated_reference_is_raw_pointer(self):
        pointer = _pointer(OTHER_REVISION, OTHER_TRANSLATION)
        rows = [_row("author", DataType.REFERENCE, pointer)]
        assert _run(rows) == {"author": pointer}

    def test_populated_reference_embeds_target_fields(self):
        rows = [
            _row("author", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION)),
            _row("name", DataType.TEXT, "Ada", source=OTHER_REVISION),
            _row("avatar", DataType.TEXT, "ada.png", source=OTHER_TRANSLATION),
        ]
        assert _run(rows, populate=True) == {
            "author": {
                "contentId": str(OTHER_REVISION),
                "translationId": str(OTHER_TRANSLATION),
                "fields": {"name": "Ada", "avatar": "ada.png"},
            }
        }

    def test_populated_fields_equal_direct_materialization(self):
        seo = _row("seo", DataType.OBJECT, source=OTHER_REVISION)
        rows = [
            _row("related", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION)),
            _row("title", DataType.TEXT, "Target", source=OTHER_REVISION),
            seo,
            _row("index", DataType.BOOLEAN, True, parent=seo, source=OTHER_REVISION),
        ]
        expanded = _run(rows, populate=True)["related"]["fields"]
        direct = materialize(OTHER_REVISION, OTHER_TRANSLATION, None, rows)
        assert expanded == direct

    def test_missing_target_populates_empty_fields(self):
        rows = [_row("author", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION))]
        assert _run(rows, populate=True)["author"]["fields"] == {}

    def test_self_reference_stays_raw(self):
        pointer = _pointer(REVISION, TRANSLATION)
        rows = [_row("self", DataType.REFERENCE, pointer), _row("title", DataType.TEXT, "A")]
        assert _run(rows, populate=True) == {"self": pointer, "title": "A"}

    def test_mutual_references_terminate(self):
        back = _pointer(REVISION, TRANSLATION)
        rows = [
            _row("title", DataType.TEXT, "A"),
            _row("next", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION)),
            _row("title", DataType.TEXT, "B", source=OTHER_REVISION),
            _row("next", DataType.REFERENCE, back, source=OTHER_REVISION),
        ]
        result = _run(rows, populate=True)
        assert result["next"]["fields"] == {"title": "B", "next": back}

    def test_same_target_twice_on_different_paths_expands_both(self):
        pointer = _pointer(OTHER_REVISION, OTHER_TRANSLATION)
        rows = [
            _row("first", DataType.REFERENCE, pointer),
            _row("second", DataType.REFERENCE, pointer),
            _row("name", DataType.TEXT, "Ada", source=OTHER_REVISION),
        ]
        result = _run(rows, populate=True)
        assert result["first"]["fields"] == {"name": "Ada"}
        assert result["second"]["fields"] == {"name": "Ada"}

    def test_max_reference_depth_leaves_deeper_references_raw(self):
        third_rev, third_tr = uuid.uuid4(), uuid.uuid4()
        deep = _pointer(third_rev, third_tr)
        rows = [
            _row("next", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION)),
            _row("next", DataType.REFERENCE, deep, source=OTHER_REVISION),
            _row("title", DataType.TEXT, "C", source=third_rev),
        ]
        result = _run(rows, populate=True, max_reference_depth=1)
        assert result["next"]["fields"] == {"next": deep}

        unbounded = _run(rows, populate=True)
        assert unbounded["next"]["fields"]["next"]["fields"] == {"title": "C"}

    def test_depth_zero_disables_expansion(self):
        pointer = _pointer(OTHER_REVISION, OTHER_TRANSLATION)
        rows = [_row("author", DataType.REFERENCE, pointer)]
        assert _run(rows, populate=True, max_reference_depth=0) == {"author": pointer}

    def test_partial_pointer_is_returned_raw(self):
        partial = {"contentId": str(OTHER_REVISION)}
        rows = [_row("author", DataType.REFERENCE, partial)]
        assert _run(rows, populate=True) == {"author": partial}

    def test_null_reference_is_returned_raw(self):
        rows = [_row("author", DataType.REFERENCE)]
        assert _run(rows, populate=True) == {"author": None}

    def test_malformed_ids_raise_when_populating(self):
        bad = {"contentId": "not-a-uuid", "translationId": str(OTHER_TRANSLATION)}
        rows = [_row("author", DataType.REFERENCE, bad)]
        with pytest.raises(MalformedReferenceError) as exc_info:
            _run(rows, populate=True)
        assert exc_info.value.row_id == rows[0].id

    def test_malformed_ids_pass_through_without_populate(self):
        bad = {"contentId": "not-a-uuid", "translationId": "nope"}
        rows = [_row("author", DataType.REFERENCE, bad)]
        assert _run(rows) == {"author": bad}


# ── Duplicates ───────────────────────────────────────────────────────────────


class TestDuplicates:
    def test_last_wins_by_default(self):
        rows = [_row("title", DataType.TEXT, "first"), _row("title", DataType.TEXT, "second")]
        assert _run(rows) == {"title": "second"}

    def test_reject_policy_raises(self):
        seo = _row("seo", DataType.OBJECT)
        rows = [
            seo,
            _row("title", DataType.TEXT, "a", parent=seo),
            _row("title", DataType.TEXT, "b", parent=seo),
        ]
        with pytest.raises(DuplicateFieldError) as exc_info:
            _run(rows, duplicates=DuplicatePolicy.REJECT)
        assert exc_info.value.name == "title"
        assert exc_info.value.parent_id == seo.id

    def test_policy_accepts_string_value(self):
        rows = [_row("title", DataType.TEXT, "a"), _row("title", DataType.TEXT, "b")]
        with pytest.raises(DuplicateFieldError):
            _run(rows, duplicates="reject")


# ── Errors and guarantees ────────────────────────────────────────────────────


class TestErrors:
    def test_unknown_data_type_raises(self):
        rows = [_row("widget", "WIDGET", 1)]
        with pytest.raises(UnknownDataTypeError) as exc_info:
            _run(rows)
        assert exc_info.value.data_type == "WIDGET"
        assert exc_info.value.row_id == rows[0].id

    def test_lowercase_tag_is_accepted(self):
        assert _run([_row("title", "text", "Hello")]) == {"title": "Hello"}

    def test_every_data_type_has_a_resolver(self):
        materializer = FieldMaterializer([])
        assert set(materializer._resolvers) == set(DataType)


class TestGuarantees:
    def _rows(self):
        tags = _row("tags", DataType.ARRAY)
        return [
            _row("meta", DataType.TEXT, {"nested": ["json"]}),
            tags,
            _row("0", DataType.TEXT, "x", parent=tags, seq=0),
            _row("author", DataType.REFERENCE, _pointer(OTHER_REVISION, OTHER_TRANSLATION)),
        ]

    def test_idempotent(self):
        rows = self._rows()
        assert _run(rows, populate=True) == _run(rows, populate=True)

    def test_object_and_block_output_ignores_row_order(self):
        hero = _row("hero", DataType.BLOCK, "quote")
        rows = [
            _row("title", DataType.TEXT, "Hello"),
            hero,
            _row("text", DataType.TEXT, "To be", parent=hero),
            _row("author", DataType.TEXT, "Ada", parent=hero),
        ]
        results = [_run(list(order)) for order in itertools.permutations(rows)]
        assert len(results) == 24
        assert all(result == results[0] for result in results)
        assert results[0] == {
            "title": "Hello",
            "hero": {"block": "quote", "fields": {"text": "To be", "author": "Ada"}},
        }

    def test_input_rows_are_not_mutated(self):
        rows = self._rows()
        snapshot = copy.deepcopy(rows)
        result = _run(rows)
        result["meta"]["nested"].append("changed")
        result["author"]["contentId"] = "changed"
        assert rows == snapshot

    def test_materializer_reuses_prebuilt_index(self):
        rows = self._rows()
        index = FieldIndex(rows)
        materializer = FieldMaterializer(index, populate=False)
        assert materializer.index is index
        assert materializer.materialize(REVISION, TRANSLATION) == _run(rows)

    def test_field_index_lookup(self):
        rows = self._rows()
        index = FieldIndex(rows)
        assert len(index) == len(rows)
        assert rows[1].id in index
        assert index.get(rows[2].id) is rows[2]
        assert index.children(rows[1].id, frozenset({REVISION})) == [rows[2]]
        assert index.children(rows[1].id, frozenset({OTHER_REVISION})) == []
