"""Tests for parsing vision model output into ExtractedFields."""

import json

from inventory_vision.models.fields import ExtractedFields, FIELD_KEYS
from inventory_vision.services.extractors.parsing import (
    Empty,
    Parsed,
    Unparseable,
    build_prompt,
    fields_from_output,
    find_json_object,
    parse_model_output,
)


class TestParseModelOutput:
    def test_plain_json(self):
        text = json.dumps({"title": "Widget", "vendor": "Acme", "manufacture_date": "2024-02-29"})
        result = parse_model_output(text)
        assert isinstance(result, Parsed)
        assert result.fields.title == "Widget"
        assert result.fields.vendor == "Acme"
        assert result.fields.manufacture_date == "2024-02-29"
        assert result.fields.item_id == ""

    def test_json_embedded_in_prose(self):
        text = (
            'Here is the result: {"item_id":"","title":"Widget","description":"",'
            '"vendor":"","manufacture_date":"","categories":"","subcategories":""} Thanks!'
        )
        result = parse_model_output(text)
        assert isinstance(result, Parsed)
        assert result.fields.title == "Widget"

    def test_markdown_fences(self):
        text = '```json\n{"title": "Oat Milk", "categories": "Food, Dairy-free"}\n```'
        fields = fields_from_output(text)
        assert fields.title == "Oat Milk"
        assert fields.categories == "Food, Dairy-free"

    def test_single_line_fence(self):
        result = parse_model_output('```{"title": "Widget"}```')
        assert isinstance(result, Parsed)
        assert result.fields.title == "Widget"

    def test_fence_with_object_on_opening_line(self):
        result = parse_model_output('```json {"title": "Widget", "vendor": "Acme"}\n```')
        assert isinstance(result, Parsed)
        assert result.fields.vendor == "Acme"

    def test_empty_output(self):
        assert isinstance(parse_model_output(""), Empty)
        assert isinstance(parse_model_output("   \n"), Empty)
        assert isinstance(parse_model_output(None), Empty)

    def test_garbage_is_unparseable(self):
        result = parse_model_output("I cannot read this label, sorry.")
        assert isinstance(result, Unparseable)
        assert result.raw_text == "I cannot read this label, sorry."

    def test_broken_json_is_unparseable(self):
        assert isinstance(parse_model_output('{"title": "Widget",'), Unparseable)

    def test_json_array_yields_first_object(self):
        result = parse_model_output('[{"title": "Widget"}, {"title": "Gadget"}]')
        assert isinstance(result, Parsed)
        assert result.fields.title == "Widget"

    def test_scalar_json_is_unparseable(self):
        assert isinstance(parse_model_output('"Widget"'), Unparseable)

    def test_unparseable_degrades_to_empty_record(self):
        fields = fields_from_output("no json here")
        assert fields == ExtractedFields()
        for key in FIELD_KEYS:
            assert getattr(fields, key) == ""


class TestNormalization:
    def test_nulls_and_missing_keys_become_empty_strings(self):
        fields = fields_from_output('{"title": null, "vendor": "Acme"}')
        assert fields.title == ""
        assert fields.description == ""
        assert fields.vendor == "Acme"

    def test_numbers_are_stringified(self):
        fields = fields_from_output('{"item_id": 12345, "title": "Bolt"}')
        assert fields.item_id == "12345"

    def test_category_lists_are_joined(self):
        fields = fields_from_output('{"categories": ["Tools", "Hardware"], "subcategories": []}')
        assert fields.categories == "Tools, Hardware"
        assert fields.subcategories == ""

    def test_nested_objects_become_empty(self):
        fields = fields_from_output('{"vendor": {"name": "Acme"}}')
        assert fields.vendor == ""

    def test_malformed_date_is_dropped(self):
        assert fields_from_output('{"manufacture_date": "March 2024"}').manufacture_date == ""
        assert fields_from_output('{"manufacture_date": "2024-3-1"}').manufacture_date == ""
        assert fields_from_output('{"manufacture_date": "2024-13-40"}').manufacture_date == ""

    def test_extra_keys_are_ignored(self):
        fields = fields_from_output('{"title": "Widget", "confidence": 0.9, "imageUrl": "x"}')
        assert fields.title == "Widget"
        assert fields.imageUrl is None


class TestFindJsonObject:
    def test_braces_inside_strings(self):
        text = 'note {"title": "a } b", "vendor": "X"} end'
        assert json.loads(find_json_object(text)) == {"title": "a } b", "vendor": "X"}

    def test_nested_object(self):
        text = 'prefix {"a": {"b": 1}} suffix {"c": 2}'
        assert find_json_object(text) == '{"a": {"b": 1}}'

    def test_no_object(self):
        assert find_json_object("no braces") is None
        assert find_json_object("{ unbalanced") is None


class TestPrompt:
    def test_prompt_lists_every_key(self):
        prompt = build_prompt()
        for key in FIELD_KEYS:
            assert key in prompt
        assert "YYYY-MM-DD" in prompt
        assert "User note" not in prompt

    def test_hint_is_appended_as_user_note(self):
        assert build_prompt("  blue box  ").endswith("User note: blue box")
