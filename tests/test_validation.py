import unittest

from document_manager.services.validation import ValidationEngine, ValidationOptions


class EntityValidationTests(unittest.TestCase):
    def setUp(self):
        self.engine = ValidationEngine(ValidationOptions())

    def test_non_object_is_invalid_type(self):
        for candidate in (None, "title", 42, ["title"]):
            result = self.engine.validate_entity(candidate)
            self.assertFalse(result.is_valid)
            self.assertEqual([issue.code for issue in result.errors], ["INVALID_TYPE"])

    def test_title_length_boundary(self):
        self.assertTrue(self.engine.validate_create_entity({"title": "a" * 255}).is_valid)
        result = self.engine.validate_create_entity({"title": "a" * 256})
        self.assertEqual(result.codes_for("title"), ["MAX_LENGTH"])

    def test_create_requires_non_blank_title(self):
        self.assertEqual(self.engine.validate_create_entity({}).codes_for("title"), ["REQUIRED"])
        self.assertEqual(self.engine.validate_create_entity({"title": "   "}).codes_for("title"), ["EMPTY_VALUE"])

    def test_update_skips_missing_fields_but_checks_present_ones(self):
        self.assertTrue(self.engine.validate_update_entity({}).is_valid)
        self.assertTrue(self.engine.validate_update_entity({"status": "archived"}).is_valid)
        result = self.engine.validate_update_entity({"title": "", "status": "deleted"})
        self.assertEqual(result.codes_for("title"), ["EMPTY_VALUE"])
        self.assertEqual(result.codes_for("status"), ["INVALID_VALUE"])

    def test_priority_rules(self):
        self.assertTrue(self.engine.validate_create_entity({"title": "t", "priority": 0}).is_valid)
        self.assertTrue(self.engine.validate_create_entity({"title": "t", "priority": 1000}).is_valid)
        self.assertTrue(self.engine.validate_create_entity({"title": "t", "priority": 5.0}).is_valid)
        cases = {1001: "OUT_OF_RANGE", -1: "OUT_OF_RANGE", 2.5: "INVALID_VALUE", "5": "INVALID_TYPE", True: "INVALID_TYPE"}
        for priority, code in cases.items():
            result = self.engine.validate_create_entity({"title": "t", "priority": priority})
            self.assertEqual(result.codes_for("priority"), [code], priority)

    def test_tags_report_indexed_paths(self):
        result = self.engine.validate_create_entity({"title": "t", "tags": ["ok", 7, "x" * 51]})
        self.assertEqual(result.codes_for("tags[1]"), ["INVALID_TYPE"])
        self.assertEqual(result.codes_for("tags[2]"), ["MAX_LENGTH"])

        too_many = self.engine.validate_create_entity({"title": "t", "tags": [str(i) for i in range(21)]})
        self.assertEqual(too_many.codes_for("tags"), ["MAX_ITEMS"])
        self.assertEqual(self.engine.validate_create_entity({"title": "t", "tags": "a,b"}).codes_for("tags"), ["INVALID_TYPE"])

    def test_all_errors_are_collected(self):
        result = self.engine.validate_create_entity({"title": 5, "status": "x", "priority": 5000, "description": 1})
        self.assertEqual({issue.field for issue in result.errors}, {"title", "status", "priority", "description"})

    def test_result_wire_shape(self):
        payload = self.engine.validate_create_entity({}).as_dict()
        self.assertFalse(payload["isValid"])
        self.assertEqual(payload["errors"][0]["field"], "title")
        self.assertEqual(payload["errors"][0]["code"], "REQUIRED")
        self.assertIn("message", payload["errors"][0])


class QueryValidationTests(unittest.TestCase):
    def setUp(self):
        self.engine = ValidationEngine(ValidationOptions())

    def test_filter_count_cap(self):
        filters = [{"field": "status", "operator": "eq", "value": "active"} for _ in range(11)]
        result = self.engine.validate_filters(filters)
        self.assertEqual(result.codes_for("filters"), ["MAX_FILTERS"])
        self.assertTrue(self.engine.validate_filters(filters[:10]).is_valid)

    def test_between_needs_two_values(self):
        result = self.engine.validate_filters([{"field": "priority", "operator": "between", "value": [1]}])
        self.assertEqual(result.codes_for("filters[0].value"), ["INVALID_VALUE"])
        ok = self.engine.validate_filters([{"field": "priority", "operator": "between", "value": [1, 9]}])
        self.assertTrue(ok.is_valid)

    def test_array_operators_need_arrays(self):
        result = self.engine.validate_filters([{"field": "tags", "operator": "in", "value": "a"}])
        self.assertEqual(result.codes_for("filters[0].value"), ["INVALID_TYPE"])

    def test_exists_needs_no_value(self):
        self.assertTrue(self.engine.validate_filters([{"field": "description", "operator": "exists"}]).is_valid)
        result = self.engine.validate_filters([{"field": "title", "operator": "eq"}])
        self.assertEqual(result.codes_for("filters[0].value"), ["REQUIRED"])

    def test_unknown_field_and_operator(self):
        result = self.engine.validate_filters([{"field": "secret", "operator": "like", "value": "x"}])
        self.assertEqual(result.codes_for("filters[0].field"), ["INVALID_VALUE"])
        self.assertEqual(result.codes_for("filters[0].operator"), ["INVALID_VALUE"])

    def test_unhashable_operator_is_reported(self):
        result = self.engine.validate_filters([{"field": "title", "operator": ["eq"], "value": "x"}])
        self.assertEqual(result.codes_for("filters[0].operator"), ["INVALID_TYPE"])

    def test_non_array_filters(self):
        self.assertEqual(self.engine.validate_filters({"field": "title"}).codes_for("filters"), ["INVALID_TYPE"])
        self.assertTrue(self.engine.validate_filters(None).is_valid)

    def test_sort_rules(self):
        self.assertTrue(self.engine.validate_sort([{"field": "createdAt", "direction": "desc", "priority": 1}]).is_valid)
        result = self.engine.validate_sort(
            [{"field": "tags", "direction": "asc"}, {"field": "title", "direction": "up"}, {"field": "title"}]
        )
        self.assertEqual(result.codes_for("sort[0].field"), ["INVALID_VALUE"])
        self.assertEqual(result.codes_for("sort[1].direction"), ["INVALID_VALUE"])
        self.assertEqual(result.codes_for("sort[2].direction"), ["REQUIRED"])

        many = [{"field": "title", "direction": "asc"} for _ in range(6)]
        self.assertEqual(self.engine.validate_sort(many).codes_for("sort"), ["MAX_SORT_FIELDS"])

    def test_pagination_rules(self):
        self.assertTrue(self.engine.validate_pagination({"page": 1, "pageSize": 100}).is_valid)
        self.assertTrue(self.engine.validate_pagination(None).is_valid)
        result = self.engine.validate_pagination({"page": 0, "pageSize": 101})
        self.assertEqual(result.codes_for("page"), ["OUT_OF_RANGE"])
        self.assertEqual(result.codes_for("pageSize"), ["OUT_OF_RANGE"])
        self.assertEqual(self.engine.validate_pagination({"page": "2"}).codes_for("page"), ["INVALID_TYPE"])
        self.assertEqual(self.engine.validate_pagination({"page": 1.5}).codes_for("page"), ["INVALID_VALUE"])

    def test_custom_limits_are_honoured(self):
        engine = ValidationEngine(ValidationOptions(max_page_size=10, max_filters=1))
        self.assertEqual(engine.validate_pagination({"pageSize": 11}).codes_for("pageSize"), ["OUT_OF_RANGE"])
        filters = [{"field": "title", "operator": "exists"}] * 2
        self.assertEqual(engine.validate_filters(filters).codes_for("filters"), ["MAX_FILTERS"])


class IdAndBulkValidationTests(unittest.TestCase):
    def setUp(self):
        self.engine = ValidationEngine(ValidationOptions(max_bulk_size=3))

    def test_id_rules(self):
        self.assertTrue(self.engine.validate_id("abc").is_valid)
        self.assertEqual(self.engine.validate_id(None).codes_for("id"), ["REQUIRED"])
        self.assertEqual(self.engine.validate_id(" ").codes_for("id"), ["EMPTY_VALUE"])
        self.assertEqual(self.engine.validate_id("x" * 101).codes_for("id"), ["MAX_LENGTH"])
        self.assertEqual(self.engine.validate_id(12).codes_for("id"), ["INVALID_TYPE"])

    def test_bulk_create_prefixes_item_paths(self):
        result = self.engine.validate_bulk_create([{"title": "ok"}, {"title": ""}])
        self.assertEqual(result.codes_for("entities[1].title"), ["EMPTY_VALUE"])
        self.assertEqual(len(result.errors), 1)

    def test_bulk_size_checks(self):
        self.assertEqual(self.engine.validate_bulk_create([]).codes_for("entities"), ["EMPTY_ARRAY"])
        over = self.engine.validate_bulk_delete(["a", "b", "c", "d"])
        self.assertEqual(over.codes_for("ids"), ["MAX_BULK_SIZE"])
        self.assertEqual(self.engine.validate_bulk_update("x").codes_for("updates"), ["INVALID_TYPE"])

    def test_bulk_update_items(self):
        result = self.engine.validate_bulk_update(
            [{"id": "1", "attributes": {"priority": 2000}}, {"id": "", "attributes": {}}, {"id": "3"}, 7]
        )
        self.assertEqual(result.codes_for("updates[0].attributes.priority"), ["OUT_OF_RANGE"])
        self.assertEqual(result.codes_for("updates[1].id"), ["EMPTY_VALUE"])
        self.assertEqual(result.codes_for("updates[2].attributes"), ["REQUIRED"])
        self.assertEqual(result.codes_for("updates[3]"), ["INVALID_TYPE"])

    def test_bulk_delete_items(self):
        result = self.engine.validate_bulk_delete(["a", "", 3])
        self.assertEqual(result.codes_for("ids[1]"), ["INVALID_VALUE"])
        self.assertEqual(result.codes_for("ids[2]"), ["INVALID_VALUE"])


class DocumentAndSanitizeTests(unittest.TestCase):
    def setUp(self):
        self.engine = ValidationEngine(ValidationOptions())

    def test_document_keys_must_be_path_safe(self):
        self.assertTrue(self.engine.validate_document({"a": {"b": [{"c": 1}]}}).is_valid)
        result = self.engine.validate_document({"a": {"x.y": 1}, "list": [{"[0]": 2}]})
        self.assertEqual(result.codes_for("document.a"), ["INVALID_VALUE"])
        self.assertEqual(result.codes_for("document.list[0]"), ["INVALID_VALUE"])
        self.assertEqual(self.engine.validate_document([1]).codes_for("document"), ["INVALID_TYPE"])

    def test_sanitize_input(self):
        self.assertEqual(self.engine.sanitize_input("  he\0llo  "), "hello")
        self.assertEqual(self.engine.sanitize_input(None), "")
        self.assertEqual(self.engine.sanitize_input(12), "")
        # Not an HTML encoder.
        self.assertEqual(self.engine.sanitize_input("<b>x</b>"), "<b>x</b>")
