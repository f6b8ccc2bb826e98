"""Tests for the LLM payload helpers and the offline parser."""

from datetime import date

import pytest

from expense_taxonomy.models import DEFAULT_HIERARCHY_ROW, HierarchyRow
from expense_taxonomy.parsing import (
    PayloadDecodeError,
    decode_expense_payload,
    extract_amount,
    local_parse_expense,
    normalize_text,
    pick_hierarchy,
    pick_member,
    render_hierarchy_hint,
    strip_code_fences,
)
from expense_taxonomy.taxonomy import TaxonomyError


class TestStripCodeFences:
    """Tests for Markdown fence removal."""

    def test_json_fence(self):
        raw = '```json\n{"expenses": []}\n```'
        assert strip_code_fences(raw) == '{"expenses": []}'

    def test_plain_text_untouched(self):
        assert strip_code_fences('  {"amount": 1} ') == '{"amount": 1}'

    def test_none(self):
        assert strip_code_fences(None) == ""


class TestDecodeExpensePayload:
    """Tests for decoding raw completions."""

    def test_expenses_list(self):
        """Test the documented {"expenses": [...]} shape."""
        raw = '{"expenses": [{"amount": 12, "category": "餐饮"}, {"amount": 3}]}'
        assert decode_expense_payload(raw) == [
            {"amount": 12, "category": "餐饮"},
            {"amount": 3},
        ]

    def test_non_mapping_items_dropped(self):
        """Test junk items inside the list are skipped."""
        raw = '{"expenses": [{"amount": 1}, "junk", 5, null]}'
        assert decode_expense_payload(raw) == [{"amount": 1}]

    def test_fenced_payload(self):
        """Test fenced output is accepted."""
        raw = '```json\n{"expenses": [{"amount": 8}]}\n```'
        assert decode_expense_payload(raw) == [{"amount": 8}]

    def test_single_object_with_amount(self):
        """Test a bare expense object is wrapped in a list."""
        raw = '{"amount": 25.5, "category": "交通"}'
        assert decode_expense_payload(raw) == [{"amount": 25.5, "category": "交通"}]

    def test_object_without_amount(self):
        """Test an object with no expenses and no amount is empty."""
        assert decode_expense_payload('{"amount": 0}') == []
        assert decode_expense_payload('{"note": "nothing"}') == []

    def test_non_object_json(self):
        """Test arrays and scalars decode to nothing."""
        assert decode_expense_payload("[1, 2]") == []
        assert decode_expense_payload("42") == []

    def test_empty_completion(self):
        """Test an empty completion is treated as an empty object."""
        assert decode_expense_payload("") == []
        assert decode_expense_payload(None) == []

    def test_json_embedded_in_prose(self):
        """Test a JSON object surrounded by chatter is still found."""
        raw = 'Sure! Here it is: {"expenses": [{"amount": 9}]} Hope that helps.'
        assert decode_expense_payload(raw) == [{"amount": 9}]

    def test_invalid_json_raises(self):
        """Test non-JSON output raises with a short preview."""
        raw = "抱歉，我无法解析这段文字。" * 20
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_expense_payload(raw)
        assert exc_info.value.preview == raw[:100]
        assert isinstance(exc_info.value, TaxonomyError)


class TestRenderHierarchyHint:
    """Tests for the vocabulary hint."""

    def test_joins_triples(self, finalized_rows):
        hint = render_hierarchy_hint(finalized_rows)
        assert hint.split("；")[0] == "日常开支>其他>其他"
        assert "工作>差旅>机票" in hint
        assert not hint.endswith("...")

    def test_clips_with_ellipsis(self, finalized_rows):
        hint = render_hierarchy_hint(finalized_rows, max_items=2)
        assert hint == "日常开支>其他>其他；日常开支>购物>食品；..."

    def test_normalizes_and_dedupes(self):
        rows = [
            {"project": " A ", "category": "B", "sub_category": "C"},
            {"project": "A", "category": "B", "sub_category": "C"},
            {"project": "A", "category": "B"},
        ]
        assert render_hierarchy_hint(rows) == "A>B>C；A>B>其他"

    def test_default_limit_from_settings(self):
        rows = [{"project": "P", "category": "C", "sub_category": f"S{i}"} for i in range(130)]
        parts = render_hierarchy_hint(rows).split("；")
        assert len(parts) == 121
        assert parts[-1] == "..."

    def test_limit_env_override(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_TAXONOMY_HINT_MAX_ITEMS", "3")
        rows = [{"project": "P", "category": "C", "sub_category": f"S{i}"} for i in range(5)]
        assert render_hierarchy_hint(rows).count(">") == 6

    def test_empty(self):
        assert render_hierarchy_hint([]) == ""


class TestLocalParserHelpers:
    """Tests for the offline parser building blocks."""

    def test_normalize_text(self):
        assert normalize_text("测试数据：  午饭   20元 ") == "午饭 20元"
        assert normalize_text("测试数据 打车") == "打车"
        assert normalize_text(None) == ""

    def test_extract_amount_with_currency(self):
        assert extract_amount("今天在超市买水果花了35.5元") == pytest.approx(35.5)

    def test_extract_amount_prefers_last_currency_amount(self):
        assert extract_amount("买了2个苹果共15块") == 15.0
        assert extract_amount("早餐5元午餐20元") == 20.0

    def test_extract_amount_plain_number(self):
        assert extract_amount("打车 23") == 23.0

    def test_extract_amount_missing(self):
        assert extract_amount("打车") is None

    def test_pick_hierarchy_by_keyword(self):
        hierarchy = [
            {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
            {"project": "日常开支", "category": "购物", "sub_category": "水果"},
        ]
        picked = pick_hierarchy("在超市买水果花了20元", hierarchy)
        assert picked == HierarchyRow(project="日常开支", category="购物", sub_category="水果")

    def test_pick_hierarchy_prefers_specific_label(self):
        hierarchy = [
            {"project": "日常开支", "category": "餐饮", "sub_category": "晚餐"},
            {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
        ]
        picked = pick_hierarchy("餐饮 午餐 30", hierarchy)
        assert picked.sub_category == "午餐"

    def test_pick_hierarchy_no_match_uses_default_labelled_row(self):
        hierarchy = [
            {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
            {"project": "家庭", "category": "其他", "sub_category": "其他"},
        ]
        picked = pick_hierarchy("随便买点东西", hierarchy)
        assert picked == HierarchyRow(project="家庭", category="其他", sub_category="其他")

    def test_pick_hierarchy_no_match_without_default_row(self):
        hierarchy = [
            {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
            {"project": "工作", "category": "差旅", "sub_category": "机票"},
        ]
        picked = pick_hierarchy("随便", hierarchy)
        assert picked.category == "餐饮"

    def test_pick_hierarchy_empty(self):
        assert pick_hierarchy("午餐", []) == DEFAULT_HIERARCHY_ROW
        assert pick_hierarchy("午餐", None) == DEFAULT_HIERARCHY_ROW
        assert pick_hierarchy("午餐", [{"project": "", "category": "餐饮"}]) == DEFAULT_HIERARCHY_ROW

    def test_pick_hierarchy_blank_sub_category(self):
        picked = pick_hierarchy("交通", [{"project": "日常开支", "category": "交通"}])
        assert picked.sub_category == "其他"

    def test_pick_member(self, members):
        assert pick_member("妈妈买菜花了20元", members) == "妈妈"
        assert pick_member("买菜花了20元", members) is None
        assert pick_member("买菜", None) is None


class TestLocalParseExpense:
    """Tests for the offline parser entry point."""

    def test_common_sentence(self):
        """Test a typical sentence yields amount and date."""
        result = local_parse_expense("测试数据：今天在超市买水果花了35.5元")
        assert result.provider == "local"
        assert len(result.expenses) == 1
        expense = result.expenses[0]
        assert expense.amount == pytest.approx(35.5)
        assert expense.expense_date.isoformat()[:4].isdigit()
        assert expense.description == "今天在超市买水果花了35.5元"

    def test_picks_triple_from_hierarchy(self):
        """Test the hierarchy keyword match is used."""
        hierarchy = [
            {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
            {"project": "日常开支", "category": "购物", "sub_category": "水果"},
        ]
        expense = local_parse_expense("在超市买水果花了20元", hierarchy).expenses[0]
        assert expense.category == "购物"
        assert expense.sub_category == "水果"

    def test_missing_amount(self):
        """Test a missing amount is reported rather than guessed."""
        expense = local_parse_expense("买了点东西").expenses[0]
        assert expense.amount == 0.0
        assert expense.missing_info == ["amount"]

    def test_empty_text_uses_fallback_description(self):
        """Test empty input still produces a record."""
        expense = local_parse_expense("").expenses[0]
        assert expense.description == "消费"
        assert expense.missing_info == ["amount"]
        assert expense.triple == DEFAULT_HIERARCHY_ROW

    def test_injected_date_and_member(self, members):
        """Test the reference date and member are applied."""
        expense = local_parse_expense(
            "张三打车花了18元", members=members, today=date(2024, 5, 1)
        ).expenses[0]
        assert expense.expense_date == date(2024, 5, 1)
        assert expense.member_name == "张三"
