"""Tests for translating query model values to MongoDB documents."""

import logging

import pytest

from snack_query import (
    AggregateKey,
    AggregateKeys,
    AggregateOperator,
    DataType,
    Filter,
    Filters,
    GroupKey,
    GroupKeys,
    Operator,
    Order,
    Projection,
    Projections,
    Range,
    SortKey,
    SortKeys,
    TranslationError,
    Update,
    UpdateOperator,
    Updates,
)
from snack_query.query.translator import QueryTranslator


def test_equal_and_in_array_are_plain_equality(translator):
    filters = Filters([
        Filter(key="user_id", value="U1", type=DataType.STRING, operator=Operator.EQUAL),
        Filter(key="address_ids", value="A1", type=DataType.STRING_ARRAY, operator=Operator.IN_ARRAY),
    ])
    
    assert translator.translate_filters(filters) == {"user_id": "U1", "address_ids": "A1"}


@pytest.mark.parametrize(
    "operator,native",
    [
        (Operator.IN, "$in"),
        (Operator.GREATER_THAN_EQUAL, "$gte"),
        (Operator.LESS_THAN_EQUAL, "$lte"),
        (Operator.GREATER_THAN, "$gt"),
        (Operator.LESS_THAN, "$lt"),
        (Operator.NOT_IN, "$nin"),
        (Operator.ALL, "$all"),
    ],
)
def test_comparison_operators(translator, operator, native):
    filters = Filters([Filter(key="status", value=[1, 2], operator=operator)])
    
    assert translator.translate_filters(filters) == {"status": {native: [1, 2]}}


def test_between_becomes_inclusive_range(translator):
    filters = Filters([Filter.between("amount", 1, 5, type=DataType.INT)])
    
    assert translator.translate_filters(filters) == {"amount": {"$gte": 1, "$lte": 5}}


def test_between_without_range_fails(translator):
    filters = Filters([Filter(key="amount", value=[1, 5], operator=Operator.BETWEEN)])
    
    with pytest.raises(TranslationError) as exc_info:
        translator.translate_filters(filters)
    assert exc_info.value.key == "amount"


def test_or_wraps_each_sub_constraint_as_an_alternative(translator):
    sub_filters = Filters([
        Filter(key="channel_id", value="C1"),
        Filter(key="team_domain", value=["a", "b"], operator=Operator.IN),
    ])
    filters = Filters([
        Filter(key="user_id", value="U1"),
        Filter.any_of("$or", sub_filters),
    ])
    
    query = translator.translate_filters(filters)
    
    assert query == {
        "user_id": "U1",
        "$or": [{"channel_id": "C1"}, {"team_domain": {"$in": ["a", "b"]}}],
    }
    assert query["$or"] == [
        {field: constraint}
        for field, constraint in translator.translate_filters(sub_filters).items()
    ]


def test_or_nests_recursively(translator):
    inner = Filters([Filter(key="a", value=1), Filter(key="b", value=2)])
    outer = Filters([Filter.any_of("$or", inner), Filter(key="c", value=3)])
    
    query = translator.translate_filters(Filters([Filter.any_of("$or", outer)]))
    
    assert query == {"$or": [{"$or": [{"a": 1}, {"b": 2}]}, {"c": 3}]}


def test_or_without_nested_filters_fails(translator):
    filters = Filters([Filter(key="$or", value="nope", operator=Operator.OR)])
    
    with pytest.raises(TranslationError):
        translator.translate_filters(filters)


def test_or_with_foreign_entries_fails(translator):
    filters = Filters([Filter(key="$or", value=[{"key": "a"}], operator=Operator.OR)])
    
    with pytest.raises(TranslationError):
        translator.translate_filters(filters)


def test_duplicate_keys_last_write_wins(translator):
    filters = Filters([
        Filter(key="k", value=1, operator=Operator.EQUAL),
        Filter(key="k", value=2, operator=Operator.EQUAL),
    ])
    
    assert translator.translate_filters(filters) == {"k": 2}


def test_output_keys_do_not_depend_on_input_order(translator):
    entries = [
        Filter(key="a", value=1),
        Filter(key="b", value=[2], operator=Operator.IN),
        Filter.between("c", 0, 9),
    ]
    
    forward = translator.translate_filters(Filters(entries))
    backward = translator.translate_filters(Filters(reversed(entries)))
    
    assert forward == backward


def test_unknown_operator_is_skipped_when_lenient(translator, caplog):
    filters = Filters([
        Filter(key="a", value=1),
        Filter(key="b", value=2, operator=42),
    ])
    
    with caplog.at_level(logging.WARNING):
        assert translator.translate_filters(filters) == {"a": 1}
    assert "skipping 'b'" in caplog.text


def test_unknown_operator_fails_when_strict(strict_translator):
    filters = Filters([Filter(key="b", value=2, operator=42)])
    
    with pytest.raises(TranslationError):
        strict_translator.translate_filters(filters)


def test_duplicate_key_fails_when_strict(strict_translator):
    filters = Filters([Filter(key="k", value=1), Filter(key="k", value=2)])
    
    with pytest.raises(TranslationError):
        strict_translator.translate_filters(filters)


def test_declared_type_is_checked_when_strict(strict_translator, translator):
    filters = Filters([Filter(key="user_id", value=17, type=DataType.STRING)])
    
    assert translator.translate_filters(filters) == {"user_id": 17}
    with pytest.raises(TranslationError):
        strict_translator.translate_filters(filters)


def test_strict_type_check_accepts_lists_for_membership(strict_translator):
    filters = Filters([
        Filter(key="user_id", value=["U1", "U2"], type=DataType.STRING, operator=Operator.IN),
        Filter.between("amount", 1, 2.5, type=DataType.FLOAT64),
    ])
    
    assert strict_translator.translate_filters(filters) == {
        "user_id": {"$in": ["U1", "U2"]},
        "amount": {"$gte": 1, "$lte": 2.5},
    }


def test_empty_filters_match_everything(translator):
    assert translator.translate_filters(Filters()) == {}
    assert translator.translate_filters(None) == {}


def test_updates_are_grouped_by_operator(translator):
    updates = Updates([
        Update(key="channel_id", value="C1", update_operator=UpdateOperator.SET),
        Update(key="team_domain", value="acme", update_operator=UpdateOperator.SET),
        Update(key="legacy", value="", update_operator=UpdateOperator.UNSET),
        Update(key="orders", value=1, update_operator=UpdateOperator.INC),
    ])
    
    assert translator.translate_updates(updates) == {
        "$set": {"channel_id": "C1", "team_domain": "acme"},
        "$unset": {"legacy": ""},
        "$inc": {"orders": 1},
    }


def test_push_entries_for_one_field_merge_in_order(translator):
    updates = Updates([
        Update(key="address_ids", value="A1", update_operator=UpdateOperator.PUSH),
        Update(key="schedule", value=[{"from": "09:00", "to": "10:00"}], update_operator=UpdateOperator.PUSH),
        Update(key="address_ids", value=["A2", "A3"], update_operator=UpdateOperator.PUSH),
    ])
    
    assert translator.translate_updates(updates) == {
        "$push": {
            "address_ids": {"$each": ["A1", "A2", "A3"]},
            "schedule": {"$each": [{"from": "09:00", "to": "10:00"}]},
        }
    }


def test_raw_update_operator_is_passed_through_when_lenient(translator, strict_translator):
    updates = Updates([Update(key="score", value=3, update_operator="$max")])
    
    assert translator.translate_updates(updates) == {"$max": {"score": 3}}
    with pytest.raises(TranslationError):
        strict_translator.translate_updates(updates)


def test_raw_update_operator_matching_known_value_is_normalised(translator):
    updates = Updates([Update(key="address_ids", value="A1", update_operator="$push")])
    
    assert translator.translate_updates(updates) == {"$push": {"address_ids": {"$each": ["A1"]}}}


def test_upsert_filters_support_a_restricted_operator_set(translator):
    filters = Filters([
        Filter(key="user_id", value="U1"),
        Filter(key="team_domain", value="acme", operator=Operator.IN),
        Filter(key="created", value=10, operator=Operator.GREATER_THAN_EQUAL),
        Filter(key="expires", value=20, operator=Operator.LESS_THAN),
        Filter(key="ignored", value=[1], operator=Operator.NOT_IN),
    ])
    
    assert translator.translate_upsert_filters(filters) == {
        "user_id": "U1",
        "team_domain": {"$in": ["acme"]},
        "created": {"$gte": 10},
        "expires": {"$lt": 20},
    }


def test_upsert_updates_fold_into_set(translator):
    updates = Updates([
        Update(key="channel_id", value="C1"),
        Update(key="address_ids", value=["A1"], update_operator=UpdateOperator.PUSH),
    ])
    
    assert translator.translate_upsert_updates(updates) == {
        "$set": {"channel_id": "C1", "address_ids": ["A1"]}
    }


def test_replace_filters_keep_only_equal_and_in(translator, strict_translator):
    filters = Filters([
        Filter(key="user_id", value="U1"),
        Filter(key="team_domain", value=["acme"], operator=Operator.IN),
        Filter(key="created", value=10, operator=Operator.GREATER_THAN),
    ])
    
    assert translator.translate_replace_filters(filters) == {
        "user_id": "U1",
        "team_domain": {"$in": ["acme"]},
    }
    with pytest.raises(TranslationError):
        strict_translator.translate_replace_filters(filters)


def test_sort_keys_keep_their_order(translator):
    sort_keys = SortKeys([SortKey(key="created_at", order=Order.DESC), SortKey(key="name")])
    
    assert translator.translate_sort(sort_keys) == [("created_at", -1), ("name", 1)]
    assert translator.translate_sort(None) is None


def test_projection(translator):
    projections = Projections([Projection(key="user_id"), Projection(key="_id", value=0)])
    
    assert translator.translate_projection(projections) == {"user_id": 1, "_id": 0}
    assert translator.translate_projection(None) is None


def test_aggregate_pipeline_is_match_then_group(translator):
    pipeline = translator.build_aggregate_pipeline(
        Filters([Filter(key="status", value=[1, 2], operator=Operator.IN)]),
        GroupKeys([GroupKey(key="restaurant", value="$restaurant")]),
        AggregateKeys([
            AggregateKey(key="total", operator=AggregateOperator.SUM, value="$amount"),
            AggregateKey(key="cheapest", operator=AggregateOperator.MIN, value="$amount"),
            AggregateKey(key="priciest", operator=AggregateOperator.MAX, value="$amount"),
            AggregateKey(key="skipped", operator=9, value="$amount"),
        ]),
    )
    
    assert pipeline == [
        {"$match": {"status": {"$in": [1, 2]}}},
        {
            "$group": {
                "_id": {"restaurant": "$restaurant"},
                "total": {"$sum": "$amount"},
                "cheapest": {"$min": "$amount"},
                "priciest": {"$max": "$amount"},
            }
        },
    ]


def test_coordinator_turns_low_level_faults_into_translation_errors():
    class BrokenTranslator:
        def translate_filters(self, filters):
            raise AttributeError("'str' object has no attribute 'left'")
    
    with pytest.raises(TranslationError) as exc_info:
        QueryTranslator(BrokenTranslator()).filters(Filters())
    assert isinstance(exc_info.value.__cause__, AttributeError)


def test_coordinator_rejects_foreign_entries(translator):
    with pytest.raises(TranslationError):
        QueryTranslator(translator).filters([{"key": "user_id", "value": "U1"}])
