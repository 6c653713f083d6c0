"""
Tests for MealDataService with a real in-memory store.

This test suite validates every public operation of the data service:
- Meal CRUD: add_new_meal, meal, change_meal, remove_meal
- Meal queries: fetch_recent_meal, fetch_all_meals, fetch_meal_statistics
- Tag operations: fetch_tags, fetch_popular_tags, add_tag, remove_tag
- Work context behaviour: serialized ordering, save_context, close
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from domain.enums import Mood, TagRanking
from domain.models import Meal, Tag
from domain.schemas import EntityRef, MealModel, TagModel
from services import MealDataService
from test_fixtures import BASE_DATE, make_meal_model, make_test_settings


def _tag_count(service: MealDataService) -> int:
    return service._perform_and_wait(lambda session: session.query(Tag).count())


# =============================================================================
# MEAL OPERATIONS
# =============================================================================


def test_add_new_meal_creates_one_tag_per_string(data_service: MealDataService):
    """
    Verifies:
    - add_new_meal() returns a Meal reference
    - The stored meal has exactly one tag per tag string
    """
    ref = data_service.add_new_meal(
        make_meal_model("dinner", tag_strings=["fish", "omega-3", "dinner"])
    )

    assert ref is not None
    assert ref.entity == "Meal"
    stored = data_service.meal(ref)
    assert stored.name == "Grilled salmon"
    assert sorted(stored.tag_strings) == ["dinner", "fish", "omega-3"]
    assert len(stored.tags) == 3
    assert all(t.id is not None for t in stored.tags)


def test_add_new_meal_copies_scalars(data_service: MealDataService):
    model = make_meal_model("lunch", picture=b"\xff\xd8photo", mood=Mood.BAD, mood_after=Mood.GREAT)

    stored = data_service.meal(data_service.add_new_meal(model))

    assert stored.date == model.date
    assert stored.picture == b"\xff\xd8photo"
    assert stored.mood is Mood.BAD
    assert stored.mood_after is Mood.GREAT


def test_add_new_meal_without_moods_or_tags(data_service: MealDataService):
    model = MealModel(name="Water", date=BASE_DATE)

    stored = data_service.meal(data_service.add_new_meal(model))

    assert stored.mood is None
    assert stored.mood_after is None
    assert stored.tags == []
    assert stored.picture is None


def test_meal_returns_none_for_unknown_or_tag_reference(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("snack"))
    tag_ref = data_service.meal(ref).tags[0].id

    assert data_service.meal(EntityRef(entity="Meal", key=ref.key + 50)) is None
    assert data_service.meal(tag_ref) is None


def test_fetch_recent_meal_returns_latest(data_service: MealDataService):
    data_service.add_new_meal(make_meal_model("breakfast", date=datetime(2024, 3, 1, 8)))
    data_service.add_new_meal(make_meal_model("dinner", date=datetime(2024, 3, 2, 19)))
    data_service.add_new_meal(make_meal_model("lunch", date=datetime(2024, 3, 2, 12)))

    recent = data_service.fetch_recent_meal()

    assert recent.name == "Grilled salmon"


def test_fetch_recent_meal_empty_store(data_service: MealDataService):
    assert data_service.fetch_recent_meal() is None


def test_fetch_all_meals_sorted_descending(data_service: MealDataService):
    for days_ago in (3, 0, 5, 1):
        data_service.add_new_meal(make_meal_model(days_ago=days_ago))

    meals = data_service.fetch_all_meals()

    dates = [m.date for m in meals]
    assert len(meals) == 4
    assert all(earlier > later for earlier, later in zip(dates, dates[1:]))


def test_fetch_all_meals_empty_store(data_service: MealDataService):
    assert data_service.fetch_all_meals() == []


def test_meal_dates_with_mixed_offsets_are_ordered_by_instant(data_service: MealDataService):
    """
    Verifies:
    - 10:00+05:00 (05:00 UTC) sorts before 06:00 UTC
    - Stored dates read back as naive UTC
    """
    early = datetime(2024, 3, 1, 10, tzinfo=timezone(timedelta(hours=5)))
    late = datetime(2024, 3, 1, 6, tzinfo=timezone.utc)
    data_service.add_new_meal(make_meal_model(name="early", date=early))
    data_service.add_new_meal(make_meal_model(name="late", date=late))

    recent = data_service.fetch_recent_meal()

    assert recent.name == "late"
    assert recent.date == datetime(2024, 3, 1, 6)
    assert [m.name for m in data_service.fetch_all_meals()] == ["late", "early"]
    assert [m.name for m in data_service.fetch_meal_statistics()] == ["early", "late"]


def test_fetch_meal_statistics_excludes_missing_moods(data_service: MealDataService):
    """
    Verifies:
    - Meals without mood or mood_after are excluded
    - Results are ordered oldest first
    """
    data_service.add_new_meal(make_meal_model("dinner", days_ago=0))
    data_service.add_new_meal(make_meal_model("breakfast", days_ago=4))
    data_service.add_new_meal(make_meal_model("lunch", days_ago=2, mood=None))
    data_service.add_new_meal(make_meal_model("snack", days_ago=1, mood_after=None))

    stats = data_service.fetch_meal_statistics()

    assert [m.name for m in stats] == ["Oatmeal with berries", "Grilled salmon"]
    assert all(m.mood is not None and m.mood_after is not None for m in stats)


def test_change_meal_updates_fields_and_tags(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("lunch"))
    stored = data_service.meal(ref)
    kept = next(t for t in stored.tags if t.tag == "soup")
    dropped = next(t for t in stored.tags if t.tag == "vegetarian")

    changed = stored.model_copy(
        update={
            "name": "Chicken soup",
            "date": BASE_DATE + timedelta(hours=4),
            "mood": Mood.GOOD,
            "tags": [kept, TagModel(tag="chicken")],
        }
    )
    future = data_service.change_meal(changed)

    assert future is not None
    assert future.result(timeout=5) is True
    updated = data_service.meal(ref)
    assert updated.name == "Chicken soup"
    assert updated.date == BASE_DATE + timedelta(hours=4)
    assert updated.mood is Mood.GOOD
    assert sorted(updated.tag_strings) == ["chicken", "soup"]
    assert kept.id in [t.id for t in updated.tags]
    assert dropped.id not in [t.id for t in updated.tags]
    assert _tag_count(data_service) == 2


def test_change_meal_is_visible_to_next_call(data_service: MealDataService):
    """Later calls run after a scheduled change because the context is serialized"""
    ref = data_service.add_new_meal(make_meal_model("snack"))
    stored = data_service.meal(ref)

    data_service.change_meal(stored.model_copy(update={"name": "Green apple"}))

    assert data_service.fetch_recent_meal().name == "Green apple"


def test_change_meal_missing_moods_use_unset(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("dinner"))
    stored = data_service.meal(ref)

    data_service.change_meal(stored.model_copy(update={"mood": None, "mood_after": None})).result(timeout=5)

    updated = data_service.meal(ref)
    assert updated.mood is None
    assert updated.mood_after is None
    assert data_service.fetch_meal_statistics() == []


def test_change_meal_without_tag_list_clears_tags(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("breakfast"))
    stored = data_service.meal(ref)

    data_service.change_meal(
        stored.model_copy(update={"tags": None, "tag_strings": None})
    ).result(timeout=5)

    assert data_service.meal(ref).tags == []
    assert _tag_count(data_service) == 0


def test_change_meal_without_identity_is_noop(data_service: MealDataService):
    """
    Verifies:
    - Nothing is scheduled for a model without identity
    - No flush happens and stored data is unchanged
    """
    ref = data_service.add_new_meal(make_meal_model("lunch"))

    with patch.object(data_service, "_save", wraps=data_service._save) as save:
        result = data_service.change_meal(make_meal_model("lunch", name="Renamed"))
        data_service.fetch_all_meals()

    assert result is None
    save.assert_not_called()
    assert data_service.meal(ref).name == "Tomato soup"


def test_change_meal_converts_aware_date_to_utc(data_service: MealDataService):
    stored = data_service.meal(data_service.add_new_meal(make_meal_model()))
    new_date = datetime(2024, 3, 5, 1, 30, tzinfo=timezone(timedelta(hours=-4)))

    data_service.change_meal(stored.model_copy(update={"date": new_date})).result(timeout=5)

    assert data_service.meal(stored.id).date == datetime(2024, 3, 5, 5, 30)


def test_change_meal_unknown_identity(data_service: MealDataService):
    model = make_meal_model("lunch").model_copy(update={"id": EntityRef(entity="Meal", key=999)})

    assert data_service.change_meal(model).result(timeout=5) is False
    assert data_service.fetch_all_meals() == []


def test_remove_meal_cascades_tags(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("dinner"))
    other = data_service.add_new_meal(make_meal_model("snack"))
    stored = data_service.meal(ref)
    tag_refs = [t.id for t in stored.tags]

    assert data_service.remove_meal(stored) is True

    assert data_service.meal(ref) is None
    assert data_service.fetch_tags(stored) == []
    assert _tag_count(data_service) == 1
    popular_ids = [t.id for t in data_service.fetch_popular_tags(10)]
    assert not set(tag_refs) & set(popular_ids)
    assert data_service.meal(other) is not None


def test_remove_meal_without_identity_is_noop(data_service: MealDataService):
    data_service.add_new_meal(make_meal_model("dinner"))

    assert data_service.remove_meal(make_meal_model("dinner")) is False
    assert len(data_service.fetch_all_meals()) == 1


# =============================================================================
# TAG OPERATIONS
# =============================================================================


def test_fetch_tags_sorted_alphabetically(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model(tag_strings=["soup", "apple"]))

    tags = data_service.fetch_tags(data_service.meal(ref))

    assert [t.tag for t in tags] == ["apple", "soup"]


def test_fetch_tags_unresolvable_meal(data_service: MealDataService):
    assert data_service.fetch_tags(make_meal_model()) == []
    ghost = make_meal_model().model_copy(update={"id": EntityRef(entity="Meal", key=404)})
    assert data_service.fetch_tags(ghost) == []


def test_fetch_popular_tags_by_length(data_service: MealDataService):
    """
    Verifies:
    - Default ranking orders all tags by text length, longest first
    - Result is truncated to amount
    """
    data_service.add_new_meal(make_meal_model(tag_strings=["tea", "vegetarian", "soup"]))
    data_service.add_new_meal(make_meal_model(days_ago=1, tag_strings=["soup", "breakfast"]))

    tags = data_service.fetch_popular_tags(3)

    assert [t.tag for t in tags] == ["vegetarian", "breakfast", "soup"]
    assert all(t.id is not None for t in tags)


def test_fetch_popular_tags_by_frequency(data_service: MealDataService):
    data_service.add_new_meal(make_meal_model(tag_strings=["tea", "vegetarian", "soup"]))
    data_service.add_new_meal(make_meal_model(days_ago=1, tag_strings=["soup", "tea"]))
    data_service.add_new_meal(make_meal_model(days_ago=2, tag_strings=["soup"]))

    tags = data_service.fetch_popular_tags(2, ranking=TagRanking.FREQUENCY)

    assert [t.tag for t in tags] == ["soup", "tea"]
    assert all(t.id is None for t in tags)


def test_fetch_popular_tags_uses_configured_defaults():
    settings = make_test_settings(popular_tags_ranking="frequency", popular_tags_default_amount=1)
    with MealDataService("TakeEatEasy", settings=settings) as service:
        service.add_new_meal(make_meal_model(tag_strings=["soup", "vegetarian"]))
        service.add_new_meal(make_meal_model(days_ago=1, tag_strings=["soup"]))

        assert [t.tag for t in service.fetch_popular_tags()] == ["soup"]


def test_fetch_popular_tags_non_positive_amount(data_service: MealDataService):
    data_service.add_new_meal(make_meal_model())

    assert data_service.fetch_popular_tags(0) == []
    assert data_service.fetch_popular_tags(-2) == []


def test_add_tag_links_to_meal(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("snack"))
    stored = data_service.meal(ref)

    tag = data_service.add_tag(TagModel(tag="crunchy"), stored)

    assert tag is not None
    assert tag.id.entity == "Tag"
    assert [t.tag for t in data_service.fetch_tags(stored)] == ["crunchy", "fruit"]


def test_add_tag_unresolvable_meal_is_noop(data_service: MealDataService):
    assert data_service.add_tag(TagModel(tag="crunchy"), make_meal_model()) is None
    ghost = make_meal_model().model_copy(update={"id": EntityRef(entity="Meal", key=3)})
    assert data_service.add_tag(TagModel(tag="crunchy"), ghost) is None
    assert _tag_count(data_service) == 0


def test_remove_tag_deletes_owned_tag(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model(tag_strings=["soup", "apple"]))
    stored = data_service.meal(ref)
    soup = next(t for t in stored.tags if t.tag == "soup")

    assert data_service.remove_tag(soup, stored) is True

    assert [t.tag for t in data_service.fetch_tags(stored)] == ["apple"]
    assert _tag_count(data_service) == 1


def test_remove_tag_from_other_meal_is_noop(data_service: MealDataService):
    first = data_service.meal(data_service.add_new_meal(make_meal_model("lunch")))
    second = data_service.meal(data_service.add_new_meal(make_meal_model("dinner")))
    foreign = second.tags[0]

    assert data_service.remove_tag(foreign, first) is False

    assert sorted(t.tag for t in data_service.fetch_tags(first)) == ["soup", "vegetarian"]
    assert len(data_service.fetch_tags(second)) == 3


def test_remove_tag_without_identity_is_noop(data_service: MealDataService):
    stored = data_service.meal(data_service.add_new_meal(make_meal_model("lunch")))

    assert data_service.remove_tag(TagModel(tag="soup"), stored) is False
    assert len(data_service.fetch_tags(stored)) == 2


# =============================================================================
# WORK CONTEXT
# =============================================================================


def test_save_context_without_changes(data_service: MealDataService):
    assert data_service.save_context() is False


def test_save_context_commits_pending_changes(data_service: MealDataService):
    ref = data_service.add_new_meal(make_meal_model("snack"))

    def rename(session):
        session.get(Meal, ref.key).name = "Pear"

    data_service._perform_and_wait(rename)

    assert data_service.save_context() is True
    assert data_service.meal(ref).name == "Pear"


def test_operations_after_close_return_defaults(store_settings):
    service = MealDataService("TakeEatEasy", settings=store_settings)
    ref = service.add_new_meal(make_meal_model())
    service.close()
    service.close()

    assert service.fetch_all_meals() is None
    assert service.fetch_tags(MealModel(id=ref, name="x", date=BASE_DATE)) == []
    assert service.remove_meal(MealModel(id=ref, name="x", date=BASE_DATE)) is False
    assert service.change_meal(MealModel(id=ref, name="x", date=BASE_DATE)) is None


def test_work_submitted_while_closing_is_dropped(store_settings):
    """
    Verifies:
    - Work reaching a queue that close() already shut down is dropped
    - Callers get the operation's default instead of RuntimeError
    """
    service = MealDataService("TakeEatEasy", settings=store_settings)
    ref = service.add_new_meal(make_meal_model())
    service.close()

    # close() finished between the closed check and the submit
    service._closed = False
    try:
        assert service.fetch_all_meals() is None
        assert service.remove_meal(MealModel(id=ref, name="x", date=BASE_DATE)) is False
        assert service.change_meal(MealModel(id=ref, name="x", date=BASE_DATE)) is None
    finally:
        service._closed = True
