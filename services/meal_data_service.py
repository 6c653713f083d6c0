"""
Meal data service - the single access point to a meal store.

All store reads and writes run on one background work context: a
single-worker executor that owns the SQLAlchemy session, so operations are
serialized in submission order. Failures after the store is open never reach
the caller; they are logged and reported as None, an empty list, or a skipped
mutation.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, settings as default_settings
from app.exceptions import StoreOpenError
from domain.enums import TagRanking
from domain.mappers import MealMapper
from domain.models import (
    Meal,
    Tag,
    build_database_url,
    create_store_engine,
    init_database,
    make_session_factory,
)
from domain.schemas import EntityRef, MealModel, TagModel
from repositories import MealRepository, TagRepository
from services.base_service import BaseService

Work = Callable[[Session], Any]


class MealDataService(BaseService):
    """
    CRUD and query operations over one meal store container.

    Raises:
        StoreOpenError: From the constructor, if the store cannot be opened
    """

    def __init__(self, container: str, settings: Optional[Settings] = None):
        super().__init__("takeeateasy.data_service")
        self.settings = settings or default_settings
        self.container = container

        if not container:
            raise StoreOpenError(
                "Store container name is required", code="store_name_missing"
            )

        engine = None
        try:
            url = build_database_url(
                container, self.settings.store_dir, self.settings.database_url
            )
            engine = create_store_engine(url, echo=self.settings.db_echo)
            init_database(engine)
        except (SQLAlchemyError, OSError, ImportError) as e:
            if engine is not None:
                engine.dispose()
            self.log_error("Failed to open store", container=container, error=e)
            raise StoreOpenError(
                f"Could not open store '{container}': {e}",
                details={"container": container},
                code="store_open_failed",
            ) from e

        self.engine = engine
        self._context: Session = make_session_factory(engine)()
        self._queue = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"takeeateasy-{container}"
        )
        self._closed = False
        self.log_info("Store opened", container=container)

    # ------------------------------------------------------------------
    # Background work context
    # ------------------------------------------------------------------

    def _perform(self, work: Work) -> Optional[Future]:
        """Schedule work on the background context without waiting"""
        if self._closed:
            self.log_warning("Store is closed, dropping work", container=self.container)
            return None
        try:
            return self._queue.submit(work, self._context)
        except RuntimeError:
            # close() shut the queue down after the check above
            self.log_warning("Store is closed, dropping work", container=self.container)
            return None

    def _perform_and_wait(self, work: Work, default: Any = None) -> Any:
        future = self._perform(work)
        if future is None:
            return default
        return future.result()

    def _guarded(self, operation: str, work: Work, default: Any = None) -> Work:
        """Wrap work so store failures roll back, get logged, and yield ``default``"""

        def run(session: Session):
            try:
                return work(session)
            except (SQLAlchemyError, ValueError) as e:
                session.rollback()
                self.log_error(
                    "Store operation failed",
                    operation=operation,
                    container=self.container,
                    error=e,
                )
                return default

        return run

    def _save(self, session: Session) -> bool:
        """Commit pending changes; runs on the work context"""
        if not (session.new or session.dirty or session.deleted):
            return False
        try:
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            self.log_error(
                "Failed to save store changes", container=self.container, error=e
            )
            return False

    def save_context(self) -> bool:
        """
        Flush pending changes if there are any.

        Returns:
            True if changes were committed, False if there was nothing to
            save or the commit failed (the failure is logged)
        """
        return self._perform_and_wait(self._save, default=False)

    def close(self) -> None:
        """Drain queued work, close the session and dispose the engine"""
        if self._closed:
            return
        self._closed = True
        self._queue.submit(self._context.close)
        self._queue.shutdown(wait=True)
        self.engine.dispose()
        self.log_info("Store closed", container=self.container)

    def __enter__(self) -> "MealDataService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Resolution helpers (work context only)
    # ------------------------------------------------------------------

    @staticmethod
    def _get_meal(session: Session, ref: Optional[EntityRef]) -> Optional[Meal]:
        if ref is None or ref.entity != MealMapper.MEAL_ENTITY:
            return None
        return MealRepository(session).get_by_id(ref.key)

    @staticmethod
    def _get_tag(session: Session, ref: Optional[EntityRef]) -> Optional[Tag]:
        if ref is None or ref.entity != MealMapper.TAG_ENTITY:
            return None
        return TagRepository(session).get_by_id(ref.key)

    def _replacement_tags(self, session: Session, model: MealModel) -> List[Tag]:
        """
        Tag set a changed meal should end up with.

        Persisted tag references are relinked, references that do not resolve
        become new tags. Without ``tags`` the model's ``tag_strings`` are used,
        and with neither the meal ends up with no tags.
        """
        if model.tags is None:
            return [Tag(tag=text) for text in model.tag_strings or []]

        tags: List[Tag] = []
        for tag_model in model.tags:
            existing = self._get_tag(session, tag_model.id)
            if existing is None:
                tags.append(Tag(tag=tag_model.tag))
            elif existing not in tags:
                tags.append(existing)
        return tags

    # ------------------------------------------------------------------
    # Meals
    # ------------------------------------------------------------------

    def fetch_recent_meal(self) -> Optional[MealModel]:
        """Most recently dated meal, or None if there is none or the query fails"""

        def work(session: Session) -> Optional[MealModel]:
            meals = MealRepository(session).list_by_date(descending=True, limit=1)
            return MealMapper.to_model(meals[0]) if meals else None

        return self._perform_and_wait(self._guarded("fetch_recent_meal", work))

    def fetch_all_meals(self) -> Optional[List[MealModel]]:
        """All meals, newest first; None if the query fails"""

        def work(session: Session) -> List[MealModel]:
            return [MealMapper.to_model(m) for m in MealRepository(session).list_by_date()]

        return self._perform_and_wait(self._guarded("fetch_all_meals", work))

    def meal(self, ref: EntityRef) -> Optional[MealModel]:
        """Resolve one meal; None if the reference is not a stored meal"""

        def work(session: Session) -> Optional[MealModel]:
            found = self._get_meal(session, ref)
            return MealMapper.to_model(found) if found is not None else None

        return self._perform_and_wait(self._guarded("meal", work))

    def add_new_meal(self, model: MealModel) -> Optional[EntityRef]:
        """
        Store a new meal with one tag per entry in ``model.tag_strings``.

        Returns:
            Reference to the new meal, or None if it could not be saved
        """
        snapshot = model.model_copy(deep=True)

        def work(session: Session) -> Optional[EntityRef]:
            meal = MealRepository(session).create_meal(
                name=snapshot.name,
                date=MealMapper.date_from_model(snapshot.date),
                picture=snapshot.picture,
                mood=MealMapper.mood_from_model(snapshot.mood),
                mood_after=MealMapper.mood_from_model(snapshot.mood_after),
                tag_strings=snapshot.tag_strings or [],
            )
            if not self._save(session):
                return None
            self.log_info("Meal added", meal_id=meal.meal_id, tags=len(meal.tags))
            return MealMapper.meal_ref(meal)

        return self._perform_and_wait(self._guarded("add_new_meal", work))

    def change_meal(self, model: MealModel) -> Optional[Future]:
        """
        Schedule an update of a stored meal from ``model``.

        Scalar fields are overwritten and the tag set is replaced. The update
        runs asynchronously on the work context; later calls on this service
        observe it because the context is serialized.

        Returns:
            Future resolving to True once the change is saved (False if the
            meal no longer exists or saving failed), or None when the model
            has no identity and nothing was scheduled
        """
        if model.id is None:
            self.log_debug("change_meal skipped, meal has no identity")
            return None

        snapshot = model.model_copy(deep=True)

        def work(session: Session) -> bool:
            meal = self._get_meal(session, snapshot.id)
            if meal is None:
                self.log_warning("change_meal skipped, meal not found", ref=snapshot.id)
                return False

            MealRepository(session).apply_update(
                meal,
                name=snapshot.name,
                date=MealMapper.date_from_model(snapshot.date),
                picture=snapshot.picture,
                mood=MealMapper.mood_from_model(snapshot.mood),
                mood_after=MealMapper.mood_from_model(snapshot.mood_after),
                tags=self._replacement_tags(session, snapshot),
            )
            return self._save(session)

        return self._perform(self._guarded("change_meal", work, default=False))

    def remove_meal(self, model: MealModel) -> bool:
        """Delete a stored meal and its tags; False if nothing was removed"""
        if model.id is None:
            return False
        ref = model.id

        def work(session: Session) -> bool:
            if ref.entity != MealMapper.MEAL_ENTITY or not MealRepository(session).delete(ref.key):
                self.log_warning("remove_meal skipped, meal not found", ref=ref)
                return False
            return self._save(session)

        return self._perform_and_wait(self._guarded("remove_meal", work, default=False), default=False)

    def fetch_meal_statistics(self) -> Optional[List[MealModel]]:
        """Meals with both moods recorded, oldest first; None if the query fails"""

        def work(session: Session) -> List[MealModel]:
            return [MealMapper.to_model(m) for m in MealRepository(session).list_with_moods()]

        return self._perform_and_wait(self._guarded("fetch_meal_statistics", work))

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def fetch_tags(self, meal: MealModel) -> List[TagModel]:
        """A meal's tags sorted by text; empty if the meal cannot be resolved"""
        if meal.id is None:
            return []
        ref = meal.id

        def work(session: Session) -> List[TagModel]:
            found = self._get_meal(session, ref)
            if found is None:
                return []
            tags = TagRepository(session).list_for_meal(found.meal_id)
            return [MealMapper.tag_to_model(t) for t in tags]

        return self._perform_and_wait(self._guarded("fetch_tags", work, default=[]), default=[])

    def fetch_popular_tags(
        self,
        amount: Optional[int] = None,
        ranking: Optional[Union[TagRanking, str]] = None,
    ) -> Optional[List[TagModel]]:
        """
        Top ``amount`` tags across all meals.

        Args:
            amount: Number of tags to return, defaults to
                ``settings.popular_tags_default_amount``
            ranking: ``TagRanking.LENGTH`` ranks every stored tag by text
                length, longest first; ``TagRanking.FREQUENCY`` returns one
                tag per distinct text, most used first. Defaults to
                ``settings.popular_tags_ranking``.

        Returns:
            Tag models, or None if the tags could not be fetched or
            ``ranking`` is not a known ranking
        """
        if amount is None:
            amount = self.settings.popular_tags_default_amount
        amount = max(amount, 0)

        def work(session: Session) -> List[TagModel]:
            key = TagRanking(ranking) if ranking else self.settings.popular_tags_ranking
            repo = TagRepository(session)
            if key == TagRanking.FREQUENCY:
                return [TagModel(tag=row["tag"]) for row in repo.count_by_text(limit=amount)]

            tags = [MealMapper.tag_to_model(t) for t in repo.get_all()]
            tags.sort(key=lambda t: len(t.tag), reverse=True)
            return tags[:amount]

        return self._perform_and_wait(self._guarded("fetch_popular_tags", work))

    def add_tag(self, tag_model: TagModel, meal: MealModel) -> Optional[TagModel]:
        """
        Attach a new tag with ``tag_model.tag`` to a stored meal.

        Returns:
            The stored tag, or None if the meal cannot be resolved or saving failed
        """
        if meal.id is None:
            return None
        ref, text = meal.id, tag_model.tag

        def work(session: Session) -> Optional[TagModel]:
            found = self._get_meal(session, ref)
            if found is None:
                self.log_warning("add_tag skipped, meal not found", ref=ref)
                return None
            tag = TagRepository(session).add_to_meal(found, text)
            if not self._save(session):
                return None
            return MealMapper.tag_to_model(tag)

        return self._perform_and_wait(self._guarded("add_tag", work))

    def remove_tag(self, tag_model: TagModel, meal_model: MealModel) -> bool:
        """
        Unlink a tag from a meal, which deletes it.

        No-op unless both references resolve and the tag belongs to that meal.
        """
        if tag_model.id is None or meal_model.id is None:
            return False
        tag_ref, meal_ref = tag_model.id, meal_model.id

        def work(session: Session) -> bool:
            tag = self._get_tag(session, tag_ref)
            meal = self._get_meal(session, meal_ref)
            if tag is None or meal is None:
                return False
            if not TagRepository(session).unlink(meal, tag):
                self.log_warning(
                    "remove_tag skipped, tag belongs to another meal",
                    tag=tag_ref,
                    meal=meal_ref,
                )
                return False
            return self._save(session)

        return self._perform_and_wait(self._guarded("remove_tag", work, default=False), default=False)
