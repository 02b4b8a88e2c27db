# File: lexistack_app/modules/user_dictionary/services/collection_service.py
"""Curated collections: listing, enrollment and completion tracking."""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, update

from lexistack_app.core.db_session import insert_ignore, utc_now
from lexistack_app.core.extensions import db
from lexistack_app.models import (
    DictionaryCollection,
    DictionaryCollectionItem,
    DictionaryLemma,
    DictionarySense,
)

from ..logics.progress_logic import STATUS_KNOWN, clamp_int, parse_id_list
from ..models import UserCollectionState, UserSavedSense
from .lookup_service import LookupService
from .tracker_service import TrackerService, clean_username, iso

logger = logging.getLogger(__name__)


class CollectionService:

    @staticmethod
    def _item_query(collection_id: int, language_id: int):
        return (
            db.session.query(DictionaryCollectionItem.sense_id)
            .join(DictionarySense, DictionarySense.id == DictionaryCollectionItem.sense_id)
            .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .filter(
                DictionaryCollectionItem.collection_id == collection_id,
                DictionaryLemma.language_id == language_id,
            )
        )

    @staticmethod
    def _totals(username: Optional[str], collection: DictionaryCollection) -> Dict[str, int]:
        """total / saved / known counts of a collection for one learner."""
        query = (
            db.session.query(
                func.count(DictionaryCollectionItem.id),
                func.count(UserSavedSense.id),
                func.sum(case((UserSavedSense.status == STATUS_KNOWN, 1), else_=0)),
            )
            .select_from(DictionaryCollectionItem)
            .join(DictionarySense, DictionarySense.id == DictionaryCollectionItem.sense_id)
            .join(DictionaryLemma, DictionaryLemma.id == DictionarySense.lemma_id)
            .outerjoin(
                UserSavedSense,
                db.and_(
                    UserSavedSense.sense_id == DictionaryCollectionItem.sense_id,
                    UserSavedSense.username == (username or ''),
                ),
            )
            .filter(
                DictionaryCollectionItem.collection_id == collection.id,
                DictionaryLemma.language_id == collection.language_id,
            )
        )
        total, saved, known = query.one()
        return {'total': int(total or 0), 'saved': int(saved or 0), 'known': int(known or 0)}

    @staticmethod
    def _public_collection(lang: str, *, collection_id=None, collection_key=None) -> Optional[DictionaryCollection]:
        language_id = LookupService.get_language_id(lang)
        if not language_id:
            return None
        query = DictionaryCollection.query.filter_by(language_id=language_id, is_public=True)
        if collection_id is not None:
            cid = clamp_int(collection_id, 0, 2 ** 31 - 1, 0)
            if cid <= 0:
                return None
            return query.filter_by(id=cid).first()
        key = str(collection_key or '').strip()
        if not key:
            return None
        return query.filter_by(collection_key=key).first()

    @staticmethod
    def list_collections(lang: str, username: Optional[str] = None) -> List[Dict]:
        """Public collections with item totals; ``saved`` is ``None`` for anonymous callers."""
        language_id = LookupService.get_language_id(lang)
        if not language_id:
            return []
        user = clean_username(username) or None

        collections = (
            DictionaryCollection.query
            .filter_by(language_id=language_id, is_public=True)
            .order_by(DictionaryCollection.sort_order.asc(), DictionaryCollection.id.asc())
            .all()
        )
        items = []
        for collection in collections:
            totals = CollectionService._totals(user, collection)
            payload = collection.to_dict()
            payload['total'] = totals['total']
            payload['saved'] = totals['saved'] if user else None
            items.append(payload)
        return items

    @staticmethod
    def get_collection(username: str, lang: str, collection_id) -> Optional[Dict]:
        user = clean_username(username)
        collection = CollectionService._public_collection(lang, collection_id=collection_id)
        if not user or collection is None:
            return None

        query = (
            db.session.query(UserSavedSense, *LookupService.sense_card_columns())
            .select_from(DictionaryCollectionItem)
            .join(DictionarySense, DictionarySense.id == DictionaryCollectionItem.sense_id)
        )
        query = LookupService.join_sense_card(query)
        rows = (
            query.outerjoin(
                UserSavedSense,
                db.and_(
                    UserSavedSense.sense_id == DictionaryCollectionItem.sense_id,
                    UserSavedSense.username == user,
                ),
            )
            .filter(
                DictionaryCollectionItem.collection_id == collection.id,
                DictionaryLemma.language_id == collection.language_id,
            )
            .order_by(DictionaryCollectionItem.sort_order.asc(), DictionaryCollectionItem.id.asc())
            .limit(500)
            .all()
        )

        items = []
        for row in rows:
            saved = row[0]
            item = LookupService.card_to_dict(row)
            item['isSaved'] = saved is not None
            item['status'] = saved.status if saved else None
            items.append(item)
        return {'collection': collection.to_dict(), 'items': items}

    @staticmethod
    def add_all(username: str, lang: str, collection_id) -> Optional[Dict]:
        """Save every item of a collection without enrolling in it."""
        collection = CollectionService._public_collection(lang, collection_id=collection_id)
        if collection is None:
            return None
        sense_ids = [row.sense_id for row in CollectionService._item_query(collection.id, collection.language_id)]
        return TrackerService.add_many_saved_senses(username, sense_ids, 'collection')

    @staticmethod
    def enroll_collection(username: str, lang: str, collection_key: str) -> Dict:
        """Start a collection: stamp ``started_at`` once and queue all its items.

        Enrolling in an already-started collection changes nothing.
        """
        user = clean_username(username)
        if not user:
            return {'ok': False}
        collection = CollectionService._public_collection(lang, collection_key=collection_key)
        if collection is None:
            return {'ok': False, 'reason': 'no-collection'}

        state = UserCollectionState.query.filter_by(username=user, collection_id=collection.id).first()
        if state is not None and state.started_at is not None:
            return {'ok': True, 'enrolled': False, 'collectionId': collection.id}

        now = utc_now()
        insert_ignore(
            db.session,
            UserCollectionState,
            {'username': user, 'collection_id': collection.id, 'started_at': now},
            ['username', 'collection_id'],
        )
        db.session.execute(
            update(UserCollectionState)
            .where(
                UserCollectionState.username == user,
                UserCollectionState.collection_id == collection.id,
                UserCollectionState.started_at.is_(None),
            )
            .values(started_at=now)
        )

        sense_ids = [
            row.sense_id
            for row in CollectionService._item_query(collection.id, collection.language_id)
            .order_by(DictionaryCollectionItem.sort_order.asc(), DictionaryCollectionItem.id.asc())
        ]
        added = TrackerService.add_many_saved_senses(user, sense_ids, 'collection', commit=False)
        CollectionService._stamp_if_complete(user, collection)
        db.session.commit()
        logger.info("Enrolled %s in collection %s (%d items)", user, collection.collection_key, len(sense_ids))
        return {
            'ok': True,
            'enrolled': True,
            'collectionId': collection.id,
            'added': added['inserted'],
        }

    @staticmethod
    def get_collection_progress(username: str, lang: str, collection_key: str) -> Optional[Dict]:
        user = clean_username(username)
        collection = CollectionService._public_collection(lang, collection_key=collection_key)
        if not user or collection is None:
            return None

        totals = CollectionService._totals(user, collection)
        state = UserCollectionState.query.filter_by(username=user, collection_id=collection.id).first()
        return {
            'collection': collection.to_dict(),
            'progress': {
                **totals,
                'startedAt': iso(state.started_at) if state else None,
                'completedAt': iso(state.completed_at) if state else None,
            },
        }

    @staticmethod
    def _stamp_if_complete(username: str, collection: DictionaryCollection) -> bool:
        totals = CollectionService._totals(username, collection)
        if totals['total'] == 0 or totals['known'] < totals['total']:
            return False
        result = db.session.execute(
            update(UserCollectionState)
            .where(
                UserCollectionState.username == username,
                UserCollectionState.collection_id == collection.id,
                UserCollectionState.started_at.isnot(None),
                UserCollectionState.completed_at.is_(None),
            )
            .values(completed_at=utc_now())
        )
        if result.rowcount:
            logger.info("%s completed collection %s", username, collection.collection_key)
        return bool(result.rowcount)

    @staticmethod
    def refresh_completion(username: str, sense_ids: Iterable) -> None:
        """Stamp ``completed_at`` on started collections that these senses may have finished.

        Runs inside the caller's transaction; the caller commits.
        """
        ids = parse_id_list(list(sense_ids or []))
        if not ids:
            return
        collections = (
            DictionaryCollection.query
            .join(UserCollectionState, UserCollectionState.collection_id == DictionaryCollection.id)
            .join(DictionaryCollectionItem, DictionaryCollectionItem.collection_id == DictionaryCollection.id)
            .filter(
                UserCollectionState.username == username,
                UserCollectionState.started_at.isnot(None),
                UserCollectionState.completed_at.is_(None),
                DictionaryCollectionItem.sense_id.in_(ids),
            )
            .distinct()
            .all()
        )
        for collection in collections:
            CollectionService._stamp_if_complete(username, collection)
