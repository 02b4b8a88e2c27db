"""Public API of the personal state tracker, used by other modules and the routes."""

from typing import Any, Dict, Iterable, List, Optional

from .services.collection_service import CollectionService
from .services.lookup_service import LookupService
from .services.migration_service import MigrationService
from .services.phrase_service import PhraseService
from .services.tracker_service import TrackerService


def get_language_id(lang: str) -> Optional[int]:
    return LookupService.get_language_id(lang)


# --- Saved senses ---

def add_saved_sense(username: str, sense_id: int, source: str = 'manual') -> Optional[Dict]:
    return TrackerService.add_saved_sense(username, sense_id, source)


def add_saved_by_entry_id(username: str, lang: str, entry_id: int, source: str = 'manual') -> Optional[Dict]:
    return TrackerService.add_saved_by_entry_id(username, lang, entry_id, source)


def remove_saved_sense(username: str, sense_id: int) -> Dict:
    return TrackerService.remove_saved_sense(username, sense_id)


def remove_saved_by_entry_id(username: str, lang: str, entry_id: int) -> Dict:
    return TrackerService.remove_saved_by_entry_id(username, lang, entry_id)


def add_many_saved_senses(username: str, sense_ids: Iterable, source: str = 'collection') -> Dict:
    return TrackerService.add_many_saved_senses(username, sense_ids, source)


def set_status(username: str, sense_id: int, status: Any) -> Optional[Dict]:
    return TrackerService.set_status(username, sense_id, status)


def set_status_many(username: str, sense_ids: Iterable, status: Any) -> Dict:
    return TrackerService.set_status_many(username, sense_ids, status)


def get_sense_state(username: str, sense_id: int) -> Dict:
    return TrackerService.get_sense_state(username, sense_id)


# --- Progress ---

def update_track_progress(username: str, sense_id: int, track: str, correct: bool) -> Optional[Dict]:
    return TrackerService.update_track_progress(username, sense_id, track, correct)


def get_sense_progress(username: str, sense_id: int) -> Dict:
    return TrackerService.get_sense_progress(username, sense_id)


def is_learned(username: str, sense_id: int) -> bool:
    return TrackerService.is_learned(username, sense_id)


# --- Listings ---

def list_my_words(username: str, lang: str, **params) -> Dict:
    return TrackerService.list_my_words(username, lang, **params)


def get_my_words_summary(username: str, lang: str) -> Dict[str, int]:
    return TrackerService.get_my_words_summary(username, lang)


# --- Phrases ---

def add_phrase_progress(username: str, item_type: str, item_id: int, source: str = 'manual') -> Dict:
    return PhraseService.add_phrase_progress(username, item_type, item_id, source)


def remove_phrase_progress(username: str, item_type: str, item_id: int) -> Dict:
    return PhraseService.remove_phrase_progress(username, item_type, item_id)


def set_phrase_status(username: str, item_type: str, item_id: int, status: Any) -> Optional[Dict]:
    return PhraseService.set_phrase_status(username, item_type, item_id, status)


def get_phrase_state(username: str, item_type: str, item_id: int) -> Dict:
    return PhraseService.get_phrase_state(username, item_type, item_id)


def list_my_phrases(username: str, lang: str, **params) -> Dict:
    return PhraseService.list_my_phrases(username, lang, **params)


# --- Collections ---

def list_collections(lang: str, username: Optional[str] = None) -> List[Dict]:
    return CollectionService.list_collections(lang, username)


def get_collection(username: str, lang: str, collection_id: int) -> Optional[Dict]:
    return CollectionService.get_collection(username, lang, collection_id)


def add_collection_items(username: str, lang: str, collection_id: int) -> Optional[Dict]:
    return CollectionService.add_all(username, lang, collection_id)


def enroll_collection(username: str, lang: str, collection_key: str) -> Dict:
    return CollectionService.enroll_collection(username, lang, collection_key)


def get_collection_progress(username: str, lang: str, collection_key: str) -> Optional[Dict]:
    return CollectionService.get_collection_progress(username, lang, collection_key)


# --- Legacy ---

def ensure_backfilled(username: str, lang: str) -> Dict:
    return MigrationService.ensure_backfilled(username, lang)


def sync_from_legacy_patch(username: str, lang: str, patch: Dict) -> Dict:
    return MigrationService.sync_from_legacy_patch(username, lang, patch)
