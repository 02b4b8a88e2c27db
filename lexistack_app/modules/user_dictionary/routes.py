from flask import jsonify, request
from flask_login import current_user, login_required
from marshmallow import ValidationError as SchemaValidationError

from lexistack_app.core.error_handlers import NotFoundError, ValidationError

from . import interface, user_dictionary_api_bp
from .schemas import (
    CollectionAddAllSchema,
    CollectionEnrollSchema,
    EntryRequestSchema,
    LegacySyncRequestSchema,
    PhraseRequestSchema,
    PhraseStatusRequestSchema,
    ProgressRequestSchema,
    SenseRequestSchema,
    StatusBatchRequestSchema,
    StatusRequestSchema,
)


def _load(schema_class, data=None):
    """Validate a request body (or query args) and return the loaded dict."""
    if data is None:
        data = request.get_json(silent=True) or {}
    try:
        return schema_class().load(data)
    except SchemaValidationError as e:
        raise ValidationError('Invalid request', errors=e.messages)


def _lang() -> str:
    return (request.args.get('lang') or 'en').strip() or 'en'


def _listing_params() -> dict:
    return {
        'q': request.args.get('q', ''),
        'status': request.args.get('status', 'all'),
        'offset': request.args.get('offset', 0),
        'limit': request.args.get('limit', 50),
    }


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------

@user_dictionary_api_bp.route('/today', methods=['GET'])
@login_required
def today():
    """Due words, new words and the hard word of the day."""
    from lexistack_app.modules.daily.interface import get_today_pack

    lang = _lang()
    interface.ensure_backfilled(current_user.username, lang)
    return jsonify(get_today_pack(current_user.username, lang))


@user_dictionary_api_bp.route('/summary', methods=['GET'])
@login_required
def summary():
    lang = _lang()
    interface.ensure_backfilled(current_user.username, lang)
    return jsonify(interface.get_my_words_summary(current_user.username, lang))


@user_dictionary_api_bp.route('/my-words', methods=['GET'])
@login_required
def my_words():
    lang = _lang()
    interface.ensure_backfilled(current_user.username, lang)
    return jsonify(interface.list_my_words(current_user.username, lang, **_listing_params()))


@user_dictionary_api_bp.route('/my-phrases', methods=['GET'])
@login_required
def my_phrases():
    return jsonify(interface.list_my_phrases(current_user.username, _lang(), **_listing_params()))


@user_dictionary_api_bp.route('/collections', methods=['GET'])
@login_required
def collections():
    return jsonify({'items': interface.list_collections(_lang(), current_user.username)})


@user_dictionary_api_bp.route('/collection', methods=['GET'])
@login_required
def collection():
    collection_id = request.args.get('id', type=int)
    if not collection_id:
        raise ValidationError('Query parameter "id" is required')
    lang = _lang()
    interface.ensure_backfilled(current_user.username, lang)
    out = interface.get_collection(current_user.username, lang, collection_id)
    if out is None:
        raise NotFoundError('Collection not found', resource='collection')
    return jsonify(out)


@user_dictionary_api_bp.route('/collection/progress', methods=['GET'])
@login_required
def collection_progress():
    key = (request.args.get('key') or '').strip()
    if not key:
        raise ValidationError('Query parameter "key" is required')
    out = interface.get_collection_progress(current_user.username, _lang(), key)
    if out is None:
        raise NotFoundError('Collection not found', resource='collection')
    return jsonify(out)


@user_dictionary_api_bp.route('/phrase-state', methods=['GET'])
@login_required
def phrase_state():
    data = _load(PhraseRequestSchema, request.args.to_dict())
    return jsonify(interface.get_phrase_state(current_user.username, data['itemType'], data['itemId']))


@user_dictionary_api_bp.route('/sense-state', methods=['GET'])
@login_required
def sense_state():
    data = _load(SenseRequestSchema, request.args.to_dict())
    return jsonify(interface.get_sense_state(current_user.username, data['senseId']))


# ----------------------------------------------------------------------
# Saved senses
# ----------------------------------------------------------------------

@user_dictionary_api_bp.route('/add', methods=['POST'])
@login_required
def add_entry():
    data = _load(EntryRequestSchema)
    interface.ensure_backfilled(current_user.username, data['lang'])
    out = interface.add_saved_by_entry_id(current_user.username, data['lang'], data['entryId'], 'manual')
    if out is None:
        raise NotFoundError('Word not found', resource='entry')
    return jsonify({'ok': True, **out})


@user_dictionary_api_bp.route('/add-sense', methods=['POST'])
@login_required
def add_sense():
    data = _load(SenseRequestSchema)
    out = interface.add_saved_sense(current_user.username, data['senseId'], 'manual')
    if out is None:
        raise NotFoundError('Sense not found', resource='sense')
    return jsonify({'ok': True, **out})


@user_dictionary_api_bp.route('/remove', methods=['POST'])
@login_required
def remove_entry():
    data = _load(EntryRequestSchema)
    interface.ensure_backfilled(current_user.username, data['lang'])
    return jsonify(interface.remove_saved_by_entry_id(current_user.username, data['lang'], data['entryId']))


@user_dictionary_api_bp.route('/remove-sense', methods=['POST'])
@login_required
def remove_sense():
    data = _load(SenseRequestSchema)
    return jsonify(interface.remove_saved_sense(current_user.username, data['senseId']))


@user_dictionary_api_bp.route('/status', methods=['POST'])
@login_required
def set_status():
    data = _load(StatusRequestSchema)
    out = interface.set_status(current_user.username, data['senseId'], data['status'])
    if out is None:
        raise NotFoundError('Saved word not found', resource='saved_sense')
    return jsonify({'ok': True, 'status': out['status']})


@user_dictionary_api_bp.route('/status/batch', methods=['POST'])
@login_required
def set_status_batch():
    data = _load(StatusBatchRequestSchema)
    return jsonify(interface.set_status_many(current_user.username, data['senseIds'], data['status']))


@user_dictionary_api_bp.route('/progress', methods=['POST'])
@login_required
def update_progress():
    """Apply one game answer to a track score."""
    data = _load(ProgressRequestSchema)
    out = interface.update_track_progress(current_user.username, data['senseId'], data['track'], data['correct'])
    if out is None:
        raise NotFoundError('Sense not found', resource='sense')
    return jsonify({'ok': True, **out})


# ----------------------------------------------------------------------
# Collections
# ----------------------------------------------------------------------

@user_dictionary_api_bp.route('/collection/add-all', methods=['POST'])
@login_required
def collection_add_all():
    data = _load(CollectionAddAllSchema)
    interface.ensure_backfilled(current_user.username, data['lang'])
    out = interface.add_collection_items(current_user.username, data['lang'], data['collectionId'])
    if out is None:
        raise NotFoundError('Collection not found', resource='collection')
    return jsonify(out)


@user_dictionary_api_bp.route('/collection/enroll', methods=['POST'])
@login_required
def collection_enroll():
    data = _load(CollectionEnrollSchema)
    interface.ensure_backfilled(current_user.username, data['lang'])
    out = interface.enroll_collection(current_user.username, data['lang'], data['collectionKey'])
    if not out.get('ok'):
        raise NotFoundError('Collection not found', resource='collection')
    return jsonify(out)


# ----------------------------------------------------------------------
# Phrases
# ----------------------------------------------------------------------

@user_dictionary_api_bp.route('/phrase/add', methods=['POST'])
@login_required
def phrase_add():
    data = _load(PhraseRequestSchema)
    out = interface.add_phrase_progress(current_user.username, data['itemType'], data['itemId'], 'manual')
    if not out.get('ok'):
        raise ValidationError('Unknown phrase item')
    return jsonify({'ok': True})


@user_dictionary_api_bp.route('/phrase/remove', methods=['POST'])
@login_required
def phrase_remove():
    data = _load(PhraseRequestSchema)
    return jsonify(interface.remove_phrase_progress(current_user.username, data['itemType'], data['itemId']))


@user_dictionary_api_bp.route('/phrase/status', methods=['POST'])
@login_required
def phrase_status():
    data = _load(PhraseStatusRequestSchema)
    out = interface.set_phrase_status(current_user.username, data['itemType'], data['itemId'], data['status'])
    if out is None:
        raise NotFoundError('Phrase not found in progress', resource='phrase')
    return jsonify({'ok': True, 'status': out['status']})


# ----------------------------------------------------------------------
# Legacy profile fields
# ----------------------------------------------------------------------

@user_dictionary_api_bp.route('/legacy-sync', methods=['POST'])
@login_required
def legacy_sync():
    """Mirror a legacy profile patch (``personalDictionary``/``wordProgress``) into the tracker."""
    data = _load(LegacySyncRequestSchema)
    lang = data.pop('lang')
    interface.ensure_backfilled(current_user.username, lang)
    return jsonify(interface.sync_from_legacy_patch(current_user.username, lang, data))
