from marshmallow import EXCLUDE, Schema, fields, validate

from .logics.progress_logic import PHRASE_ITEM_TYPES, TRACKS


class _Body(Schema):
    class Meta:
        unknown = EXCLUDE


class EntryRequestSchema(_Body):
    lang = fields.Str(load_default='en')
    entryId = fields.Int(required=True, strict=False, validate=validate.Range(min=1))


class SenseRequestSchema(_Body):
    senseId = fields.Int(required=True, strict=False, validate=validate.Range(min=1))


class StatusRequestSchema(SenseRequestSchema):
    # Unknown values are normalised to "queue" by the tracker, not rejected here.
    status = fields.Str(required=True, validate=validate.Length(min=1))


class StatusBatchRequestSchema(_Body):
    senseIds = fields.List(fields.Raw(), required=True, validate=validate.Length(min=1))
    status = fields.Str(required=True, validate=validate.Length(min=1))


class ProgressRequestSchema(SenseRequestSchema):
    track = fields.Str(required=True, validate=validate.OneOf(TRACKS))
    correct = fields.Bool(required=True)


class CollectionAddAllSchema(_Body):
    lang = fields.Str(load_default='en')
    collectionId = fields.Int(required=True, strict=False, validate=validate.Range(min=1))


class CollectionEnrollSchema(_Body):
    lang = fields.Str(load_default='en')
    collectionKey = fields.Str(required=True, validate=validate.Length(min=1))


class PhraseRequestSchema(_Body):
    itemType = fields.Str(required=True, validate=validate.OneOf(PHRASE_ITEM_TYPES))
    itemId = fields.Int(required=True, strict=False, validate=validate.Range(min=1))


class PhraseStatusRequestSchema(PhraseRequestSchema):
    status = fields.Str(required=True, validate=validate.Length(min=1))


class LegacySyncRequestSchema(_Body):
    lang = fields.Str(load_default='en')
    personalDictionary = fields.List(fields.Raw())
    wordProgress = fields.Dict()
