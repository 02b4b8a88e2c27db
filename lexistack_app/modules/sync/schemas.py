from marshmallow import EXCLUDE, Schema, fields, validate


class SyncFormSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    form = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    form_type = fields.Str(data_key='formType', load_default='')
    is_irregular = fields.Bool(data_key='isIrregular', load_default=False)


class SyncEntrySchema(Schema):
    """One flat dictionary entry. Only keys present in the input are loaded."""

    class Meta:
        unknown = EXCLUDE

    headword = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    gloss = fields.Str(validate=validate.Length(max=255))
    pos = fields.Str(validate=validate.Length(max=32))
    level = fields.Str(validate=validate.Length(max=10))
    frequency_rank = fields.Int(data_key='frequencyRank', strict=False, validate=validate.Range(min=1))
    register = fields.Str(validate=validate.Length(max=20))
    accent = fields.Str(validate=validate.Length(max=10))
    ipa_uk = fields.Str(data_key='ipaUk', validate=validate.Length(max=100))
    ipa_us = fields.Str(data_key='ipaUs', validate=validate.Length(max=100))
    example = fields.Str()
    example_translation = fields.Str(data_key='exampleTranslation')
    forms = fields.List(fields.Nested(SyncFormSchema))


class SyncBatchSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    requestId = fields.Str(required=True, validate=validate.Length(min=1, max=191))
    source = fields.Str(load_default='unknown')
    payloadVersion = fields.Str(load_default='1')
    lang = fields.Str(load_default='en', validate=validate.Length(min=1, max=10))
    actorUsername = fields.Str(load_default=None, allow_none=True)
    entries = fields.List(fields.Dict(), required=True, validate=validate.Length(min=1))
