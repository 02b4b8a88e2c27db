"""Item store: vocabulary content owned by the external content pipeline.

The flat ``dictionary_entries`` table is what the pipeline writes; the
normalised lemma/sense/form tables are rebuilt from it by the sync worker and
are what the learner-facing engine reads.
"""

from __future__ import annotations

from sqlalchemy.sql import func

from ..core.extensions import db


class Language(db.Model):
    __tablename__ = 'languages'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(10), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    # "<max entry id>_<entry count>", cheap change detector for clients
    version = db.Column(db.String(32), nullable=True)
    content_version = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<Language {self.code}>'


class DictionaryEntry(db.Model):
    """Flat, pipeline-facing representation of one headword."""

    __tablename__ = 'dictionary_entries'

    id = db.Column(db.Integer, primary_key=True)
    language_id = db.Column(db.Integer, db.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False)
    headword = db.Column(db.String(255), nullable=False)
    gloss = db.Column(db.String(255), nullable=False, default='')
    pos = db.Column(db.String(32), nullable=False, default='')
    level = db.Column(db.String(10), nullable=False, default='A0')
    frequency_rank = db.Column(db.Integer, nullable=False, default=15000)
    register = db.Column(db.String(20), nullable=False, default='neutral')
    accent = db.Column(db.String(10), nullable=False, default='both')
    ipa_uk = db.Column(db.String(100), nullable=False, default='')
    ipa_us = db.Column(db.String(100), nullable=False, default='')
    example = db.Column(db.Text, nullable=False, default='')
    example_translation = db.Column(db.Text, nullable=False, default='')
    # [{"form": "went", "form_type": "past", "is_irregular": true}]
    forms = db.Column(db.JSON, nullable=True)
    updated_by = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(db.DateTime, server_default=func.now())

    __table_args__ = (
        db.UniqueConstraint('language_id', 'headword', name='uq_dictionary_entries_lang_headword'),
        db.Index('idx_dictionary_entries_frequency_rank', 'language_id', 'frequency_rank'),
    )


class DictionaryLemma(db.Model):
    __tablename__ = 'dictionary_lemmas'

    id = db.Column(db.Integer, primary_key=True)
    language_id = db.Column(db.Integer, db.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False)
    lemma_key = db.Column(db.String(255), nullable=False)
    lemma = db.Column(db.String(255), nullable=False)
    pos = db.Column(db.String(32), nullable=False, default='')
    frequency_rank = db.Column(db.Integer, nullable=False, default=15000)
    ipa_uk = db.Column(db.String(100), nullable=False, default='')
    ipa_us = db.Column(db.String(100), nullable=False, default='')
    updated_at = db.Column(db.DateTime, server_default=func.now())

    senses = db.relationship('DictionarySense', backref='lemma', lazy=True, cascade='all, delete-orphan')
    forms = db.relationship('DictionaryForm', backref='lemma', lazy=True, cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('language_id', 'lemma_key', name='uq_dictionary_lemmas_lang_key'),
    )


class DictionarySense(db.Model):
    __tablename__ = 'dictionary_senses'

    id = db.Column(db.Integer, primary_key=True)
    lemma_id = db.Column(db.Integer, db.ForeignKey('dictionary_lemmas.id', ondelete='CASCADE'), nullable=False)
    sense_no = db.Column(db.Integer, nullable=False, default=1)
    level = db.Column(db.String(10), nullable=False, default='A0')
    register = db.Column(db.String(20), nullable=False, default='neutral')
    gloss = db.Column(db.String(255), nullable=False, default='')
    updated_at = db.Column(db.DateTime, server_default=func.now())

    __table_args__ = (
        db.UniqueConstraint('lemma_id', 'sense_no', name='uq_dictionary_senses_lemma_no'),
    )


class DictionaryExample(db.Model):
    __tablename__ = 'dictionary_examples'

    id = db.Column(db.Integer, primary_key=True)
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    text = db.Column(db.Text, nullable=False)
    translation = db.Column(db.Text, nullable=False, default='')
    is_main = db.Column(db.Boolean, nullable=False, default=False)


class DictionaryForm(db.Model):
    __tablename__ = 'dictionary_forms'

    id = db.Column(db.Integer, primary_key=True)
    lemma_id = db.Column(db.Integer, db.ForeignKey('dictionary_lemmas.id', ondelete='CASCADE'), nullable=False)
    form = db.Column(db.String(255), nullable=False)
    form_type = db.Column(db.String(32), nullable=False, default='')
    is_irregular = db.Column(db.Boolean, nullable=False, default=False)


class DictionaryCollocation(db.Model):
    __tablename__ = 'dictionary_collocations'

    id = db.Column(db.Integer, primary_key=True)
    lemma_id = db.Column(db.Integer, db.ForeignKey('dictionary_lemmas.id', ondelete='CASCADE'), nullable=False)
    phrase = db.Column(db.String(255), nullable=False)
    gloss = db.Column(db.String(255), nullable=False, default='')


class DictionaryUsagePattern(db.Model):
    __tablename__ = 'dictionary_usage_patterns'

    id = db.Column(db.Integer, primary_key=True)
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    tag = db.Column(db.String(64), nullable=False, default='')
    text = db.Column(db.Text, nullable=False)
    translation = db.Column(db.Text, nullable=False, default='')


class DictionaryFormCard(db.Model):
    __tablename__ = 'dictionary_form_cards'

    id = db.Column(db.Integer, primary_key=True)
    lemma_id = db.Column(db.Integer, db.ForeignKey('dictionary_lemmas.id', ondelete='CASCADE'), nullable=False)
    form_id = db.Column(db.Integer, db.ForeignKey('dictionary_forms.id', ondelete='CASCADE'), nullable=True)
    prompt = db.Column(db.String(255), nullable=False, default='')


class DictionaryEntryLink(db.Model):
    """Maps a flat entry id (legacy clients, pipeline) to its lemma and sense."""

    __tablename__ = 'dictionary_entry_links'

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(
        db.Integer, db.ForeignKey('dictionary_entries.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    lemma_id = db.Column(db.Integer, db.ForeignKey('dictionary_lemmas.id', ondelete='CASCADE'), nullable=False)
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)


class DictionaryCollection(db.Model):
    __tablename__ = 'dictionary_collections'

    id = db.Column(db.Integer, primary_key=True)
    language_id = db.Column(db.Integer, db.ForeignKey('languages.id', ondelete='CASCADE'), nullable=False)
    collection_key = db.Column(db.String(100), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('language_id', 'collection_key', name='uq_dictionary_collections_lang_key'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'collectionKey': self.collection_key,
            'title': self.title,
            'description': self.description,
            'sortOrder': self.sort_order,
        }


class DictionaryCollectionItem(db.Model):
    __tablename__ = 'dictionary_collection_items'

    id = db.Column(db.Integer, primary_key=True)
    collection_id = db.Column(
        db.Integer, db.ForeignKey('dictionary_collections.id', ondelete='CASCADE'), nullable=False
    )
    sense_id = db.Column(db.Integer, db.ForeignKey('dictionary_senses.id', ondelete='CASCADE'), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('collection_id', 'sense_id', name='uq_dictionary_collection_items'),
    )
