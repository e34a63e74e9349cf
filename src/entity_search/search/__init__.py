"""In-memory full-text index used by the entity searchers.

This package provides a pure-Python index stack:
- schema: Field types and reserved id/type fields
- analyzers: Tokenizers and filters (lowercase, stop words, stemming)
- query: Immutable structured query values
- parser: Classic query-syntax parser and literal escaping
- fuzzy: Edit distance and fuzzy term expansion
- scoring: BM25 weights
- index: Copy-on-write inverted index executing structured queries
"""
