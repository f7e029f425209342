"""
Search indexing and query engine package.

This package provides a pure-Python object search stack:
- schema: Searchable field declarations
- analyzers: Tokenizers and filters (lowercase, stopwords)
- models, stats, fuzzy, phrase: Postings, BM25 helpers, edit distance, phrase matching
- index: Positional in-memory index with BM25 scoring
- planner: Tiered query construction
- executor: First-productive-tier execution with score decay
- relevance: Match percentage, position boost and final score
- aggregator: Best match per object
- relations: Optional relation expansion
"""
