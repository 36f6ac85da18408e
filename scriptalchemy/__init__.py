"""
ScriptAlchemy - subtitle transcript analysis toolkit.

Turns subtitle transcripts into structural script analyses and a
cross-script master template through a small pipeline: transcript
parsing → duration filter and batching → global LLM pass → per-batch
segment labeling → template synthesis.
"""

__version__ = "0.1.0"
