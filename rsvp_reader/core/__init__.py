"""Core segmentation and position modules.

WHY: The core package contains the stable heart of the reader — the
Document IR, the tokenizer and segmenter that build it, and the pure
position functions the playback engine walks it with.

HOW: ir.py defines the data structures, tokenizer.py turns raw tokens
into words, segmenter.py groups words into sentences, paragraphs and
chapters, position.py addresses and moves through a built Document.

RULES:
- IR dataclasses are frozen: a Document is replaced, never edited
- Nothing in core knows about files, timers, or presentation
"""
